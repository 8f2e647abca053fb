"""Concentrated-liquidity venues (Uniswap V3, Sushi V3, Pancake V3)."""

from __future__ import annotations

from dexrouter.amm.uniswap_v3 import tick_math
from dexrouter.amm.uniswap_v3.constants import FEE_DENOMINATOR
from dexrouter.amm.uniswap_v3.encoding import (
    PANCAKE_SLOT0_TYPES,
    SLOT0_TYPES,
    ExactInputParams,
    ExactInputSingleParams,
    MintParams,
    decode_slot0,
    encode_path,
)
from dexrouter.constants import PRICE_UNIT
from dexrouter.errors import NoPoolForMultihop, NoPoolFound, ValidationError
from dexrouter.models.liquidity import (
    AddLiquidityRequest,
    Position,
    RangePosition,
    RemoveLiquidityRequest,
)
from dexrouter.models.route import PoolRef
from dexrouter.models.types import ZERO_ADDRESS, normalize_address
from dexrouter.routing.types import HopResult, PoolCandidate

from .base import BaseHandler, logger


class ConcentratedHandler(BaseHandler):
    """Direct exactInputSingle through the most liquid fee tier, else two hops via wnative."""

    position_type = RangePosition
    slot0_types: tuple[str, ...] = SLOT0_TYPES

    # --- Pool selection ---

    def _pinned(self, pool: PoolRef) -> PoolCandidate:
        contract = self.chain.contract(str(pool))
        return PoolCandidate(
            pool_ref=contract.address, liquidity=contract.liquidity(), key=contract.fee
        )

    def _plan(
        self, token_in: str, token_out: str, pool: PoolRef | None
    ) -> tuple[list[str], list[PoolCandidate]]:
        """Token path and pools for a single conversion.

        Raises:
            NoPoolFound: If neither a direct pool nor a two-hop path via wnative exists
        """
        token_in, token_out = normalize_address(token_in), normalize_address(token_out)
        if pool is not None:
            return [token_in, token_out], [self._pinned(pool)]

        direct = self.find_pool(token_in, token_out)
        if direct.found:
            return [token_in, token_out], [direct]

        wnative = self.wrapped_native
        if wnative not in (token_in, token_out):
            first = self.find_pool(token_in, wnative)
            second = self.find_pool(wnative, token_out)
            if first.found and second.found:
                logger.debug("two_hop_via_wnative", venue=self.venue.name, token_in=token_in)
                return [token_in, wnative, token_out], [first, second]
        raise NoPoolFound(f"No {self.venue.name} pool or wnative path for {token_in}/{token_out}")

    def _plan_path(self, path: list[str]) -> list[PoolCandidate]:
        pools = []
        for token_a, token_b in zip(path, path[1:], strict=False):
            candidate = self.find_pool(token_a, token_b)
            if not candidate.found:
                raise NoPoolForMultihop(f"No {self.venue.name} pool for {token_a}/{token_b}")
            pools.append(candidate)
        return pools

    # --- Router calls; the Pancake fork overrides these ---

    def _exact_input_single(
        self, token_in: str, token_out: str, fee: int, amount_in: int, payer: str, deadline: int
    ) -> int:
        params = ExactInputSingleParams(
            token_in=token_in,
            token_out=token_out,
            fee=fee,
            recipient=payer,
            amount_in=amount_in,
            amount_out_minimum=0,
            deadline=deadline,
        )
        return self.endpoint("router").exact_input_single(params, sender=payer)

    def _exact_input(self, path: bytes, amount_in: int, payer: str, deadline: int) -> int:
        params = ExactInputParams(
            path=path, recipient=payer, amount_in=amount_in, amount_out_minimum=0, deadline=deadline
        )
        return self.endpoint("router").exact_input(params, sender=payer)

    # --- Swaps ---

    def _execute(
        self, path: list[str], pools: list[PoolCandidate], amount_in: int, payer: str, deadline: int
    ) -> list[HopResult]:
        router = self.endpoint("router")
        self.approve(path[0], payer, router.address, amount_in)
        if len(pools) == 1:
            amount_out = self._exact_input_single(
                path[0], path[1], pools[0].key, amount_in, payer, deadline
            )
            return [self.hop(path[0], path[1], amount_in, amount_out, pools[0].pool_ref)]

        # Per-hop amounts are simulated on the pools before the single packed call
        hops = []
        amount = amount_in
        for i, candidate in enumerate(pools):
            pool = self.chain.contract(str(candidate.pool_ref))
            zero_for_one = path[i] == pool.token0
            _, hop_out = pool.simulate_swap(zero_for_one, amount)
            hops.append(self.hop(path[i], path[i + 1], amount, hop_out, candidate.pool_ref))
            amount = hop_out

        packed = encode_path(path, [p.key for p in pools])
        amount_out = self._exact_input(packed, amount_in, payer, deadline)
        hops[-1].amount_out = amount_out
        return hops

    def swap(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        *,
        payer: str,
        deadline: int,
        pool: PoolRef | None = None,
    ) -> list[HopResult]:
        path, pools = self._plan(token_in, token_out, pool)
        return self._execute(path, pools, amount_in, payer, deadline)

    def swap_path(
        self, path: list[str], amount_in: int, *, payer: str, deadline: int
    ) -> list[HopResult]:
        path = [normalize_address(t) for t in path]
        return self._execute(path, self._plan_path(path), amount_in, payer, deadline)

    # --- Quotes ---

    def current_tick(self, pool_address: str) -> int:
        _, tick = decode_slot0(self.chain.contract(pool_address).slot0(), self.slot0_types)
        return tick

    def _spot(self, token_in: str, token_out: str, candidate: PoolCandidate, amount_in: int) -> int:
        """Spot conversion at the pool's current tick after deducting the pool fee."""
        net = amount_in * (FEE_DENOMINATOR - candidate.key) // FEE_DENOMINATOR
        tick = self.current_tick(str(candidate.pool_ref))
        return tick_math.quote_at_tick(
            tick, net, normalize_address(token_in), normalize_address(token_out)
        )

    def quote(
        self, token_in: str, token_out: str, amount_in: int, pool: PoolRef | None = None
    ) -> int:
        path, pools = self._plan(token_in, token_out, pool)
        amount = amount_in
        for i, candidate in enumerate(pools):
            amount = self._spot(path[i], path[i + 1], candidate, amount)
        return amount

    def quote_path(self, path: list[str], amount_in: int) -> int:
        path = [normalize_address(t) for t in path]
        amount = amount_in
        for i, candidate in enumerate(self._plan_path(path)):
            amount = self._spot(path[i], path[i + 1], candidate, amount)
        return amount

    # --- Liquidity ---

    def _pool_for(self, position: Position):
        self.check_position(position)
        factory = self.endpoint("factory")
        address = factory.get_pool(position.token0, position.token1, position.fee)
        if address == ZERO_ADDRESS:
            raise NoPoolFound(
                f"No {self.venue.name} pool for {position.token0}/{position.token1}/{position.fee}"
            )
        return self.chain.contract(address)

    def position_tokens(self, position: Position) -> tuple[str, ...]:
        self.check_position(position)
        return position.token0, position.token1

    def position_reserves(self, position: Position) -> tuple[int, ...]:
        """Amounts a reference liquidity of PRICE_UNIT needs in the range at the current price."""
        pool = self._pool_for(position)
        return tick_math.get_amounts_for_liquidity(
            pool.sqrt_price_x96,
            tick_math.get_sqrt_ratio_at_tick(position.tick_lower),
            tick_math.get_sqrt_ratio_at_tick(position.tick_upper),
            PRICE_UNIT,
        )

    def add_liquidity(
        self, request: AddLiquidityRequest, *, payer: str
    ) -> tuple[int, tuple[int, ...], int | None]:
        position = request.position
        self._pool_for(position)
        manager = self.endpoint("position_manager")
        amount0, amount1 = request.amounts_desired
        self.approve(position.token0, payer, manager.address, amount0)
        self.approve(position.token1, payer, manager.address, amount1)

        if position.token_id is None:
            token_id, liquidity, used0, used1 = manager.mint(
                MintParams(
                    token0=position.token0,
                    token1=position.token1,
                    fee=position.fee,
                    tick_lower=position.tick_lower,
                    tick_upper=position.tick_upper,
                    amount0_desired=amount0,
                    amount1_desired=amount1,
                    amount0_min=request.amounts_min[0],
                    amount1_min=request.amounts_min[1],
                    recipient=request.recipient,
                    deadline=request.deadline,
                ),
                sender=payer,
            )
        else:
            token_id = position.token_id
            liquidity, used0, used1 = manager.increase_liquidity(
                token_id,
                amount0,
                amount1,
                request.amounts_min[0],
                request.amounts_min[1],
                request.deadline,
                sender=payer,
            )
        return liquidity, (used0, used1), token_id

    def remove_liquidity(
        self, request: RemoveLiquidityRequest, *, owner: str, custody: str
    ) -> tuple[int, ...]:
        position = request.position
        self.check_position(position)
        if position.token_id is None:
            raise ValidationError("Removing concentrated liquidity needs a position token id")
        manager = self.endpoint("position_manager")
        if manager.owner_of(position.token_id) != normalize_address(owner):
            raise ValidationError(f"{owner} does not own position {position.token_id}")
        minimums = request.amounts_min or (0, 0)
        # The owner approves this engine on the position manager beforehand
        manager.decrease_liquidity(
            position.token_id,
            request.liquidity,
            minimums[0],
            minimums[1],
            request.deadline,
            sender=custody,
        )
        return manager.collect(position.token_id, custody, 2**128 - 1, 2**128 - 1, sender=custody)


class PancakeHandler(ConcentratedHandler):
    """Pancake V3: 32-bit feeProtocol in slot0, router structs without a deadline."""

    slot0_types = PANCAKE_SLOT0_TYPES

    def _exact_input_single(
        self, token_in: str, token_out: str, fee: int, amount_in: int, payer: str, deadline: int
    ) -> int:
        params = ExactInputSingleParams(
            token_in=token_in,
            token_out=token_out,
            fee=fee,
            recipient=payer,
            amount_in=amount_in,
            amount_out_minimum=0,
        )
        return self.endpoint("router").exact_input_single(params, sender=payer, deadline=deadline)

    def _exact_input(self, path: bytes, amount_in: int, payer: str, deadline: int) -> int:
        params = ExactInputParams(
            path=path, recipient=payer, amount_in=amount_in, amount_out_minimum=0
        )
        return self.endpoint("router").exact_input(params, sender=payer, deadline=deadline)


__all__ = ["ConcentratedHandler", "PancakeHandler"]
