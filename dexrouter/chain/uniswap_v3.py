"""Concentrated-liquidity venue contracts.

Covers the Uniswap V3 factory, pools, swap router and position manager,
plus the Pancake fork whose slot0 widens feeProtocol to 32 bits and whose
router structs carry no deadline field.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import ClassVar

import structlog

from dexrouter.amm.uniswap_v3 import tick_math
from dexrouter.amm.uniswap_v3.constants import (
    FEE_TICK_SPACING,
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
)
from dexrouter.amm.uniswap_v3.encoding import (
    PANCAKE_SLOT0_TYPES,
    SLOT0_TYPES,
    ExactInputParams,
    ExactInputSingleParams,
    MintParams,
    decode_path,
    encode_slot0,
)
from dexrouter.constants import PANCAKESWAP_V3_FEE_TIERS, UNISWAP_V3_FEE_TIERS
from dexrouter.models.types import ZERO_ADDRESS, normalize_address, sort_tokens

from .errors import Forbidden, PoolError
from .ledger import Chain, Contract

logger = structlog.get_logger()


@dataclass
class _PositionInfo:
    liquidity: int = 0
    tokens_owed0: int = 0
    tokens_owed1: int = 0


class UniswapV3Pool(Contract):
    """Pool with per-tick liquidity_net and a multi-range exact-input swap."""

    SLOT0_TYPES: ClassVar[tuple[str, ...]] = SLOT0_TYPES
    FEE_PROTOCOL: ClassVar[int] = 0

    def __init__(self, chain: Chain, token0: str, token1: str, fee: int, tick_spacing: int) -> None:
        super().__init__(chain)
        self.token0 = token0
        self.token1 = token1
        self.fee = fee
        self.tick_spacing = tick_spacing
        self.sqrt_price_x96 = 0
        self.tick = 0
        self.active_liquidity = 0
        self.liquidity_net: dict[int, int] = {}
        self.liquidity_gross: dict[int, int] = {}
        self.positions: dict[tuple[str, int, int], _PositionInfo] = {}

    def initialize(self, sqrt_price_x96: int) -> None:
        if self.sqrt_price_x96 != 0:
            raise PoolError("Pool already initialized")
        self.sqrt_price_x96 = sqrt_price_x96
        self.tick = tick_math.get_tick_at_sqrt_ratio(sqrt_price_x96)

    def slot0(self) -> bytes:
        """ABI-encoded slot0 in this pool's layout."""
        return encode_slot0(self.sqrt_price_x96, self.tick, self.FEE_PROTOCOL, self.SLOT0_TYPES)

    def liquidity(self) -> int:
        return self.active_liquidity

    # --- Positions ---

    def _check_ticks(self, tick_lower: int, tick_upper: int) -> None:
        if tick_lower >= tick_upper or tick_lower < MIN_TICK or tick_upper > MAX_TICK:
            raise PoolError(f"Invalid tick range [{tick_lower}, {tick_upper})")
        if tick_lower % self.tick_spacing or tick_upper % self.tick_spacing:
            raise PoolError(f"Ticks must be multiples of spacing {self.tick_spacing}")

    def _update_tick(self, tick: int, liquidity_delta: int, upper: bool) -> None:
        gross = self.liquidity_gross.get(tick, 0) + liquidity_delta
        net = self.liquidity_net.get(tick, 0) + (-liquidity_delta if upper else liquidity_delta)
        if gross == 0:
            self.liquidity_gross.pop(tick, None)
            self.liquidity_net.pop(tick, None)
        else:
            self.liquidity_gross[tick] = gross
            self.liquidity_net[tick] = net

    def _modify_position(self, owner: str, tick_lower: int, tick_upper: int, delta: int) -> None:
        key = (owner, tick_lower, tick_upper)
        position = self.positions.setdefault(key, _PositionInfo())
        if position.liquidity + delta < 0:
            raise PoolError("Burn exceeds position liquidity")
        position.liquidity += delta
        self._update_tick(tick_lower, delta, upper=False)
        self._update_tick(tick_upper, delta, upper=True)
        if tick_lower <= self.tick < tick_upper:
            self.active_liquidity += delta

    def _range_amounts(self, tick_lower: int, tick_upper: int, liquidity: int, round_up: bool):
        return tick_math.get_amounts_for_liquidity(
            self.sqrt_price_x96,
            tick_math.get_sqrt_ratio_at_tick(tick_lower),
            tick_math.get_sqrt_ratio_at_tick(tick_upper),
            liquidity,
            round_up=round_up,
        )

    def mint(self, owner: str, tick_lower: int, tick_upper: int, liquidity: int) -> tuple[int, int]:
        """Add liquidity to a range; the caller must then pay the returned amounts."""
        if self.sqrt_price_x96 == 0:
            raise PoolError("Pool not initialized")
        if liquidity <= 0:
            raise PoolError("Mint amount must be positive")
        self._check_ticks(tick_lower, tick_upper)
        self._modify_position(owner, tick_lower, tick_upper, liquidity)
        return self._range_amounts(tick_lower, tick_upper, liquidity, round_up=True)

    def burn(self, owner: str, tick_lower: int, tick_upper: int, liquidity: int) -> tuple[int, int]:
        """Remove liquidity; the amounts become owed to the position until collected."""
        self._modify_position(owner, tick_lower, tick_upper, -liquidity)
        amount0, amount1 = self._range_amounts(tick_lower, tick_upper, liquidity, round_up=False)
        position = self.positions[(owner, tick_lower, tick_upper)]
        position.tokens_owed0 += amount0
        position.tokens_owed1 += amount1
        return amount0, amount1

    def collect(
        self,
        owner: str,
        tick_lower: int,
        tick_upper: int,
        recipient: str,
        amount0_requested: int,
        amount1_requested: int,
    ) -> tuple[int, int]:
        position = self.positions.get((owner, tick_lower, tick_upper), _PositionInfo())
        amount0 = min(amount0_requested, position.tokens_owed0)
        amount1 = min(amount1_requested, position.tokens_owed1)
        position.tokens_owed0 -= amount0
        position.tokens_owed1 -= amount1
        self.push(self.token0, recipient, amount0)
        self.push(self.token1, recipient, amount1)
        return amount0, amount1

    # --- Swaps ---

    def _next_initialized_tick(self, zero_for_one: bool) -> int:
        ticks = sorted(self.liquidity_net)
        if zero_for_one:
            i = bisect.bisect_right(ticks, self.tick)
            return ticks[i - 1] if i > 0 else MIN_TICK
        i = bisect.bisect_right(ticks, self.tick)
        return ticks[i] if i < len(ticks) else MAX_TICK

    def simulate_swap(self, zero_for_one: bool, amount_in: int) -> tuple[int, int]:
        """Run the swap loop and return (amount_in_used, amount_out) without committing."""
        saved = (self.sqrt_price_x96, self.tick, self.active_liquidity)
        try:
            return self._swap(zero_for_one, amount_in)
        finally:
            self.sqrt_price_x96, self.tick, self.active_liquidity = saved

    def _swap(self, zero_for_one: bool, amount_in: int) -> tuple[int, int]:
        if self.sqrt_price_x96 == 0:
            raise PoolError("Pool not initialized")
        limit = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1
        remaining = amount_in
        amount_out = 0

        while remaining > 0 and self.sqrt_price_x96 != limit:
            tick_next = self._next_initialized_tick(zero_for_one)
            sqrt_next = tick_math.get_sqrt_ratio_at_tick(tick_next)
            if zero_for_one:
                target = max(sqrt_next, limit)
            else:
                target = min(sqrt_next, limit)

            self.sqrt_price_x96, step_in, step_out, fee_amount = tick_math.compute_swap_step(
                self.sqrt_price_x96, target, self.active_liquidity, remaining, self.fee
            )
            remaining -= step_in + fee_amount
            amount_out += step_out

            if self.sqrt_price_x96 == sqrt_next:
                net = self.liquidity_net.get(tick_next, 0)
                if zero_for_one:
                    self.active_liquidity -= net
                    self.tick = tick_next - 1
                else:
                    self.active_liquidity += net
                    self.tick = tick_next
            else:
                self.tick = tick_math.get_tick_at_sqrt_ratio(self.sqrt_price_x96)

        return amount_in - remaining, amount_out

    def swap(self, recipient: str, zero_for_one: bool, amount_in: int) -> tuple[int, int]:
        """Move the price and pay out; the caller settles the input afterwards.

        Returns:
            Tuple of (amount_in_used, amount_out)
        """
        used, amount_out = self._swap(zero_for_one, amount_in)
        if amount_out == 0:
            raise PoolError("Swap produced no output")
        self.push(self.token1 if zero_for_one else self.token0, recipient, amount_out)
        return used, amount_out


class PancakeV3Pool(UniswapV3Pool):
    SLOT0_TYPES = PANCAKE_SLOT0_TYPES
    # 33% protocol fee on both sides, packed as two 16-bit halves
    FEE_PROTOCOL = (3300 << 16) | 3300


class UniswapV3Factory(Contract):
    POOL_CLASS: ClassVar[type[UniswapV3Pool]] = UniswapV3Pool
    FEE_TIERS: ClassVar[tuple[int, ...]] = UNISWAP_V3_FEE_TIERS

    def __init__(self, chain: Chain) -> None:
        super().__init__(chain)
        self.fee_amount_tick_spacing = {fee: FEE_TICK_SPACING[fee] for fee in self.FEE_TIERS}
        self.pools: dict[tuple[str, str, int], str] = {}

    def get_pool(self, token_a: str, token_b: str, fee: int) -> str:
        """Pool address, or the zero address when none exists."""
        return self.pools.get((*sort_tokens(token_a, token_b), fee), ZERO_ADDRESS)

    def create_pool(self, token_a: str, token_b: str, fee: int) -> str:
        if fee not in self.fee_amount_tick_spacing:
            raise PoolError(f"Fee tier {fee} not enabled")
        token0, token1 = sort_tokens(token_a, token_b)
        if (token0, token1, fee) in self.pools:
            raise PoolError(f"Pool exists for {token0}/{token1}/{fee}")
        pool = self.chain.deploy(
            self.POOL_CLASS(self.chain, token0, token1, fee, self.fee_amount_tick_spacing[fee])
        )
        self.pools[(token0, token1, fee)] = pool.address
        logger.debug("pool_created", factory=self.address, pool=pool.address, fee=fee)
        return pool.address


class PancakeV3Factory(UniswapV3Factory):
    POOL_CLASS = PancakeV3Pool
    FEE_TIERS = PANCAKESWAP_V3_FEE_TIERS


class UniswapV3SwapRouter(Contract):
    """Exact-input periphery; intermediate hops are held by the router."""

    def __init__(self, chain: Chain, factory: UniswapV3Factory) -> None:
        super().__init__(chain)
        self.factory = factory

    def _check_params_deadline(self, deadline: int | None) -> None:
        if deadline is None:
            raise PoolError("Router params require a deadline")
        self.check_deadline(deadline)

    def _pool(self, token_a: str, token_b: str, fee: int) -> UniswapV3Pool:
        address = self.factory.get_pool(token_a, token_b, fee)
        if address == ZERO_ADDRESS:
            raise PoolError(f"No pool for {token_a}/{token_b}/{fee}")
        return self.chain.contract(address)

    def _hop(
        self, token_in: str, token_out: str, fee: int, amount_in: int, payer: str, to: str
    ) -> int:
        pool = self._pool(token_in, token_out, fee)
        zero_for_one = normalize_address(token_in) == pool.token0
        used, amount_out = pool.swap(to, zero_for_one, amount_in)
        if payer == self.address:
            self.push(token_in, pool.address, used)
        else:
            self.pull(token_in, payer, used, to=pool.address)
        return amount_out

    def exact_input_single(self, params: ExactInputSingleParams, *, sender: str) -> int:
        self._check_params_deadline(params.deadline)
        amount_out = self._hop(
            params.token_in,
            params.token_out,
            params.fee,
            params.amount_in,
            sender,
            params.recipient,
        )
        if amount_out < params.amount_out_minimum:
            raise PoolError(f"Too little received: {amount_out} < {params.amount_out_minimum}")
        return amount_out

    def exact_input(self, params: ExactInputParams, *, sender: str) -> int:
        self._check_params_deadline(params.deadline)
        tokens, fees = decode_path(params.path)
        amount = params.amount_in
        payer = sender
        for i, fee in enumerate(fees):
            last = i == len(fees) - 1
            to = params.recipient if last else self.address
            amount = self._hop(tokens[i], tokens[i + 1], fee, amount, payer, to)
            payer = self.address
        if amount < params.amount_out_minimum:
            raise PoolError(f"Too little received: {amount} < {params.amount_out_minimum}")
        return amount


class PancakeSwapRouter(UniswapV3SwapRouter):
    """Smart-router variant whose structs have no deadline; the deadline is a separate argument."""

    def _check_params_deadline(self, deadline: int | None) -> None:
        if deadline is not None:
            raise PoolError("Pancake router params carry no deadline field")

    def exact_input_single(
        self, params: ExactInputSingleParams, *, sender: str, deadline: int | None = None
    ) -> int:
        if deadline is not None:
            self.check_deadline(deadline)
        return super().exact_input_single(params, sender=sender)

    def exact_input(
        self, params: ExactInputParams, *, sender: str, deadline: int | None = None
    ) -> int:
        if deadline is not None:
            self.check_deadline(deadline)
        return super().exact_input(params, sender=sender)


@dataclass
class PositionToken:
    owner: str
    token0: str
    token1: str
    fee: int
    tick_lower: int
    tick_upper: int
    liquidity: int = 0
    tokens_owed0: int = 0
    tokens_owed1: int = 0
    approved: str | None = None


class NonfungiblePositionManager(Contract):
    """Wraps pool positions in transferable token ids."""

    def __init__(self, chain: Chain, factory: UniswapV3Factory) -> None:
        super().__init__(chain)
        self.factory = factory
        self.tokens: dict[int, PositionToken] = {}
        self._next_id = 1

    def positions(self, token_id: int) -> PositionToken:
        try:
            return self.tokens[token_id]
        except KeyError as err:
            raise PoolError(f"Invalid token id {token_id}") from err

    def owner_of(self, token_id: int) -> str:
        return self.positions(token_id).owner

    def approve(self, to: str, token_id: int, *, sender: str) -> None:
        position = self.positions(token_id)
        if normalize_address(sender) != position.owner:
            raise Forbidden(f"{sender} does not own position {token_id}")
        position.approved = normalize_address(to)

    def transfer_from(self, src: str, dst: str, token_id: int, *, sender: str) -> None:
        position = self._authorized(token_id, sender)
        if position.owner != normalize_address(src):
            raise Forbidden(f"{src} does not own position {token_id}")
        position.owner = normalize_address(dst)
        position.approved = None

    def _authorized(self, token_id: int, sender: str) -> PositionToken:
        position = self.positions(token_id)
        if normalize_address(sender) not in (position.owner, position.approved):
            raise Forbidden(f"{sender} is not approved for position {token_id}")
        return position

    def _pool(self, token0: str, token1: str, fee: int) -> UniswapV3Pool:
        address = self.factory.get_pool(token0, token1, fee)
        if address == ZERO_ADDRESS:
            raise PoolError(f"No pool for {token0}/{token1}/{fee}")
        return self.chain.contract(address)

    def _add(
        self,
        pool: UniswapV3Pool,
        tick_lower: int,
        tick_upper: int,
        amount0_desired: int,
        amount1_desired: int,
        amount0_min: int,
        amount1_min: int,
        payer: str,
    ) -> tuple[int, int, int]:
        liquidity = tick_math.get_liquidity_for_amounts(
            pool.sqrt_price_x96,
            tick_math.get_sqrt_ratio_at_tick(tick_lower),
            tick_math.get_sqrt_ratio_at_tick(tick_upper),
            amount0_desired,
            amount1_desired,
        )
        amount0, amount1 = pool.mint(self.address, tick_lower, tick_upper, liquidity)
        if amount0 < amount0_min or amount1 < amount1_min:
            raise PoolError("Price slippage check")
        self.pull(pool.token0, payer, amount0, to=pool.address)
        self.pull(pool.token1, payer, amount1, to=pool.address)
        return liquidity, amount0, amount1

    def mint(self, params: MintParams, *, sender: str) -> tuple[int, int, int, int]:
        """Open a new position.

        Returns:
            Tuple of (token_id, liquidity, amount0, amount1)
        """
        self.check_deadline(params.deadline)
        token0, token1 = sort_tokens(params.token0, params.token1)
        pool = self._pool(token0, token1, params.fee)
        liquidity, amount0, amount1 = self._add(
            pool,
            params.tick_lower,
            params.tick_upper,
            params.amount0_desired,
            params.amount1_desired,
            params.amount0_min,
            params.amount1_min,
            sender,
        )
        token_id = self._next_id
        self._next_id += 1
        self.tokens[token_id] = PositionToken(
            owner=normalize_address(params.recipient),
            token0=token0,
            token1=token1,
            fee=params.fee,
            tick_lower=params.tick_lower,
            tick_upper=params.tick_upper,
            liquidity=liquidity,
        )
        return token_id, liquidity, amount0, amount1

    def increase_liquidity(
        self,
        token_id: int,
        amount0_desired: int,
        amount1_desired: int,
        amount0_min: int,
        amount1_min: int,
        deadline: int,
        *,
        sender: str,
    ) -> tuple[int, int, int]:
        self.check_deadline(deadline)
        position = self.positions(token_id)
        pool = self._pool(position.token0, position.token1, position.fee)
        liquidity, amount0, amount1 = self._add(
            pool,
            position.tick_lower,
            position.tick_upper,
            amount0_desired,
            amount1_desired,
            amount0_min,
            amount1_min,
            sender,
        )
        position.liquidity += liquidity
        return liquidity, amount0, amount1

    def decrease_liquidity(
        self,
        token_id: int,
        liquidity: int,
        amount0_min: int,
        amount1_min: int,
        deadline: int,
        *,
        sender: str,
    ) -> tuple[int, int]:
        self.check_deadline(deadline)
        position = self._authorized(token_id, sender)
        if liquidity <= 0 or liquidity > position.liquidity:
            raise PoolError(f"Cannot remove {liquidity} of {position.liquidity}")
        pool = self._pool(position.token0, position.token1, position.fee)
        amount0, amount1 = pool.burn(
            self.address, position.tick_lower, position.tick_upper, liquidity
        )
        if amount0 < amount0_min or amount1 < amount1_min:
            raise PoolError("Price slippage check")
        position.liquidity -= liquidity
        position.tokens_owed0 += amount0
        position.tokens_owed1 += amount1
        return amount0, amount1

    def collect(
        self,
        token_id: int,
        recipient: str,
        amount0_max: int,
        amount1_max: int,
        *,
        sender: str,
    ) -> tuple[int, int]:
        position = self._authorized(token_id, sender)
        pool = self._pool(position.token0, position.token1, position.fee)
        amount0, amount1 = pool.collect(
            self.address,
            position.tick_lower,
            position.tick_upper,
            normalize_address(recipient),
            min(amount0_max, position.tokens_owed0),
            min(amount1_max, position.tokens_owed1),
        )
        position.tokens_owed0 -= amount0
        position.tokens_owed1 -= amount1
        return amount0, amount1


__all__ = [
    "UniswapV3Pool",
    "PancakeV3Pool",
    "UniswapV3Factory",
    "PancakeV3Factory",
    "UniswapV3SwapRouter",
    "PancakeSwapRouter",
    "PositionToken",
    "NonfungiblePositionManager",
]
