"""Constant-product venues (Uniswap V2 and forks)."""

from __future__ import annotations

from dexrouter.errors import NoPoolForMultihop, NoPoolFound
from dexrouter.models.liquidity import (
    AddLiquidityRequest,
    PairPosition,
    Position,
    RemoveLiquidityRequest,
)
from dexrouter.models.route import PoolRef
from dexrouter.models.types import ZERO_ADDRESS, normalize_address
from dexrouter.routing.types import HopResult

from .base import BaseHandler


class ConstantProductHandler(BaseHandler):
    """Routes through the venue router over a token path.

    Swaps go direct when either token is the wrapped native token and
    otherwise through it: [in, wnative, out].
    A pinned pool forces the direct pair and must be the pair the factory
    returns for it.
    """

    position_type = PairPosition

    def direct_path(self, token_in: str, token_out: str) -> list[str]:
        token_in, token_out = normalize_address(token_in), normalize_address(token_out)
        if self.wrapped_native in (token_in, token_out):
            return [token_in, token_out]
        return [token_in, self.wrapped_native, token_out]

    def _pairs(self, path: list[str], error: type[Exception]) -> list[str]:
        factory = self.endpoint("factory")
        pairs = []
        for token_a, token_b in zip(path, path[1:], strict=False):
            pair = factory.get_pair(token_a, token_b)
            if pair == ZERO_ADDRESS:
                raise error(f"No {self.venue.name} pair for {token_a}/{token_b}")
            pairs.append(pair)
        return pairs

    def _check_pinned(self, pool: PoolRef | None, pair: str) -> None:
        if pool is not None and normalize_address(str(pool)) != pair:
            raise NoPoolFound(f"Pinned pool {pool} is not the {self.venue.name} pair {pair}")

    def _execute(self, path: list[str], amount_in: int, payer: str, deadline: int) -> list[int]:
        router = self.endpoint("router")
        self.approve(path[0], payer, router.address, amount_in)
        return router.swap_exact_tokens_for_tokens(
            amount_in, 0, path, payer, deadline, sender=payer
        )

    def _results(self, path: list[str], pairs: list[str], amounts: list[int]) -> list[HopResult]:
        return [
            self.hop(path[i], path[i + 1], amounts[i], amounts[i + 1], pairs[i])
            for i in range(len(pairs))
        ]

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
        path = [normalize_address(token_in), normalize_address(token_out)]
        if pool is None:
            path = self.direct_path(token_in, token_out)
        pairs = self._pairs(path, NoPoolFound)
        self._check_pinned(pool, pairs[0])
        amounts = self._execute(path, amount_in, payer, deadline)
        return self._results(path, pairs, amounts)

    def swap_path(
        self, path: list[str], amount_in: int, *, payer: str, deadline: int
    ) -> list[HopResult]:
        path = [normalize_address(t) for t in path]
        pairs = self._pairs(path, NoPoolForMultihop)
        amounts = self._execute(path, amount_in, payer, deadline)
        return self._results(path, pairs, amounts)

    def quote(
        self, token_in: str, token_out: str, amount_in: int, pool: PoolRef | None = None
    ) -> int:
        path = [token_in, token_out] if pool is not None else self.direct_path(token_in, token_out)
        self._check_pinned(pool, self._pairs(path, NoPoolFound)[0])
        return self.endpoint("router").get_amounts_out(amount_in, path)[-1]

    def quote_path(self, path: list[str], amount_in: int) -> int:
        self._pairs(path, NoPoolForMultihop)
        return self.endpoint("router").get_amounts_out(amount_in, path)[-1]

    # --- Liquidity ---

    def _pair(self, position: Position):
        self.check_position(position)
        return self.chain.contract(position.pair)

    def position_tokens(self, position: Position) -> tuple[str, ...]:
        pair = self._pair(position)
        return pair.token0, pair.token1

    def position_reserves(self, position: Position) -> tuple[int, ...]:
        return self._pair(position).get_reserves()

    def add_liquidity(
        self, request: AddLiquidityRequest, *, payer: str
    ) -> tuple[int, tuple[int, ...], int | None]:
        self._pair(request.position)
        router = self.endpoint("router")
        (token_a, token_b), (amount_a, amount_b) = request.tokens, request.amounts_desired
        self.approve(token_a, payer, router.address, amount_a)
        self.approve(token_b, payer, router.address, amount_b)
        used_a, used_b, liquidity = router.add_liquidity(
            token_a,
            token_b,
            amount_a,
            amount_b,
            request.amounts_min[0],
            request.amounts_min[1],
            request.recipient,
            request.deadline,
            sender=payer,
        )
        return liquidity, (used_a, used_b), None

    def remove_liquidity(
        self, request: RemoveLiquidityRequest, *, owner: str, custody: str
    ) -> tuple[int, ...]:
        pair = self._pair(request.position)
        router = self.endpoint("router")
        self.chain.transfer_from(pair.address, custody, owner, custody, request.liquidity)
        self.approve(pair.address, custody, router.address, request.liquidity)
        minimums = request.amounts_min or (0, 0)
        return router.remove_liquidity(
            pair.token0,
            pair.token1,
            request.liquidity,
            minimums[0],
            minimums[1],
            custody,
            request.deadline,
            sender=custody,
        )


__all__ = ["ConstantProductHandler"]
