"""Ambient: pools addressed by (base, quote, pool_idx), swaps as encoded multiswap steps."""

from __future__ import annotations

from dexrouter.amm.ambient import SwapStep, encode_steps, liquidity_for_deposit
from dexrouter.errors import NoPoolForMultihop, NoPoolFound
from dexrouter.models.liquidity import (
    AddLiquidityRequest,
    AmbientPosition,
    Position,
    RemoveLiquidityRequest,
)
from dexrouter.models.route import PoolRef
from dexrouter.routing.types import HopResult

from .base import BaseHandler


class AmbientHandler(BaseHandler):
    position_type = AmbientPosition

    def _step(self, token_in: str, token_out: str, pool: PoolRef | None, error: type[Exception]):
        if pool is None:
            candidate = self.find_pool(token_in, token_out)
            if not candidate.found:
                raise error(f"No Ambient pool for {token_in}/{token_out}")
            pool = candidate.key
        return SwapStep.for_pair(token_in, token_out, int(pool))

    def _preview(self, step: SwapStep, qty: int) -> int:
        base_flow, quote_flow, _ = self.endpoint("impact").calc_impact(
            step.base, step.quote, step.pool_idx, step.is_buy, qty
        )
        return -quote_flow if step.is_buy else -base_flow

    def _multiswap(
        self, steps: list[SwapStep], amount_in: int, payer: str
    ) -> list[HopResult]:
        hops = []
        amount = amount_in
        for step in steps:
            hop_out = self._preview(step, amount)
            hops.append(self.hop(step.token_in, step.token_out, amount, hop_out, step.pool_idx))
            amount = hop_out

        router = self.endpoint("router")
        self.approve(steps[0].token_in, payer, router.address, amount_in)
        hops[-1].amount_out = router.multiswap(encode_steps(steps), amount_in, 0, sender=payer)
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
        step = self._step(token_in, token_out, pool, NoPoolFound)
        return self._multiswap([step], amount_in, payer)

    def swap_path(
        self, path: list[str], amount_in: int, *, payer: str, deadline: int
    ) -> list[HopResult]:
        steps = [
            self._step(token_a, token_b, None, NoPoolForMultihop)
            for token_a, token_b in zip(path, path[1:], strict=False)
        ]
        return self._multiswap(steps, amount_in, payer)

    def quote(
        self, token_in: str, token_out: str, amount_in: int, pool: PoolRef | None = None
    ) -> int:
        return self._preview(self._step(token_in, token_out, pool, NoPoolFound), amount_in)

    def quote_path(self, path: list[str], amount_in: int) -> int:
        amount = amount_in
        for token_a, token_b in zip(path, path[1:], strict=False):
            amount = self._preview(self._step(token_a, token_b, None, NoPoolForMultihop), amount)
        return amount

    # --- Liquidity ---

    def _curve(self, position: Position):
        self.check_position(position)
        dex = self.endpoint("factory")
        return dex, dex.require_curve(position.base, position.quote, position.pool_idx)

    def position_tokens(self, position: Position) -> tuple[str, ...]:
        self.check_position(position)
        return position.base, position.quote

    def position_reserves(self, position: Position) -> tuple[int, ...]:
        _, curve = self._curve(position)
        return curve.base_reserve, curve.quote_reserve

    def add_liquidity(
        self, request: AddLiquidityRequest, *, payer: str
    ) -> tuple[int, tuple[int, ...], int | None]:
        position = request.position
        dex, curve = self._curve(position)
        base_amount, quote_amount = request.amounts_desired
        liquidity = liquidity_for_deposit(
            base_amount,
            quote_amount,
            curve.base_reserve,
            curve.quote_reserve,
            self.chain.total_supply(curve.lp_token),
        )
        self.approve(position.base, payer, dex.address, base_amount)
        self.approve(position.quote, payer, dex.address, quote_amount)
        used = dex.mint_ambient(
            position.base,
            position.quote,
            position.pool_idx,
            liquidity,
            base_amount,
            quote_amount,
            sender=payer,
            recipient=request.recipient,
        )
        return liquidity, used, None

    def remove_liquidity(
        self, request: RemoveLiquidityRequest, *, owner: str, custody: str
    ) -> tuple[int, ...]:
        position = request.position
        dex, curve = self._curve(position)
        self.chain.transfer_from(curve.lp_token, custody, owner, custody, request.liquidity)
        minimums = request.amounts_min or (0, 0)
        return dex.burn_ambient(
            position.base,
            position.quote,
            position.pool_idx,
            request.liquidity,
            minimums[0],
            minimums[1],
            sender=custody,
            recipient=custody,
        )


__all__ = ["AmbientHandler"]
