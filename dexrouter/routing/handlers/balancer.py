"""Balancer: single vault, pools pinned per pair by the registry."""

from __future__ import annotations

from dexrouter.amm.balancer.encoding import (
    ExitPoolRequest,
    FundManagement,
    JoinPoolRequest,
    SingleSwap,
    SwapKind,
    encode_exact_bpt_exit,
    encode_exact_tokens_join,
)
from dexrouter.errors import NoPoolForMultihop, NoPoolFound
from dexrouter.models.liquidity import (
    AddLiquidityRequest,
    PoolPosition,
    Position,
    RemoveLiquidityRequest,
)
from dexrouter.models.route import PoolRef
from dexrouter.models.types import normalize_address
from dexrouter.routing.types import HopResult

from .base import BaseHandler


class BalancerHandler(BaseHandler):
    position_type = PoolPosition

    def _pool_id(self, token_in: str, token_out: str, pool: PoolRef | None) -> str:
        pool_id = pool
        if pool_id is None:
            pool_id = self.registry.pinned_pool(self.venue, token_in, token_out)
        if pool_id is None:
            raise NoPoolFound(f"No pinned Balancer pool for {token_in}/{token_out}")
        return str(pool_id)

    def _single_swap(
        self, pool_id: str, token_in: str, token_out: str, amount_in: int
    ) -> SingleSwap:
        return SingleSwap(
            pool_id=pool_id,
            kind=SwapKind.GIVEN_IN,
            asset_in=normalize_address(token_in),
            asset_out=normalize_address(token_out),
            amount=amount_in,
        )

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
        pool_id = self._pool_id(token_in, token_out, pool)
        vault = self.endpoint("router")
        self.approve(token_in, payer, vault.address, amount_in)
        amount_out = vault.swap(
            self._single_swap(pool_id, token_in, token_out, amount_in),
            FundManagement(sender=payer, recipient=payer),
            0,
            deadline,
            sender=payer,
        )
        return [self.hop(token_in, token_out, amount_in, amount_out, pool_id)]

    def swap_path(
        self, path: list[str], amount_in: int, *, payer: str, deadline: int
    ) -> list[HopResult]:
        for token_a, token_b in zip(path, path[1:], strict=False):
            if self.registry.pinned_pool(self.venue, token_a, token_b) is None:
                raise NoPoolForMultihop(f"No pinned Balancer pool for {token_a}/{token_b}")
        return super().swap_path(path, amount_in, payer=payer, deadline=deadline)

    def quote(
        self, token_in: str, token_out: str, amount_in: int, pool: PoolRef | None = None
    ) -> int:
        pool_id = self._pool_id(token_in, token_out, pool)
        return self.endpoint("router").query_swap(
            self._single_swap(pool_id, token_in, token_out, amount_in)
        )

    def quote_path(self, path: list[str], amount_in: int) -> int:
        for token_a, token_b in zip(path, path[1:], strict=False):
            if self.registry.pinned_pool(self.venue, token_a, token_b) is None:
                raise NoPoolForMultihop(f"No pinned Balancer pool for {token_a}/{token_b}")
        return super().quote_path(path, amount_in)

    # --- Liquidity ---

    def position_tokens(self, position: Position) -> tuple[str, ...]:
        self.check_position(position)
        tokens, _ = self.endpoint("router").get_pool_tokens(position.pool_id)
        return tuple(tokens)

    def position_reserves(self, position: Position) -> tuple[int, ...]:
        self.check_position(position)
        _, balances = self.endpoint("router").get_pool_tokens(position.pool_id)
        return tuple(balances)

    def add_liquidity(
        self, request: AddLiquidityRequest, *, payer: str
    ) -> tuple[int, tuple[int, ...], int | None]:
        self.check_position(request.position)
        vault = self.endpoint("router")
        amounts = list(request.amounts_desired)
        for token, amount in zip(request.tokens, amounts, strict=True):
            self.approve(token, payer, vault.address, amount)
        join = JoinPoolRequest(
            assets=tuple(request.tokens),
            max_amounts_in=tuple(amounts),
            user_data=encode_exact_tokens_join(amounts, request.min_liquidity),
        )
        bpt_out, used = vault.join_pool(
            request.position.pool_id, request.recipient, join, sender=payer
        )
        return bpt_out, tuple(used), None

    def remove_liquidity(
        self, request: RemoveLiquidityRequest, *, owner: str, custody: str
    ) -> tuple[int, ...]:
        self.check_position(request.position)
        vault = self.endpoint("router")
        pool = vault.get_pool(request.position.pool_id)
        self.chain.transfer_from(pool.address, custody, owner, custody, request.liquidity)
        tokens = tuple(pool.tokens)
        exit_request = ExitPoolRequest(
            assets=tokens,
            min_amounts_out=request.amounts_min or (0,) * len(tokens),
            user_data=encode_exact_bpt_exit(request.liquidity),
        )
        return tuple(
            vault.exit_pool(request.position.pool_id, custody, exit_request, sender=custody)
        )


__all__ = ["BalancerHandler"]
