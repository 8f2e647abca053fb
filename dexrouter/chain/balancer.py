"""Balancer vault with weighted and stable pools.

Every pool's tokens are held by the single vault; a pool contract's address
doubles as its BPT (pool share token).
"""

from __future__ import annotations

import structlog

from dexrouter.amm.balancer import math as bmath
from dexrouter.amm.balancer.encoding import (
    ExitPoolRequest,
    FundManagement,
    JoinKind,
    JoinPoolRequest,
    SingleSwap,
    SwapKind,
    decode_exit,
    decode_join,
)
from dexrouter.models.types import ZERO_ADDRESS, normalize_address

from .errors import Forbidden, PoolError
from .ledger import Chain, Contract

logger = structlog.get_logger()

# BPT locked on initialization, as on-chain
MINIMUM_BPT = 10**6


class BalancerPool(Contract):
    """Common pool-side state: sorted tokens, swap fee and vault-held balances."""

    specialization = 2

    def __init__(self, chain: Chain, tokens: list[str], swap_fee: int) -> None:
        super().__init__(chain)
        self.tokens = [normalize_address(t) for t in tokens]
        if self.tokens != sorted(self.tokens):
            raise PoolError("Pool tokens must be sorted")
        self.swap_fee = swap_fee
        self.balances = [0] * len(self.tokens)
        self.pool_id = ""

    def index_of(self, token: str) -> int:
        try:
            return self.tokens.index(normalize_address(token))
        except ValueError as err:
            raise PoolError(f"Token {token} not in pool {self.pool_id}") from err

    def out_given_in(self, index_in: int, index_out: int, amount_in: int) -> int:
        raise NotImplementedError

    def bpt_for_init(self, amounts_in: list[int]) -> int:
        raise NotImplementedError

    def bpt_for_exact_tokens(self, amounts_in: list[int], total_supply: int) -> int:
        raise NotImplementedError


class BalancerWeightedPool(BalancerPool):
    """Weighted product pool; weights are 1e18 fixed point summing to ONE."""

    def __init__(self, chain: Chain, tokens: list[str], weights: list[int], swap_fee: int) -> None:
        super().__init__(chain, tokens, swap_fee)
        if len(weights) != len(self.tokens) or sum(weights) != bmath.ONE:
            raise PoolError("Weights must match tokens and sum to 1")
        self.weights = list(weights)

    def out_given_in(self, index_in: int, index_out: int, amount_in: int) -> int:
        return bmath.weighted_out_given_in(
            self.balances[index_in],
            self.weights[index_in],
            self.balances[index_out],
            self.weights[index_out],
            bmath.subtract_swap_fee(amount_in, self.swap_fee),
        )

    def bpt_for_init(self, amounts_in: list[int]) -> int:
        return bmath.weighted_invariant(amounts_in, self.weights) * len(self.tokens)

    def bpt_for_exact_tokens(self, amounts_in: list[int], total_supply: int) -> int:
        return bmath.weighted_bpt_out_given_exact_tokens_in(
            self.balances, self.weights, amounts_in, total_supply, self.swap_fee
        )


class BalancerStablePool(BalancerPool):
    """StableSwap pool; amp carries AMP_PRECISION."""

    def __init__(self, chain: Chain, tokens: list[str], amp: int, swap_fee: int) -> None:
        super().__init__(chain, tokens, swap_fee)
        self.amp = amp

    def out_given_in(self, index_in: int, index_out: int, amount_in: int) -> int:
        return bmath.stable_out_given_in(
            self.amp,
            self.balances,
            index_in,
            index_out,
            bmath.subtract_swap_fee(amount_in, self.swap_fee),
        )

    def bpt_for_init(self, amounts_in: list[int]) -> int:
        return bmath.stable_invariant(self.amp, amounts_in)

    def bpt_for_exact_tokens(self, amounts_in: list[int], total_supply: int) -> int:
        return bmath.stable_bpt_out_given_exact_tokens_in(
            self.amp, self.balances, amounts_in, total_supply
        )


class BalancerVault(Contract):
    def __init__(self, chain: Chain) -> None:
        super().__init__(chain)
        self.pools: dict[str, str] = {}
        self._nonce = 0

    def register_pool(self, pool: BalancerPool) -> str:
        """Register a deployed pool and assign its id (address | specialization | nonce)."""
        pool.pool_id = f"{pool.address}{pool.specialization:04x}{self._nonce:020x}"
        self._nonce += 1
        self.pools[pool.pool_id] = pool.address
        logger.debug("balancer_pool_registered", pool_id=pool.pool_id)
        return pool.pool_id

    def get_pool(self, pool_id: str) -> BalancerPool:
        try:
            return self.chain.contract(self.pools[pool_id.lower()])
        except KeyError as err:
            raise PoolError(f"Unknown pool id {pool_id}") from err

    def get_pool_tokens(self, pool_id: str) -> tuple[list[str], list[int]]:
        pool = self.get_pool(pool_id)
        return list(pool.tokens), list(pool.balances)

    def _calc_swap(self, single_swap: SingleSwap) -> tuple[BalancerPool, int, int, int]:
        if single_swap.kind is not SwapKind.GIVEN_IN:
            raise PoolError("Only GIVEN_IN swaps are supported")
        pool = self.get_pool(single_swap.pool_id)
        index_in = pool.index_of(single_swap.asset_in)
        index_out = pool.index_of(single_swap.asset_out)
        try:
            amount_out = pool.out_given_in(index_in, index_out, single_swap.amount)
        except bmath.BalancerMathError as err:
            raise PoolError(str(err)) from err
        return pool, index_in, index_out, amount_out

    def query_swap(self, single_swap: SingleSwap) -> int:
        """Output of a swap without executing it."""
        return self._calc_swap(single_swap)[3]

    def swap(
        self,
        single_swap: SingleSwap,
        funds: FundManagement,
        limit: int,
        deadline: int,
        *,
        sender: str,
    ) -> int:
        self.check_deadline(deadline)
        if normalize_address(sender) != normalize_address(funds.sender):
            raise Forbidden(f"{sender} cannot spend on behalf of {funds.sender}")
        pool, index_in, index_out, amount_out = self._calc_swap(single_swap)
        if amount_out < limit:
            raise PoolError(f"Swap limit: {amount_out} < {limit}")

        self.pull(single_swap.asset_in, funds.sender, single_swap.amount)
        self.push(single_swap.asset_out, funds.recipient, amount_out)
        pool.balances[index_in] += single_swap.amount
        pool.balances[index_out] -= amount_out
        return amount_out

    def join_pool(
        self, pool_id: str, recipient: str, request: JoinPoolRequest, *, sender: str
    ) -> tuple[int, list[int]]:
        """Deposit tokens for BPT.

        Returns:
            Tuple of (bpt_out, amounts_in)
        """
        pool = self.get_pool(pool_id)
        if [normalize_address(a) for a in request.assets] != pool.tokens:
            raise PoolError("Join assets do not match pool tokens")
        kind, amounts_in, min_bpt_out = decode_join(request.user_data)
        if len(amounts_in) != len(pool.tokens):
            raise PoolError("Join amounts length mismatch")

        supply = self.chain.total_supply(pool.address)
        try:
            if kind is JoinKind.INIT:
                if supply != 0:
                    raise PoolError("Pool already initialized")
                bpt_out = pool.bpt_for_init(amounts_in) - MINIMUM_BPT
                self.chain.mint(pool.address, ZERO_ADDRESS, MINIMUM_BPT)
            else:
                bpt_out = pool.bpt_for_exact_tokens(amounts_in, supply)
        except bmath.BalancerMathError as err:
            raise PoolError(str(err)) from err

        if bpt_out < min_bpt_out:
            raise PoolError(f"BPT out {bpt_out} below minimum {min_bpt_out}")
        for i, (token, amount) in enumerate(zip(pool.tokens, amounts_in, strict=True)):
            if amount > request.max_amounts_in[i]:
                raise PoolError(f"Join amount {amount} exceeds maximum for {token}")
            self.pull(token, sender, amount)
            pool.balances[i] += amount
        self.chain.mint(pool.address, recipient, bpt_out)
        return bpt_out, amounts_in

    def exit_pool(
        self, pool_id: str, recipient: str, request: ExitPoolRequest, *, sender: str
    ) -> list[int]:
        """Burn BPT for a proportional share of every pool token."""
        pool = self.get_pool(pool_id)
        if [normalize_address(a) for a in request.assets] != pool.tokens:
            raise PoolError("Exit assets do not match pool tokens")
        _, bpt_in = decode_exit(request.user_data)
        supply = self.chain.total_supply(pool.address)
        amounts_out = bmath.tokens_out_given_exact_bpt_in(pool.balances, bpt_in, supply)

        self.chain.burn(pool.address, sender, bpt_in)
        for i, (token, amount) in enumerate(zip(pool.tokens, amounts_out, strict=True)):
            if amount < request.min_amounts_out[i]:
                raise PoolError(f"Exit amount {amount} below minimum for {token}")
            pool.balances[i] -= amount
            self.push(token, recipient, amount)
        return amounts_out


__all__ = [
    "MINIMUM_BPT",
    "BalancerPool",
    "BalancerWeightedPool",
    "BalancerStablePool",
    "BalancerVault",
]
