"""Constant-product venue contracts: factory, pair and router."""

from __future__ import annotations

import structlog

from dexrouter.amm import uniswap_v2 as cp
from dexrouter.models.types import ZERO_ADDRESS, normalize_address, sort_tokens

from .errors import PoolError
from .ledger import Chain, Contract

logger = structlog.get_logger()


class UniswapV2Pair(Contract):
    """Pair contract; its own address is also the LP token."""

    def __init__(self, chain: Chain, token0: str, token1: str, fee_bps: int) -> None:
        super().__init__(chain)
        self.token0 = token0
        self.token1 = token1
        self.fee_bps = fee_bps
        self.reserve0 = 0
        self.reserve1 = 0

    def get_reserves(self) -> tuple[int, int]:
        return self.reserve0, self.reserve1

    def total_supply(self) -> int:
        return self.chain.total_supply(self.address)

    def reserves_for(self, token_in: str) -> tuple[int, int]:
        """(reserve_in, reserve_out) for a swap paying token_in."""
        token_in = normalize_address(token_in)
        if token_in == self.token0:
            return self.reserve0, self.reserve1
        if token_in == self.token1:
            return self.reserve1, self.reserve0
        raise PoolError(f"Token {token_in} not in pair {self.address}")

    def _sync(self) -> None:
        self.reserve0 = self.chain.balance_of(self.token0, self.address)
        self.reserve1 = self.chain.balance_of(self.token1, self.address)

    def mint(self, to: str) -> int:
        """Mint LP tokens for whatever was transferred in since the last sync."""
        amount0 = self.chain.balance_of(self.token0, self.address) - self.reserve0
        amount1 = self.chain.balance_of(self.token1, self.address) - self.reserve1
        supply = self.total_supply()
        liquidity = cp.liquidity_minted(amount0, amount1, self.reserve0, self.reserve1, supply)
        if liquidity <= 0:
            raise PoolError("Insufficient liquidity minted")
        if supply == 0:
            self.chain.mint(self.address, ZERO_ADDRESS, cp.MINIMUM_LIQUIDITY)
        self.chain.mint(self.address, to, liquidity)
        self._sync()
        return liquidity

    def burn(self, to: str) -> tuple[int, int]:
        """Burn the LP tokens held by the pair and pay out the share."""
        liquidity = self.chain.balance_of(self.address, self.address)
        supply = self.total_supply()
        amount0 = liquidity * self.reserve0 // supply
        amount1 = liquidity * self.reserve1 // supply
        if amount0 == 0 or amount1 == 0:
            raise PoolError("Insufficient liquidity burned")
        self.chain.burn(self.address, self.address, liquidity)
        self.push(self.token0, to, amount0)
        self.push(self.token1, to, amount1)
        self._sync()
        return amount0, amount1

    def swap(self, token_in: str, amount_out: int, to: str) -> None:
        """Pay amount_out of the other token, checking the input already arrived."""
        reserve_in, reserve_out = self.reserves_for(token_in)
        token_out = self.token1 if normalize_address(token_in) == self.token0 else self.token0
        amount_in = self.chain.balance_of(token_in, self.address) - reserve_in
        if amount_out <= 0 or amount_out >= reserve_out:
            raise PoolError(f"Invalid output {amount_out} for reserve {reserve_out}")
        if cp.get_amount_out(amount_in, reserve_in, reserve_out, self.fee_bps) < amount_out:
            raise PoolError("K")
        self.push(token_out, to, amount_out)
        self._sync()


class UniswapV2Factory(Contract):
    def __init__(self, chain: Chain, fee_bps: int = cp.DEFAULT_FEE_BPS) -> None:
        super().__init__(chain)
        self.fee_bps = fee_bps
        self.pairs: dict[tuple[str, str], str] = {}

    def get_pair(self, token_a: str, token_b: str) -> str:
        """Pair address, or the zero address when none exists."""
        return self.pairs.get(sort_tokens(token_a, token_b), ZERO_ADDRESS)

    def create_pair(self, token_a: str, token_b: str) -> str:
        key = sort_tokens(token_a, token_b)
        if key in self.pairs:
            raise PoolError(f"Pair exists for {key}")
        pair = self.chain.deploy(UniswapV2Pair(self.chain, *key, fee_bps=self.fee_bps))
        self.pairs[key] = pair.address
        logger.debug("pair_created", factory=self.address, pair=pair.address)
        return pair.address


class UniswapV2Router(Contract):
    """Router02-style periphery over a single factory."""

    def __init__(self, chain: Chain, factory: UniswapV2Factory) -> None:
        super().__init__(chain)
        self.factory = factory

    def _pair(self, token_a: str, token_b: str) -> UniswapV2Pair:
        address = self.factory.get_pair(token_a, token_b)
        if address == ZERO_ADDRESS:
            raise PoolError(f"No pair for {token_a}/{token_b}")
        return self.chain.contract(address)

    def get_amounts_out(self, amount_in: int, path: list[str]) -> list[int]:
        """Amounts produced at every step of the path.

        Raises:
            PoolError: If the path is shorter than 2 or a pair is missing
        """
        if len(path) < 2:
            raise PoolError("Invalid path")
        reserves = [self._pair(a, b).reserves_for(a) for a, b in zip(path, path[1:], strict=False)]
        return cp.get_amounts_out(amount_in, reserves, self.factory.fee_bps)

    def quote(self, amount_a: int, reserve_a: int, reserve_b: int) -> int:
        return cp.quote(amount_a, reserve_a, reserve_b)

    def swap_exact_tokens_for_tokens(
        self,
        amount_in: int,
        amount_out_min: int,
        path: list[str],
        to: str,
        deadline: int,
        *,
        sender: str,
    ) -> list[int]:
        self.check_deadline(deadline)
        amounts = self.get_amounts_out(amount_in, path)
        if amounts[-1] < amount_out_min:
            raise PoolError(f"Insufficient output amount {amounts[-1]} < {amount_out_min}")

        first = self._pair(path[0], path[1])
        self.pull(path[0], sender, amount_in, to=first.address)
        for i, (token_in, token_out) in enumerate(zip(path, path[1:], strict=False)):
            pair = self._pair(token_in, token_out)
            if i < len(path) - 2:
                recipient = self._pair(token_out, path[i + 2]).address
            else:
                recipient = normalize_address(to)
            pair.swap(token_in, amounts[i + 1], recipient)
        return amounts

    def add_liquidity(
        self,
        token_a: str,
        token_b: str,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
        *,
        sender: str,
    ) -> tuple[int, int, int]:
        """Deposit at the current ratio, creating the pair if needed.

        Returns:
            Tuple of (amount_a, amount_b, liquidity)
        """
        self.check_deadline(deadline)
        if self.factory.get_pair(token_a, token_b) == ZERO_ADDRESS:
            self.factory.create_pair(token_a, token_b)
        pair = self._pair(token_a, token_b)
        reserve_a, reserve_b = pair.reserves_for(token_a)
        amount_a, amount_b = cp.optimal_deposit(
            amount_a_desired, amount_b_desired, reserve_a, reserve_b
        )
        if amount_a < amount_a_min or amount_b < amount_b_min:
            raise PoolError("Insufficient deposit amount")

        self.pull(token_a, sender, amount_a, to=pair.address)
        self.pull(token_b, sender, amount_b, to=pair.address)
        return amount_a, amount_b, pair.mint(to)

    def remove_liquidity(
        self,
        token_a: str,
        token_b: str,
        liquidity: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
        *,
        sender: str,
    ) -> tuple[int, int]:
        self.check_deadline(deadline)
        pair = self._pair(token_a, token_b)
        self.pull(pair.address, sender, liquidity, to=pair.address)
        amount0, amount1 = pair.burn(to)
        amount_a, amount_b = (
            (amount0, amount1) if normalize_address(token_a) == pair.token0 else (amount1, amount0)
        )
        if amount_a < amount_a_min or amount_b < amount_b_min:
            raise PoolError("Insufficient withdrawal amount")
        return amount_a, amount_b


__all__ = ["UniswapV2Pair", "UniswapV2Factory", "UniswapV2Router"]
