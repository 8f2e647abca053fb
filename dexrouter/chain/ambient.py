"""Ambient (CrocSwap) venue contracts.

CrocSwapDex holds every pool keyed by (base, quote, pool_idx) and issues one
LP conduit token per pool for ambient liquidity. CrocSwapRouter chains
single-pool steps, CrocQuery and CrocImpact are the read-only lens contracts.
Flows follow Ambient's sign convention: positive is paid into the pool,
negative is paid out to the user.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from dexrouter.amm import ambient as amb
from dexrouter.models.types import normalize_address, sort_tokens

from .errors import PoolError
from .ledger import Chain, Contract

logger = structlog.get_logger()


@dataclass
class CurveState:
    base_reserve: int
    quote_reserve: int
    fee_rate: int
    lp_token: str

    def liquidity(self) -> int:
        return amb.ambient_liquidity(self.base_reserve, self.quote_reserve)


class CrocSwapDex(Contract):
    def __init__(self, chain: Chain) -> None:
        super().__init__(chain)
        self.curves: dict[tuple[str, str, int], CurveState] = {}

    @staticmethod
    def _key(base: str, quote: str, pool_idx: int) -> tuple[str, str, int]:
        base, quote = normalize_address(base), normalize_address(quote)
        if sort_tokens(base, quote) != (base, quote):
            raise PoolError("Base must be the lower-addressed token")
        return base, quote, pool_idx

    def curve(self, base: str, quote: str, pool_idx: int) -> CurveState | None:
        return self.curves.get(self._key(base, quote, pool_idx))

    def require_curve(self, base: str, quote: str, pool_idx: int) -> CurveState:
        curve = self.curve(base, quote, pool_idx)
        if curve is None:
            raise PoolError(f"No pool {base}/{quote}/{pool_idx}")
        return curve

    def lp_token(self, base: str, quote: str, pool_idx: int) -> str:
        return self.require_curve(base, quote, pool_idx).lp_token

    def init_pool(
        self,
        base: str,
        quote: str,
        pool_idx: int,
        base_amount: int,
        quote_amount: int,
        fee_rate: int,
        *,
        sender: str,
    ) -> int:
        """Create a pool seeded with full-range liquidity owned by sender."""
        key = self._key(base, quote, pool_idx)
        if key in self.curves:
            raise PoolError(f"Pool {key} already initialized")
        curve = CurveState(0, 0, fee_rate, self.chain.new_address())
        self.curves[key] = curve
        liquidity = amb.liquidity_for_deposit(base_amount, quote_amount, 0, 0, 0)
        self._deposit(curve, key, base_amount, quote_amount, sender)
        self.chain.mint(curve.lp_token, sender, liquidity)
        logger.debug("ambient_pool_initialized", base=key[0], quote=key[1], pool_idx=pool_idx)
        return liquidity

    def _deposit(
        self,
        curve: CurveState,
        key: tuple[str, str, int],
        base_amt: int,
        quote_amt: int,
        payer: str,
    ) -> None:
        self.pull(key[0], payer, base_amt)
        self.pull(key[1], payer, quote_amt)
        curve.base_reserve += base_amt
        curve.quote_reserve += quote_amt

    def mint_ambient(
        self,
        base: str,
        quote: str,
        pool_idx: int,
        liquidity: int,
        max_base: int,
        max_quote: int,
        *,
        sender: str,
        recipient: str | None = None,
    ) -> tuple[int, int]:
        """Add ambient liquidity, minting LP conduit tokens.

        Returns:
            Tuple of (base_paid, quote_paid)
        """
        key = self._key(base, quote, pool_idx)
        curve = self.require_curve(base, quote, pool_idx)
        total = self.chain.total_supply(curve.lp_token)
        if liquidity <= 0 or total == 0:
            raise PoolError("Mint liquidity must be positive on an initialized pool")
        base_amt, quote_amt = amb.deposit_for_liquidity(
            liquidity, curve.base_reserve, curve.quote_reserve, total
        )
        if base_amt > max_base or quote_amt > max_quote:
            raise PoolError(f"Mint needs {base_amt}/{quote_amt}, limits {max_base}/{max_quote}")
        self._deposit(curve, key, base_amt, quote_amt, sender)
        self.chain.mint(curve.lp_token, recipient or sender, liquidity)
        return base_amt, quote_amt

    def burn_ambient(
        self,
        base: str,
        quote: str,
        pool_idx: int,
        liquidity: int,
        min_base: int,
        min_quote: int,
        *,
        sender: str,
        recipient: str | None = None,
    ) -> tuple[int, int]:
        """Burn sender's LP conduit tokens for the proportional reserves."""
        key = self._key(base, quote, pool_idx)
        curve = self.require_curve(base, quote, pool_idx)
        total = self.chain.total_supply(curve.lp_token)
        base_amt = liquidity * curve.base_reserve // total
        quote_amt = liquidity * curve.quote_reserve // total
        if base_amt < min_base or quote_amt < min_quote:
            raise PoolError(f"Burn returns {base_amt}/{quote_amt}, limits {min_base}/{min_quote}")

        self.chain.burn(curve.lp_token, sender, liquidity)
        curve.base_reserve -= base_amt
        curve.quote_reserve -= quote_amt
        to = recipient or sender
        self.push(key[0], to, base_amt)
        self.push(key[1], to, quote_amt)
        return base_amt, quote_amt

    def preview_swap(self, base: str, quote: str, pool_idx: int, is_buy: bool, qty: int) -> int:
        curve = self.require_curve(base, quote, pool_idx)
        return amb.swap_output(qty, curve.base_reserve, curve.quote_reserve, is_buy, curve.fee_rate)

    def swap(
        self,
        base: str,
        quote: str,
        pool_idx: int,
        is_buy: bool,
        qty: int,
        min_out: int,
        *,
        sender: str,
        recipient: str | None = None,
    ) -> int:
        """Swap qty of the paid side (base when is_buy) for the other side."""
        key = self._key(base, quote, pool_idx)
        curve = self.require_curve(base, quote, pool_idx)
        amount_out = self.preview_swap(base, quote, pool_idx, is_buy, qty)
        if amount_out == 0 or amount_out < min_out:
            raise PoolError(f"Swap output {amount_out} below minimum {min_out}")

        token_in, token_out = (key[0], key[1]) if is_buy else (key[1], key[0])
        self.pull(token_in, sender, qty)
        self.push(token_out, recipient or sender, amount_out)
        if is_buy:
            curve.base_reserve += qty
            curve.quote_reserve -= amount_out
        else:
            curve.quote_reserve += qty
            curve.base_reserve -= amount_out
        return amount_out


class CrocSwapRouter(Contract):
    """Executes encoded SwapStep arrays, holding intermediate outputs itself."""

    def __init__(self, chain: Chain, dex: CrocSwapDex) -> None:
        super().__init__(chain)
        self.dex = dex

    def multiswap(self, encoded_steps: bytes, amount: int, min_out: int, *, sender: str) -> int:
        steps = amb.decode_steps(encoded_steps)
        if not steps:
            raise PoolError("Empty multiswap")
        for prev, step in zip(steps, steps[1:], strict=False):
            if prev.token_out != step.token_in:
                raise PoolError("Multiswap steps do not chain")

        self.pull(steps[0].token_in, sender, amount)
        for step in steps:
            self.chain.approve(step.token_in, self.address, self.dex.address, amount)
            amount = self.dex.swap(
                step.base, step.quote, step.pool_idx, step.is_buy, amount, 0, sender=self.address
            )
        if amount < min_out:
            raise PoolError(f"Multiswap output {amount} below minimum {min_out}")
        self.push(steps[-1].token_out, sender, amount)
        return amount


class CrocQuery(Contract):
    def __init__(self, chain: Chain, dex: CrocSwapDex) -> None:
        super().__init__(chain)
        self.dex = dex

    def query_liquidity(self, base: str, quote: str, pool_idx: int) -> int:
        """Ambient liquidity of a pool; 0 when the pool does not exist."""
        curve = self.dex.curve(base, quote, pool_idx)
        return curve.liquidity() if curve else 0

    def query_price(self, base: str, quote: str, pool_idx: int) -> int:
        curve = self.dex.curve(base, quote, pool_idx)
        if curve is None:
            return 0
        return amb.sqrt_price_x64(curve.base_reserve, curve.quote_reserve)


class CrocImpact(Contract):
    def __init__(self, chain: Chain, dex: CrocSwapDex) -> None:
        super().__init__(chain)
        self.dex = dex

    def calc_impact(
        self, base: str, quote: str, pool_idx: int, is_buy: bool, qty: int
    ) -> tuple[int, int, int]:
        """Preview a swap paying qty.

        Returns:
            Tuple of (base_flow, quote_flow, final_sqrt_price_x64)
        """
        curve = self.dex.require_curve(base, quote, pool_idx)
        amount_out = self.dex.preview_swap(base, quote, pool_idx, is_buy, qty)
        if is_buy:
            base_flow, quote_flow = qty, -amount_out
        else:
            base_flow, quote_flow = -amount_out, qty
        final_price = amb.sqrt_price_x64(
            curve.base_reserve + base_flow, curve.quote_reserve + quote_flow
        )
        return base_flow, quote_flow, final_price


__all__ = ["CurveState", "CrocSwapDex", "CrocSwapRouter", "CrocQuery", "CrocImpact"]
