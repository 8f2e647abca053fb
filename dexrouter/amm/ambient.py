"""Ambient (CrocSwap) ambient-liquidity math and multiswap step encoding.

Pools are addressed by (base, quote, pool_idx) where base is the token with
the lower address. Ambient liquidity is full-range, so within a pool it
behaves like a constant product over (base, quote) with liquidity
sqrt(base * quote) and price quote/base.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import isqrt

from eth_abi import decode, encode  # type: ignore[attr-defined]

from dexrouter.models.types import normalize_address, sort_tokens
from dexrouter.safe_int import S

# Fee rates are in hundredths of a basis point
FEE_DENOMINATOR = 1_000_000

SWAP_STEP_TYPE = "(uint256,address,address,bool)[]"


@dataclass(frozen=True)
class SwapStep:
    """One multiswap leg.

    is_buy is True when the trader pays base and receives quote.
    """

    pool_idx: int
    base: str
    quote: str
    is_buy: bool

    @classmethod
    def for_pair(cls, token_in: str, token_out: str, pool_idx: int) -> SwapStep:
        """Orient a token_in -> token_out leg by address order."""
        base, quote = sort_tokens(token_in, token_out)
        return cls(pool_idx, base, quote, is_buy=normalize_address(token_in) == base)

    @property
    def token_in(self) -> str:
        return self.base if self.is_buy else self.quote

    @property
    def token_out(self) -> str:
        return self.quote if self.is_buy else self.base


def encode_steps(steps: list[SwapStep]) -> bytes:
    return encode(
        [SWAP_STEP_TYPE],
        [
            [
                (s.pool_idx, bytes.fromhex(s.base[2:]), bytes.fromhex(s.quote[2:]), s.is_buy)
                for s in steps
            ]
        ],
    )


def decode_steps(data: bytes) -> list[SwapStep]:
    (raw,) = decode([SWAP_STEP_TYPE], data)
    return [
        SwapStep(idx, normalize_address(base), normalize_address(quote), is_buy)
        for idx, base, quote, is_buy in raw
    ]


def swap_output(
    amount_in: int, base_reserve: int, quote_reserve: int, is_buy: bool, fee_rate: int
) -> int:
    """Output of swapping against full-range reserves, fee taken from the input."""
    if is_buy:
        reserve_in, reserve_out = base_reserve, quote_reserve
    else:
        reserve_in, reserve_out = quote_reserve, base_reserve
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0
    net_in = S(amount_in) * S(FEE_DENOMINATOR - fee_rate) // S(FEE_DENOMINATOR)
    return (net_in * S(reserve_out) // (S(reserve_in) + net_in)).value


def ambient_liquidity(base_reserve: int, quote_reserve: int) -> int:
    return isqrt(base_reserve * quote_reserve)


def sqrt_price_x64(base_reserve: int, quote_reserve: int) -> int:
    """sqrt(quote / base) in Q64.64."""
    if base_reserve == 0:
        return 0
    return isqrt((quote_reserve << 128) // base_reserve)


def deposit_for_liquidity(
    liquidity: int, base_reserve: int, quote_reserve: int, total_liquidity: int
) -> tuple[int, int]:
    """Base and quote a mint of `liquidity` must pay, rounded up."""
    base = (S(liquidity) * S(base_reserve)).ceiling_div(total_liquidity).value
    quote = (S(liquidity) * S(quote_reserve)).ceiling_div(total_liquidity).value
    return base, quote


def liquidity_for_deposit(
    base_amount: int, quote_amount: int, base_reserve: int, quote_reserve: int, total_liquidity: int
) -> int:
    """Largest liquidity that base_amount and quote_amount can both back."""
    if total_liquidity == 0:
        return ambient_liquidity(base_amount, quote_amount)
    return min(
        (S(base_amount) * S(total_liquidity) // S(base_reserve)).value,
        (S(quote_amount) * S(total_liquidity) // S(quote_reserve)).value,
    )


__all__ = [
    "FEE_DENOMINATOR",
    "SwapStep",
    "encode_steps",
    "decode_steps",
    "swap_output",
    "ambient_liquidity",
    "sqrt_price_x64",
    "deposit_for_liquidity",
    "liquidity_for_deposit",
]
