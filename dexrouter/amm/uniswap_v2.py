"""Constant-product (x * y = k) math.

Shared by the pair contracts of the local host and by the quote path, so
that a quote over a path is exactly what a swap over that path pays out.
"""

from __future__ import annotations

from math import isqrt

from dexrouter.safe_int import S

# Fee in basis points (30 = 0.3%)
DEFAULT_FEE_BPS = 30

# LP tokens locked forever on the first mint
MINIMUM_LIQUIDITY = 1000


def get_amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_bps: int = DEFAULT_FEE_BPS,
) -> int:
    """Calculate output amount using the constant product formula.

    Formula: amount_out = (in * f * res_out) / (res_in * 10000 + in * f)
    where f = 10000 - fee_bps.

    Args:
        amount_in: Input token amount
        reserve_in: Reserve of input token in pool
        reserve_out: Reserve of output token in pool
        fee_bps: Pool fee in basis points

    Returns:
        Output token amount (0 for empty pools or zero input)
    """
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0

    amount_in_with_fee = S(amount_in) * S(10000 - fee_bps)
    numerator = amount_in_with_fee * S(reserve_out)
    denominator = S(reserve_in) * S(10000) + amount_in_with_fee
    return (numerator // denominator).value


def get_amount_in(
    amount_out: int,
    reserve_in: int,
    reserve_out: int,
    fee_bps: int = DEFAULT_FEE_BPS,
) -> int:
    """Calculate the input required for a desired output.

    Formula: amount_in = (res_in * out * 10000) / ((res_out - out) * f) + 1

    Returns:
        Required input, or 2^256-1 when out would drain the pool
    """
    if amount_out <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0
    if amount_out >= reserve_out:
        return 2**256 - 1

    numerator = S(reserve_in) * S(amount_out) * S(10000)
    denominator = (S(reserve_out) - S(amount_out)) * S(10000 - fee_bps)
    return (numerator // denominator).value + 1


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Equivalent amount of B at the current reserve ratio, fee-free."""
    return (S(amount_a) * S(reserve_b) // S(reserve_a)).value


def get_amounts_out(amount_in: int, reserves: list[tuple[int, int]], fee_bps: int) -> list[int]:
    """Chain get_amount_out over (reserve_in, reserve_out) pairs, one per hop."""
    amounts = [amount_in]
    for reserve_in, reserve_out in reserves:
        amounts.append(get_amount_out(amounts[-1], reserve_in, reserve_out, fee_bps))
    return amounts


def liquidity_minted(
    amount0: int, amount1: int, reserve0: int, reserve1: int, total_supply: int
) -> int:
    """LP tokens minted for a deposit.

    The first deposit mints sqrt(amount0 * amount1) minus MINIMUM_LIQUIDITY
    (which the pair locks); later deposits mint in proportion to the smaller
    of the two contributions.
    """
    if total_supply == 0:
        return max(isqrt(amount0 * amount1) - MINIMUM_LIQUIDITY, 0)
    return min(
        (S(amount0) * S(total_supply) // S(reserve0)).value,
        (S(amount1) * S(total_supply) // S(reserve1)).value,
    )


def optimal_deposit(
    amount0_desired: int, amount1_desired: int, reserve0: int, reserve1: int
) -> tuple[int, int]:
    """Largest deposit at the current ratio not exceeding either desired amount."""
    if reserve0 == 0 and reserve1 == 0:
        return amount0_desired, amount1_desired
    amount1_optimal = quote(amount0_desired, reserve0, reserve1)
    if amount1_optimal <= amount1_desired:
        return amount0_desired, amount1_optimal
    return quote(amount1_desired, reserve1, reserve0), amount1_desired


__all__ = [
    "DEFAULT_FEE_BPS",
    "MINIMUM_LIQUIDITY",
    "get_amount_out",
    "get_amount_in",
    "get_amounts_out",
    "quote",
    "liquidity_minted",
    "optimal_deposit",
]
