"""Q64.96 tick and liquidity math for concentrated-liquidity pools.

Integer-exact ports of TickMath, SqrtPriceMath, SwapMath, LiquidityAmounts
and OracleLibrary.getQuoteAtTick. Python ints never overflow, so the
overflow branches of the fixed-width originals collapse into one formula.
"""

from __future__ import annotations

from dexrouter.safe_int import UINT256_MAX, mul_div, mul_div_up

from .constants import (
    FEE_DENOMINATOR,
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    Q96,
    Q192,
)

# sqrt(1.0001^-(2^i)) in Q128.128 for each bit i of |tick|
_TICK_BIT_RATIOS = (
    (0x2, 0xFFF97272373D413259A46990580E213A),
    (0x4, 0xFFF2E50F5F656932EF12357CF3C7FDCC),
    (0x8, 0xFFE5CACA7E10E4E61C3624EAA0941CD0),
    (0x10, 0xFFCB9843D60F6159C9DB58835C926644),
    (0x20, 0xFF973B41FA98C081472E6896DFB254C0),
    (0x40, 0xFF2EA16466C96A3843EC78B326B52861),
    (0x80, 0xFE5DEE046A99A2A811C461F1969C3053),
    (0x100, 0xFCBE86C7900A88AEDCFFC83B479AA3A4),
    (0x200, 0xF987A7253AC413176F2B074CF7815E54),
    (0x400, 0xF3392B0822B70005940C7A398E4B70F3),
    (0x800, 0xE7159475A2C29B7443B29C7FA6E889D9),
    (0x1000, 0xD097F3BDFD2022B8845AD8F792AA5825),
    (0x2000, 0xA9F746462D870FDF8A65DC1F90E061E5),
    (0x4000, 0x70D869A156D2A1B890BB3DF62BAF32F7),
    (0x8000, 0x31BE135F97D08FD981231505542FCFA6),
    (0x10000, 0x9AA508B5B7A84E1C677DE54F3E99BC9),
    (0x20000, 0x5D6AF8DEDB81196699C329225EE604),
    (0x40000, 0x2216E584F5FA1EA926041BEDFE98),
    (0x80000, 0x48A170391F7DC42444E8FA2),
)


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """sqrt(1.0001^tick) * 2^96, rounded up.

    Raises:
        ValueError: If the tick is outside [MIN_TICK, MAX_TICK]
    """
    abs_tick = abs(tick)
    if abs_tick > MAX_TICK:
        raise ValueError(f"Tick {tick} out of bounds [{MIN_TICK}, {MAX_TICK}]")

    ratio = 0xFFFCB933BD6FAD37AA2D162D1A594001 if abs_tick & 0x1 else 1 << 128
    for bit, multiplier in _TICK_BIT_RATIOS:
        if abs_tick & bit:
            ratio = (ratio * multiplier) >> 128

    if tick > 0:
        ratio = UINT256_MAX // ratio

    # Q128.128 -> Q64.96, rounding up so that tick_at(sqrt_ratio_at(t)) == t
    return (ratio >> 32) + (0 if ratio % (1 << 32) == 0 else 1)


def get_tick_at_sqrt_ratio(sqrt_price_x96: int) -> int:
    """Greatest tick whose sqrt ratio is <= sqrt_price_x96.

    Raises:
        ValueError: If the price is outside [MIN_SQRT_RATIO, MAX_SQRT_RATIO)
    """
    if not MIN_SQRT_RATIO <= sqrt_price_x96 < MAX_SQRT_RATIO:
        raise ValueError(f"sqrt_price_x96 {sqrt_price_x96} out of bounds")

    low, high = MIN_TICK, MAX_TICK
    while high - low > 1:
        mid = (low + high) // 2
        if get_sqrt_ratio_at_tick(mid) <= sqrt_price_x96:
            low = mid
        else:
            high = mid
    return low


def quote_at_tick(tick: int, base_amount: int, base_token: str, quote_token: str) -> int:
    """Amount of quote_token worth base_amount of base_token at a tick.

    The tick prices token1 in token0 units; the lower address is token0.
    """
    sqrt_ratio = get_sqrt_ratio_at_tick(tick)
    ratio_x192 = sqrt_ratio * sqrt_ratio
    if bytes.fromhex(base_token[2:]) < bytes.fromhex(quote_token[2:]):
        return mul_div(ratio_x192, base_amount, Q192)
    return mul_div(Q192, base_amount, ratio_x192)


# --- SqrtPriceMath ---


def get_amount0_delta(sqrt_a: int, sqrt_b: int, liquidity: int, round_up: bool) -> int:
    """Token0 held by `liquidity` between two sqrt prices."""
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    if liquidity == 0 or sqrt_a == sqrt_b:
        return 0

    numerator1 = liquidity << 96
    numerator2 = sqrt_b - sqrt_a
    if round_up:
        return -(-mul_div_up(numerator1, numerator2, sqrt_b) // sqrt_a)
    return mul_div(numerator1, numerator2, sqrt_b) // sqrt_a


def get_amount1_delta(sqrt_a: int, sqrt_b: int, liquidity: int, round_up: bool) -> int:
    """Token1 held by `liquidity` between two sqrt prices."""
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    if round_up:
        return mul_div_up(liquidity, sqrt_b - sqrt_a, Q96)
    return mul_div(liquidity, sqrt_b - sqrt_a, Q96)


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int, liquidity: int, amount_in: int, zero_for_one: bool
) -> int:
    """Sqrt price after adding amount_in of the input token.

    Rounds so that the pool never gives out more than it should: token0 in
    rounds the new price up, token1 in rounds it down.

    Raises:
        ValueError: If the price or liquidity is zero
    """
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise ValueError("Price and liquidity must be positive")
    if amount_in == 0:
        return sqrt_price_x96

    if zero_for_one:
        numerator1 = liquidity << 96
        return mul_div_up(numerator1, sqrt_price_x96, numerator1 + amount_in * sqrt_price_x96)
    return sqrt_price_x96 + (amount_in << 96) // liquidity


# --- SwapMath ---


def compute_swap_step(
    sqrt_price_current: int,
    sqrt_price_target: int,
    liquidity: int,
    amount_remaining: int,
    fee_pips: int,
) -> tuple[int, int, int, int]:
    """One exact-input swap step within a single initialized-tick range.

    Args:
        sqrt_price_current: Current pool sqrt price
        sqrt_price_target: Price the step may not pass (next tick or limit)
        liquidity: Active liquidity in the range
        amount_remaining: Input left to swap, fee included
        fee_pips: Pool fee in hundredths of a basis point

    Returns:
        Tuple of (sqrt_price_next, amount_in, amount_out, fee_amount)
    """
    zero_for_one = sqrt_price_current >= sqrt_price_target
    remaining_less_fee = mul_div(amount_remaining, FEE_DENOMINATOR - fee_pips, FEE_DENOMINATOR)

    if zero_for_one:
        amount_in = get_amount0_delta(sqrt_price_target, sqrt_price_current, liquidity, True)
    else:
        amount_in = get_amount1_delta(sqrt_price_current, sqrt_price_target, liquidity, True)

    if remaining_less_fee >= amount_in:
        sqrt_price_next = sqrt_price_target
    else:
        sqrt_price_next = get_next_sqrt_price_from_input(
            sqrt_price_current, liquidity, remaining_less_fee, zero_for_one
        )

    reached_target = sqrt_price_next == sqrt_price_target
    if zero_for_one:
        if not reached_target:
            amount_in = get_amount0_delta(sqrt_price_next, sqrt_price_current, liquidity, True)
        amount_out = get_amount1_delta(sqrt_price_next, sqrt_price_current, liquidity, False)
    else:
        if not reached_target:
            amount_in = get_amount1_delta(sqrt_price_current, sqrt_price_next, liquidity, True)
        amount_out = get_amount0_delta(sqrt_price_current, sqrt_price_next, liquidity, False)

    if reached_target:
        fee_amount = mul_div_up(amount_in, fee_pips, FEE_DENOMINATOR - fee_pips)
    else:
        # Whatever is left over after the step is the fee
        fee_amount = amount_remaining - amount_in

    return sqrt_price_next, amount_in, amount_out, fee_amount


# --- LiquidityAmounts ---


def _liquidity_for_amount0(sqrt_a: int, sqrt_b: int, amount0: int) -> int:
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    intermediate = mul_div(sqrt_a, sqrt_b, Q96)
    return mul_div(amount0, intermediate, sqrt_b - sqrt_a)


def _liquidity_for_amount1(sqrt_a: int, sqrt_b: int, amount1: int) -> int:
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    return mul_div(amount1, Q96, sqrt_b - sqrt_a)


def get_liquidity_for_amounts(
    sqrt_price_x96: int, sqrt_a: int, sqrt_b: int, amount0: int, amount1: int
) -> int:
    """Maximum liquidity that amount0 and amount1 can back in [sqrt_a, sqrt_b]."""
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a

    if sqrt_price_x96 <= sqrt_a:
        return _liquidity_for_amount0(sqrt_a, sqrt_b, amount0)
    if sqrt_price_x96 < sqrt_b:
        return min(
            _liquidity_for_amount0(sqrt_price_x96, sqrt_b, amount0),
            _liquidity_for_amount1(sqrt_a, sqrt_price_x96, amount1),
        )
    return _liquidity_for_amount1(sqrt_a, sqrt_b, amount1)


def get_amounts_for_liquidity(
    sqrt_price_x96: int, sqrt_a: int, sqrt_b: int, liquidity: int, round_up: bool = False
) -> tuple[int, int]:
    """Token amounts represented by `liquidity` in [sqrt_a, sqrt_b] at the current price.

    Minting charges with round_up=True; withdrawals and previews round down.
    """
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a

    if sqrt_price_x96 <= sqrt_a:
        return get_amount0_delta(sqrt_a, sqrt_b, liquidity, round_up), 0
    if sqrt_price_x96 < sqrt_b:
        return (
            get_amount0_delta(sqrt_price_x96, sqrt_b, liquidity, round_up),
            get_amount1_delta(sqrt_a, sqrt_price_x96, liquidity, round_up),
        )
    return 0, get_amount1_delta(sqrt_a, sqrt_b, liquidity, round_up)


__all__ = [
    "get_sqrt_ratio_at_tick",
    "get_tick_at_sqrt_ratio",
    "quote_at_tick",
    "get_amount0_delta",
    "get_amount1_delta",
    "get_next_sqrt_price_from_input",
    "compute_swap_step",
    "get_liquidity_for_amounts",
    "get_amounts_for_liquidity",
]
