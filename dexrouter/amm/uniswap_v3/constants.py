"""Concentrated-liquidity constants."""

MIN_TICK = -887272
MAX_TICK = 887272

# sqrt(1.0001^MIN_TICK) * 2^96 and sqrt(1.0001^MAX_TICK) * 2^96
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

Q96 = 2**96
Q192 = 2**192

# Fees are in hundredths of a basis point: fee / 1_000_000
FEE_DENOMINATOR = 1_000_000

# Tick spacing per fee tier; the 2500 tier is the Pancake fork's
FEE_TICK_SPACING = {
    100: 1,
    500: 10,
    2500: 50,
    3000: 60,
    10000: 200,
}

__all__ = [
    "MIN_TICK",
    "MAX_TICK",
    "MIN_SQRT_RATIO",
    "MAX_SQRT_RATIO",
    "Q96",
    "Q192",
    "FEE_DENOMINATOR",
    "FEE_TICK_SPACING",
]
