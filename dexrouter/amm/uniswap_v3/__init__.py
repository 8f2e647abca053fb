"""Concentrated-liquidity (Uniswap V3 family) math and encoding."""

from .constants import FEE_TICK_SPACING, MAX_SQRT_RATIO, MAX_TICK, MIN_SQRT_RATIO, MIN_TICK, Q96
from .encoding import (
    ExactInputParams,
    ExactInputSingleParams,
    MintParams,
    decode_path,
    decode_slot0,
    encode_path,
    encode_slot0,
)
from .tick_math import (
    compute_swap_step,
    get_amount0_delta,
    get_amount1_delta,
    get_amounts_for_liquidity,
    get_liquidity_for_amounts,
    get_next_sqrt_price_from_input,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
    quote_at_tick,
)

__all__ = [
    "FEE_TICK_SPACING",
    "MAX_SQRT_RATIO",
    "MAX_TICK",
    "MIN_SQRT_RATIO",
    "MIN_TICK",
    "Q96",
    "ExactInputParams",
    "ExactInputSingleParams",
    "MintParams",
    "decode_path",
    "decode_slot0",
    "encode_path",
    "encode_slot0",
    "compute_swap_step",
    "get_amount0_delta",
    "get_amount1_delta",
    "get_amounts_for_liquidity",
    "get_liquidity_for_amounts",
    "get_next_sqrt_price_from_input",
    "get_sqrt_ratio_at_tick",
    "get_tick_at_sqrt_ratio",
    "quote_at_tick",
]
