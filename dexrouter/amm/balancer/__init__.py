"""Balancer weighted/stable pool math and vault encodings."""

from .encoding import (
    ExitKind,
    ExitPoolRequest,
    FundManagement,
    JoinKind,
    JoinPoolRequest,
    SingleSwap,
    SwapKind,
    decode_exit,
    decode_join,
    encode_exact_bpt_exit,
    encode_exact_tokens_join,
    encode_init_join,
)
from .math import BalancerMathError

__all__ = [
    "BalancerMathError",
    "ExitKind",
    "ExitPoolRequest",
    "FundManagement",
    "JoinKind",
    "JoinPoolRequest",
    "SingleSwap",
    "SwapKind",
    "decode_exit",
    "decode_join",
    "encode_exact_bpt_exit",
    "encode_exact_tokens_join",
    "encode_init_join",
]
