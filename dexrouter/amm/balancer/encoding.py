"""Vault call structs and join/exit userData codecs.

userData is ABI-encoded with a leading kind discriminator followed by the
kind's arguments; token arrays are sized by the pool's token count.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from eth_abi import decode, encode  # type: ignore[attr-defined]


class SwapKind(IntEnum):
    GIVEN_IN = 0
    GIVEN_OUT = 1


class JoinKind(IntEnum):
    INIT = 0
    EXACT_TOKENS_IN_FOR_BPT_OUT = 1


class ExitKind(IntEnum):
    EXACT_BPT_IN_FOR_ONE_TOKEN_OUT = 0
    EXACT_BPT_IN_FOR_TOKENS_OUT = 1


@dataclass(frozen=True)
class SingleSwap:
    """Vault.swap single-pool step."""

    pool_id: str
    kind: SwapKind
    asset_in: str
    asset_out: str
    amount: int
    user_data: bytes = b""


@dataclass(frozen=True)
class FundManagement:
    """Where the vault pulls input from and pays output to."""

    sender: str
    recipient: str


@dataclass(frozen=True)
class JoinPoolRequest:
    assets: tuple[str, ...]
    max_amounts_in: tuple[int, ...]
    user_data: bytes


@dataclass(frozen=True)
class ExitPoolRequest:
    assets: tuple[str, ...]
    min_amounts_out: tuple[int, ...]
    user_data: bytes


def encode_init_join(amounts_in: list[int]) -> bytes:
    return encode(["uint256", "uint256[]"], [JoinKind.INIT, amounts_in])


def encode_exact_tokens_join(amounts_in: list[int], min_bpt_out: int) -> bytes:
    """userData for EXACT_TOKENS_IN_FOR_BPT_OUT."""
    return encode(
        ["uint256", "uint256[]", "uint256"],
        [JoinKind.EXACT_TOKENS_IN_FOR_BPT_OUT, amounts_in, min_bpt_out],
    )


def decode_join(user_data: bytes) -> tuple[JoinKind, list[int], int]:
    """Decode join userData into (kind, amounts_in, min_bpt_out).

    Raises:
        ValueError: If the kind is not a supported join
    """
    (raw_kind,) = decode(["uint256"], user_data[:32])
    kind = JoinKind(raw_kind)
    if kind is JoinKind.INIT:
        _, amounts = decode(["uint256", "uint256[]"], user_data)
        return kind, list(amounts), 0
    _, amounts, min_bpt = decode(["uint256", "uint256[]", "uint256"], user_data)
    return kind, list(amounts), min_bpt


def encode_exact_bpt_exit(bpt_amount_in: int) -> bytes:
    """userData for a proportional EXACT_BPT_IN_FOR_TOKENS_OUT exit."""
    return encode(["uint256", "uint256"], [ExitKind.EXACT_BPT_IN_FOR_TOKENS_OUT, bpt_amount_in])


def decode_exit(user_data: bytes) -> tuple[ExitKind, int]:
    """Decode exit userData into (kind, bpt_amount_in).

    Raises:
        ValueError: If the kind is not a proportional exit
    """
    raw_kind, bpt_in = decode(["uint256", "uint256"], user_data[:64])
    kind = ExitKind(raw_kind)
    if kind is not ExitKind.EXACT_BPT_IN_FOR_TOKENS_OUT:
        raise ValueError(f"Unsupported exit kind {kind.name}")
    return kind, bpt_in


__all__ = [
    "SwapKind",
    "JoinKind",
    "ExitKind",
    "SingleSwap",
    "FundManagement",
    "JoinPoolRequest",
    "ExitPoolRequest",
    "encode_init_join",
    "encode_exact_tokens_join",
    "decode_join",
    "encode_exact_bpt_exit",
    "decode_exit",
]
