"""Router parameter structs, packed multi-hop paths and slot0 layouts."""

from __future__ import annotations

from dataclasses import dataclass

from eth_abi import decode, encode  # type: ignore[attr-defined]
from eth_abi.packed import encode_packed

from dexrouter.models.types import normalize_address

# Bytes per element of a packed path
ADDR_SIZE = 20
FEE_SIZE = 3

# slot0 = (sqrtPriceX96, tick, observationIndex, observationCardinality,
#          observationCardinalityNext, feeProtocol, unlocked)
SLOT0_TYPES = ("uint160", "int24", "uint16", "uint16", "uint16", "uint8", "bool")

# The Pancake fork widens feeProtocol to carry both sides' protocol fees
PANCAKE_SLOT0_TYPES = ("uint160", "int24", "uint16", "uint16", "uint16", "uint32", "bool")


@dataclass(frozen=True)
class ExactInputSingleParams:
    """SwapRouter.exactInputSingle argument.

    deadline is None for routers whose struct has no deadline field.
    """

    token_in: str
    token_out: str
    fee: int
    recipient: str
    amount_in: int
    amount_out_minimum: int
    deadline: int | None = None
    sqrt_price_limit_x96: int = 0


@dataclass(frozen=True)
class ExactInputParams:
    """SwapRouter.exactInput argument over a packed path."""

    path: bytes
    recipient: str
    amount_in: int
    amount_out_minimum: int
    deadline: int | None = None


@dataclass(frozen=True)
class MintParams:
    """NonfungiblePositionManager.mint argument."""

    token0: str
    token1: str
    fee: int
    tick_lower: int
    tick_upper: int
    amount0_desired: int
    amount1_desired: int
    amount0_min: int
    amount1_min: int
    recipient: str
    deadline: int


def encode_path(tokens: list[str], fees: list[int]) -> bytes:
    """Pack token0 | fee0 | token1 | fee1 | ... | tokenN.

    Raises:
        ValueError: If the fee count is not one less than the token count
    """
    if len(tokens) < 2 or len(fees) != len(tokens) - 1:
        raise ValueError(f"Path needs n tokens and n-1 fees, got {len(tokens)} and {len(fees)}")

    types: list[str] = []
    values: list[object] = []
    for token, fee in zip(tokens, fees, strict=False):
        types += ["address", "uint24"]
        values += [bytes.fromhex(normalize_address(token)[2:]), fee]
    types.append("address")
    values.append(bytes.fromhex(normalize_address(tokens[-1])[2:]))
    return encode_packed(types, values)


def decode_path(path: bytes) -> tuple[list[str], list[int]]:
    """Inverse of encode_path.

    Raises:
        ValueError: If the byte length is not a valid packed path
    """
    step = ADDR_SIZE + FEE_SIZE
    if len(path) < ADDR_SIZE + step or (len(path) - ADDR_SIZE) % step != 0:
        raise ValueError(f"Invalid packed path length {len(path)}")

    tokens: list[str] = []
    fees: list[int] = []
    offset = 0
    while offset + ADDR_SIZE < len(path):
        tokens.append("0x" + path[offset : offset + ADDR_SIZE].hex())
        fees.append(int.from_bytes(path[offset + ADDR_SIZE : offset + step], "big"))
        offset += step
    tokens.append("0x" + path[offset:].hex())
    return tokens, fees


def encode_slot0(
    sqrt_price_x96: int, tick: int, fee_protocol: int, types: tuple[str, ...] = SLOT0_TYPES
) -> bytes:
    return encode(list(types), [sqrt_price_x96, tick, 0, 1, 1, fee_protocol, True])


def decode_slot0(data: bytes, types: tuple[str, ...] = SLOT0_TYPES) -> tuple[int, int]:
    """Read (sqrtPriceX96, tick) from an ABI-encoded slot0."""
    values = decode(list(types), data)
    return values[0], values[1]


__all__ = [
    "ADDR_SIZE",
    "FEE_SIZE",
    "SLOT0_TYPES",
    "PANCAKE_SLOT0_TYPES",
    "ExactInputSingleParams",
    "ExactInputParams",
    "MintParams",
    "encode_path",
    "decode_path",
    "encode_slot0",
    "decode_slot0",
]
