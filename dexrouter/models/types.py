"""Shared address and amount helpers.

Addresses are handled as lowercase 0x-prefixed hex strings everywhere in the
engine so that dictionary keys and lexicographic ordering are stable.
"""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

UINT256_MAX = 2**256 - 1

ZERO_ADDRESS = "0x" + "00" * 20


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an address to lowercase with a 0x prefix.

    Args:
        address: Address with or without 0x prefix
        validate: If True, raise ValueError for malformed addresses

    Returns:
        Lowercase address with 0x prefix

    Raises:
        ValueError: If validate=True and the address is malformed
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check that a string is 0x followed by 40 hex characters."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x") or len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def is_zero_address(address: str | None) -> bool:
    """True for None, the empty string or the all-zero address."""
    if not address:
        return True
    return normalize_address(address) == ZERO_ADDRESS


def sort_tokens(token_a: str, token_b: str) -> tuple[str, str]:
    """Order two tokens by address bytes (lower address first).

    Constant-product pairs and concentrated pools call the lower address
    token0; tick-indexed pools call it the base side.

    Raises:
        ValueError: If both tokens are the same
    """
    a = normalize_address(token_a)
    b = normalize_address(token_b)
    if a == b:
        raise ValueError(f"Identical tokens: {token_a}")
    if bytes.fromhex(a[2:]) < bytes.fromhex(b[2:]):
        return a, b
    return b, a


def validate_uint256(value: Any) -> int:
    """Coerce an int or decimal string into a uint256 int.

    Raises:
        ValueError: If the value is negative, non-integral or too large
    """
    if isinstance(value, bool):
        raise ValueError("Uint256 cannot be a bool")
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError as err:
            raise ValueError(f"Uint256 must be a decimal integer string: '{value}'") from err
    if not isinstance(value, int):
        raise ValueError(f"Uint256 must be string or int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"Uint256 cannot be negative: {value}")
    if value > UINT256_MAX:
        raise ValueError(f"Uint256 overflow: {value} > 2^256-1")
    return value


# Address as accepted from configuration and API payloads
Address = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]

# Amounts arrive as JSON ints or decimal strings
Uint256 = Annotated[
    int,
    BeforeValidator(validate_uint256),
    Field(description="256-bit unsigned integer"),
]
