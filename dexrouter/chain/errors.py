"""Errors raised by the local execution host and its venue contracts."""


class ChainError(Exception):
    """Base error for ledger and venue-contract failures."""

    reason: str = "execution reverted"


class InsufficientBalance(ChainError):
    reason = "insufficient balance"


class InsufficientAllowance(ChainError):
    reason = "insufficient allowance"


class Expired(ChainError):
    """Call submitted after its deadline."""

    reason = "expired"


class ContractNotFound(ChainError):
    reason = "no contract at address"


class PoolError(ChainError):
    """A venue contract rejected the operation (bad pool, limit, or state)."""

    reason = "pool error"


class Forbidden(ChainError):
    """Caller is not allowed to act on the position."""

    reason = "forbidden"


__all__ = [
    "ChainError",
    "InsufficientBalance",
    "InsufficientAllowance",
    "Expired",
    "ContractNotFound",
    "PoolError",
    "Forbidden",
]
