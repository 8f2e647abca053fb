"""Router error taxonomy.

Every error aborts the whole top-level call. Each class carries a stable
`reason` string so that off-chain tooling can tell slippage apart from
misconfiguration or an unsupported venue without parsing messages.
"""

from __future__ import annotations


class RouterError(Exception):
    """Base error for the routing and liquidity engine."""

    reason: str = "router error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.reason
        super().__init__(self.detail)


# Validation


class ValidationError(RouterError):
    """Malformed call arguments."""

    reason = "invalid argument"


class ZeroAddress(ValidationError):
    reason = "zero address"


class ZeroAmount(ValidationError):
    reason = "zero amount"


class PathTooShort(ValidationError):
    reason = "path too short"


class InvalidRoute(ValidationError):
    """Route hops do not chain from the source to the destination token."""

    reason = "invalid route"


# Configuration


class ConfigurationError(RouterError):
    """Venue or route configuration does not allow the call."""

    reason = "misconfigured"


class UnsupportedVenue(ConfigurationError):
    reason = "unsupported venue"


class MissingEndpoint(ConfigurationError):
    reason = "missing endpoint"


class NoRouteConfigured(ConfigurationError):
    reason = "no route configured"


class Unauthorized(ConfigurationError):
    reason = "not operator"


# Discovery


class DiscoveryError(RouterError):
    """No venue pool can serve the requested pair."""

    reason = "discovery failed"


class NoPoolFound(DiscoveryError):
    reason = "no pool found"


class NoPoolForMultihop(DiscoveryError):
    reason = "no pool for multihop"


# Economic


class EconomicError(RouterError):
    """The call would settle at an unacceptable price."""

    reason = "economic check failed"


class InsufficientOutput(EconomicError):
    reason = "insufficient output"

    def __init__(self, amount_out: int, min_amount_out: int) -> None:
        self.amount_out = amount_out
        self.min_amount_out = min_amount_out
        super().__init__(f"Output {amount_out} below minimum {min_amount_out}")


class ZeroTotalRatio(EconomicError):
    reason = "zero total ratio"


# Resource bounds


class ResourceBoundError(RouterError):
    reason = "resource bound exceeded"


class PathLengthExceeded(ResourceBoundError):
    reason = "path length exceeded"


__all__ = [
    "RouterError",
    "ValidationError",
    "ZeroAddress",
    "ZeroAmount",
    "PathTooShort",
    "InvalidRoute",
    "ConfigurationError",
    "UnsupportedVenue",
    "MissingEndpoint",
    "NoRouteConfigured",
    "Unauthorized",
    "DiscoveryError",
    "NoPoolFound",
    "NoPoolForMultihop",
    "EconomicError",
    "InsufficientOutput",
    "ZeroTotalRatio",
    "ResourceBoundError",
    "PathLengthExceeded",
]
