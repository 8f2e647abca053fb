"""Protocol and shared plumbing for per-venue handlers.

A handler owns everything venue-specific: how a pair becomes a pool, how a
swap or a multi-hop path is encoded for the venue's router, how quotes are
read, and how positions are entered and redeemed. The engines only ever
talk to handlers through this protocol.
"""

from __future__ import annotations

from typing import Any, Protocol

import structlog

from dexrouter.chain.ledger import Chain
from dexrouter.errors import NoPoolFound, ValidationError
from dexrouter.models.liquidity import AddLiquidityRequest, Position, RemoveLiquidityRequest
from dexrouter.models.route import PoolRef
from dexrouter.models.types import normalize_address
from dexrouter.models.venue import VenueId
from dexrouter.routing.discovery import PoolDiscovery
from dexrouter.routing.registry import VenueRegistry
from dexrouter.routing.types import HopResult, PoolCandidate

logger = structlog.get_logger()


class VenueHandler(Protocol):
    """Venue adapter used by the swap, quote and liquidity engines.

    Swaps spend tokens held by `payer` and deliver the output back to
    `payer`; the engine settles with the caller afterwards.
    """

    venue: VenueId

    def has_direct_pool(self, token_a: str, token_b: str) -> bool: ...

    def swap(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        *,
        payer: str,
        deadline: int,
        pool: PoolRef | None = None,
    ) -> list[HopResult]: ...

    def swap_path(
        self, path: list[str], amount_in: int, *, payer: str, deadline: int
    ) -> list[HopResult]: ...

    def quote(
        self, token_in: str, token_out: str, amount_in: int, pool: PoolRef | None = None
    ) -> int: ...

    def quote_path(self, path: list[str], amount_in: int) -> int: ...

    def position_tokens(self, position: Position) -> tuple[str, ...]: ...

    def position_reserves(self, position: Position) -> tuple[int, ...]: ...

    def add_liquidity(
        self, request: AddLiquidityRequest, *, payer: str
    ) -> tuple[int, tuple[int, ...], int | None]: ...

    def remove_liquidity(
        self, request: RemoveLiquidityRequest, *, owner: str, custody: str
    ) -> tuple[int, ...]: ...


class BaseHandler:
    """Shared helpers for handler implementations."""

    position_type: type = object

    def __init__(
        self,
        venue: VenueId,
        chain: Chain,
        registry: VenueRegistry,
        discovery: PoolDiscovery,
    ) -> None:
        self.venue = venue
        self.chain = chain
        self.registry = registry
        self.discovery = discovery

    def endpoint(self, field: str) -> Any:
        return self.discovery.endpoint(self.venue, field)

    @property
    def wrapped_native(self) -> str:
        return self.registry.wrapped_native

    def find_pool(self, token_a: str, token_b: str) -> PoolCandidate:
        return self.discovery.find_most_liquid_pool(token_a, token_b, self.venue)

    def has_direct_pool(self, token_a: str, token_b: str) -> bool:
        return self.find_pool(token_a, token_b).found

    def require_pool(self, token_a: str, token_b: str) -> PoolCandidate:
        """Raises NoPoolFound when discovery comes back empty."""
        candidate = self.find_pool(token_a, token_b)
        if not candidate.found:
            raise NoPoolFound(f"No {self.venue.name} pool for {token_a}/{token_b}")
        return candidate

    def approve(self, token: str, owner: str, spender: str, amount: int) -> None:
        self.chain.approve(token, owner, spender, amount)

    def check_position(self, position: Position) -> None:
        if not isinstance(position, self.position_type):
            raise ValidationError(
                f"{type(position).__name__} is not a {self.venue.name} position"
            )

    def hop(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        amount_out: int,
        pool: PoolRef | None,
    ) -> HopResult:
        return HopResult(
            venue=self.venue,
            token_in=normalize_address(token_in),
            token_out=normalize_address(token_out),
            amount_in=amount_in,
            amount_out=amount_out,
            pool=pool,
        )

    def swap_path(
        self, path: list[str], amount_in: int, *, payer: str, deadline: int
    ) -> list[HopResult]:
        """Default multi-hop: one venue swap per consecutive pair."""
        hops: list[HopResult] = []
        amount = amount_in
        for token_in, token_out in zip(path, path[1:], strict=False):
            hops += self.swap(token_in, token_out, amount, payer=payer, deadline=deadline)
            amount = hops[-1].amount_out
        return hops

    def quote_path(self, path: list[str], amount_in: int) -> int:
        amount = amount_in
        for token_in, token_out in zip(path, path[1:], strict=False):
            amount = self.quote(token_in, token_out, amount)
        return amount

    def swap(self, *args: Any, **kwargs: Any) -> list[HopResult]:
        raise NotImplementedError

    def quote(self, *args: Any, **kwargs: Any) -> int:
        raise NotImplementedError


__all__ = ["VenueHandler", "BaseHandler"]
