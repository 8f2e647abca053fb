"""Venue registry: endpoints, discovery candidate lists and routing policy.

All mutations are operator-gated. Candidate lists are data: each venue's
list can be replaced at runtime without touching discovery code.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from dexrouter.constants import (
    AMBIENT_POOL_INDICES,
    DEFAULT_DEADLINE_BUFFER,
    MAX_ROUTE_DEPTH,
    PANCAKESWAP_V3_FEE_TIERS,
    UNISWAP_V3_FEE_TIERS,
    WRAPPED_NATIVE,
)
from dexrouter.errors import UnsupportedVenue, ZeroAddress
from dexrouter.models.route import PoolRef
from dexrouter.models.types import is_zero_address, normalize_address, sort_tokens
from dexrouter.models.venue import VenueEndpoints, VenueId

from .access import OperatorGated

logger = structlog.get_logger()

# Venues without an entry have a single candidate (the factory pair or the pinned pool)
DEFAULT_CANDIDATES: dict[VenueId, tuple[int, ...]] = {
    VenueId.UNISWAP_V3: UNISWAP_V3_FEE_TIERS,
    VenueId.SUSHISWAP_V3: UNISWAP_V3_FEE_TIERS,
    VenueId.PANCAKESWAP_V3: PANCAKESWAP_V3_FEE_TIERS,
    VenueId.AMBIENT: AMBIENT_POOL_INDICES,
}


class VenueRegistry(OperatorGated):
    """Per-venue configuration plus the engine-wide routing policy.

    Attributes:
        wrapped_native: Intermediary token for synthesized two-hop routes
        default_venue: Venue used by the *_with_default_dex entry points
        max_route_depth: Composite-hop recursion bound
        deadline_buffer: Seconds added to the host timestamp for venue deadlines
        implicit_fallback: Synthesize routes when none is configured
    """

    def __init__(
        self,
        operators: Iterable[str] = (),
        *,
        wrapped_native: str = WRAPPED_NATIVE,
        default_venue: VenueId = VenueId.UNISWAP_V2,
        max_route_depth: int = MAX_ROUTE_DEPTH,
        deadline_buffer: int = DEFAULT_DEADLINE_BUFFER,
        implicit_fallback: bool = True,
    ) -> None:
        super().__init__(operators)
        self.wrapped_native = normalize_address(wrapped_native)
        self.default_venue = VenueId.parse(default_venue)
        self.max_route_depth = max_route_depth
        self.deadline_buffer = deadline_buffer
        self.implicit_fallback = implicit_fallback
        self._endpoints: dict[VenueId, VenueEndpoints] = {}
        self._candidates: dict[VenueId, tuple[int, ...]] = dict(DEFAULT_CANDIDATES)
        self._pinned: dict[tuple[VenueId, str, str], PoolRef] = {}

    # --- Reads ---

    def endpoints_for(self, venue: VenueId | int | str) -> VenueEndpoints:
        """Endpoints of a configured venue.

        Raises:
            UnsupportedVenue: If the venue is unknown or has no endpoints
        """
        venue = VenueId.parse(venue)
        try:
            return self._endpoints[venue]
        except KeyError as err:
            raise UnsupportedVenue(f"{venue.name} is not configured") from err

    def is_configured(self, venue: VenueId) -> bool:
        return venue in self._endpoints

    def configured_venues(self) -> list[VenueId]:
        return sorted(self._endpoints)

    def candidates_for(self, venue: VenueId) -> tuple[int, ...]:
        return self._candidates.get(VenueId.parse(venue), ())

    def pinned_pool(self, venue: VenueId, token_a: str, token_b: str) -> PoolRef | None:
        return self._pinned.get((VenueId.parse(venue), *sort_tokens(token_a, token_b)))

    # --- Operator surface ---

    def set_venue_endpoints(
        self, venue: VenueId | int | str, endpoints: VenueEndpoints, *, sender: str
    ) -> None:
        self.require_operator(sender)
        venue = VenueId.parse(venue)
        if is_zero_address(endpoints.router):
            raise ZeroAddress(f"{venue.name} router cannot be the zero address")
        self._endpoints[venue] = endpoints
        logger.info("venue_endpoints_set", venue=venue.name, router=endpoints.router)

    def set_candidates(
        self, venue: VenueId | int | str, candidates: Iterable[int], *, sender: str
    ) -> None:
        self.require_operator(sender)
        venue = VenueId.parse(venue)
        self._candidates[venue] = tuple(candidates)
        logger.info("candidates_set", venue=venue.name, candidates=self._candidates[venue])

    def set_pinned_pool(
        self,
        venue: VenueId | int | str,
        token_a: str,
        token_b: str,
        pool_ref: PoolRef | None,
        *,
        sender: str,
    ) -> None:
        """Pin (or with pool_ref=None, unpin) the pool used for a pair on a venue."""
        self.require_operator(sender)
        key = (VenueId.parse(venue), *sort_tokens(token_a, token_b))
        if pool_ref is None:
            self._pinned.pop(key, None)
        else:
            self._pinned[key] = pool_ref
        logger.info("pool_pinned", venue=key[0].name, token0=key[1], token1=key[2], pool=pool_ref)

    def set_default_venue(self, venue: VenueId | int | str, *, sender: str) -> None:
        self.require_operator(sender)
        self.default_venue = VenueId.parse(venue)

    def set_wrapped_native(self, token: str, *, sender: str) -> None:
        self.require_operator(sender)
        if is_zero_address(token):
            raise ZeroAddress("Wrapped native token cannot be the zero address")
        self.wrapped_native = normalize_address(token)

    def set_policy(
        self,
        *,
        sender: str,
        max_route_depth: int | None = None,
        deadline_buffer: int | None = None,
        implicit_fallback: bool | None = None,
    ) -> None:
        """Update routing limits; arguments left as None keep their value."""
        self.require_operator(sender)
        if max_route_depth is not None:
            self.max_route_depth = max_route_depth
        if deadline_buffer is not None:
            self.deadline_buffer = deadline_buffer
        if implicit_fallback is not None:
            self.implicit_fallback = implicit_fallback


__all__ = ["DEFAULT_CANDIDATES", "VenueRegistry"]
