"""Route resolution shared by the swap and quote engines.

A stored route always wins. Without one, and with the implicit fallback
enabled, a route is synthesized on the requested venue: direct when the
venue has a pool for the pair (or when a constant-product venue is asked
for a pair that includes the wrapped native token), otherwise two hops
through the wrapped native token.
"""

from __future__ import annotations

import structlog

from dexrouter.errors import NoPoolFound, NoRouteConfigured, PathLengthExceeded
from dexrouter.models.route import HopDescriptor, Route
from dexrouter.models.types import normalize_address
from dexrouter.models.venue import VenueFamily, VenueId, family_of

from .handlers.base import VenueHandler
from .registry import VenueRegistry
from .route_store import RouteStore

logger = structlog.get_logger()


def next_depth(depth: int, registry: VenueRegistry) -> int:
    """Depth for expanding a composite hop.

    Raises:
        PathLengthExceeded: Once the incremented depth reaches max_route_depth
    """
    depth += 1
    if depth >= registry.max_route_depth:
        logger.warning("route_depth_exceeded", depth=depth, limit=registry.max_route_depth)
        raise PathLengthExceeded(f"Route expansion reached depth {depth}")
    return depth


def synthesize_route(
    token_in: str, token_out: str, venue: VenueId, handler: VenueHandler, registry: VenueRegistry
) -> Route:
    """Direct or via-wnative route on a single venue.

    Raises:
        NoPoolFound: If one side is the wrapped native token and no direct pool exists
    """
    token_in, token_out = normalize_address(token_in), normalize_address(token_out)
    wnative = registry.wrapped_native
    touches_wnative = wnative in (token_in, token_out)

    if (touches_wnative and family_of(venue) is VenueFamily.CONSTANT_PRODUCT) or (
        handler.has_direct_pool(token_in, token_out)
    ):
        return (HopDescriptor(token_in, token_out, venue),)
    if touches_wnative:
        raise NoPoolFound(f"No {venue.name} pool for {token_in}/{token_out}")
    return (
        HopDescriptor(token_in, wnative, venue),
        HopDescriptor(wnative, token_out, venue),
    )


def resolve_route(
    token_in: str,
    token_out: str,
    venue: VenueId,
    *,
    route_store: RouteStore,
    registry: VenueRegistry,
    handler: VenueHandler,
) -> Route:
    """Stored route for the pair, or a synthesized one.

    Raises:
        NoRouteConfigured: If nothing is stored and the implicit fallback is off
    """
    route = route_store.get_route(token_in, token_out)
    if route is not None:
        return route
    if not registry.implicit_fallback:
        raise NoRouteConfigured(f"No route configured for {token_in}/{token_out}")
    route = synthesize_route(token_in, token_out, venue, handler, registry)
    logger.debug("route_synthesized", venue=venue.name, hops=len(route))
    return route


__all__ = ["next_depth", "synthesize_route", "resolve_route"]
