"""Quote engine: the swap engine's dispatch, read-only.

Each venue prices with its own query primitive: spot price at the current
tick for concentrated pools, `get_amounts_out` for constant-product
routers, `query_swap` on the Balancer vault and `calc_impact` on Ambient.
Nothing here moves tokens.
"""

from __future__ import annotations

import structlog

from dexrouter.chain.ledger import Chain
from dexrouter.models.route import Route
from dexrouter.models.venue import VenueId

from .discovery import PoolDiscovery
from .handlers import VenueHandler, build_handlers
from .registry import VenueRegistry
from .route_store import RouteStore
from .routes import next_depth, resolve_route
from .swap_router import validate_pair, validate_path

logger = structlog.get_logger()


class Quoter:
    """Expected outputs for the swap engine's entry points."""

    def __init__(
        self,
        chain: Chain,
        registry: VenueRegistry,
        discovery: PoolDiscovery,
        route_store: RouteStore,
        handlers: dict[VenueId, VenueHandler] | None = None,
    ) -> None:
        self.chain = chain
        self.registry = registry
        self.discovery = discovery
        self.route_store = route_store
        self.handlers = handlers or build_handlers(chain, registry, discovery)

    def handler(self, venue: VenueId | int | str) -> VenueHandler:
        venue = VenueId.parse(venue)
        self.registry.endpoints_for(venue)
        return self.handlers[venue]

    def get_quote(
        self, token_in: str, token_out: str, amount_in: int, venue: VenueId | int | str
    ) -> int:
        """Expected output of `SwapRouter.swap` with the same arguments.

        Raises:
            UnsupportedVenue: If the venue is unknown or not configured
            NoPoolFound: If the venue cannot serve the pair
        """
        validate_pair(token_in, token_out, amount_in)
        return self.handler(venue).quote(token_in, token_out, amount_in)

    def get_quote_with_path(
        self, path: list[str], amount_in: int, venue: VenueId | int | str
    ) -> int:
        """Expected output of `SwapRouter.swap_with_path`.

        Raises:
            PathTooShort: If the path has fewer than two tokens
            NoPoolForMultihop: If a consecutive pair has no pool on the venue
        """
        path = validate_path(path, amount_in)
        return self.handler(venue).quote_path(path, amount_in)

    def get_quote_with_route(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        venue: VenueId | int | str | None = None,
    ) -> int:
        """Expected output of `SwapRouter.swap_with_route`."""
        validate_pair(token_in, token_out, amount_in)
        venue = VenueId.parse(self.registry.default_venue if venue is None else venue)
        return self._quote_route(token_in, token_out, amount_in, venue, depth=0)

    def get_quote_with_default_dex(self, token_in: str, token_out: str, amount_in: int) -> int:
        return self.get_quote(token_in, token_out, amount_in, self.registry.default_venue)

    def get_quote_with_path_with_default_dex(self, path: list[str], amount_in: int) -> int:
        return self.get_quote_with_path(path, amount_in, self.registry.default_venue)

    def route_for(
        self, token_in: str, token_out: str, venue: VenueId | int | str | None = None
    ) -> Route:
        """The route `swap_with_route` would follow at the top level."""
        venue = VenueId.parse(self.registry.default_venue if venue is None else venue)
        return resolve_route(
            token_in,
            token_out,
            venue,
            route_store=self.route_store,
            registry=self.registry,
            handler=self.handler(venue),
        )

    def _quote_route(
        self, token_in: str, token_out: str, amount_in: int, venue: VenueId, depth: int
    ) -> int:
        amount = amount_in
        for hop in self.route_for(token_in, token_out, venue):
            if hop.is_composite:
                amount = self._quote_route(
                    hop.token_in,
                    hop.token_out,
                    amount,
                    hop.venue,
                    next_depth(depth, self.registry),
                )
            else:
                amount = self.handler(hop.venue).quote(
                    hop.token_in, hop.token_out, amount, hop.pinned_pool
                )
        logger.debug("route_quoted", token_in=token_in, token_out=token_out, amount_out=amount)
        return amount


__all__ = ["Quoter"]
