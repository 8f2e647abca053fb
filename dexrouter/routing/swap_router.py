"""Swap engine.

The router takes custody of the input, lets the venue handler convert it
(handlers deliver outputs back to the router), checks the caller's
minimum and pays the recipient. Every entry point runs inside a chain
transaction, so a failure at any step leaves no token movement behind.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from dexrouter.chain.ledger import Chain, Contract
from dexrouter.errors import (
    InsufficientOutput,
    PathTooShort,
    ValidationError,
    ZeroAddress,
    ZeroAmount,
)
from dexrouter.models.route import PoolRef
from dexrouter.models.types import is_zero_address, normalize_address
from dexrouter.models.venue import VenueId

from .discovery import PoolDiscovery
from .handlers import VenueHandler, build_handlers
from .registry import VenueRegistry
from .route_store import RouteStore
from .routes import next_depth, resolve_route
from .types import HopResult, SwapResult

logger = structlog.get_logger()


def validate_pair(token_in: str, token_out: str, amount_in: int) -> None:
    """Raises ZeroAddress, ZeroAmount or ValidationError for a malformed conversion."""
    if is_zero_address(token_in) or is_zero_address(token_out):
        raise ZeroAddress("Token cannot be the zero address")
    if amount_in <= 0:
        raise ZeroAmount(f"Amount must be positive, got {amount_in}")
    if normalize_address(token_in) == normalize_address(token_out):
        raise ValidationError(f"Cannot convert {token_in} into itself")


def validate_path(path: list[str], amount_in: int) -> list[str]:
    """Normalized path, or PathTooShort / ZeroAddress / ValidationError."""
    if len(path) < 2:
        raise PathTooShort(f"Path needs at least two tokens, got {len(path)}")
    for token_a, token_b in zip(path, path[1:], strict=False):
        validate_pair(token_a, token_b, amount_in)
    return [normalize_address(t) for t in path]


class SwapRouter(Contract):
    """Single-hop, path and route-based swaps across every registered venue.

    The router holds no state of its own: venues, candidates, pinned pools
    and routes live in the registry and route store. It is not deployed on
    the chain, so its references survive transaction rollbacks untouched.
    """

    def __init__(
        self,
        chain: Chain,
        registry: VenueRegistry,
        discovery: PoolDiscovery,
        route_store: RouteStore,
        handlers: dict[VenueId, VenueHandler] | None = None,
    ) -> None:
        super().__init__(chain)
        self.registry = registry
        self.discovery = discovery
        self.route_store = route_store
        self.handlers = handlers or build_handlers(chain, registry, discovery)

    def handler(self, venue: VenueId | int | str) -> VenueHandler:
        """Handler for a configured venue.

        Raises:
            UnsupportedVenue: If the tag is unknown or the venue has no endpoints
        """
        venue = VenueId.parse(venue)
        self.registry.endpoints_for(venue)
        return self.handlers[venue]

    def deadline(self) -> int:
        return self.chain.timestamp + self.registry.deadline_buffer

    # --- Entry points ---

    def swap(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        venue: VenueId | int | str,
        *,
        sender: str,
    ) -> SwapResult:
        """Convert amount_in of token_in on one venue.

        Raises:
            ZeroAddress: If a token or the recipient is the zero address
            ZeroAmount: If amount_in is zero
            UnsupportedVenue: If the venue is unknown or not configured
            NoPoolFound: If the venue cannot serve the pair
            InsufficientOutput: If the output is below min_amount_out
        """
        validate_pair(token_in, token_out, amount_in)
        handler = self.handler(venue)
        return self._execute(
            [token_in, token_out],
            amount_in,
            min_amount_out,
            recipient,
            sender,
            lambda: self.convert(handler, token_in, token_out, amount_in),
        )

    def swap_with_path(
        self,
        path: list[str],
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        venue: VenueId | int | str,
        *,
        sender: str,
    ) -> SwapResult:
        """Convert along an explicit token path on one venue.

        Raises:
            PathTooShort: If the path has fewer than two tokens
            NoPoolForMultihop: If a consecutive pair has no pool on the venue
            InsufficientOutput: If the output is below min_amount_out
        """
        path = validate_path(path, amount_in)
        handler = self.handler(venue)
        return self._execute(
            path,
            amount_in,
            min_amount_out,
            recipient,
            sender,
            lambda: handler.swap_path(
                path, amount_in, payer=self.address, deadline=self.deadline()
            ),
        )

    def swap_with_route(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        venue: VenueId | int | str | None = None,
        *,
        sender: str,
    ) -> SwapResult:
        """Follow the stored route for the pair, synthesizing one when none is stored.

        `venue` is only used for synthesized routes and defaults to the
        registry's default venue.

        Raises:
            NoRouteConfigured: If no route is stored and the implicit fallback is off
            PathLengthExceeded: If composite hops nest max_route_depth deep
            InsufficientOutput: If the output is below min_amount_out
        """
        validate_pair(token_in, token_out, amount_in)
        venue = VenueId.parse(self.registry.default_venue if venue is None else venue)
        return self._execute(
            [token_in, token_out],
            amount_in,
            min_amount_out,
            recipient,
            sender,
            lambda: self._follow_route(token_in, token_out, amount_in, venue, depth=0),
        )

    def swap_with_default_dex(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        *,
        sender: str,
    ) -> SwapResult:
        return self.swap(
            token_in,
            token_out,
            amount_in,
            min_amount_out,
            recipient,
            self.registry.default_venue,
            sender=sender,
        )

    def swap_with_path_with_default_dex(
        self,
        path: list[str],
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        *,
        sender: str,
    ) -> SwapResult:
        return self.swap_with_path(
            path, amount_in, min_amount_out, recipient, self.registry.default_venue, sender=sender
        )

    # --- Internals ---

    def convert(
        self,
        handler: VenueHandler,
        token_in: str,
        token_out: str,
        amount_in: int,
        pool: PoolRef | None = None,
    ) -> list[HopResult]:
        """Venue conversion of tokens already held by the router."""
        return handler.swap(
            token_in, token_out, amount_in, payer=self.address, deadline=self.deadline(), pool=pool
        )

    def _follow_route(
        self, token_in: str, token_out: str, amount_in: int, venue: VenueId, depth: int
    ) -> list[HopResult]:
        route = resolve_route(
            token_in,
            token_out,
            venue,
            route_store=self.route_store,
            registry=self.registry,
            handler=self.handler(venue),
        )
        logger.debug("route_expanded", token_in=token_in, token_out=token_out, depth=depth)

        hops: list[HopResult] = []
        amount = amount_in
        for hop in route:
            if hop.is_composite:
                hops += self._follow_route(
                    hop.token_in,
                    hop.token_out,
                    amount,
                    hop.venue,
                    next_depth(depth, self.registry),
                )
            else:
                hops += self.convert(
                    self.handler(hop.venue), hop.token_in, hop.token_out, amount, hop.pinned_pool
                )
            amount = hops[-1].amount_out
        return hops

    def _execute(
        self,
        path: list[str],
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        sender: str,
        run: Callable[[], list[HopResult]],
    ) -> SwapResult:
        if is_zero_address(recipient):
            raise ZeroAddress("Recipient cannot be the zero address")
        token_in, token_out = normalize_address(path[0]), normalize_address(path[-1])

        with self.chain.transaction():
            # Read before the pull so a path ending on its input token nets out
            before = self.chain.balance_of(token_out, self.address)
            self.pull(token_in, sender, amount_in)
            hops = run()
            amount_out = self.chain.balance_of(token_out, self.address) - before
            if amount_out < min_amount_out:
                logger.warning(
                    "swap_rejected",
                    token_in=token_in,
                    token_out=token_out,
                    amount_out=amount_out,
                    min_amount_out=min_amount_out,
                )
                raise InsufficientOutput(amount_out, min_amount_out)
            self.push(token_out, recipient, amount_out)

        logger.info(
            "swap_executed",
            token_in=token_in,
            token_out=token_out,
            amount_in=amount_in,
            amount_out=amount_out,
            hops=len(hops),
            venues=sorted({hop.venue.name for hop in hops}),
        )
        return SwapResult(token_in, token_out, amount_in, amount_out, hops)


__all__ = ["SwapRouter", "validate_pair", "validate_path"]
