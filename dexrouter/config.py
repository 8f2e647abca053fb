"""Router configuration.

Settings are plain JSON validated with pydantic. `load_settings` reads the
file named by the argument or by DEXROUTER_CONFIG, then lets a few
DEXROUTER_* environment variables override the routing policy.
`apply_settings` pushes the result into the operator-gated registry and
route store.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, Field

from dexrouter.constants import DEFAULT_DEADLINE_BUFFER, MAX_ROUTE_DEPTH, WRAPPED_NATIVE
from dexrouter.models.route import HopDescriptor
from dexrouter.models.types import Address
from dexrouter.models.venue import VenueEndpoints, VenueId, VenueTag
from dexrouter.routing.registry import VenueRegistry
from dexrouter.routing.route_store import RouteStore

logger = structlog.get_logger()

CONFIG_ENV = "DEXROUTER_CONFIG"


class VenueSettings(BaseModel):
    """Endpoints and discovery candidates for one venue."""

    venue: VenueTag
    router: Address
    factory: Address | None = None
    query: Address | None = None
    position_manager: Address | None = Field(default=None, alias="positionManager")
    impact: Address | None = None
    candidates: list[int] | None = None

    model_config = {"populate_by_name": True}

    def endpoints(self) -> VenueEndpoints:
        return VenueEndpoints(
            router=self.router,
            factory=self.factory,
            query=self.query,
            position_manager=self.position_manager,
            impact=self.impact,
        )


class PinnedPoolSettings(BaseModel):
    venue: VenueTag
    token_a: Address = Field(alias="tokenA")
    token_b: Address = Field(alias="tokenB")
    pool: str | int

    model_config = {"populate_by_name": True}


class HopSettings(BaseModel):
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    venue: VenueTag
    composite: bool = False
    pinned_pool: str | int | None = Field(default=None, alias="pinnedPool")

    model_config = {"populate_by_name": True}

    def descriptor(self) -> HopDescriptor:
        return HopDescriptor(
            token_in=self.token_in,
            token_out=self.token_out,
            venue=self.venue,
            is_composite=self.composite,
            pinned_pool=self.pinned_pool,
        )


class RouteSettings(BaseModel):
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    hops: list[HopSettings]
    with_reverse: bool = Field(default=False, alias="withReverse")

    model_config = {"populate_by_name": True}


class RouterSettings(BaseModel):
    """Everything needed to stand up a configured engine.

    Attributes:
        wrapped_native: Intermediary token for synthesized routes
        default_venue: Venue for the *_with_default_dex entry points
        max_route_depth: Composite-hop recursion bound
        deadline_buffer: Seconds added to the host timestamp for venue deadlines
        implicit_fallback: Synthesize routes for pairs without a stored route
        operators: Addresses allowed to change venues and routes
    """

    wrapped_native: Address = Field(default=WRAPPED_NATIVE, alias="wrappedNative")
    default_venue: VenueTag = Field(default=VenueId.UNISWAP_V2, alias="defaultVenue")
    max_route_depth: int = Field(default=MAX_ROUTE_DEPTH, ge=1, alias="maxRouteDepth")
    deadline_buffer: int = Field(default=DEFAULT_DEADLINE_BUFFER, ge=0, alias="deadlineBuffer")
    implicit_fallback: bool = Field(default=True, alias="implicitFallback")
    operators: list[Address] = Field(default_factory=list)
    venues: list[VenueSettings] = Field(default_factory=list)
    pinned_pools: list[PinnedPoolSettings] = Field(default_factory=list, alias="pinnedPools")
    routes: list[RouteSettings] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


# Environment variable -> RouterSettings field
ENV_OVERRIDES = {
    "DEXROUTER_MAX_ROUTE_DEPTH": "max_route_depth",
    "DEXROUTER_DEADLINE_BUFFER": "deadline_buffer",
    "DEXROUTER_DEFAULT_VENUE": "default_venue",
}


def load_settings(path: str | Path | None = None) -> RouterSettings:
    """Read settings from JSON, then apply DEXROUTER_* environment overrides.

    Args:
        path: JSON file; defaults to $DEXROUTER_CONFIG, and to built-in
            defaults when neither is set

    Raises:
        pydantic.ValidationError: If the file or an override is invalid
    """
    path = path or os.environ.get(CONFIG_ENV)
    data: dict[str, Any] = {}
    if path:
        data = json.loads(Path(path).read_text())
        logger.info("settings_loaded", path=str(path))

    for env_var, field_name in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value is not None:
            data.pop(RouterSettings.model_fields[field_name].alias, None)
            data[field_name] = value
            logger.info("settings_override", variable=env_var, value=value)

    return RouterSettings.model_validate(data)


def apply_settings(
    settings: RouterSettings, registry: VenueRegistry, route_store: RouteStore, sender: str
) -> None:
    """Push settings into the registry and route store as operator `sender`.

    Raises:
        Unauthorized: If sender is not an operator of both
        InvalidRoute: If a configured route does not chain
    """
    registry.set_wrapped_native(settings.wrapped_native, sender=sender)
    registry.set_default_venue(settings.default_venue, sender=sender)
    registry.set_policy(
        sender=sender,
        max_route_depth=settings.max_route_depth,
        deadline_buffer=settings.deadline_buffer,
        implicit_fallback=settings.implicit_fallback,
    )
    for venue in settings.venues:
        registry.set_venue_endpoints(venue.venue, venue.endpoints(), sender=sender)
        if venue.candidates is not None:
            registry.set_candidates(venue.venue, venue.candidates, sender=sender)
    for pin in settings.pinned_pools:
        registry.set_pinned_pool(pin.venue, pin.token_a, pin.token_b, pin.pool, sender=sender)
    for route in settings.routes:
        route_store.set_route(
            route.token_in,
            route.token_out,
            [hop.descriptor() for hop in route.hops],
            sender=sender,
            with_reverse=route.with_reverse,
        )
    logger.info(
        "settings_applied",
        venues=len(settings.venues),
        routes=len(settings.routes),
        default_venue=settings.default_venue.name,
    )


__all__ = [
    "VenueSettings",
    "PinnedPoolSettings",
    "HopSettings",
    "RouteSettings",
    "RouterSettings",
    "load_settings",
    "apply_settings",
]
