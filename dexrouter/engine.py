"""Wiring: one registry, route store and discovery shared by all three engines."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from dexrouter.chain.ledger import Chain
from dexrouter.config import RouterSettings, apply_settings
from dexrouter.routing.discovery import PoolDiscovery
from dexrouter.routing.handlers import build_handlers
from dexrouter.routing.lp_router import LiquidityRouter
from dexrouter.routing.quoter import Quoter
from dexrouter.routing.registry import VenueRegistry
from dexrouter.routing.route_store import RouteStore
from dexrouter.routing.swap_router import SwapRouter

logger = structlog.get_logger()


@dataclass
class Engine:
    chain: Chain
    registry: VenueRegistry
    route_store: RouteStore
    discovery: PoolDiscovery
    swap_router: SwapRouter
    quoter: Quoter
    lp_router: LiquidityRouter

    @classmethod
    def create(cls, chain: Chain, operators: Iterable[str] = (), **policy) -> Engine:
        """Build an engine with empty configuration.

        Args:
            chain: Execution host the engines and venues live on
            operators: Addresses allowed to configure the registry and routes
            **policy: VenueRegistry keyword arguments (wrapped_native, max_route_depth, ...)
        """
        operators = list(operators)
        registry = VenueRegistry(operators, **policy)
        route_store = RouteStore(operators)
        discovery = PoolDiscovery(chain, registry)
        handlers = build_handlers(chain, registry, discovery)
        swap_router = SwapRouter(chain, registry, discovery, route_store, handlers)
        quoter = Quoter(chain, registry, discovery, route_store, handlers)
        return cls(
            chain=chain,
            registry=registry,
            route_store=route_store,
            discovery=discovery,
            swap_router=swap_router,
            quoter=quoter,
            lp_router=LiquidityRouter(chain, swap_router, quoter),
        )

    @classmethod
    def from_settings(cls, chain: Chain, settings: RouterSettings) -> Engine:
        """Build an engine and apply settings as its first operator.

        Raises:
            ValueError: If the settings name no operator
        """
        if not settings.operators:
            raise ValueError("Settings must name at least one operator")
        engine = cls.create(chain, settings.operators)
        apply_settings(settings, engine.registry, engine.route_store, settings.operators[0])
        logger.info("engine_configured", venues=len(engine.registry.configured_venues()))
        return engine


__all__ = ["Engine"]
