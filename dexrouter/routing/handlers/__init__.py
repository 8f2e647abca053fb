"""Venue handlers.

One handler per venue family:
- ConstantProductHandler: Uniswap V2 style routers over token paths
- ConcentratedHandler: tick-based pools behind a V3 swap router
- PancakeHandler: the V3 fork with a wider slot0 and no deadline in its structs
- BalancerHandler: pinned weighted and stable pools behind the vault
- AmbientHandler: (base, quote, pool_idx) pools behind a multiswap router

HANDLER_CLASSES maps every VenueId to its handler; a venue added without
a handler fails at import.
"""

from __future__ import annotations

from dexrouter.chain.ledger import Chain
from dexrouter.models.venue import VenueId
from dexrouter.routing.discovery import PoolDiscovery
from dexrouter.routing.registry import VenueRegistry

from .ambient import AmbientHandler
from .balancer import BalancerHandler
from .base import BaseHandler, VenueHandler
from .concentrated import ConcentratedHandler, PancakeHandler
from .constant_product import ConstantProductHandler

HANDLER_CLASSES: dict[VenueId, type[BaseHandler]] = {
    VenueId.UNISWAP_V2: ConstantProductHandler,
    VenueId.SUSHISWAP: ConstantProductHandler,
    VenueId.UNISWAP_V3: ConcentratedHandler,
    VenueId.SUSHISWAP_V3: ConcentratedHandler,
    VenueId.PANCAKESWAP_V3: PancakeHandler,
    VenueId.BALANCER: BalancerHandler,
    VenueId.AMBIENT: AmbientHandler,
}

if set(HANDLER_CLASSES) != set(VenueId):
    raise RuntimeError(f"Venues without a handler: {set(VenueId) - set(HANDLER_CLASSES)}")


def build_handlers(
    chain: Chain, registry: VenueRegistry, discovery: PoolDiscovery
) -> dict[VenueId, VenueHandler]:
    """Instantiate one handler per venue, configured or not.

    Unconfigured venues fail with UnsupportedVenue on first endpoint lookup.
    """
    return {
        venue: handler_cls(venue, chain, registry, discovery)
        for venue, handler_cls in HANDLER_CLASSES.items()
    }


__all__ = [
    "HANDLER_CLASSES",
    "build_handlers",
    "VenueHandler",
    "BaseHandler",
    "ConstantProductHandler",
    "ConcentratedHandler",
    "PancakeHandler",
    "BalancerHandler",
    "AmbientHandler",
]
