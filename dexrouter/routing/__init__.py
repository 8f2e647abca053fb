"""Swap, quote and liquidity routing across registered venues.

Module structure:
- registry.py: VenueRegistry with endpoints, candidates, pinned pools and policy
- route_store.py: RouteStore of operator-configured routes
- discovery.py: PoolDiscovery picking the most liquid pool per venue
- routes.py: Route resolution and synthesis shared by swaps and quotes
- handlers/: Venue-family handlers (constant product, concentrated, Balancer, Ambient)
- swap_router.py: SwapRouter entry points
- quoter.py: Quoter, the read-only mirror of the swap entry points
- lp_router.py: LiquidityRouter for single-token liquidity entry and exit
"""

from dexrouter.routing.discovery import PoolDiscovery
from dexrouter.routing.lp_router import LiquidityRouter
from dexrouter.routing.quoter import Quoter
from dexrouter.routing.registry import VenueRegistry
from dexrouter.routing.route_store import RouteStore
from dexrouter.routing.swap_router import SwapRouter
from dexrouter.routing.types import HopResult, LiquidityResult, PoolCandidate, SwapResult

__all__ = [
    "HopResult",
    "LiquidityResult",
    "LiquidityRouter",
    "PoolCandidate",
    "PoolDiscovery",
    "Quoter",
    "RouteStore",
    "SwapRouter",
    "SwapResult",
    "VenueRegistry",
]
