"""Data model for the routing and liquidity engine."""

from dexrouter.models.liquidity import (
    AddLiquidityRequest,
    AmbientPosition,
    PairPosition,
    PoolPosition,
    Position,
    RangePosition,
    RemoveLiquidityRequest,
)
from dexrouter.models.route import HopDescriptor, PoolRef, Route
from dexrouter.models.types import normalize_address, sort_tokens
from dexrouter.models.venue import VenueEndpoints, VenueFamily, VenueId

__all__ = [
    "AddLiquidityRequest",
    "AmbientPosition",
    "HopDescriptor",
    "PairPosition",
    "PoolPosition",
    "PoolRef",
    "Position",
    "RangePosition",
    "RemoveLiquidityRequest",
    "Route",
    "VenueEndpoints",
    "VenueFamily",
    "VenueId",
    "normalize_address",
    "sort_tokens",
]
