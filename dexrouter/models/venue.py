"""Venue identifiers and registry entries."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Annotated, Any

from pydantic import BeforeValidator

from dexrouter.errors import MissingEndpoint, UnsupportedVenue


class VenueId(IntEnum):
    """DEX integrations known to the engine."""

    UNISWAP_V2 = 0
    SUSHISWAP = 1
    UNISWAP_V3 = 2
    SUSHISWAP_V3 = 3
    PANCAKESWAP_V3 = 4
    BALANCER = 5
    AMBIENT = 6

    @classmethod
    def parse(cls, value: VenueId | int | str) -> VenueId:
        """Coerce a raw tag (int, enum name or enum) into a VenueId.

        Raises:
            UnsupportedVenue: If the tag does not name a known venue
        """
        if isinstance(value, VenueId):
            return value
        try:
            if isinstance(value, str) and not value.isdigit():
                return cls[value.upper()]
            return cls(int(value))
        except (KeyError, ValueError) as err:
            raise UnsupportedVenue(f"Unsupported venue: {value!r}") from err


class VenueFamily(str, Enum):
    """AMM design shared by a group of venues."""

    CONSTANT_PRODUCT = "constantProduct"
    CONCENTRATED = "concentratedLiquidity"
    WEIGHTED = "weightedProduct"
    TICK_INDEXED = "tickIndexed"


VENUE_FAMILIES: dict[VenueId, VenueFamily] = {
    VenueId.UNISWAP_V2: VenueFamily.CONSTANT_PRODUCT,
    VenueId.SUSHISWAP: VenueFamily.CONSTANT_PRODUCT,
    VenueId.UNISWAP_V3: VenueFamily.CONCENTRATED,
    VenueId.SUSHISWAP_V3: VenueFamily.CONCENTRATED,
    VenueId.PANCAKESWAP_V3: VenueFamily.CONCENTRATED,
    VenueId.BALANCER: VenueFamily.WEIGHTED,
    VenueId.AMBIENT: VenueFamily.TICK_INDEXED,
}

if set(VENUE_FAMILIES) != set(VenueId):
    raise RuntimeError(f"Venues without a family: {set(VenueId) - set(VENUE_FAMILIES)}")


def family_of(venue: VenueId) -> VenueFamily:
    return VENUE_FAMILIES[venue]


def _parse_tag(value: Any) -> VenueId:
    try:
        return VenueId.parse(value)
    except UnsupportedVenue as err:
        raise ValueError(str(err)) from err


# Venue as accepted from configuration and API payloads: enum name, integer or decimal string
VenueTag = Annotated[VenueId, BeforeValidator(_parse_tag)]


@dataclass(frozen=True)
class VenueEndpoints:
    """Contract addresses for one venue.

    Attributes:
        router: Execution endpoint (swap router, vault, or multiswap router)
        factory: Pool factory or pool-holding contract, where the venue has one
        query: Auxiliary read endpoint (pool state and liquidity lens)
        position_manager: Liquidity-position endpoint for concentrated venues
        impact: Swap-impact preview endpoint
    """

    router: str
    factory: str | None = None
    query: str | None = None
    position_manager: str | None = None
    impact: str | None = None

    def require(self, field: str, venue: VenueId) -> str:
        """Return a configured endpoint address.

        Raises:
            MissingEndpoint: If the field is not configured for this venue
        """
        address = getattr(self, field)
        if address is None:
            raise MissingEndpoint(f"{venue.name} has no {field} endpoint")
        return address


__all__ = [
    "VenueId",
    "VenueFamily",
    "VENUE_FAMILIES",
    "family_of",
    "VenueTag",
    "VenueEndpoints",
]
