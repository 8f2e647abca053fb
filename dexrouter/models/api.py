"""Request and response bodies of the quote API.

Amounts are accepted as JSON integers or decimal strings and always
returned as decimal strings, since uint256 values overflow JSON numbers.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from dexrouter.models.route import HopDescriptor
from dexrouter.models.types import Address, Uint256
from dexrouter.models.venue import VenueTag


class QuoteRequest(BaseModel):
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    amount_in: Uint256 = Field(alias="amountIn")
    venue: VenueTag | None = Field(
        default=None, description="Venue to quote on; the default venue when omitted"
    )

    model_config = {"populate_by_name": True}


class PathQuoteRequest(BaseModel):
    path: list[Address] = Field(min_length=2)
    amount_in: Uint256 = Field(alias="amountIn")
    venue: VenueTag | None = None

    model_config = {"populate_by_name": True}


class QuoteResponse(BaseModel):
    venue: str
    amount_in: str = Field(alias="amountIn")
    amount_out: str = Field(alias="amountOut")

    model_config = {"populate_by_name": True}


class HopModel(BaseModel):
    token_in: str = Field(alias="tokenIn")
    token_out: str = Field(alias="tokenOut")
    venue: str
    composite: bool
    pinned_pool: str | None = Field(default=None, alias="pinnedPool")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_descriptor(cls, hop: HopDescriptor) -> HopModel:
        return cls(
            token_in=hop.token_in,
            token_out=hop.token_out,
            venue=hop.venue.name,
            composite=hop.is_composite,
            pinned_pool=None if hop.pinned_pool is None else str(hop.pinned_pool),
        )


class RouteResponse(BaseModel):
    token_in: str = Field(alias="tokenIn")
    token_out: str = Field(alias="tokenOut")
    stored: bool = Field(description="False when the route is synthesized on the fly")
    hops: list[HopModel]

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    reason: str
    detail: str


__all__ = [
    "QuoteRequest",
    "PathQuoteRequest",
    "QuoteResponse",
    "HopModel",
    "RouteResponse",
    "ErrorResponse",
]
