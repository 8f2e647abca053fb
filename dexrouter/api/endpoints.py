"""Quote and route inspection endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException

from dexrouter.models.api import (
    HopModel,
    PathQuoteRequest,
    QuoteRequest,
    QuoteResponse,
    RouteResponse,
)
from dexrouter.models.types import normalize_address
from dexrouter.models.venue import VenueId
from dexrouter.routing.quoter import Quoter

logger = structlog.get_logger()

router = APIRouter()

_quoter: Quoter | None = None


def install_quoter(quoter: Quoter | None) -> None:
    """Serve quotes from `quoter`; None takes the service out of rotation."""
    global _quoter
    _quoter = quoter
    logger.info("quoter_installed", configured=quoter is not None)


def quoter_configured() -> bool:
    return _quoter is not None


def get_quoter() -> Quoter:
    """Dependency provider for the quote engine.

    Override this in tests to inject a quoter:
        app.dependency_overrides[get_quoter] = lambda: quoter

    Raises:
        HTTPException: 503 when no engine has been installed
    """
    if _quoter is None:
        raise HTTPException(status_code=503, detail="Router not configured")
    return _quoter


def _venue(quoter: Quoter, venue: VenueId | None) -> VenueId:
    return quoter.registry.default_venue if venue is None else venue


@router.post("/quote", response_model=QuoteResponse)
def quote(request: QuoteRequest, quoter: Quoter = Depends(get_quoter)) -> QuoteResponse:
    """Expected output of a single-venue swap.

    Error Handling:
        - Invalid request schema: 422 (pydantic)
        - Router errors (no pool, unsupported venue, ...): 422 with the error reason
    """
    venue = _venue(quoter, request.venue)
    amount_out = quoter.get_quote(request.token_in, request.token_out, request.amount_in, venue)
    logger.info(
        "quote_served",
        venue=venue.name,
        token_in=normalize_address(request.token_in),
        token_out=normalize_address(request.token_out),
        amount_in=request.amount_in,
        amount_out=amount_out,
    )
    return QuoteResponse(
        venue=venue.name, amount_in=str(request.amount_in), amount_out=str(amount_out)
    )


@router.post("/quote/path", response_model=QuoteResponse)
def quote_path(
    request: PathQuoteRequest, quoter: Quoter = Depends(get_quoter)
) -> QuoteResponse:
    venue = _venue(quoter, request.venue)
    amount_out = quoter.get_quote_with_path(request.path, request.amount_in, venue)
    logger.info("path_quote_served", venue=venue.name, hops=len(request.path) - 1)
    return QuoteResponse(
        venue=venue.name, amount_in=str(request.amount_in), amount_out=str(amount_out)
    )


@router.get("/routes/{token_in}/{token_out}", response_model=RouteResponse)
def get_route(
    token_in: str,
    token_out: str,
    venue: str | None = None,
    quoter: Quoter = Depends(get_quoter),
) -> RouteResponse:
    """The route a route-based swap would follow, stored or synthesized."""
    hops = quoter.route_for(token_in, token_out, None if venue is None else VenueId.parse(venue))
    return RouteResponse(
        token_in=normalize_address(token_in),
        token_out=normalize_address(token_out),
        stored=quoter.route_store.has_route(token_in, token_out),
        hops=[HopModel.from_descriptor(hop) for hop in hops],
    )
