"""Pool discovery: pick the most liquid pool for a pair on a venue.

Each venue family has one probe that reads a candidate's pool and its
liquidity from the venue's contracts. Selection keeps the first candidate
whose liquidity is strictly greater than every candidate seen before it.
"""

from __future__ import annotations

from collections.abc import Callable
from math import isqrt
from typing import Any

import structlog

from dexrouter.chain.ledger import Chain
from dexrouter.models.route import PoolRef
from dexrouter.models.types import ZERO_ADDRESS, normalize_address, sort_tokens
from dexrouter.models.venue import VENUE_FAMILIES, VenueFamily, VenueId, family_of

from .registry import VenueRegistry
from .types import PoolCandidate

logger = structlog.get_logger()

Probe = Callable[["PoolDiscovery", VenueId, str, str, Any], tuple[PoolRef | None, int]]


def _probe_constant_product(
    discovery: PoolDiscovery, venue: VenueId, token_a: str, token_b: str, key: Any
) -> tuple[PoolRef | None, int]:
    factory = discovery.endpoint(venue, "factory")
    pair_address = factory.get_pair(token_a, token_b)
    if pair_address == ZERO_ADDRESS:
        return None, 0
    reserve0, reserve1 = discovery.chain.contract(pair_address).get_reserves()
    return pair_address, isqrt(reserve0 * reserve1)


def _probe_concentrated(
    discovery: PoolDiscovery, venue: VenueId, token_a: str, token_b: str, key: Any
) -> tuple[PoolRef | None, int]:
    factory = discovery.endpoint(venue, "factory")
    pool_address = factory.get_pool(token_a, token_b, key)
    if pool_address == ZERO_ADDRESS:
        return None, 0
    return pool_address, discovery.chain.contract(pool_address).liquidity()


def _probe_weighted(
    discovery: PoolDiscovery, venue: VenueId, token_a: str, token_b: str, key: Any
) -> tuple[PoolRef | None, int]:
    vault = discovery.endpoint(venue, "router")
    tokens, balances = vault.get_pool_tokens(key)
    held = dict(zip(tokens, balances, strict=True))
    a, b = normalize_address(token_a), normalize_address(token_b)
    if a not in held or b not in held:
        return None, 0
    return key, isqrt(held[a] * held[b])


def _probe_tick_indexed(
    discovery: PoolDiscovery, venue: VenueId, token_a: str, token_b: str, key: Any
) -> tuple[PoolRef | None, int]:
    query = discovery.endpoint(venue, "query")
    base, quote = sort_tokens(token_a, token_b)
    return key, query.query_liquidity(base, quote, key)


PROBES: dict[VenueFamily, Probe] = {
    VenueFamily.CONSTANT_PRODUCT: _probe_constant_product,
    VenueFamily.CONCENTRATED: _probe_concentrated,
    VenueFamily.WEIGHTED: _probe_weighted,
    VenueFamily.TICK_INDEXED: _probe_tick_indexed,
}

if set(PROBES) != set(VENUE_FAMILIES.values()):
    raise RuntimeError(f"Venue families without a probe: {set(VenueFamily) - set(PROBES)}")


def select_most_liquid(probed: list[tuple[Any, PoolRef | None, int]]) -> PoolCandidate:
    """First entry with strictly the greatest liquidity, or PoolCandidate.none()."""
    best = PoolCandidate.none()
    for key, pool_ref, liquidity in probed:
        if pool_ref is not None and liquidity > best.liquidity:
            best = PoolCandidate(pool_ref=pool_ref, liquidity=liquidity, key=key)
    return best


class PoolDiscovery:
    """Read-only pool selection over the registry's candidate lists."""

    def __init__(self, chain: Chain, registry: VenueRegistry) -> None:
        self.chain = chain
        self.registry = registry

    def endpoint(self, venue: VenueId, field: str) -> Any:
        """Resolve a venue endpoint to its deployed contract."""
        address = self.registry.endpoints_for(venue).require(field, venue)
        return self.chain.contract(address)

    def candidate_keys(self, token_a: str, token_b: str, venue: VenueId) -> list[Any]:
        family = family_of(venue)
        if family is VenueFamily.CONSTANT_PRODUCT:
            return [None]
        if family is VenueFamily.WEIGHTED:
            pinned = self.registry.pinned_pool(venue, token_a, token_b)
            return [] if pinned is None else [pinned]
        return list(self.registry.candidates_for(venue))

    def find_most_liquid_pool(
        self, token_a: str, token_b: str, venue: VenueId | int | str
    ) -> PoolCandidate:
        """Most liquid pool for the pair on a venue.

        Raises:
            UnsupportedVenue: If the venue is unknown or not configured
            MissingEndpoint: If the venue lacks the endpoint its probe reads
        """
        venue = VenueId.parse(venue)
        self.registry.endpoints_for(venue)
        probe = PROBES[family_of(venue)]
        probed = []
        for key in self.candidate_keys(token_a, token_b, venue):
            pool_ref, liquidity = probe(self, venue, token_a, token_b, key)
            probed.append((key, pool_ref, liquidity))

        best = select_most_liquid(probed)
        if best.found:
            logger.debug(
                "pool_discovered",
                venue=venue.name,
                pool=best.pool_ref,
                key=best.key,
                liquidity=best.liquidity,
            )
        else:
            logger.debug("pool_not_found", venue=venue.name, token_a=token_a, token_b=token_b)
        return best


__all__ = ["PROBES", "PoolDiscovery", "select_most_liquid"]
