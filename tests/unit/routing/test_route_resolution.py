"""Unit tests for route synthesis, resolution and the expansion depth limit."""

import pytest

from dexrouter.errors import NoPoolFound, NoRouteConfigured, PathLengthExceeded
from dexrouter.models.route import HopDescriptor
from dexrouter.models.venue import VenueId
from dexrouter.routing.routes import next_depth, resolve_route, synthesize_route
from tests.helpers import OPERATOR, TKA, TKB, TKC, WETH


def _synthesize(engine, token_in, token_out, venue):
    handler = engine.swap_router.handler(venue)
    return synthesize_route(token_in, token_out, venue, handler, engine.registry)


def _pairs(route):
    return [(hop.token_in, hop.token_out, hop.venue) for hop in route]


class TestSynthesizeRoute:
    def test_constant_product_direct_with_wrapped_native(self, engine, v2):
        route = _synthesize(engine, TKA, WETH, VenueId.UNISWAP_V2)
        assert _pairs(route) == [(TKA, WETH, VenueId.UNISWAP_V2)]

    def test_constant_product_direct_without_checking_pools(self, engine, v2):
        """Pairs with the wrapped native token are taken as direct even without a pair."""
        route = _synthesize(engine, TKC, WETH, VenueId.UNISWAP_V2)
        assert _pairs(route) == [(TKC, WETH, VenueId.UNISWAP_V2)]

    def test_two_hops_via_wrapped_native(self, engine, v2):
        route = _synthesize(engine, TKA, TKB, VenueId.UNISWAP_V2)
        assert _pairs(route) == [
            (TKA, WETH, VenueId.UNISWAP_V2),
            (WETH, TKB, VenueId.UNISWAP_V2),
        ]

    def test_direct_pool_on_concentrated_venue(self, engine, v3):
        route = _synthesize(engine, TKB, TKA, VenueId.UNISWAP_V3)
        assert _pairs(route) == [(TKB, TKA, VenueId.UNISWAP_V3)]

    def test_wrapped_native_pair_without_pool(self, engine, v3):
        with pytest.raises(NoPoolFound):
            _synthesize(engine, TKA, WETH, VenueId.UNISWAP_V3)

    def test_hops_are_plain(self, engine, v2):
        route = _synthesize(engine, TKA, TKB, VenueId.UNISWAP_V2)
        assert not any(hop.is_composite or hop.pinned_pool for hop in route)


class TestResolveRoute:
    def _resolve(self, engine, token_in, token_out, venue=VenueId.UNISWAP_V2):
        return resolve_route(
            token_in,
            token_out,
            venue,
            route_store=engine.route_store,
            registry=engine.registry,
            handler=engine.swap_router.handler(venue),
        )

    def test_stored_route_wins(self, engine, v2):
        stored = [HopDescriptor(TKA, TKB, VenueId.UNISWAP_V3)]
        engine.route_store.set_route(TKA, TKB, stored, sender=OPERATOR)
        assert self._resolve(engine, TKA, TKB) == tuple(stored)

    def test_falls_back_to_synthesis(self, engine, v2):
        assert len(self._resolve(engine, TKA, TKB)) == 2

    def test_fallback_disabled(self, engine, v2):
        engine.registry.set_policy(implicit_fallback=False, sender=OPERATOR)
        with pytest.raises(NoRouteConfigured):
            self._resolve(engine, TKA, TKB)

    def test_fallback_disabled_still_uses_stored_route(self, engine, v2):
        engine.registry.set_policy(implicit_fallback=False, sender=OPERATOR)
        engine.route_store.set_route(
            TKA, WETH, [HopDescriptor(TKA, WETH, VenueId.UNISWAP_V2)], sender=OPERATOR
        )
        assert len(self._resolve(engine, TKA, WETH)) == 1


class TestNextDepth:
    def test_increments_below_limit(self, engine):
        engine.registry.set_policy(max_route_depth=3, sender=OPERATOR)
        assert next_depth(0, engine.registry) == 1
        assert next_depth(1, engine.registry) == 2

    def test_raises_on_reaching_limit(self, engine):
        engine.registry.set_policy(max_route_depth=3, sender=OPERATOR)
        with pytest.raises(PathLengthExceeded):
            next_depth(2, engine.registry)
