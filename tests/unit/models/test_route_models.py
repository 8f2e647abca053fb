"""Unit tests for hop descriptors and route helpers."""

import pytest

from dexrouter.errors import InvalidRoute, UnsupportedVenue
from dexrouter.models.liquidity import AmbientPosition, PairPosition, RangePosition
from dexrouter.models.route import HopDescriptor, path_of, reverse_route, validate_route
from dexrouter.models.types import is_valid_address, is_zero_address, normalize_address, sort_tokens
from dexrouter.models.venue import VenueId
from tests.helpers import TKA, TKB, TKC, WETH


class TestHopDescriptor:
    def test_normalizes_tokens_and_venue(self):
        hop = HopDescriptor("0x" + "AB" * 20, TKB[2:], "sushiswap")
        assert hop.token_in == "0x" + "ab" * 20
        assert hop.token_out == TKB
        assert hop.venue is VenueId.SUSHISWAP

    def test_rejects_unknown_venue(self):
        with pytest.raises(UnsupportedVenue):
            HopDescriptor(TKA, TKB, 99)

    def test_reversed_keeps_flags(self):
        hop = HopDescriptor(TKA, TKB, VenueId.BALANCER, is_composite=True, pinned_pool="0xid")
        back = hop.reversed()
        assert (back.token_in, back.token_out) == (TKB, TKA)
        assert back.is_composite
        assert back.pinned_pool == "0xid"


class TestRouteHelpers:
    def _route(self):
        return (
            HopDescriptor(TKA, WETH, VenueId.UNISWAP_V2),
            HopDescriptor(WETH, TKC, VenueId.UNISWAP_V3),
        )

    def test_valid_route(self):
        validate_route(TKA, TKC, self._route())

    def test_wrong_start(self):
        with pytest.raises(InvalidRoute, match="Hop 0"):
            validate_route(TKB, TKC, self._route())

    def test_wrong_end(self):
        with pytest.raises(InvalidRoute, match="ends at"):
            validate_route(TKA, TKB, self._route())

    def test_self_hop(self):
        with pytest.raises(InvalidRoute):
            validate_route(TKA, TKA, (HopDescriptor(TKA, TKA, 0),))

    def test_empty(self):
        with pytest.raises(InvalidRoute):
            validate_route(TKA, TKC, ())

    def test_reverse_route(self):
        reverse = reverse_route(self._route())
        validate_route(TKC, TKA, reverse)
        assert [hop.venue for hop in reverse] == [VenueId.UNISWAP_V3, VenueId.UNISWAP_V2]

    def test_path_of(self):
        assert path_of(self._route()) == [TKA, WETH, TKC]


class TestAddresses:
    def test_normalize(self):
        assert normalize_address("ABCD") == "0xabcd"

    def test_normalize_validates(self):
        with pytest.raises(ValueError):
            normalize_address("0x1234", validate=True)

    def test_is_valid_address(self):
        assert is_valid_address(TKA)
        assert not is_valid_address("0x" + "zz" * 20)
        assert not is_valid_address(None)

    def test_zero_address(self):
        assert is_zero_address(None)
        assert is_zero_address("")
        assert is_zero_address("0x" + "00" * 20)
        assert not is_zero_address(TKA)

    def test_sort_tokens(self):
        assert sort_tokens(TKB, TKA) == (TKA, TKB)
        with pytest.raises(ValueError):
            sort_tokens(TKA, TKA.upper().replace("0X", "0x"))


class TestPositions:
    def test_range_position_sorts_tokens(self):
        position = RangePosition(TKB, TKA, 3000, -60, 60)
        assert (position.token0, position.token1) == (TKA, TKB)

    def test_range_position_rejects_empty_range(self):
        with pytest.raises(ValueError):
            RangePosition(TKA, TKB, 3000, 60, 60)

    def test_ambient_position_orders_base_first(self):
        position = AmbientPosition(WETH, TKA, 420)
        assert (position.base, position.quote) == (TKA, WETH)

    def test_pair_position_normalizes(self):
        assert PairPosition("0x" + "AA" * 20).pair == "0x" + "aa" * 20
