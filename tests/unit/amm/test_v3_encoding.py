"""Tests for concentrated-liquidity path and slot0 encodings."""

import pytest

from dexrouter.amm.uniswap_v3 import decode_path, decode_slot0, encode_path, encode_slot0
from dexrouter.amm.uniswap_v3.encoding import PANCAKE_SLOT0_TYPES

TKA = "0x" + "1" * 40
TKB = "0x" + "2" * 40
TKC = "0x" + "3" * 40


class TestPackedPath:
    def test_layout_is_address_fee_address(self):
        path = encode_path([TKA, TKB], [3000])
        assert len(path) == 43
        assert path[:20] == bytes.fromhex("1" * 40)
        assert int.from_bytes(path[20:23], "big") == 3000
        assert path[23:] == bytes.fromhex("2" * 40)

    def test_multi_hop_decodes(self):
        tokens, fees = decode_path(encode_path([TKA, TKB, TKC], [500, 10000]))
        assert tokens == [TKA, TKB, TKC]
        assert fees == [500, 10000]

    def test_mismatched_fee_count_rejected(self):
        with pytest.raises(ValueError):
            encode_path([TKA, TKB], [500, 3000])

    def test_truncated_path_rejected(self):
        with pytest.raises(ValueError):
            decode_path(encode_path([TKA, TKB], [3000])[:-1])


class TestSlot0:
    def test_reads_price_and_tick(self):
        assert decode_slot0(encode_slot0(2**96, -42, 0)) == (2**96, -42)

    def test_pancake_layout_carries_wide_protocol_fee(self):
        data = encode_slot0(2**96, 7, 2**20, PANCAKE_SLOT0_TYPES)
        assert decode_slot0(data, PANCAKE_SLOT0_TYPES) == (2**96, 7)
