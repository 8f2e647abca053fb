"""Tests for the Ambient dex, router and lens contracts."""

import pytest

from dexrouter.amm.ambient import SwapStep, encode_steps
from dexrouter.chain import Chain, CrocImpact, CrocQuery, CrocSwapDex, CrocSwapRouter, PoolError

TKA = "0x" + "1" * 40
TKB = "0x" + "2" * 40
TKC = "0x" + "3" * 40
LP = "0x" + "1b" * 20
ALICE = "0x" + "a1" * 20

POOL_IDX = 420
DEPTH = 10**24


@pytest.fixture
def chain():
    return Chain()


@pytest.fixture
def dex(chain):
    dex = chain.deploy(CrocSwapDex(chain))
    for base, quote in ((TKA, TKB), (TKB, TKC)):
        for token in (base, quote):
            chain.mint(token, LP, DEPTH)
            chain.approve(token, LP, dex.address, DEPTH)
        dex.init_pool(base, quote, POOL_IDX, DEPTH, DEPTH, 500, sender=LP)
    return dex


class TestPools:
    def test_base_must_be_lower_address(self, dex):
        with pytest.raises(PoolError):
            dex.curve(TKB, TKA, POOL_IDX)

    def test_init_mints_lp_conduit(self, chain, dex):
        assert chain.balance_of(dex.lp_token(TKA, TKB, POOL_IDX), LP) == DEPTH

    def test_duplicate_init_rejected(self, dex):
        with pytest.raises(PoolError):
            dex.init_pool(TKA, TKB, POOL_IDX, 1, 1, 500, sender=LP)

    def test_mint_and_burn_round_trip(self, chain, dex):
        chain.mint(TKA, ALICE, 10**18)
        chain.mint(TKB, ALICE, 10**18)
        chain.approve(TKA, ALICE, dex.address, 10**18)
        chain.approve(TKB, ALICE, dex.address, 10**18)
        paid = dex.mint_ambient(TKA, TKB, POOL_IDX, 10**17, 10**18, 10**18, sender=ALICE)
        assert paid == (10**17, 10**17)
        received = dex.burn_ambient(TKA, TKB, POOL_IDX, 10**17, 0, 0, sender=ALICE)
        assert received == (10**17, 10**17)

    def test_mint_respects_limits(self, chain, dex):
        with pytest.raises(PoolError):
            dex.mint_ambient(TKA, TKB, POOL_IDX, 10**17, 1, 1, sender=ALICE)


class TestSwaps:
    def test_swap_moves_reserves(self, chain, dex):
        chain.mint(TKB, ALICE, 1000)
        chain.approve(TKB, ALICE, dex.address, 1000)
        out = dex.swap(TKA, TKB, POOL_IDX, False, 1000, 0, sender=ALICE)
        curve = dex.require_curve(TKA, TKB, POOL_IDX)
        assert chain.balance_of(TKA, ALICE) == out
        assert (curve.base_reserve, curve.quote_reserve) == (DEPTH - out, DEPTH + 1000)

    def test_multiswap_chains_steps(self, chain, dex):
        router = chain.deploy(CrocSwapRouter(chain, dex))
        steps = [SwapStep.for_pair(TKA, TKB, POOL_IDX), SwapStep.for_pair(TKB, TKC, POOL_IDX)]
        chain.mint(TKA, ALICE, 1000)
        chain.approve(TKA, ALICE, router.address, 1000)
        out = router.multiswap(encode_steps(steps), 1000, 990, sender=ALICE)
        assert chain.balance_of(TKC, ALICE) == out
        assert chain.balance_of(TKB, router.address) == 0

    def test_multiswap_rejects_broken_chain(self, chain, dex):
        router = chain.deploy(CrocSwapRouter(chain, dex))
        steps = [SwapStep.for_pair(TKA, TKB, POOL_IDX), SwapStep.for_pair(TKA, TKC, POOL_IDX)]
        with pytest.raises(PoolError, match="do not chain"):
            router.multiswap(encode_steps(steps), 1000, 0, sender=ALICE)


class TestLens:
    def test_query_liquidity_and_price(self, chain, dex):
        query = chain.deploy(CrocQuery(chain, dex))
        assert query.query_liquidity(TKA, TKB, POOL_IDX) == DEPTH
        assert query.query_price(TKA, TKB, POOL_IDX) == 1 << 64
        assert query.query_liquidity(TKA, TKB, 36000) == 0

    def test_impact_flows_signed_by_direction(self, chain, dex):
        impact = chain.deploy(CrocImpact(chain, dex))
        base_flow, quote_flow, _ = impact.calc_impact(TKA, TKB, POOL_IDX, True, 1000)
        assert base_flow == 1000
        assert quote_flow == -dex.preview_swap(TKA, TKB, POOL_IDX, True, 1000)
