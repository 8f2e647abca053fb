"""Tests for the constant-product factory, pair and router contracts."""

import pytest

from dexrouter.amm.uniswap_v2 import MINIMUM_LIQUIDITY, get_amount_out
from dexrouter.chain import Chain, Expired, PoolError, UniswapV2Factory, UniswapV2Router
from dexrouter.models.types import ZERO_ADDRESS

TKA = "0x" + "1" * 40
TKB = "0x" + "2" * 40
TKC = "0x" + "3" * 40
LP = "0x" + "1b" * 20
ALICE = "0x" + "a1" * 20


@pytest.fixture
def chain():
    return Chain()


@pytest.fixture
def router(chain):
    factory = chain.deploy(UniswapV2Factory(chain))
    router = chain.deploy(UniswapV2Router(chain, factory))
    for token_a, token_b in ((TKA, TKB), (TKB, TKC)):
        for token in (token_a, token_b):
            chain.mint(token, LP, 10**6)
            chain.approve(token, LP, router.address, 10**6)
        router.add_liquidity(
            token_a, token_b, 10**6, 10**6, 0, 0, LP, chain.timestamp, sender=LP
        )
    return router


class TestFactory:
    def test_missing_pair_is_zero_address(self, chain):
        factory = UniswapV2Factory(chain)
        assert factory.get_pair(TKA, TKB) == ZERO_ADDRESS

    def test_pair_lookup_is_order_independent(self, router):
        assert router.factory.get_pair(TKA, TKB) == router.factory.get_pair(TKB, TKA)

    def test_duplicate_pair_rejected(self, router):
        with pytest.raises(PoolError):
            router.factory.create_pair(TKB, TKA)


class TestLiquidity:
    def test_first_deposit_locks_minimum(self, chain, router):
        pair = router.factory.get_pair(TKA, TKB)
        assert chain.balance_of(pair, LP) == 10**6 - MINIMUM_LIQUIDITY
        assert chain.total_supply(pair) == 10**6

    def test_remove_returns_share(self, chain, router):
        pair = router.factory.get_pair(TKA, TKB)
        chain.approve(pair, LP, router.address, 10**5)
        amount_a, amount_b = router.remove_liquidity(
            TKA, TKB, 10**5, 0, 0, ALICE, chain.timestamp, sender=LP
        )
        assert (amount_a, amount_b) == (10**5, 10**5)
        assert chain.balance_of(TKA, ALICE) == 10**5


class TestSwaps:
    def test_amounts_out_over_two_hops(self, router):
        amounts = router.get_amounts_out(1000, [TKA, TKB, TKC])
        first = get_amount_out(1000, 10**6, 10**6)
        assert amounts == [1000, first, get_amount_out(first, 10**6, 10**6)]

    def test_swap_pays_recipient(self, chain, router):
        chain.mint(TKA, ALICE, 1000)
        chain.approve(TKA, ALICE, router.address, 1000)
        amounts = router.swap_exact_tokens_for_tokens(
            1000, 0, [TKA, TKB, TKC], ALICE, chain.timestamp, sender=ALICE
        )
        assert chain.balance_of(TKC, ALICE) == amounts[-1]
        assert chain.balance_of(TKA, ALICE) == 0

    def test_minimum_enforced(self, chain, router):
        chain.mint(TKA, ALICE, 1000)
        chain.approve(TKA, ALICE, router.address, 1000)
        with pytest.raises(PoolError):
            router.swap_exact_tokens_for_tokens(
                1000, 1000, [TKA, TKB], ALICE, chain.timestamp, sender=ALICE
            )

    def test_expired_deadline(self, chain, router):
        with pytest.raises(Expired):
            router.swap_exact_tokens_for_tokens(
                1000, 0, [TKA, TKB], ALICE, chain.timestamp - 1, sender=ALICE
            )

    def test_missing_pair(self, router):
        with pytest.raises(PoolError):
            router.get_amounts_out(1000, [TKA, TKC])
