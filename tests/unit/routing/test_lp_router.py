"""Unit tests for input splitting and constant-product liquidity entry and exit."""

import pytest

from dexrouter.errors import (
    InsufficientOutput,
    ValidationError,
    ZeroAddress,
    ZeroAmount,
    ZeroTotalRatio,
)
from dexrouter.models.liquidity import PairPosition, RangePosition
from dexrouter.models.types import ZERO_ADDRESS
from dexrouter.models.venue import VenueId
from dexrouter.routing.lp_router import divide_in_ratio, split_amount
from tests.helpers import ALICE, TKA, TKB, WETH, fund

AMOUNT = 10**18


class TestDivideInRatio:
    def test_proportional_split(self):
        assert divide_in_ratio(300, 1, 2) == (100, 200)

    def test_parts_sum_to_amount(self):
        first, second = divide_in_ratio(10, 1, 2)
        assert (first, second) == (3, 7)

    def test_zero_first_ratio(self):
        assert divide_in_ratio(500, 0, 9) == (0, 500)

    def test_zero_total(self):
        with pytest.raises(ZeroTotalRatio):
            divide_in_ratio(500, 0, 0)


class TestSplitAmount:
    def test_two_way(self):
        assert split_amount(300, [100, 200]) == (100, 200)

    def test_remainder_goes_last(self):
        assert split_amount(10, [1, 1, 1]) == (3, 3, 4)

    @pytest.mark.parametrize(
        "ratios,expected",
        [
            ([0, 5], (0, 10)),
            ([0, 0, 5], (0, 0, 10)),
            ([5, 0, 0], (10, 0, 0)),
        ],
    )
    def test_zero_ratios(self, ratios, expected):
        assert split_amount(10, ratios) == expected

    def test_all_zero(self):
        with pytest.raises(ZeroTotalRatio):
            split_amount(10, [0, 0, 0])


@pytest.fixture
def pair(engine, v2):
    return v2.factory.get_pair(TKA, WETH)


@pytest.fixture
def alice(engine, v2):
    fund(engine, ALICE, TKA, AMOUNT)
    engine.chain.approve(TKA, ALICE, engine.lp_router.address, AMOUNT)
    return ALICE


class TestConstantProductLiquidity:
    def test_plan_split_values_both_sides(self, engine, pair):
        """A 1:1 pool takes roughly half the input on each side."""
        tokens, split = engine.lp_router.plan_split(
            TKA, AMOUNT, PairPosition(pair), VenueId.UNISWAP_V2
        )
        assert tokens == (TKA, WETH)
        assert sum(split) == AMOUNT
        assert split[0] == pytest.approx(AMOUNT // 2, rel=1e-2)

    def test_add_liquidity(self, engine, pair, alice):
        result = engine.lp_router.add_liquidity(
            TKA, AMOUNT, PairPosition(pair), VenueId.UNISWAP_V2, sender=alice
        )

        assert result.liquidity > 0
        assert engine.chain.balance_of(pair, alice) == result.liquidity
        assert sum(result.split) == AMOUNT
        for token in (TKA, WETH, pair):
            assert engine.chain.balance_of(token, engine.lp_router.address) == 0
        # Dust is returned to the sender, never kept
        assert engine.chain.balance_of(TKA, alice) == result.refunds.get(TKA, 0)

    def test_add_liquidity_minimum(self, engine, pair, alice):
        with pytest.raises(InsufficientOutput):
            engine.lp_router.add_liquidity(
                TKA,
                AMOUNT,
                PairPosition(pair),
                VenueId.UNISWAP_V2,
                sender=alice,
                min_liquidity=AMOUNT,
            )
        assert engine.chain.balance_of(TKA, alice) == AMOUNT
        assert engine.chain.balance_of(pair, alice) == 0

    def test_remove_liquidity(self, engine, pair, alice):
        added = engine.lp_router.add_liquidity(
            TKA, AMOUNT, PairPosition(pair), VenueId.UNISWAP_V2, sender=alice
        )
        before = engine.chain.balance_of(TKA, alice)
        engine.chain.approve(pair, alice, engine.lp_router.address, added.liquidity)

        result = engine.lp_router.remove_liquidity(
            PairPosition(pair), added.liquidity, TKA, VenueId.UNISWAP_V2, sender=alice
        )

        assert 0 < result.amount_out < AMOUNT
        assert engine.chain.balance_of(TKA, alice) == before + result.amount_out
        assert engine.chain.balance_of(pair, alice) == 0

    def test_remove_liquidity_minimum_reverts(self, engine, pair, alice):
        added = engine.lp_router.add_liquidity(
            TKA, AMOUNT, PairPosition(pair), VenueId.UNISWAP_V2, sender=alice
        )
        engine.chain.approve(pair, alice, engine.lp_router.address, added.liquidity)

        with pytest.raises(InsufficientOutput):
            engine.lp_router.remove_liquidity(
                PairPosition(pair),
                added.liquidity,
                TKA,
                VenueId.UNISWAP_V2,
                sender=alice,
                min_amount_out=AMOUNT,
            )
        assert engine.chain.balance_of(pair, alice) == added.liquidity

    def test_default_dex(self, engine, pair, alice):
        result = engine.lp_router.add_liquidity_with_default_dex(
            TKA, AMOUNT, PairPosition(pair), sender=alice
        )
        assert result.liquidity > 0


class TestValidation:
    def test_shares_engine_registry(self, engine):
        assert engine.lp_router.registry is engine.registry

    def test_zero_amount(self, engine, pair, alice):
        with pytest.raises(ZeroAmount):
            engine.lp_router.add_liquidity(
                TKA, 0, PairPosition(pair), VenueId.UNISWAP_V2, sender=alice
            )

    def test_zero_token(self, engine, pair, alice):
        with pytest.raises(ZeroAddress):
            engine.lp_router.remove_liquidity(
                PairPosition(pair), 1, ZERO_ADDRESS, VenueId.UNISWAP_V2, sender=alice
            )

    def test_wrong_position_type(self, engine, pair, alice):
        position = RangePosition(TKA, TKB, 3000, -60, 60)
        with pytest.raises(ValidationError):
            engine.lp_router.add_liquidity(
                TKA, AMOUNT, position, VenueId.UNISWAP_V2, sender=alice
            )
