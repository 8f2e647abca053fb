"""End-to-end single-token liquidity entry and exit on every venue family."""

import pytest

from dexrouter.errors import InsufficientOutput, ValidationError
from dexrouter.models.liquidity import AmbientPosition, PairPosition, PoolPosition, RangePosition
from dexrouter.models.venue import VenueId
from tests.helpers import (
    ALICE,
    BOB,
    DEEP,
    TKA,
    TKB,
    TKE,
    WETH,
    add_ambient_pool,
    add_v2_pair,
    add_weighted_pool,
    deploy_ambient,
    deploy_balancer,
    deploy_uniswap_v2,
    fund,
)
from tests.helpers.factories import full_range

pytestmark = pytest.mark.integration

AMOUNT = 10**18
THIRD = 333333333333333333
TWO_THIRDS = 666666666666666667


def _fund_alice(engine, token=TKA, amount=AMOUNT):
    fund(engine, ALICE, token, amount)
    engine.chain.approve(token, ALICE, engine.lp_router.address, amount)


def _assert_router_empty(engine, *tokens):
    for token in tokens:
        assert engine.chain.balance_of(token, engine.lp_router.address) == 0
        assert engine.chain.balance_of(token, engine.swap_router.address) == 0


class TestConstantProduct:
    def test_round_trip(self, engine):
        v2 = deploy_uniswap_v2(engine)
        pair = add_v2_pair(engine, v2, TKA, WETH, DEEP, DEEP)
        _fund_alice(engine)
        position = PairPosition(pair)

        added = engine.lp_router.add_liquidity(
            TKA, AMOUNT, position, VenueId.UNISWAP_V2, sender=ALICE
        )
        engine.chain.approve(pair, ALICE, engine.lp_router.address, added.liquidity)
        removed = engine.lp_router.remove_liquidity(
            position, added.liquidity, WETH, VenueId.UNISWAP_V2, sender=ALICE, recipient=BOB
        )

        assert engine.chain.balance_of(WETH, BOB) == removed.amount_out
        # Two swaps and a deposit at 0.3% each way cost well under 1%
        assert removed.amount_out == pytest.approx(AMOUNT, rel=1e-2)
        _assert_router_empty(engine, TKA, WETH, pair)

    def test_foreign_input_token_round_trip(self, engine):
        """WETH enters a TKA/TKB pair by swapping into both sides."""
        v2 = deploy_uniswap_v2(engine)
        add_v2_pair(engine, v2, TKA, WETH, DEEP, DEEP)
        add_v2_pair(engine, v2, TKB, WETH, DEEP, DEEP)
        pair = add_v2_pair(engine, v2, TKA, TKB, DEEP, DEEP)
        _fund_alice(engine, WETH)
        position = PairPosition(pair)

        added = engine.lp_router.add_liquidity(
            WETH, AMOUNT, position, VenueId.UNISWAP_V2, sender=ALICE
        )

        assert added.split == (AMOUNT // 2, AMOUNT // 2)
        assert engine.chain.balance_of(pair, ALICE) == added.liquidity > 0
        assert engine.chain.balance_of(WETH, ALICE) == 0

        engine.chain.approve(pair, ALICE, engine.lp_router.address, added.liquidity)
        removed = engine.lp_router.remove_liquidity(
            position, added.liquidity, WETH, VenueId.UNISWAP_V2, sender=ALICE
        )

        assert engine.chain.balance_of(pair, ALICE) == 0
        assert removed.amount_out == pytest.approx(AMOUNT, rel=2e-2)
        _assert_router_empty(engine, TKA, TKB, WETH, pair)


class TestConcentrated:
    @pytest.fixture
    def position(self, engine, v3):
        lower, upper = full_range(3000)
        return RangePosition(TKA, TKB, 3000, lower, upper)

    def test_mint_new_position(self, engine, v3, position):
        _fund_alice(engine)

        result = engine.lp_router.add_liquidity(
            TKA, AMOUNT, position, VenueId.UNISWAP_V3, sender=ALICE
        )

        assert result.token_id is not None
        token = v3.manager.positions(result.token_id)
        assert token.owner == ALICE
        assert token.liquidity == result.liquidity
        assert sum(result.split) == AMOUNT
        _assert_router_empty(engine, TKA, TKB)

    def test_increase_then_remove(self, engine, v3, position):
        _fund_alice(engine, amount=2 * AMOUNT)
        minted = engine.lp_router.add_liquidity(
            TKA, AMOUNT, position, VenueId.UNISWAP_V3, sender=ALICE
        )
        existing = RangePosition(
            TKA, TKB, 3000, position.tick_lower, position.tick_upper, minted.token_id
        )
        increased = engine.lp_router.add_liquidity(
            TKA, AMOUNT, existing, VenueId.UNISWAP_V3, sender=ALICE
        )
        assert increased.token_id == minted.token_id
        total = minted.liquidity + increased.liquidity
        assert v3.manager.positions(minted.token_id).liquidity == total

        v3.manager.approve(engine.lp_router.address, minted.token_id, sender=ALICE)
        before = engine.chain.balance_of(TKB, ALICE)
        removed = engine.lp_router.remove_liquidity(
            existing, total, TKB, VenueId.UNISWAP_V3, sender=ALICE
        )

        assert v3.manager.positions(minted.token_id).liquidity == 0
        assert engine.chain.balance_of(TKB, ALICE) == before + removed.amount_out
        assert removed.amount_out == pytest.approx(2 * AMOUNT, rel=1e-2)

    def test_remove_requires_token_id(self, engine, v3, position):
        with pytest.raises(ValidationError):
            engine.lp_router.remove_liquidity(position, 1, TKA, VenueId.UNISWAP_V3, sender=ALICE)

    def test_remove_someone_elses_position(self, engine, v3, position):
        """An approval on the position manager does not let another caller redeem."""
        _fund_alice(engine)
        minted = engine.lp_router.add_liquidity(
            TKA, AMOUNT, position, VenueId.UNISWAP_V3, sender=ALICE
        )
        v3.manager.approve(engine.lp_router.address, minted.token_id, sender=ALICE)
        existing = RangePosition(
            TKA, TKB, 3000, position.tick_lower, position.tick_upper, minted.token_id
        )

        with pytest.raises(ValidationError):
            engine.lp_router.remove_liquidity(
                existing, minted.liquidity, TKA, VenueId.UNISWAP_V3, sender=BOB
            )
        assert v3.manager.positions(minted.token_id).liquidity == minted.liquidity


class TestBalancer:
    @pytest.fixture
    def vault(self, engine):
        return deploy_balancer(engine)

    def test_value_weighted_split(self, engine, vault):
        """300 wei into a 1/3-2/3 pool splits 100 to the light side and 200 to the heavy one."""
        pool_id = add_weighted_pool(
            engine, vault, {TKA: DEEP, TKE: DEEP}, {TKA: THIRD, TKE: TWO_THIRDS}
        )

        tokens, split = engine.lp_router.plan_split(
            TKA, 300, PoolPosition(pool_id), VenueId.BALANCER
        )

        assert tokens == (TKA, TKE)
        assert split == (100, 200)

    def test_value_weighted_deposit(self, engine, vault):
        pool_id = add_weighted_pool(
            engine, vault, {TKA: DEEP, TKE: DEEP}, {TKA: THIRD, TKE: TWO_THIRDS}
        )
        bpt = vault.get_pool(pool_id).address
        _fund_alice(engine, TKA, 300)

        result = engine.lp_router.add_liquidity(
            TKA, 300, PoolPosition(pool_id), VenueId.BALANCER, sender=ALICE
        )

        assert result.tokens == (TKA, TKE)
        assert result.split == (100, 200)
        assert engine.chain.balance_of(bpt, ALICE) == result.liquidity
        _assert_router_empty(engine, TKA, TKE, bpt)

    def test_round_trip(self, engine, vault):
        half = 5 * 10**17
        pool_id = add_weighted_pool(
            engine, vault, {TKA: DEEP, TKB: DEEP}, {TKA: half, TKB: half}, swap_fee=10**15
        )
        bpt = vault.get_pool(pool_id).address
        _fund_alice(engine)

        added = engine.lp_router.add_liquidity(
            TKA, AMOUNT, PoolPosition(pool_id), VenueId.BALANCER, sender=ALICE
        )
        assert engine.chain.balance_of(bpt, ALICE) == added.liquidity > 0

        engine.chain.approve(bpt, ALICE, engine.lp_router.address, added.liquidity)
        removed = engine.lp_router.remove_liquidity(
            PoolPosition(pool_id), added.liquidity, TKA, VenueId.BALANCER, sender=ALICE
        )

        assert engine.chain.balance_of(bpt, ALICE) == 0
        assert removed.amount_out == pytest.approx(AMOUNT, rel=1e-2)
        _assert_router_empty(engine, TKA, TKB, bpt)


class TestAmbient:
    @pytest.fixture
    def ambient(self, engine):
        deployment = deploy_ambient(engine)
        add_ambient_pool(engine, deployment, TKA, TKB, 420, DEEP, DEEP)
        return deployment

    def test_round_trip(self, engine, ambient):
        lp_token = ambient.dex.lp_token(TKA, TKB, 420)
        position = AmbientPosition(TKB, TKA, 420)
        _fund_alice(engine)

        added = engine.lp_router.add_liquidity(
            TKA, AMOUNT, position, VenueId.AMBIENT, sender=ALICE
        )
        assert engine.chain.balance_of(lp_token, ALICE) == added.liquidity > 0

        engine.chain.approve(lp_token, ALICE, engine.lp_router.address, added.liquidity)
        removed = engine.lp_router.remove_liquidity(
            position, added.liquidity, TKB, VenueId.AMBIENT, sender=ALICE
        )

        assert engine.chain.balance_of(TKB, ALICE) >= removed.amount_out
        assert removed.amount_out == pytest.approx(AMOUNT, rel=1e-2)
        _assert_router_empty(engine, TKA, TKB, lp_token)

    def test_minimum_rolls_back(self, engine, ambient):
        _fund_alice(engine)
        curve = ambient.dex.require_curve(TKA, TKB, 420)
        reserves = (curve.base_reserve, curve.quote_reserve)

        with pytest.raises(InsufficientOutput):
            engine.lp_router.add_liquidity(
                TKA,
                AMOUNT,
                AmbientPosition(TKA, TKB, 420),
                VenueId.AMBIENT,
                sender=ALICE,
                min_liquidity=AMOUNT,
            )

        curve = ambient.dex.require_curve(TKA, TKB, 420)
        assert (curve.base_reserve, curve.quote_reserve) == reserves
        assert engine.chain.balance_of(TKA, ALICE) == AMOUNT
