"""Tests for ambient-liquidity math and multiswap steps."""

from math import isqrt

from dexrouter.amm import ambient
from dexrouter.amm.uniswap_v2 import get_amount_out

BASE = "0x" + "1" * 40
QUOTE = "0x" + "2" * 40


class TestSwapStep:
    def test_selling_quote_is_not_a_buy(self):
        step = ambient.SwapStep.for_pair(QUOTE, BASE, 420)
        assert (step.base, step.quote) == (BASE, QUOTE)
        assert step.is_buy is False
        assert step.token_in == QUOTE
        assert step.token_out == BASE

    def test_buying_quote(self):
        step = ambient.SwapStep.for_pair(BASE, QUOTE, 420)
        assert step.is_buy is True
        assert step.token_out == QUOTE

    def test_steps_survive_abi_encoding(self):
        steps = [
            ambient.SwapStep.for_pair(BASE, QUOTE, 420),
            ambient.SwapStep.for_pair(QUOTE, BASE, 36000),
        ]
        assert ambient.decode_steps(ambient.encode_steps(steps)) == steps


class TestAmbientCurve:
    def test_fee_free_swap_is_constant_product(self):
        assert ambient.swap_output(1000, 10**6, 10**6, True, 0) == get_amount_out(
            1000, 10**6, 10**6, 0
        )

    def test_sell_uses_quote_reserve_as_input(self):
        buy = ambient.swap_output(1000, 10**6, 4 * 10**6, True, 500)
        sell = ambient.swap_output(1000, 10**6, 4 * 10**6, False, 500)
        assert buy > 3000
        assert sell < 300

    def test_liquidity_and_price(self):
        assert ambient.ambient_liquidity(4, 9) == 6
        assert ambient.sqrt_price_x64(10**18, 4 * 10**18) == 2 << 64
        assert ambient.sqrt_price_x64(0, 1) == 0

    def test_first_deposit_mints_geometric_mean(self):
        assert ambient.liquidity_for_deposit(10**6, 4 * 10**6, 0, 0, 0) == isqrt(4 * 10**12)

    def test_deposit_rounds_in_pool_favor(self):
        base, quote = ambient.deposit_for_liquidity(1, 10, 10, 3)
        assert (base, quote) == (4, 4)
        liquidity = ambient.liquidity_for_deposit(base, quote, 10, 10, 3)
        assert liquidity == 1
