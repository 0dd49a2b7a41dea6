"""
tests/unit/test_math.py - Tests for core/math.py

Critical tests for:
- Constant-product formulas and their rounding
- Q64.96 sqrt-price deltas
- Fee helpers
"""

import pytest

from core.constants import Q96
from core.math import (
    amount_less_fee,
    div_rounding_up,
    fee_on_amount,
    get_amount0_delta,
    get_amount1_delta,
    get_amount_in,
    get_amount_out,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
    mul_div,
    mul_div_rounding_up,
)


class TestMulDiv:

    def test_floor_and_ceil(self):
        assert mul_div(7, 3, 2) == 10
        assert mul_div_rounding_up(7, 3, 2) == 11
        assert mul_div_rounding_up(6, 2, 3) == 4
        assert div_rounding_up(10, 3) == 4

    def test_zero_denominator(self):
        with pytest.raises(ZeroDivisionError):
            mul_div(1, 1, 0)
        with pytest.raises(ZeroDivisionError):
            mul_div_rounding_up(1, 1, 0)


class TestConstantProduct:

    def test_amount_out(self):
        assert get_amount_out(1000, 10_000, 10_000) == 906

    def test_amount_in(self):
        assert get_amount_in(906, 10_000, 10_000) == 1000

    def test_amount_in_covers_amount_out(self):
        reserve_in, reserve_out = 20_000 * 10**18, 50_000_000 * 10**6
        amount_out = 1_234_567_890

        amount_in = get_amount_in(amount_out, reserve_in, reserve_out)

        assert get_amount_out(amount_in, reserve_in, reserve_out) >= amount_out

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amount(self, amount):
        with pytest.raises(ValueError):
            get_amount_out(amount, 100, 100)
        with pytest.raises(ValueError):
            get_amount_in(amount, 100, 100)

    def test_empty_reserves(self):
        with pytest.raises(ValueError):
            get_amount_out(1, 0, 100)

    def test_cannot_drain_reserve(self):
        with pytest.raises(ValueError):
            get_amount_in(100, 100, 100)


class TestSqrtPrice:

    def test_amount1_delta_at_unit_price(self):
        # price 1 -> 4: sqrt 1 -> 2, L = 1e18 gives 1e18 of token1
        assert get_amount1_delta(Q96, 2 * Q96, 10**18, False) == 10**18

    def test_amount0_delta_at_unit_price(self):
        # L * (1/1 - 1/2)
        assert get_amount0_delta(Q96, 2 * Q96, 10**18, False) == 5 * 10**17

    def test_delta_is_symmetric_in_bounds(self):
        assert get_amount0_delta(2 * Q96, Q96, 10**18, True) == get_amount0_delta(Q96, 2 * Q96, 10**18, True)

    def test_rounding_up_never_below_down(self):
        a, b, liquidity = Q96 + 12345, 3 * Q96 // 2 + 7, 10**18 + 3
        assert get_amount0_delta(a, b, liquidity, True) >= get_amount0_delta(a, b, liquidity, False)
        assert get_amount1_delta(a, b, liquidity, True) >= get_amount1_delta(a, b, liquidity, False)

    def test_token1_in_moves_price_up(self):
        sqrt_next = get_next_sqrt_price_from_input(Q96, 10**18, 10**18, zero_for_one=False)
        assert sqrt_next == 2 * Q96

    def test_token0_in_moves_price_down(self):
        sqrt_next = get_next_sqrt_price_from_input(2 * Q96, 10**18, 5 * 10**17, zero_for_one=True)
        assert sqrt_next == Q96

    def test_output_beyond_reserve(self):
        with pytest.raises(ValueError):
            get_next_sqrt_price_from_output(Q96, 10**18, 10**18, zero_for_one=True)

    def test_zero_liquidity(self):
        with pytest.raises(ValueError):
            get_next_sqrt_price_from_input(Q96, 0, 10, zero_for_one=False)


class TestFees:

    def test_fee_on_amount(self):
        assert fee_on_amount(1_000_000, 3000) == 3010

    def test_amount_less_fee(self):
        assert amount_less_fee(1_000_000, 3000) == 997_000

    def test_fee_round_trip_covers_net(self):
        net = 123_456_789
        gross = net + fee_on_amount(net, 500)
        assert amount_less_fee(gross, 500) >= net
