"""
tests/unit/test_pools.py - Tests for dex/pools.py

In-memory pools and the PoolBook hop simulator.
"""

import pytest

from conftest import DAI, ETH, ONE_ETH, USDC, V2_USDC_WETH, WETH
from core.constants import DEFAULT_V3_HOP_GAS, DEFAULT_V4_HOP_GAS, ProtocolFamily
from core.exceptions import ErrorCode, QuoteError
from core.math import get_amount_out
from dex.adapters.base import resolve_hop
from dex.pools import ConcentratedPool, ConstantProductPool, PoolBook, load_pool_book


class TestConstantProductPool:

    def test_quote_both_directions(self, v2_usdc_weth):
        reserve_usdc, reserve_weth = V2_USDC_WETH

        assert v2_usdc_weth.quote_exact_input(WETH, ONE_ETH).amount == get_amount_out(
            ONE_ETH, reserve_weth, reserve_usdc
        )
        assert v2_usdc_weth.reserves(USDC) == (reserve_usdc, reserve_weth)

    def test_foreign_token(self, v2_usdc_weth):
        with pytest.raises(QuoteError) as exc_info:
            v2_usdc_weth.quote_exact_input(DAI, 1)

        assert exc_info.value.code == ErrorCode.POOL_NOT_FOUND

    def test_drain_is_insufficient_liquidity(self, v2_usdc_weth):
        with pytest.raises(QuoteError) as exc_info:
            v2_usdc_weth.quote_exact_output(USDC, V2_USDC_WETH[1])

        assert exc_info.value.code == ErrorCode.INSUFFICIENT_LIQUIDITY


class TestConcentratedPool:

    def test_price_direction(self, v3_usdc_weth):
        usdc_out = v3_usdc_weth.quote_exact_input(WETH, ONE_ETH).amount

        # ~2500 USDC less the 0.05% fee and slippage
        assert 2_480 * 10**6 < usdc_out < 2_500 * 10**6

    def test_exact_output_costs_at_least_exact_input(self, v3_usdc_weth):
        usdc_out = v3_usdc_weth.quote_exact_input(WETH, ONE_ETH).amount

        assert v3_usdc_weth.quote_exact_output(WETH, usdc_out).amount <= ONE_ETH

    def test_gas_comes_from_pool(self, v3_usdc_weth, v4_eth_usdc):
        assert v3_usdc_weth.quote_exact_input(WETH, ONE_ETH).gas_estimate == DEFAULT_V3_HOP_GAS
        assert v4_eth_usdc.quote_exact_input(ETH, ONE_ETH).gas_estimate == DEFAULT_V4_HOP_GAS

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount(self, v3_usdc_weth, amount):
        with pytest.raises(QuoteError) as exc_info:
            v3_usdc_weth.quote_exact_input(WETH, amount)

        assert exc_info.value.code == ErrorCode.QUOTE_REVERT

    def test_empty_pool(self):
        pool = ConcentratedPool(USDC, WETH, 500, 2**96, 0)

        with pytest.raises(QuoteError) as exc_info:
            pool.quote_exact_input(WETH, 1)

        assert exc_info.value.code == ErrorCode.INSUFFICIENT_LIQUIDITY

    def test_output_beyond_range(self, v3_usdc_weth):
        with pytest.raises(QuoteError) as exc_info:
            v3_usdc_weth.quote_exact_output(USDC, 10**40)

        assert exc_info.value.code == ErrorCode.INSUFFICIENT_LIQUIDITY


class TestPoolBook:

    def test_resolves_registered_pool(self, pool_book, protocols, v3_usdc_weth):
        hop = resolve_hop(protocols[ProtocolFamily.UNISWAP_V3], WETH, USDC, 500)

        assert pool_book.get_pool(hop) is v3_usdc_weth
        assert pool_book.simulate_exact_input(hop, ONE_ETH) == v3_usdc_weth.quote_exact_input(WETH, ONE_ETH)

    def test_same_pair_other_family_is_separate(self, protocols):
        book = PoolBook(protocols)
        book.add_pool(ProtocolFamily.UNISWAP_V3, ConcentratedPool(USDC, WETH, 500, 2**96, 10**18))
        hop = resolve_hop(protocols[ProtocolFamily.SUSHISWAP_V3], WETH, USDC, 500)

        with pytest.raises(QuoteError) as exc_info:
            book.get_pool(hop)

        assert exc_info.value.code == ErrorCode.POOL_NOT_FOUND
        assert exc_info.value.details["family"] == ProtocolFamily.SUSHISWAP_V3

    def test_unsorted_pool_rejected(self, protocols):
        with pytest.raises(ValueError):
            PoolBook(protocols).add_pool(ProtocolFamily.UNISWAP_V2, ConstantProductPool(WETH, USDC, 1, 1))

    def test_manager_family_needs_concentrated_pool(self, protocols):
        with pytest.raises(ValueError):
            PoolBook(protocols).add_pool(ProtocolFamily.UNISWAP_V4, ConstantProductPool(ETH, USDC, 1, 1))

    def test_len(self, pool_book):
        assert len(pool_book) == 7


class TestLoadPoolBook:

    def test_unsorted_pair_swaps_reserves(self, protocols):
        book = load_pool_book(
            {"pools": [{"family": 0, "token0": WETH, "token1": USDC, "reserve0": 20, "reserve1": 50_000}]},
            protocols,
        )
        hop = resolve_hop(protocols[ProtocolFamily.UNISWAP_V2], WETH, USDC)

        assert book.get_pool(hop).reserves(WETH) == (20, 50_000)

    def test_concentrated_entry(self, protocols):
        book = load_pool_book(
            {
                "pools": [
                    {
                        "family": 2,
                        "token0": ETH,
                        "token1": USDC.lower(),
                        "fee": 3000,
                        "tick_spacing": 60,
                        "sqrt_price_x96": 2**96,
                        "liquidity": 10**18,
                    }
                ]
            },
            protocols,
        )

        pool = next(iter(book._pools.values()))
        assert pool.token1 == USDC
        assert pool.gas == DEFAULT_V4_HOP_GAS

    def test_unsorted_concentrated_entry(self, protocols):
        entry = {"family": 1, "token0": WETH, "token1": USDC, "fee": 500, "sqrt_price_x96": 2**96, "liquidity": 1}

        with pytest.raises(ValueError):
            load_pool_book({"pools": [entry]}, protocols)

    def test_empty(self, protocols):
        assert len(load_pool_book({}, protocols)) == 0
