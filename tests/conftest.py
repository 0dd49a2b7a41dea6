# PATH: tests/conftest.py
"""
Pytest configuration and fixtures for PLANQ tests.

Pools are priced around 2500 USDC per ETH and quoted in memory through a
PoolBook, so every expected amount can be recomputed from the pool objects.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import load_protocols  # noqa: E402
from core.constants import (  # noqa: E402
    DEFAULT_V4_HOP_GAS,
    Q96,
    ZERO_ADDRESS,
    ProtocolFamily,
)
from core.models import PoolKey  # noqa: E402
from dex.pools import ConcentratedPool, ConstantProductPool, PoolBook  # noqa: E402
from quoter.engine import Quoter  # noqa: E402

# Mainnet tokens (checksummed). Sorted: WBTC < DAI < USDC < WETH
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
DAI = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
WBTC = "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599"
ETH = ZERO_ADDRESS

CALLER = "0x1111111111111111111111111111111111111111"
STRANGER = "0x3333333333333333333333333333333333333333"

ONE_ETH = 10**18

# V2 reserves
V2_USDC_WETH = (50_000_000 * 10**6, 20_000 * 10**18)
V2_DAI_USDC = (10_000_000 * 10**18, 10_000_000 * 10**6)

# sqrt(WETH per USDC) = sqrt(1e18 / 2500e6) = 20000
SQRT_PRICE_USDC_WETH = 20_000 * Q96
# sqrt(USDC per DAI) = sqrt(1e6 / 1e18) = 1e-6
SQRT_PRICE_DAI_USDC = Q96 // 10**6
# sqrt(USDC per ETH) = sqrt(2500e6 / 1e18) = 1/20000
SQRT_PRICE_ETH_USDC = Q96 // 20_000

V4_ETH_USDC_KEY = PoolKey(
    currency0=ETH,
    currency1=USDC,
    fee=3000,
    tick_spacing=60,
    hooks=ZERO_ADDRESS,
)


@pytest.fixture(scope="session")
def protocols():
    """Protocol deployment constants from config/protocols.yaml."""
    return load_protocols()


@pytest.fixture
def v2_usdc_weth():
    return ConstantProductPool(USDC, WETH, *V2_USDC_WETH)


@pytest.fixture
def v2_dai_usdc():
    return ConstantProductPool(DAI, USDC, *V2_DAI_USDC)


@pytest.fixture
def v3_usdc_weth():
    return ConcentratedPool(
        token0=USDC,
        token1=WETH,
        fee=500,
        sqrt_price_x96=SQRT_PRICE_USDC_WETH,
        liquidity=10**20,
    )


@pytest.fixture
def v3_dai_usdc():
    return ConcentratedPool(
        token0=DAI,
        token1=USDC,
        fee=100,
        sqrt_price_x96=SQRT_PRICE_DAI_USDC,
        liquidity=10**20,
    )


@pytest.fixture
def v4_eth_usdc():
    return ConcentratedPool(
        token0=ETH,
        token1=USDC,
        fee=V4_ETH_USDC_KEY.fee,
        sqrt_price_x96=SQRT_PRICE_ETH_USDC,
        liquidity=10**20,
        tick_spacing=V4_ETH_USDC_KEY.tick_spacing,
        hooks=V4_ETH_USDC_KEY.hooks,
        gas=DEFAULT_V4_HOP_GAS,
    )


@pytest.fixture
def pool_book(protocols, v2_usdc_weth, v2_dai_usdc, v3_usdc_weth, v3_dai_usdc, v4_eth_usdc):
    """Pool book covering every configured family."""
    book = PoolBook(protocols)
    book.add_pool(ProtocolFamily.UNISWAP_V2, v2_usdc_weth)
    book.add_pool(ProtocolFamily.UNISWAP_V2, v2_dai_usdc)
    for family in (
        ProtocolFamily.UNISWAP_V3,
        ProtocolFamily.PANCAKESWAP_V3,
        ProtocolFamily.SUSHISWAP_V3,
    ):
        book.add_pool(family, v3_usdc_weth)
    book.add_pool(ProtocolFamily.UNISWAP_V3, v3_dai_usdc)
    book.add_pool(ProtocolFamily.UNISWAP_V4, v4_eth_usdc)
    return book


@pytest.fixture
def quoter(pool_book, protocols):
    return Quoter(pool_book, protocols)
