"""
dex/adapters/ - Protocol adapters and hop simulators.

Adapters:
- uniswap_v2: constant-product address-list paths
- uniswap_v3: concentrated-liquidity packed paths (Uniswap, PancakeSwap, SushiSwap)
- uniswap_v4: singleton-manager action batches
- rpc: eth_call-backed hop simulator
"""

from dex.adapters.base import HopSimulator, resolve_hop
from dex.adapters.uniswap_v2 import ConstantProductAdapter
from dex.adapters.uniswap_v3 import ConcentratedLiquidityAdapter
from dex.adapters.uniswap_v4 import BatchedActionAdapter

__all__ = [
    "BatchedActionAdapter",
    "ConcentratedLiquidityAdapter",
    "ConstantProductAdapter",
    "HopSimulator",
    "resolve_hop",
]
