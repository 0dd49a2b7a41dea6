"""
dex/pools.py - In-memory pool state and a pure hop simulator.

PoolBook holds constant-product and single-range concentrated-liquidity
pools keyed by their derived address (or pool id) and answers hop quotes
with the same integer math the contracts use. Quoting never mutates a pool.
"""

from dataclasses import dataclass
from typing import Any, Union

from eth_utils import to_checksum_address

from config import ProtocolConfig, get_protocol
from core.constants import (
    DEFAULT_V2_HOP_GAS,
    DEFAULT_V3_HOP_GAS,
    DEFAULT_V4_HOP_GAS,
    MAX_SQRT_RATIO,
    MIN_SQRT_RATIO,
    ZERO_ADDRESS,
    ProtocolKind,
)
from core.exceptions import ErrorCode, QuoteError
from core.logging import get_logger
from core.math import (
    amount_less_fee,
    fee_on_amount,
    get_amount0_delta,
    get_amount1_delta,
    get_amount_in,
    get_amount_out,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
)
from core.models import Hop, HopQuote, PoolKey
from dex.pool_address import (
    compute_pool_id,
    compute_v2_pair_address,
    compute_v3_pool_address,
    sort_tokens,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConstantProductPool:
    """x*y=k pair with the 0.3% fee."""

    token0: str
    token1: str
    reserve0: int
    reserve1: int
    gas: int = DEFAULT_V2_HOP_GAS

    def reserves(self, token_in: str) -> tuple[int, int]:
        """(reserve_in, reserve_out) for a swap selling `token_in`."""
        if token_in == self.token0:
            return self.reserve0, self.reserve1
        if token_in == self.token1:
            return self.reserve1, self.reserve0
        raise QuoteError(
            code=ErrorCode.POOL_NOT_FOUND,
            message=f"{token_in} is not in pair {self.token0}/{self.token1}",
        )

    def quote_exact_input(self, token_in: str, amount_in: int) -> HopQuote:
        reserve_in, reserve_out = self.reserves(token_in)
        try:
            amount_out = get_amount_out(amount_in, reserve_in, reserve_out)
        except ValueError as e:
            raise QuoteError(code=ErrorCode.INSUFFICIENT_LIQUIDITY, message=str(e)) from e
        return HopQuote(amount=amount_out, gas_estimate=self.gas)

    def quote_exact_output(self, token_in: str, amount_out: int) -> HopQuote:
        reserve_in, reserve_out = self.reserves(token_in)
        try:
            amount_in = get_amount_in(amount_out, reserve_in, reserve_out)
        except ValueError as e:
            raise QuoteError(code=ErrorCode.INSUFFICIENT_LIQUIDITY, message=str(e)) from e
        return HopQuote(amount=amount_in, gas_estimate=self.gas)


@dataclass(frozen=True)
class ConcentratedPool:
    """
    Concentrated-liquidity pool with its liquidity in a single active range.

    Swaps that would push the price past the ratio bounds fail rather than
    cross into an empty range.
    """

    token0: str
    token1: str
    fee: int
    sqrt_price_x96: int
    liquidity: int
    tick_spacing: int = 0
    hooks: str = ZERO_ADDRESS
    gas: int = DEFAULT_V3_HOP_GAS

    def _check(self, amount: int) -> None:
        if amount <= 0:
            raise QuoteError(
                code=ErrorCode.QUOTE_REVERT,
                message=f"Swap amount must be positive: {amount}",
            )
        if self.liquidity <= 0:
            raise QuoteError(
                code=ErrorCode.INSUFFICIENT_LIQUIDITY,
                message=f"Pool {self.token0}/{self.token1} has no liquidity",
            )

    def _next_price_in_range(self, sqrt_price: int) -> int:
        if not MIN_SQRT_RATIO < sqrt_price < MAX_SQRT_RATIO:
            raise QuoteError(
                code=ErrorCode.INSUFFICIENT_LIQUIDITY,
                message="Swap moves price out of range",
                details={"sqrt_price_x96": sqrt_price},
            )
        return sqrt_price

    def quote_exact_input(self, token_in: str, amount_in: int) -> HopQuote:
        self._check(amount_in)
        zero_for_one = token_in == self.token0
        net_in = amount_less_fee(amount_in, self.fee)

        try:
            sqrt_next = self._next_price_in_range(
                get_next_sqrt_price_from_input(self.sqrt_price_x96, self.liquidity, net_in, zero_for_one)
            )
        except ValueError as e:
            raise QuoteError(code=ErrorCode.INSUFFICIENT_LIQUIDITY, message=str(e)) from e

        if zero_for_one:
            amount_out = get_amount1_delta(sqrt_next, self.sqrt_price_x96, self.liquidity, False)
        else:
            amount_out = get_amount0_delta(self.sqrt_price_x96, sqrt_next, self.liquidity, False)

        return HopQuote(amount=amount_out, gas_estimate=self.gas)

    def quote_exact_output(self, token_in: str, amount_out: int) -> HopQuote:
        self._check(amount_out)
        zero_for_one = token_in == self.token0

        try:
            sqrt_next = self._next_price_in_range(
                get_next_sqrt_price_from_output(self.sqrt_price_x96, self.liquidity, amount_out, zero_for_one)
            )
        except ValueError as e:
            raise QuoteError(code=ErrorCode.INSUFFICIENT_LIQUIDITY, message=str(e)) from e

        if zero_for_one:
            net_in = get_amount0_delta(sqrt_next, self.sqrt_price_x96, self.liquidity, True)
        else:
            net_in = get_amount1_delta(self.sqrt_price_x96, sqrt_next, self.liquidity, True)

        return HopQuote(amount=net_in + fee_on_amount(net_in, self.fee), gas_estimate=self.gas)


Pool = Union[ConstantProductPool, ConcentratedPool]


class PoolBook:
    """
    In-memory hop simulator.

    Usage:
        book = PoolBook(protocols)
        book.add_pool(ProtocolFamily.UNISWAP_V2, ConstantProductPool(weth, usdc, r0, r1))
        quote = book.simulate_exact_input(hop, 10**18)
    """

    def __init__(self, protocols: dict[int, ProtocolConfig]):
        self.protocols = protocols
        self._pools: dict[tuple[int, str], Pool] = {}

    def pool_identity(self, family: int, pool: Pool) -> str:
        """Derived address (or manager pool id) the pool is registered under."""
        protocol = get_protocol(self.protocols, family)

        if protocol.kind == ProtocolKind.CONSTANT_PRODUCT:
            return compute_v2_pair_address(protocol.factory, protocol.init_code_hash, pool.token0, pool.token1)

        if not isinstance(pool, ConcentratedPool):
            raise ValueError(f"{protocol.name} needs a ConcentratedPool, got {type(pool).__name__}")

        if protocol.kind == ProtocolKind.CONCENTRATED_LIQUIDITY:
            return compute_v3_pool_address(
                protocol.factory, protocol.init_code_hash, pool.token0, pool.token1, pool.fee
            )

        return compute_pool_id(
            PoolKey(pool.token0, pool.token1, pool.fee, pool.tick_spacing, pool.hooks)
        )

    def add_pool(self, family: int, pool: Pool) -> str:
        """Register a pool. Tokens must already be sorted."""
        if sort_tokens(pool.token0, pool.token1) != (pool.token0, pool.token1):
            raise ValueError(f"Pool tokens not sorted: {pool.token0}, {pool.token1}")

        identity = self.pool_identity(family, pool)
        self._pools[(family, identity)] = pool
        logger.debug(
            f"Registered pool {identity}",
            extra={"context": {"family": family, "pool": identity}},
        )
        return identity

    def get_pool(self, hop: Hop) -> Pool:
        pool = self._pools.get((hop.family, hop.pool))
        if pool is None:
            raise QuoteError(
                code=ErrorCode.POOL_NOT_FOUND,
                message=f"No pool {hop.pool} for family 0x{hop.family:02x}",
                details={"family": hop.family, "pool": hop.pool},
            )
        return pool

    def simulate_exact_input(self, hop: Hop, amount_in: int) -> HopQuote:
        return self.get_pool(hop).quote_exact_input(hop.token_in, amount_in)

    def simulate_exact_output(self, hop: Hop, amount_out: int) -> HopQuote:
        return self.get_pool(hop).quote_exact_output(hop.token_in, amount_out)

    def __len__(self) -> int:
        return len(self._pools)


def load_pool_book(data: dict[str, Any], protocols: dict[int, ProtocolConfig]) -> PoolBook:
    """
    Build a PoolBook from parsed YAML.

    Expected layout:
        pools:
          - family: 0x00
            token0: "0x..."
            token1: "0x..."
            reserve0: 1000
            reserve1: 2000
          - family: 0x01
            token0: "0x..."
            token1: "0x..."
            fee: 500
            sqrt_price_x96: 7922...
            liquidity: 10**18
    """
    book = PoolBook(protocols)
    for entry in data.get("pools", []):
        family = int(entry["family"])
        listed = (to_checksum_address(entry["token0"]), to_checksum_address(entry["token1"]))
        token0, token1 = sort_tokens(*listed)
        swapped = (token0, token1) != listed
        kind = get_protocol(protocols, family).kind

        pool: Pool
        if kind == ProtocolKind.CONSTANT_PRODUCT:
            reserve0, reserve1 = int(entry["reserve0"]), int(entry["reserve1"])
            if swapped:
                reserve0, reserve1 = reserve1, reserve0
            pool = ConstantProductPool(token0, token1, reserve0, reserve1)
        else:
            if swapped:
                raise ValueError(f"Concentrated pool tokens must be listed sorted: {listed}")
            default_gas = DEFAULT_V3_HOP_GAS if kind == ProtocolKind.CONCENTRATED_LIQUIDITY else DEFAULT_V4_HOP_GAS
            pool = ConcentratedPool(
                token0=token0,
                token1=token1,
                fee=int(entry["fee"]),
                sqrt_price_x96=int(entry["sqrt_price_x96"]),
                liquidity=int(entry["liquidity"]),
                tick_spacing=int(entry.get("tick_spacing", 0)),
                hooks=to_checksum_address(entry.get("hooks", ZERO_ADDRESS)),
                gas=int(entry.get("gas", default_gas)),
            )
        book.add_pool(family, pool)

    return book
