"""
dex/adapters/rpc.py - On-chain hop simulator.

Answers hops with eth_call against deployed quoter contracts. The quoter
contracts run the real swap and revert with the result, so the amounts come
back as ordinary return data here.

- Concentrated-liquidity families: QuoterV2 quoteExactInputSingle /
  quoteExactOutputSingle (same interface on Uniswap, PancakeSwap, SushiSwap)
- Singleton manager: V4Quoter quoteExactInputSingle / quoteExactOutputSingle
- Constant product: pair getReserves() and the local V2 formulas
"""

from typing import Any, Optional

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector

from chains.providers import RPCProvider
from config import ProtocolConfig, get_protocol
from core.constants import DEFAULT_V2_HOP_GAS, ProtocolKind
from core.exceptions import ErrorCode, InfraError, QuoteError
from core.logging import get_logger
from core.math import get_amount_in, get_amount_out
from core.models import Hop, HopQuote
from dex.pool_address import sort_tokens

logger = get_logger(__name__)


# =============================================================================
# ABI ENCODING
# =============================================================================

QUOTER_V2_PARAMS = "(address,address,uint256,uint24,uint160)"
V4_QUOTER_PARAMS = "((address,address,uint24,int24,address),bool,uint128,bytes)"

SELECTOR_V2_QUOTE_EXACT_INPUT_SINGLE = function_signature_to_4byte_selector(
    f"quoteExactInputSingle({QUOTER_V2_PARAMS})"
)
SELECTOR_V2_QUOTE_EXACT_OUTPUT_SINGLE = function_signature_to_4byte_selector(
    f"quoteExactOutputSingle({QUOTER_V2_PARAMS})"
)
SELECTOR_V4_QUOTE_EXACT_INPUT_SINGLE = function_signature_to_4byte_selector(
    f"quoteExactInputSingle({V4_QUOTER_PARAMS})"
)
SELECTOR_V4_QUOTE_EXACT_OUTPUT_SINGLE = function_signature_to_4byte_selector(
    f"quoteExactOutputSingle({V4_QUOTER_PARAMS})"
)
SELECTOR_GET_RESERVES = function_signature_to_4byte_selector("getReserves()")

# (amount, sqrtPriceX96After, initializedTicksCrossed, gasEstimate)
QUOTER_V2_RETURN = ["uint256", "uint160", "uint32", "uint256"]
# (amount, gasEstimate)
V4_QUOTER_RETURN = ["uint256", "uint256"]
# (reserve0, reserve1, blockTimestampLast)
GET_RESERVES_RETURN = ["uint112", "uint112", "uint32"]


def encode_quoter_v2_call(hop: Hop, amount: int, exact_input: bool) -> str:
    """QuoterV2 single-hop call data; `amount` is amountIn or amountOut."""
    selector = SELECTOR_V2_QUOTE_EXACT_INPUT_SINGLE if exact_input else SELECTOR_V2_QUOTE_EXACT_OUTPUT_SINGLE
    args = encode([QUOTER_V2_PARAMS], [(hop.token_in, hop.token_out, amount, hop.fee, 0)])
    return "0x" + (selector + args).hex()


def encode_v4_quoter_call(hop: Hop, amount: int, exact_input: bool) -> str:
    """V4Quoter single-hop call data."""
    if hop.pool_key is None:
        raise QuoteError(
            code=ErrorCode.POOL_NOT_FOUND,
            message="Manager hop has no pool key",
            details={"pool": hop.pool},
        )
    selector = SELECTOR_V4_QUOTE_EXACT_INPUT_SINGLE if exact_input else SELECTOR_V4_QUOTE_EXACT_OUTPUT_SINGLE
    args = encode([V4_QUOTER_PARAMS], [(hop.pool_key.as_tuple(), hop.zero_for_one, amount, b"")])
    return "0x" + (selector + args).hex()


def decode_result(hex_result: Optional[str], types: list[str], label: str) -> tuple[Any, ...]:
    if not hex_result or hex_result == "0x":
        raise QuoteError(
            code=ErrorCode.QUOTE_REVERT,
            message=f"Empty {label} response",
        )
    try:
        return decode(types, bytes.fromhex(hex_result[2:] if hex_result.startswith("0x") else hex_result))
    except (DecodingError, ValueError) as e:
        raise QuoteError(
            code=ErrorCode.QUOTE_REVERT,
            message=f"Malformed {label} response: {e}",
            details={"raw": hex_result[:100]},
        ) from e


# =============================================================================
# SIMULATOR
# =============================================================================

class RPCHopSimulator:
    """
    Hop simulator backed by eth_call.

    Usage:
        simulator = RPCHopSimulator(provider, protocols)
        quote = simulator.simulate_exact_input(hop, 10**18)
    """

    def __init__(
        self,
        provider: RPCProvider,
        protocols: dict[int, ProtocolConfig],
        block: str = "latest",
    ):
        self.provider = provider
        self.protocols = protocols
        self.block = block

    def simulate_exact_input(self, hop: Hop, amount_in: int) -> HopQuote:
        return self._simulate(hop, amount_in, exact_input=True)

    def simulate_exact_output(self, hop: Hop, amount_out: int) -> HopQuote:
        return self._simulate(hop, amount_out, exact_input=False)

    def _simulate(self, hop: Hop, amount: int, exact_input: bool) -> HopQuote:
        protocol = get_protocol(self.protocols, hop.family)

        if protocol.kind == ProtocolKind.CONSTANT_PRODUCT:
            return self._quote_constant_product(hop, amount, exact_input)

        if protocol.quoter is None:
            raise QuoteError(
                code=ErrorCode.QUOTE_REVERT,
                message=f"No quoter configured for {protocol.name}",
                details={"family": hop.family},
            )

        if protocol.kind == ProtocolKind.CONCENTRATED_LIQUIDITY:
            call_data = encode_quoter_v2_call(hop, amount, exact_input)
            returned, _sqrt_after, _ticks, gas_estimate = decode_result(
                self._eth_call(protocol.quoter, call_data, hop), QUOTER_V2_RETURN, "QuoterV2"
            )
        else:
            call_data = encode_v4_quoter_call(hop, amount, exact_input)
            returned, gas_estimate = decode_result(
                self._eth_call(protocol.quoter, call_data, hop), V4_QUOTER_RETURN, "V4Quoter"
            )

        return HopQuote(amount=returned, gas_estimate=gas_estimate)

    def _quote_constant_product(self, hop: Hop, amount: int, exact_input: bool) -> HopQuote:
        reserve0, reserve1, _ts = decode_result(
            self._eth_call(hop.pool, "0x" + SELECTOR_GET_RESERVES.hex(), hop),
            GET_RESERVES_RETURN,
            "getReserves",
        )
        token0, _token1 = sort_tokens(hop.token_in, hop.token_out)
        reserve_in, reserve_out = (reserve0, reserve1) if hop.token_in == token0 else (reserve1, reserve0)

        try:
            if exact_input:
                quoted = get_amount_out(amount, reserve_in, reserve_out)
            else:
                quoted = get_amount_in(amount, reserve_in, reserve_out)
        except ValueError as e:
            raise QuoteError(
                code=ErrorCode.INSUFFICIENT_LIQUIDITY,
                message=str(e),
                details={"pool": hop.pool, "reserve_in": reserve_in, "reserve_out": reserve_out},
            ) from e

        return HopQuote(amount=quoted, gas_estimate=DEFAULT_V2_HOP_GAS)

    def _eth_call(self, to: str, call_data: str, hop: Hop) -> Optional[str]:
        try:
            response = self.provider.eth_call(to=to, data=call_data, block=self.block)
        except InfraError as e:
            raise QuoteError(
                code=ErrorCode.QUOTE_REVERT,
                message=f"Quote call failed: {e.message}",
                details={
                    "pool": hop.pool,
                    "family": hop.family,
                    "target": to,
                    "call_data_prefix": call_data[:10],
                    "infra_code": e.code.value,
                    **e.details,
                },
            ) from e

        logger.debug(
            f"eth_call {to[:10]}... in {response.latency_ms}ms",
            extra={"context": {"endpoint": response.endpoint_used, "pool": hop.pool}},
        )
        return response.result
