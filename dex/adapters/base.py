"""
dex/adapters/base.py - Hop simulator protocol and pool resolution.

A hop simulator answers one single-pool swap question without committing
any state. Adapters build a Hop (resolving the pool from deployment
constants) and ask the simulator.
"""

from typing import Any, Optional, Protocol

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from config import ProtocolConfig
from core.constants import ProtocolKind
from core.exceptions import CommandError, ErrorCode
from core.models import Hop, HopQuote, PoolKey
from dex.pool_address import compute_pool_id, compute_v2_pair_address, compute_v3_pool_address


class HopSimulator(Protocol):
    """Answers single-hop quote requests."""

    def simulate_exact_input(self, hop: Hop, amount_in: int) -> HopQuote:
        """Output amount for selling exactly `amount_in` through the hop."""
        ...

    def simulate_exact_output(self, hop: Hop, amount_out: int) -> HopQuote:
        """Input amount required to buy exactly `amount_out` through the hop."""
        ...


def resolve_hop(
    protocol: ProtocolConfig,
    token_in: str,
    token_out: str,
    fee: int = 0,
    pool_key: Optional[PoolKey] = None,
) -> Hop:
    """
    Build a Hop with its derived pool identity.

    Raises:
        CommandError: INVALID_PATH for a hop that swaps a token for itself
    """
    if token_in == token_out:
        raise CommandError(
            code=ErrorCode.INVALID_PATH,
            message=f"Hop swaps {token_in} for itself",
            details={"family": protocol.family},
        )

    if protocol.kind == ProtocolKind.CONSTANT_PRODUCT:
        pool = compute_v2_pair_address(protocol.factory, protocol.init_code_hash, token_in, token_out)
    elif protocol.kind == ProtocolKind.CONCENTRATED_LIQUIDITY:
        pool = compute_v3_pool_address(protocol.factory, protocol.init_code_hash, token_in, token_out, fee)
    else:
        if pool_key is None:
            raise CommandError(
                code=ErrorCode.INVALID_INPUT,
                message="Manager hop requires a pool key",
                details={"family": protocol.family},
            )
        pool = compute_pool_id(pool_key)
        fee = pool_key.fee

    return Hop(
        family=protocol.family,
        pool=pool,
        token_in=token_in,
        token_out=token_out,
        fee=fee,
        pool_key=pool_key,
    )


def decode_blob(types: list[str], data: bytes, label: str) -> tuple[Any, ...]:
    """
    ABI-decode a parameter blob.

    Raises:
        CommandError: INVALID_INPUT if the blob does not match `types`
    """
    try:
        return decode(types, data)
    except DecodingError as e:
        raise CommandError(
            code=ErrorCode.INVALID_INPUT,
            message=f"Cannot decode {label} parameters: {e}",
            details={"types": types, "length": len(data)},
        ) from e
