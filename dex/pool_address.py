"""
dex/pool_address.py - Deterministic pool identity.

Pools are never looked up: their address (or id) is a pure function of the
protocol's factory and init code hash plus the sorted token pair and fee.
"""

from eth_abi import encode
from eth_utils import keccak, to_bytes, to_checksum_address

from core.models import PoolKey


def sort_tokens(token_a: str, token_b: str) -> tuple[str, str]:
    """Sort two addresses numerically (token0 < token1)."""
    if int(token_a, 16) < int(token_b, 16):
        return token_a, token_b
    return token_b, token_a


def create2_address(deployer: str, salt: bytes, init_code_hash: str) -> str:
    """keccak256(0xff ++ deployer ++ salt ++ init_code_hash)[12:]"""
    digest = keccak(
        b"\xff"
        + to_bytes(hexstr=deployer)
        + salt
        + to_bytes(hexstr=init_code_hash)
    )
    return to_checksum_address(digest[12:])


def compute_v2_pair_address(
    factory: str,
    init_code_hash: str,
    token_a: str,
    token_b: str,
) -> str:
    """Constant-product pair: salt = keccak256(token0 ++ token1)."""
    token0, token1 = sort_tokens(token_a, token_b)
    salt = keccak(to_bytes(hexstr=token0) + to_bytes(hexstr=token1))
    return create2_address(factory, salt, init_code_hash)


def compute_v3_pool_address(
    deployer: str,
    init_code_hash: str,
    token_a: str,
    token_b: str,
    fee: int,
) -> str:
    """
    Concentrated-liquidity pool: salt = keccak256(abi.encode(token0, token1, fee)).

    `deployer` is the factory for Uniswap/Sushi and the pool deployer for
    PancakeSwap.
    """
    token0, token1 = sort_tokens(token_a, token_b)
    salt = keccak(encode(["address", "address", "uint24"], [token0, token1, fee]))
    return create2_address(deployer, salt, init_code_hash)


def compute_pool_id(pool_key: PoolKey) -> str:
    """Manager pool id: keccak256(abi.encode(PoolKey))."""
    encoded = encode(
        ["address", "address", "uint24", "int24", "address"],
        list(pool_key.as_tuple()),
    )
    return "0x" + keccak(encoded).hex()
