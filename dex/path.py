"""
dex/path.py - Packed multi-hop path codec.

Concentrated-liquidity paths are packed as:
    token (20 bytes) | fee (3 bytes) | token (20 bytes) | fee | token ...

Exact-output paths use the same layout but start at the output token.
"""

from eth_utils import to_checksum_address

from core.constants import PATH_ADDRESS_SIZE, PATH_FEE_SIZE
from core.exceptions import CommandError, ErrorCode

HOP_SIZE = PATH_FEE_SIZE + PATH_ADDRESS_SIZE
MIN_PATH_LENGTH = PATH_ADDRESS_SIZE + HOP_SIZE


def encode_path(tokens: list[str], fees: list[int]) -> bytes:
    """
    Pack tokens and fee tiers into a path.

    Args:
        tokens: Token addresses, N+1 entries
        fees: Fee tiers, N entries

    Returns:
        Packed path bytes
    """
    if len(tokens) != len(fees) + 1 or not fees:
        raise CommandError(
            code=ErrorCode.INVALID_PATH,
            message=f"Path needs N fees and N+1 tokens, got {len(fees)} and {len(tokens)}",
        )

    out = bytearray(bytes.fromhex(tokens[0][2:]))
    for fee, token in zip(fees, tokens[1:]):
        out += fee.to_bytes(PATH_FEE_SIZE, "big")
        out += bytes.fromhex(token[2:])
    return bytes(out)


def decode_path(path: bytes) -> tuple[list[str], list[int]]:
    """
    Unpack a path into (tokens, fees).

    Raises:
        CommandError: INVALID_PATH if the length is not 20 + 23*N with N >= 1
    """
    if len(path) < MIN_PATH_LENGTH or (len(path) - PATH_ADDRESS_SIZE) % HOP_SIZE != 0:
        raise CommandError(
            code=ErrorCode.INVALID_PATH,
            message=f"Malformed path of {len(path)} bytes",
            details={"path_length": len(path)},
        )

    tokens = [to_checksum_address(path[:PATH_ADDRESS_SIZE])]
    fees = []
    offset = PATH_ADDRESS_SIZE
    while offset < len(path):
        fees.append(int.from_bytes(path[offset:offset + PATH_FEE_SIZE], "big"))
        offset += PATH_FEE_SIZE
        tokens.append(to_checksum_address(path[offset:offset + PATH_ADDRESS_SIZE]))
        offset += PATH_ADDRESS_SIZE

    return tokens, fees


def iter_pairs(tokens: list[str]) -> list[tuple[str, str]]:
    """Consecutive (token_a, token_b) pairs along a path."""
    return list(zip(tokens[:-1], tokens[1:]))
