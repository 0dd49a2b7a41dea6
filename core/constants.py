# PATH: core/constants.py
"""
Constants for PLANQ.

Contains opcodes, action ids, protocol families, sentinels and defaults.
Deployment addresses live in config/protocols.yaml, not here.
"""

from enum import Enum, IntEnum
from typing import Final


# =============================================================================
# COMMANDS (one opcode per byte of the `commands` string)
# =============================================================================

class Command(IntEnum):
    """
    Top-level command opcodes.

    The core range mirrors the Universal Router numbering. Additional
    concentrated-liquidity integrations live at 0x40 and above.
    """
    V3_SWAP_EXACT_IN = 0x00
    V3_SWAP_EXACT_OUT = 0x01
    PERMIT2_TRANSFER_FROM = 0x02
    PERMIT2_PERMIT_BATCH = 0x03
    SWEEP = 0x04
    TRANSFER = 0x05
    PAY_PORTION = 0x06
    V2_SWAP_EXACT_IN = 0x08
    V2_SWAP_EXACT_OUT = 0x09
    PERMIT2_PERMIT = 0x0A
    WRAP_ETH = 0x0B
    UNWRAP_WETH = 0x0C
    PERMIT2_TRANSFER_FROM_BATCH = 0x0D
    BALANCE_CHECK_ERC20 = 0x0E
    V4_SWAP = 0x10
    EXECUTE_SUB_PLAN = 0x21

    # Integration range
    PANCAKE_V3_SWAP_EXACT_IN = 0x40
    PANCAKE_V3_SWAP_EXACT_OUT = 0x41
    SUSHI_V3_SWAP_EXACT_IN = 0x42
    SUSHI_V3_SWAP_EXACT_OUT = 0x43


# Known commands that cannot be estimated without a real transfer or signature.
UNSUPPORTED_COMMANDS: Final[frozenset[int]] = frozenset({
    Command.PERMIT2_TRANSFER_FROM,
    Command.PERMIT2_PERMIT_BATCH,
    Command.TRANSFER,
    Command.PAY_PORTION,
    Command.PERMIT2_PERMIT,
    Command.WRAP_ETH,
    Command.UNWRAP_WETH,
    Command.PERMIT2_TRANSFER_FROM_BATCH,
    Command.BALANCE_CHECK_ERC20,
})


# =============================================================================
# MANAGER ACTIONS (inside a V4_SWAP blob)
# =============================================================================

class Action(IntEnum):
    """Singleton-manager action ids (V4 periphery numbering)."""
    INCREASE_LIQUIDITY = 0x00
    DECREASE_LIQUIDITY = 0x01
    MINT_POSITION = 0x02
    BURN_POSITION = 0x03
    SWAP_EXACT_IN_SINGLE = 0x06
    SWAP_EXACT_IN = 0x07
    SWAP_EXACT_OUT_SINGLE = 0x08
    SWAP_EXACT_OUT = 0x09
    DONATE = 0x0A
    SETTLE = 0x0B
    SETTLE_ALL = 0x0C
    SETTLE_PAIR = 0x0D
    TAKE = 0x0E
    TAKE_ALL = 0x0F
    TAKE_PORTION = 0x10
    TAKE_PAIR = 0x11
    CLOSE_CURRENCY = 0x12
    CLEAR_OR_TAKE = 0x13
    SWEEP = 0x14
    WRAP = 0x15
    UNWRAP = 0x16
    MINT_6909 = 0x17
    BURN_6909 = 0x18


# =============================================================================
# PROTOCOL FAMILIES
# =============================================================================

class ProtocolFamily(IntEnum):
    """
    Protocol family identifiers.

    0x00-0x3f: core families
    0x40-0x7f: additional integrations
    """
    UNISWAP_V2 = 0x00
    UNISWAP_V3 = 0x01
    UNISWAP_V4 = 0x02
    PANCAKESWAP_V3 = 0x40
    SUSHISWAP_V3 = 0x41


CORE_FAMILY_RANGE: Final[range] = range(0x00, 0x40)
INTEGRATION_FAMILY_RANGE: Final[range] = range(0x40, 0x80)


class ProtocolKind(str, Enum):
    """Adapter kind names used in protocols.yaml."""
    CONSTANT_PRODUCT = "constant_product"
    CONCENTRATED_LIQUIDITY = "concentrated_liquidity"
    SINGLETON_MANAGER = "singleton_manager"


# =============================================================================
# SENTINELS
# =============================================================================

ZERO_ADDRESS: Final[str] = "0x0000000000000000000000000000000000000000"

# Recipient sentinels
MSG_SENDER: Final[str] = "0x0000000000000000000000000000000000000001"
ADDRESS_THIS: Final[str] = "0x0000000000000000000000000000000000000002"

# "Use the full current balance held by the engine"
CONTRACT_BALANCE: Final[int] = 1 << 255

# Manager sessions: "use the full open delta" (debt or credit)
OPEN_DELTA: Final[int] = 0

MAX_BPS: Final[int] = 10_000


# =============================================================================
# AMM MATH
# =============================================================================

# Fee denominator for concentrated-liquidity pools (pips)
FEE_DENOMINATOR: Final[int] = 1_000_000

# Constant-product fee (Uniswap V2: 0.3% as 997/1000)
V2_FEE_NUMERATOR: Final[int] = 997
V2_FEE_DENOMINATOR: Final[int] = 1000

Q96: Final[int] = 1 << 96
MIN_SQRT_RATIO: Final[int] = 4295128739
MAX_SQRT_RATIO: Final[int] = 1461446703485210103287273052203988822378723970342

PATH_ADDRESS_SIZE: Final[int] = 20
PATH_FEE_SIZE: Final[int] = 3


# =============================================================================
# DEFAULTS
# =============================================================================

# Per-hop gas charged by the in-memory pool models
DEFAULT_V2_HOP_GAS: Final[int] = 60_000
DEFAULT_V3_HOP_GAS: Final[int] = 80_000
DEFAULT_V4_HOP_GAS: Final[int] = 50_000

DEFAULT_MAX_SUB_PLAN_DEPTH: Final[int] = 8
DEFAULT_RPC_TIMEOUT_SECONDS: Final[int] = 10
