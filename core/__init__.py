"""
core - Core utilities and models for PLANQ.

This package contains:
- models.py: Data models (Slot, Hop, HopQuote, QuoteResult)
- constants.py: Opcodes, action ids, protocol families, sentinels
- exceptions.py: Typed exceptions with error codes
- math.py: Integer AMM math (no float)
- logging.py: Structured JSON logging
"""

from core.constants import (
    Action,
    Command,
    ProtocolFamily,
    ProtocolKind,
)
from core.exceptions import (
    CommandError,
    ErrorCode,
    InfraError,
    InvalidCommandTypeError,
    LedgerError,
    PlanqError,
    QuoteError,
    UnsupportedActionError,
)
from core.logging import get_logger, setup_logging
from core.models import (
    Hop,
    HopQuote,
    PathKey,
    PoolKey,
    QuoteResult,
    Slot,
)

__all__ = [
    # Constants
    "Action",
    "Command",
    "ProtocolFamily",
    "ProtocolKind",
    # Exceptions
    "CommandError",
    "ErrorCode",
    "InfraError",
    "InvalidCommandTypeError",
    "LedgerError",
    "PlanqError",
    "QuoteError",
    "UnsupportedActionError",
    # Models
    "Hop",
    "HopQuote",
    "PathKey",
    "PoolKey",
    "QuoteResult",
    "Slot",
    # Logging
    "get_logger",
    "setup_logging",
]
