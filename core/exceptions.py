# PATH: core/exceptions.py
"""
Typed exceptions for PLANQ.

Every failure aborts the whole quote. The error code tells the caller which
rule was violated; details carry the context needed to debug the plan.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Error codes for all PLANQ failures."""

    # Ledger
    INVALID_TOKEN_IN = "INVALID_TOKEN_IN"
    INVALID_TOKEN_END = "INVALID_TOKEN_END"
    BALANCE_TOO_LOW = "BALANCE_TOO_LOW"
    INVALID_NEXT_TOKEN = "INVALID_NEXT_TOKEN"
    TOKEN_IN_NOT_CONSUMED = "TOKEN_IN_NOT_CONSUMED"
    TOKEN_OUT_NOT_CONSUMED = "TOKEN_OUT_NOT_CONSUMED"
    TOKEN_END_NOT_TRANSFERRED = "TOKEN_END_NOT_TRANSFERRED"
    NOT_DURING_SUB_PLAN = "NOT_DURING_SUB_PLAN"
    INVALID_RECEIVER = "INVALID_RECEIVER"

    # Commands
    LENGTH_MISMATCH = "LENGTH_MISMATCH"
    INVALID_COMMAND_TYPE = "INVALID_COMMAND_TYPE"
    UNSUPPORTED_ACTION = "UNSUPPORTED_ACTION"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_PATH = "INVALID_PATH"
    INVALID_CALLER = "INVALID_CALLER"
    SUB_PLAN_TOO_DEEP = "SUB_PLAN_TOO_DEEP"
    UNKNOWN_PROTOCOL = "UNKNOWN_PROTOCOL"

    # Hop simulation
    QUOTE_REVERT = "QUOTE_REVERT"
    POOL_NOT_FOUND = "POOL_NOT_FOUND"
    INSUFFICIENT_LIQUIDITY = "INSUFFICIENT_LIQUIDITY"

    # Infrastructure
    INFRA_RPC_ERROR = "INFRA_RPC_ERROR"
    INFRA_TIMEOUT = "INFRA_TIMEOUT"

    UNKNOWN = "UNKNOWN"


class PlanqError(Exception):
    """Base exception for PLANQ."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.UNKNOWN,
        message: str = "",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class LedgerError(PlanqError):
    """A ledger slot transition or balance rule was violated."""
    pass


class CommandError(PlanqError):
    """A command stream or parameter blob is malformed."""
    pass


class InvalidCommandTypeError(CommandError):
    """Opcode not bound to any simulated operation."""

    def __init__(self, command_type: int, details: Optional[dict[str, Any]] = None):
        super().__init__(
            code=ErrorCode.INVALID_COMMAND_TYPE,
            message=f"Invalid command type 0x{command_type:02x}",
            details={"command_type": command_type, **(details or {})},
        )
        self.command_type = command_type


class UnsupportedActionError(CommandError):
    """Manager action needs real debt tracking, unavailable in simulation."""

    def __init__(self, action: int, details: Optional[dict[str, Any]] = None):
        super().__init__(
            code=ErrorCode.UNSUPPORTED_ACTION,
            message=f"Unsupported action 0x{action:02x}",
            details={"action": action, **(details or {})},
        )
        self.action = action


class QuoteError(PlanqError):
    """Hop simulation failed: no viable quote for the pool."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.QUOTE_REVERT,
        message: str = "",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(code=code, message=message, details=details)


class InfraError(PlanqError):
    """Infrastructure-related errors (RPC, timeouts)."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.INFRA_RPC_ERROR,
        message: str = "",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(code=code, message=message, details=details)
