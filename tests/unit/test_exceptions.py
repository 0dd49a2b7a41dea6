"""
tests/unit/test_exceptions.py - Tests for core/exceptions.py
"""

import pytest

from core.constants import Action, Command
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


class TestPlanqError:

    def test_str_includes_code(self):
        error = LedgerError(code=ErrorCode.BALANCE_TOO_LOW, message="Debit exceeds balance")

        assert str(error) == "[BALANCE_TOO_LOW] Debit exceeds balance"

    def test_to_dict(self):
        error = CommandError(
            code=ErrorCode.LENGTH_MISMATCH,
            message="2 commands but 1 inputs",
            details={"commands": 2, "inputs": 1},
        )

        assert error.to_dict() == {
            "code": "LENGTH_MISMATCH",
            "message": "2 commands but 1 inputs",
            "details": {"commands": 2, "inputs": 1},
        }

    def test_details_default_to_empty(self):
        assert PlanqError().details == {}
        assert PlanqError().code == ErrorCode.UNKNOWN

    @pytest.mark.parametrize(
        "cls,code",
        [(QuoteError, ErrorCode.QUOTE_REVERT), (InfraError, ErrorCode.INFRA_RPC_ERROR)],
    )
    def test_default_codes(self, cls, code):
        assert cls(message="x").code == code

    def test_hierarchy(self):
        assert issubclass(InvalidCommandTypeError, CommandError)
        assert issubclass(UnsupportedActionError, CommandError)
        for cls in (LedgerError, CommandError, QuoteError, InfraError):
            assert issubclass(cls, PlanqError)

    def test_error_code_is_str(self):
        assert ErrorCode.SUB_PLAN_TOO_DEEP == "SUB_PLAN_TOO_DEEP"


class TestTypedErrors:

    def test_invalid_command_type(self):
        error = InvalidCommandTypeError(Command.WRAP_ETH, details={"unsupported": True})

        assert error.code == ErrorCode.INVALID_COMMAND_TYPE
        assert error.command_type == 0x0B
        assert error.message == "Invalid command type 0x0b"
        assert error.details == {"command_type": 0x0B, "unsupported": True}

    def test_unsupported_action(self):
        error = UnsupportedActionError(Action.SETTLE_ALL)

        assert error.code == ErrorCode.UNSUPPORTED_ACTION
        assert error.action == 0x0C
        assert str(error) == "[UNSUPPORTED_ACTION] Unsupported action 0x0c"
