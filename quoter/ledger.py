"""
quoter/ledger.py - Per-call balance ledger.

Four slots track where value is in a plan:

    token_start  what the caller notionally sells (seed balance)
    token_in     asset consumed by the instruction in progress
    token_out    asset produced by the instruction in progress
    token_end    asset delivered to the original caller

Slot identities only move forward, through advance(). At the end of a call
every unit must have reached token_end.
"""

from typing import Any, Optional

from eth_utils import to_checksum_address

from core.constants import ADDRESS_THIS, MSG_SENDER
from core.exceptions import ErrorCode, LedgerError
from core.models import Slot


class Ledger:
    """
    Mutable per-call ledger.

    Usage:
        ledger = Ledger(caller="0xabc...", start_balance=1000)
        ledger.debit_in(weth, 1000)
        ledger.credit_recipient(usdc, amount_out, MSG_SENDER)
        ledger.validate_end_state()
    """

    def __init__(
        self,
        caller: Optional[str],
        start_balance: int = 0,
        start_token: Optional[str] = None,
        is_sub_plan: bool = False,
    ):
        if start_balance < 0:
            raise ValueError(f"start_balance must be non-negative: {start_balance}")

        self.caller = to_checksum_address(caller) if caller is not None else None
        self.is_sub_plan = is_sub_plan
        self.token_start = Slot(token=start_token, amount=start_balance)
        self.token_in = Slot()
        self.token_out = Slot()
        self.token_end = Slot()
        self.gas = 0

    # -------------------------------------------------------------------------
    # Slot validation
    # -------------------------------------------------------------------------

    def validate_as_input(self, asset: str) -> None:
        """Make `asset` the current input, advancing the path if it was the output."""
        if asset == self.token_in.token:
            return

        if not self.token_in.is_set:
            self._bind_input(asset)
            return

        if asset == self.token_out.token:
            self.advance()
            return

        raise LedgerError(
            code=ErrorCode.INVALID_TOKEN_IN,
            message=f"{asset} is neither the current input nor output",
            details={"asset": asset, **self.snapshot()},
        )

    def validate_as_output(self, asset: str) -> None:
        """Make `asset` the current output, advancing the path if needed."""
        if asset == self.token_out.token:
            return

        if not self.token_out.is_set:
            self.token_out.token = asset
            return

        self.advance()
        self.token_out.token = asset

    def validate_as_end(self, asset: str) -> None:
        """Bind `asset` as the final asset delivered to the caller."""
        if asset == self.token_end.token:
            return

        if self.token_end.is_set:
            raise LedgerError(
                code=ErrorCode.INVALID_TOKEN_END,
                message=f"Final asset already bound to {self.token_end.token}",
                details={"asset": asset, **self.snapshot()},
            )

        self.validate_as_output(asset)
        self.token_end.token = asset

    def advance(self) -> None:
        """Move along the path: the current output becomes the next input."""
        if self.token_end.is_set and self.token_out.token == self.token_end.token:
            raise LedgerError(
                code=ErrorCode.INVALID_NEXT_TOKEN,
                message="Path already reached its final asset",
                details=self.snapshot(),
            )

        is_start = self.token_in.is_set and self.token_in.token == self.token_start.token
        if self.token_in.amount != 0 and not (self.is_sub_plan and is_start):
            raise LedgerError(
                code=ErrorCode.TOKEN_IN_NOT_CONSUMED,
                message=f"{self.token_in.amount} of {self.token_in.token} not consumed",
                details=self.snapshot(),
            )

        if is_start:
            # Keep the unconsumed opening balance of a sub-plan
            self.token_start.amount = self.token_in.amount

        self.token_in = Slot(token=self.token_out.token, amount=self.token_out.amount)
        self.token_out = Slot()

    def _bind_input(self, asset: str) -> None:
        if not self.token_start.is_set:
            self.token_start.token = asset
        amount = self.token_start.amount if asset == self.token_start.token else 0
        self.token_in = Slot(token=asset, amount=amount)

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    def credit_in(self, asset: str, amount: int) -> None:
        self.validate_as_input(asset)
        self.token_in.amount += amount

    def debit_in(self, asset: str, amount: int) -> None:
        self.validate_as_input(asset)
        self._debit(self.token_in, amount)

    def credit_out(self, asset: str, amount: int) -> None:
        self.validate_as_output(asset)
        self.token_out.amount += amount

    def debit_out(self, asset: str, amount: int) -> None:
        self.validate_as_output(asset)
        self._debit(self.token_out, amount)

    def credit_end(self, asset: str, amount: int) -> None:
        self.validate_as_end(asset)
        self.token_end.amount += amount

    def drain_in(self, asset: str) -> int:
        """Take the full input balance. Forbidden inside a sub-plan."""
        if self.is_sub_plan:
            raise LedgerError(
                code=ErrorCode.NOT_DURING_SUB_PLAN,
                message="Cannot use the full input balance inside a sub-plan",
                details={"asset": asset, **self.snapshot()},
            )
        self.validate_as_input(asset)
        amount = self.token_in.amount
        self.token_in.amount = 0
        return amount

    def drain_out(self, asset: str) -> int:
        """Take the full output balance."""
        self.validate_as_output(asset)
        amount = self.token_out.amount
        self.token_out.amount = 0
        return amount

    def _debit(self, slot: Slot, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")
        if amount > slot.amount:
            raise LedgerError(
                code=ErrorCode.BALANCE_TOO_LOW,
                message=f"Debit of {amount} exceeds balance {slot.amount} of {slot.token}",
                details={"amount": amount, "balance": slot.amount, "asset": slot.token},
            )
        slot.amount -= amount

    # -------------------------------------------------------------------------
    # Recipients
    # -------------------------------------------------------------------------

    def is_caller(self, recipient: str) -> bool:
        recipient = to_checksum_address(recipient)
        return recipient == MSG_SENDER or (self.caller is not None and recipient == self.caller)

    def credit_recipient(self, asset: str, amount: int, recipient: str) -> None:
        """
        Credit a swap output to its recipient.

        The engine itself keeps it as the current output; the original caller
        receives it as the final asset. Any other recipient would move value
        out of the plan and is rejected.
        """
        if to_checksum_address(recipient) == ADDRESS_THIS:
            self.credit_out(asset, amount)
        elif self.is_caller(recipient):
            self.credit_end(asset, amount)
        else:
            raise LedgerError(
                code=ErrorCode.INVALID_RECEIVER,
                message=f"Recipient {recipient} is neither the engine nor the caller",
                details={"recipient": recipient, "asset": asset},
            )

    def sweep(self, asset: str, recipient: str) -> int:
        """Deliver the full output balance of `asset` to the caller."""
        if not self.is_caller(recipient):
            raise LedgerError(
                code=ErrorCode.INVALID_RECEIVER,
                message=f"Sweep recipient {recipient} is not the caller",
                details={"recipient": recipient, "asset": asset},
            )
        amount = self.drain_out(asset)
        self.credit_end(asset, amount)
        return amount

    # -------------------------------------------------------------------------
    # Accounting helpers
    # -------------------------------------------------------------------------

    def add_gas(self, amount: int) -> None:
        self.gas += amount

    def input_token(self) -> Optional[str]:
        """Current input asset, or the start asset before any input is bound."""
        if self.token_in.is_set:
            return self.token_in.token
        return self.token_start.token

    def input_balance(self) -> int:
        """Current input balance, or the start seed before any input is bound."""
        if self.token_in.is_set:
            return self.token_in.amount
        return self.token_start.amount

    def set_input_balance(self, asset: Optional[str], amount: int) -> None:
        """Replace the current input balance (sub-plan fold-back)."""
        if asset is None:
            if self.token_in.is_set:
                self.token_in.amount = amount
            else:
                self.token_start.amount = amount
            return
        self.validate_as_input(asset)
        self.token_in.amount = amount

    def final_start_balance(self) -> int:
        """Unconsumed part of the start balance."""
        if self.token_in.is_set and self.token_in.token == self.token_start.token:
            return self.token_in.amount
        return self.token_start.amount

    def validate_end_state(self) -> None:
        """Every unit must have reached the final asset."""
        if self.token_out.amount != 0:
            raise LedgerError(
                code=ErrorCode.TOKEN_OUT_NOT_CONSUMED,
                message=f"{self.token_out.amount} of {self.token_out.token} left in output",
                details=self.snapshot(),
            )

        is_start = self.token_in.token == self.token_start.token
        if self.token_in.amount != 0 and not (self.is_sub_plan and is_start):
            raise LedgerError(
                code=ErrorCode.TOKEN_IN_NOT_CONSUMED,
                message=f"{self.token_in.amount} of {self.token_in.token} left in input",
                details=self.snapshot(),
            )

        # A seed that never reached token_in is still owed to the caller
        unspent = self.final_start_balance()
        if unspent != 0 and not self.is_sub_plan:
            raise LedgerError(
                code=ErrorCode.TOKEN_IN_NOT_CONSUMED,
                message=f"{unspent} of the start balance was never spent",
                details=self.snapshot(),
            )

        if self.token_end.amount == 0:
            raise LedgerError(
                code=ErrorCode.TOKEN_END_NOT_TRANSFERRED,
                message="Nothing was delivered to the caller",
                details=self.snapshot(),
            )

    def snapshot(self) -> dict[str, Any]:
        return {
            "token_start": self.token_start.to_dict(),
            "token_in": self.token_in.to_dict(),
            "token_out": self.token_out.to_dict(),
            "token_end": self.token_end.to_dict(),
            "is_sub_plan": self.is_sub_plan,
            "gas": self.gas,
        }
