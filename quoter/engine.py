"""
quoter/engine.py - Plan quoting engine.

Runs a command plan against a fresh ledger, command by command, and reports
what the caller would end up with. Nothing is committed: every hop is asked
of a HopSimulator and every failure aborts the whole quote.
"""

from typing import Optional, Sequence

from eth_utils import is_address, to_checksum_address

from config import ProtocolConfig, load_protocols
from core.constants import DEFAULT_MAX_SUB_PLAN_DEPTH, Command
from core.exceptions import CommandError, ErrorCode, PlanqError
from core.logging import get_logger, log_error
from core.models import QuoteResult
from dex.adapters.base import HopSimulator, decode_blob
from quoter.dispatcher import CommandDispatcher, check_lengths
from quoter.ledger import Ledger

logger = get_logger(__name__)

SUB_PLAN_TYPES = ["bytes", "bytes[]"]


class Quoter:
    """
    Quotes command plans.

    Usage:
        quoter = Quoter(PoolBook(protocols), protocols)
        start_left, amount_out, gas = quoter.quote(commands, inputs, caller, 10**18)
    """

    def __init__(
        self,
        simulator: HopSimulator,
        protocols: Optional[dict[int, ProtocolConfig]] = None,
        max_sub_plan_depth: int = DEFAULT_MAX_SUB_PLAN_DEPTH,
    ):
        if max_sub_plan_depth < 0:
            raise ValueError(f"max_sub_plan_depth must be non-negative: {max_sub_plan_depth}")

        self.protocols = protocols if protocols is not None else load_protocols()
        self.max_sub_plan_depth = max_sub_plan_depth
        self.dispatcher = CommandDispatcher(self.protocols, simulator, self._sub_plan)

    def quote(
        self,
        commands: bytes,
        inputs: Sequence[bytes],
        caller: str,
        start_balance: int,
    ) -> QuoteResult:
        """
        Quote a top-level plan.

        Args:
            commands: One opcode per byte
            inputs: One ABI-encoded parameter blob per opcode
            caller: Address receiving the final asset
            start_balance: Amount of the first input asset the caller sells

        Returns:
            QuoteResult(final_start_balance, amount_out, gas_estimate)

        Raises:
            PlanqError: any ledger, command or hop failure
        """
        if not caller or not is_address(caller):
            raise CommandError(
                code=ErrorCode.INVALID_CALLER,
                message=f"Quote needs a caller address, got {caller!r}",
            )
        caller = to_checksum_address(caller)
        if start_balance < 0:
            raise CommandError(
                code=ErrorCode.INVALID_INPUT,
                message=f"Start balance must be non-negative, got {start_balance}",
                details={"start_balance": start_balance},
            )

        ledger = Ledger(caller=caller, start_balance=start_balance)
        try:
            self._execute(ledger, commands, inputs, depth=0)
        except PlanqError as e:
            log_error(
                logger,
                e.code.value,
                e.message,
                caller=caller,
                commands=commands.hex(),
                ledger=ledger.snapshot(),
            )
            raise

        result = QuoteResult(
            final_start_balance=ledger.final_start_balance(),
            amount_out=ledger.token_end.amount,
            gas_estimate=ledger.gas,
            token_start=ledger.token_start.token,
            token_end=ledger.token_end.token,
        )
        logger.info(
            f"Quoted {len(commands)} commands: {result.amount_out} of {result.token_end}",
            extra={"context": {"caller": caller, **result.to_dict()}},
        )
        return result

    def _execute(self, ledger: Ledger, commands: bytes, inputs: Sequence[bytes], depth: int) -> None:
        check_lengths(commands, inputs)

        for index, (opcode, blob) in enumerate(zip(commands, inputs)):
            logger.debug(
                f"Command 0x{opcode:02x}",
                extra={"context": {"index": index, "opcode": opcode, "depth": depth}},
            )
            self.dispatcher.dispatch(ledger, opcode, blob, depth)

        ledger.validate_end_state()

    def _sub_plan(self, parent: Ledger, blob: bytes, depth: int) -> None:
        """
        Run a nested plan seeded with the parent's current input.

        The nested remainder replaces the parent's input balance and the
        nested output lands in the parent's current output.
        """
        if depth + 1 > self.max_sub_plan_depth:
            raise CommandError(
                code=ErrorCode.SUB_PLAN_TOO_DEEP,
                message=f"Sub-plan depth exceeds {self.max_sub_plan_depth}",
                details={"depth": depth + 1, "max_depth": self.max_sub_plan_depth},
            )

        commands, inputs = decode_blob(SUB_PLAN_TYPES, blob, Command.EXECUTE_SUB_PLAN.name)
        nested = Ledger(
            caller=None,
            start_balance=parent.input_balance(),
            start_token=parent.input_token(),
            is_sub_plan=True,
        )
        self._execute(nested, commands, inputs, depth + 1)

        parent.set_input_balance(nested.token_start.token, nested.final_start_balance())
        parent.credit_out(nested.token_end.token, nested.token_end.amount)
        parent.add_gas(nested.gas)
