"""
dex/adapters/uniswap_v4.py - Singleton-manager batched-action adapter.

A V4_SWAP command carries a batch of actions executed inside one manager
session. The session keeps its own Ledger: swaps move value between session
slots, SETTLE pays into the session from the caller's ledger and TAKE pays
out of it through the caller's recipient rules. At the end of the batch the
session must balance, and its gas is merged into the caller in one step.
"""

from typing import Callable

from eth_utils import to_checksum_address

from config import ProtocolConfig
from core.constants import CONTRACT_BALANCE, MAX_BPS, MSG_SENDER, OPEN_DELTA, Action
from core.exceptions import CommandError, ErrorCode, UnsupportedActionError
from core.logging import get_logger, log_hop
from core.models import Hop, PathKey, PoolKey
from dex.adapters.base import HopSimulator, decode_blob, resolve_hop
from dex.pool_address import sort_tokens
from quoter.ledger import Ledger


POOL_KEY_TYPE = "(address,address,uint24,int24,address)"
PATH_KEY_TYPE = "(address,uint24,int24,address,bytes)"

# ExactInputSingleParams / ExactOutputSingleParams
SWAP_SINGLE_TYPES = [f"({POOL_KEY_TYPE},bool,uint128,uint128,bytes)"]
# ExactInputParams / ExactOutputParams
SWAP_MULTI_TYPES = [f"(address,{PATH_KEY_TYPE}[],uint128,uint128)"]
SETTLE_TYPES = ["address", "uint256", "bool"]
TAKE_TYPES = ["address", "address", "uint256"]
TAKE_ALL_TYPES = ["address", "uint256"]
TAKE_PORTION_TYPES = ["address", "address", "uint256"]
BATCH_TYPES = ["bytes", "bytes[]"]


def _pool_key(raw: tuple) -> PoolKey:
    currency0, currency1, fee, tick_spacing, hooks = raw
    return PoolKey(
        currency0=to_checksum_address(currency0),
        currency1=to_checksum_address(currency1),
        fee=fee,
        tick_spacing=tick_spacing,
        hooks=to_checksum_address(hooks),
    )


def _path_key(raw: tuple) -> PathKey:
    currency, fee, tick_spacing, hooks, hook_data = raw
    return PathKey(
        intermediate_currency=to_checksum_address(currency),
        fee=fee,
        tick_spacing=tick_spacing,
        hooks=to_checksum_address(hooks),
        hook_data=hook_data,
    )


def _pool_key_for(currency_a: str, currency_b: str, path_key: PathKey) -> PoolKey:
    currency0, currency1 = sort_tokens(currency_a, currency_b)
    return PoolKey(currency0, currency1, path_key.fee, path_key.tick_spacing, path_key.hooks)


class BatchedActionAdapter:
    """
    Quotes a manager action batch.

    Usage:
        adapter = BatchedActionAdapter(protocols[0x02], simulator)
        adapter.execute(caller_ledger, blob)
    """

    def __init__(self, protocol: ProtocolConfig, simulator: HopSimulator):
        self.protocol = protocol
        self.simulator = simulator
        self.logger = get_logger(__name__, family=protocol.name)
        self._handlers: dict[int, Callable[[Ledger, Ledger, tuple], None]] = {
            Action.SWAP_EXACT_IN_SINGLE: self._swap_exact_in_single,
            Action.SWAP_EXACT_IN: self._swap_exact_in,
            Action.SWAP_EXACT_OUT_SINGLE: self._swap_exact_out_single,
            Action.SWAP_EXACT_OUT: self._swap_exact_out,
            Action.SETTLE: self._settle,
            Action.TAKE: self._take,
            Action.TAKE_ALL: self._take_all,
            Action.TAKE_PORTION: self._take_portion,
        }
        self._param_types: dict[int, list[str]] = {
            Action.SWAP_EXACT_IN_SINGLE: SWAP_SINGLE_TYPES,
            Action.SWAP_EXACT_IN: SWAP_MULTI_TYPES,
            Action.SWAP_EXACT_OUT_SINGLE: SWAP_SINGLE_TYPES,
            Action.SWAP_EXACT_OUT: SWAP_MULTI_TYPES,
            Action.SETTLE: SETTLE_TYPES,
            Action.TAKE: TAKE_TYPES,
            Action.TAKE_ALL: TAKE_ALL_TYPES,
            Action.TAKE_PORTION: TAKE_PORTION_TYPES,
        }

    def execute(self, caller: Ledger, blob: bytes) -> None:
        """
        Run one action batch against the caller's ledger.

        Raises:
            CommandError: LENGTH_MISMATCH, INVALID_INPUT
            UnsupportedActionError: for actions that need real debt tracking
            LedgerError: if either ledger rejects a step or the session does
                not balance
        """
        actions, params = decode_blob(BATCH_TYPES, blob, "V4_SWAP")
        if len(actions) != len(params):
            raise CommandError(
                code=ErrorCode.LENGTH_MISMATCH,
                message=f"{len(actions)} actions but {len(params)} params",
                details={"actions": len(actions), "params": len(params)},
            )

        session = Ledger(caller=caller.caller, start_balance=0)

        for index, (action, param) in enumerate(zip(actions, params)):
            handler = self._handlers.get(action)
            if handler is None:
                raise UnsupportedActionError(action, details={"index": index})

            label = Action(action).name
            self.logger.debug(
                f"Action {label}",
                extra={"context": {"index": index, "action": action}},
            )
            handler(caller, session, decode_blob(self._param_types[action], param, label))

        session.validate_end_state()
        caller.add_gas(session.gas)

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    def _swap_exact_in_single(self, caller: Ledger, session: Ledger, args: tuple) -> None:
        raw_key, zero_for_one, amount_in, _amount_out_min, _hook_data = args[0]
        key = _pool_key(raw_key)
        currency_in, currency_out = (
            (key.currency0, key.currency1) if zero_for_one else (key.currency1, key.currency0)
        )

        amount_in = self._take_input(session, currency_in, amount_in)
        hop = resolve_hop(self.protocol, currency_in, currency_out, pool_key=key)
        amount_out = self._quote_in(session, hop, amount_in)
        session.credit_out(currency_out, amount_out)

    def _swap_exact_in(self, caller: Ledger, session: Ledger, args: tuple) -> None:
        raw_currency_in, raw_path, amount_in, _amount_out_min = args[0]
        currency_in = to_checksum_address(raw_currency_in)
        path = [_path_key(raw) for raw in raw_path]
        if not path:
            raise CommandError(code=ErrorCode.INVALID_PATH, message="Empty manager path")

        amount = self._take_input(session, currency_in, amount_in)
        current = currency_in
        for path_key in path:
            hop = resolve_hop(
                self.protocol,
                current,
                path_key.intermediate_currency,
                pool_key=_pool_key_for(current, path_key.intermediate_currency, path_key),
            )
            amount = self._quote_in(session, hop, amount)
            current = path_key.intermediate_currency

        session.credit_out(current, amount)

    def _swap_exact_out_single(self, caller: Ledger, session: Ledger, args: tuple) -> None:
        raw_key, zero_for_one, amount_out, _amount_in_max, _hook_data = args[0]
        key = _pool_key(raw_key)
        currency_in, currency_out = (
            (key.currency0, key.currency1) if zero_for_one else (key.currency1, key.currency0)
        )

        session.credit_out(currency_out, amount_out)
        hop = resolve_hop(self.protocol, currency_in, currency_out, pool_key=key)
        amount_in = self._quote_out(session, hop, amount_out)
        session.debit_in(currency_in, amount_in)

    def _swap_exact_out(self, caller: Ledger, session: Ledger, args: tuple) -> None:
        raw_currency_out, raw_path, amount_out, _amount_in_max = args[0]
        currency_out = to_checksum_address(raw_currency_out)
        path = [_path_key(raw) for raw in raw_path]
        if not path:
            raise CommandError(code=ErrorCode.INVALID_PATH, message="Empty manager path")

        session.credit_out(currency_out, amount_out)

        amount = amount_out
        current = currency_out
        for path_key in reversed(path):
            hop = resolve_hop(
                self.protocol,
                path_key.intermediate_currency,
                current,
                pool_key=_pool_key_for(path_key.intermediate_currency, current, path_key),
            )
            amount = self._quote_out(session, hop, amount)
            current = path_key.intermediate_currency

        session.debit_in(current, amount)

    def _take_input(self, session: Ledger, currency: str, amount: int) -> int:
        if amount == OPEN_DELTA:
            return session.drain_in(currency)
        session.debit_in(currency, amount)
        return amount

    def _quote_in(self, session: Ledger, hop: Hop, amount_in: int) -> int:
        quote = self.simulator.simulate_exact_input(hop, amount_in)
        log_hop(self.logger, hop.pool, hop.token_in, hop.token_out, amount_in, quote.amount, quote.gas_estimate)
        session.add_gas(quote.gas_estimate)
        return quote.amount

    def _quote_out(self, session: Ledger, hop: Hop, amount_out: int) -> int:
        quote = self.simulator.simulate_exact_output(hop, amount_out)
        log_hop(self.logger, hop.pool, hop.token_in, hop.token_out, quote.amount, amount_out, quote.gas_estimate)
        session.add_gas(quote.gas_estimate)
        return quote.amount

    # -------------------------------------------------------------------------
    # Settlement
    # -------------------------------------------------------------------------

    def _settle(self, caller: Ledger, session: Ledger, args: tuple) -> None:
        raw_currency, amount, payer_is_user = args
        currency = to_checksum_address(raw_currency)

        if amount == OPEN_DELTA:
            # Paying the full open debt needs delta tracking the session does not have
            raise UnsupportedActionError(Action.SETTLE, details={"amount": amount})

        if not payer_is_user:
            if amount == CONTRACT_BALANCE:
                amount = caller.drain_in(currency)
            else:
                caller.debit_in(currency, amount)

        session.credit_in(currency, amount)

    def _take(self, caller: Ledger, session: Ledger, args: tuple) -> None:
        raw_currency, recipient, amount = args
        currency = to_checksum_address(raw_currency)
        if amount == OPEN_DELTA:
            amount = session.drain_out(currency)
        else:
            session.debit_out(currency, amount)
        self._pay_out(caller, session, currency, recipient, amount)

    def _take_all(self, caller: Ledger, session: Ledger, args: tuple) -> None:
        raw_currency, _min_amount = args
        currency = to_checksum_address(raw_currency)
        self._pay_out(caller, session, currency, MSG_SENDER, session.drain_out(currency))

    def _take_portion(self, caller: Ledger, session: Ledger, args: tuple) -> None:
        raw_currency, recipient, bips = args
        if bips > MAX_BPS:
            raise CommandError(
                code=ErrorCode.INVALID_INPUT,
                message=f"Portion of {bips} bips exceeds {MAX_BPS}",
                details={"bips": bips},
            )
        currency = to_checksum_address(raw_currency)
        session.validate_as_output(currency)
        amount = session.token_out.amount * bips // MAX_BPS
        session.debit_out(currency, amount)
        self._pay_out(caller, session, currency, recipient, amount)

    def _pay_out(self, caller: Ledger, session: Ledger, currency: str, recipient: str, amount: int) -> None:
        """Move an amount already debited from the session output to its recipient."""
        session.credit_end(currency, amount)
        caller.credit_recipient(currency, amount, to_checksum_address(recipient))

