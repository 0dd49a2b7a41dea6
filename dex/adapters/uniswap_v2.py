"""
dex/adapters/uniswap_v2.py - Constant-product multi-hop adapter.

Paths are plain token address lists in swap order for both directions.
"""

from config import ProtocolConfig
from core.constants import CONTRACT_BALANCE
from core.exceptions import CommandError, ErrorCode
from core.logging import get_logger, log_hop
from dex.adapters.base import HopSimulator, resolve_hop
from dex.path import iter_pairs
from quoter.ledger import Ledger


def _check_path(path: list[str]) -> None:
    if len(path) < 2:
        raise CommandError(
            code=ErrorCode.INVALID_PATH,
            message=f"Constant-product path needs at least 2 tokens, got {len(path)}",
            details={"path_length": len(path)},
        )


class ConstantProductAdapter:
    """Quotes address-list swaps through constant-product pairs."""

    def __init__(self, protocol: ProtocolConfig, simulator: HopSimulator):
        self.protocol = protocol
        self.simulator = simulator
        self.logger = get_logger(__name__, family=protocol.name)

    def exact_input(self, ledger: Ledger, recipient: str, amount_in: int, path: list[str]) -> int:
        _check_path(path)

        if amount_in == CONTRACT_BALANCE:
            amount_in = ledger.drain_in(path[0])
        else:
            ledger.debit_in(path[0], amount_in)

        amount = amount_in
        for token_in, token_out in iter_pairs(path):
            hop = resolve_hop(self.protocol, token_in, token_out)
            quote = self.simulator.simulate_exact_input(hop, amount)
            log_hop(self.logger, hop.pool, token_in, token_out, amount, quote.amount, quote.gas_estimate)
            ledger.add_gas(quote.gas_estimate)
            amount = quote.amount

        ledger.credit_recipient(path[-1], amount, recipient)
        return amount

    def exact_output(self, ledger: Ledger, recipient: str, amount_out: int, path: list[str]) -> int:
        _check_path(path)

        ledger.credit_recipient(path[-1], amount_out, recipient)

        amount = amount_out
        for token_in, token_out in reversed(iter_pairs(path)):
            hop = resolve_hop(self.protocol, token_in, token_out)
            quote = self.simulator.simulate_exact_output(hop, amount)
            log_hop(self.logger, hop.pool, token_in, token_out, quote.amount, amount, quote.gas_estimate)
            ledger.add_gas(quote.gas_estimate)
            amount = quote.amount

        ledger.debit_in(path[0], amount)
        return amount
