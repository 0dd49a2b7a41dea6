"""
dex/adapters/uniswap_v3.py - Concentrated-liquidity multi-hop adapter.

Shared by every family with per-fee-tier pools at CREATE2 addresses:
Uniswap V3, PancakeSwap V3 and SushiSwap V3. Only the first input and the
final output touch the ledger; intermediate hop amounts stay local.
"""

from config import ProtocolConfig
from core.constants import CONTRACT_BALANCE
from core.logging import get_logger, log_hop
from core.models import HopQuote
from dex.adapters.base import HopSimulator, resolve_hop
from dex.path import decode_path, iter_pairs
from quoter.ledger import Ledger


class ConcentratedLiquidityAdapter:
    """
    Quotes packed-path swaps for one concentrated-liquidity family.

    Usage:
        adapter = ConcentratedLiquidityAdapter(protocols[0x01], simulator)
        amount_out = adapter.exact_input(ledger, MSG_SENDER, 10**18, path)
    """

    def __init__(self, protocol: ProtocolConfig, simulator: HopSimulator):
        self.protocol = protocol
        self.simulator = simulator
        self.logger = get_logger(__name__, family=protocol.name)

    def exact_input(self, ledger: Ledger, recipient: str, amount_in: int, path: bytes) -> int:
        """
        Sell `amount_in` of the first path token, walking the path forward.

        CONTRACT_BALANCE spends the whole current input balance.

        Returns:
            Output amount credited to the recipient
        """
        tokens, fees = decode_path(path)

        if amount_in == CONTRACT_BALANCE:
            amount_in = ledger.drain_in(tokens[0])
        else:
            ledger.debit_in(tokens[0], amount_in)

        amount = amount_in
        for (token_in, token_out), fee in zip(iter_pairs(tokens), fees):
            quote = self._simulate(token_in, token_out, fee, amount, exact_input=True)
            ledger.add_gas(quote.gas_estimate)
            amount = quote.amount

        ledger.credit_recipient(tokens[-1], amount, recipient)
        return amount

    def exact_output(self, ledger: Ledger, recipient: str, amount_out: int, path: bytes) -> int:
        """
        Buy `amount_out` of the first path token (paths are output-first).

        The output is credited up front; the required input is resolved
        hop by hop back to the last path token, then debited.

        Returns:
            Input amount debited from the ledger
        """
        tokens, fees = decode_path(path)

        ledger.credit_recipient(tokens[0], amount_out, recipient)

        amount = amount_out
        for (token_out, token_in), fee in zip(iter_pairs(tokens), fees):
            quote = self._simulate(token_in, token_out, fee, amount, exact_input=False)
            ledger.add_gas(quote.gas_estimate)
            amount = quote.amount

        ledger.debit_in(tokens[-1], amount)
        return amount

    def _simulate(self, token_in: str, token_out: str, fee: int, amount: int, exact_input: bool) -> HopQuote:
        hop = resolve_hop(self.protocol, token_in, token_out, fee)

        if exact_input:
            quote = self.simulator.simulate_exact_input(hop, amount)
            amount_in, amount_out = amount, quote.amount
        else:
            quote = self.simulator.simulate_exact_output(hop, amount)
            amount_in, amount_out = quote.amount, amount

        log_hop(
            self.logger, hop.pool, token_in, token_out, amount_in, amount_out, quote.gas_estimate,
            fee=fee,
        )
        return quote
