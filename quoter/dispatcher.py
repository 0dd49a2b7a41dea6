"""
quoter/dispatcher.py - Opcode table.

Maps each command byte to its handler. Opcodes that would need a real
transfer or signature are known but deliberately unsupported; they fail the
same way as opcodes that do not exist.
"""

from functools import partial
from typing import Callable, Sequence, Union

from eth_utils import to_checksum_address

from config import ProtocolConfig, get_protocol
from core.constants import UNSUPPORTED_COMMANDS, Command, ProtocolFamily
from core.exceptions import CommandError, ErrorCode, InvalidCommandTypeError
from dex.adapters.base import HopSimulator, decode_blob
from dex.adapters.uniswap_v2 import ConstantProductAdapter
from dex.adapters.uniswap_v3 import ConcentratedLiquidityAdapter
from dex.adapters.uniswap_v4 import BatchedActionAdapter
from quoter.ledger import Ledger

Handler = Callable[[Ledger, bytes, int], None]
SubPlanRunner = Callable[[Ledger, bytes, int], None]
Adapter = Union[ConstantProductAdapter, ConcentratedLiquidityAdapter, BatchedActionAdapter]

SWEEP_TYPES = ["address", "address"]
V3_SWAP_TYPES = ["address", "uint256", "bytes"]
V2_SWAP_TYPES = ["address", "uint256", "address[]"]


def check_lengths(commands: bytes, inputs: Sequence[bytes]) -> None:
    """One parameter blob per opcode."""
    if len(commands) != len(inputs):
        raise CommandError(
            code=ErrorCode.LENGTH_MISMATCH,
            message=f"{len(commands)} commands but {len(inputs)} inputs",
            details={"commands": len(commands), "inputs": len(inputs)},
        )


class CommandDispatcher:
    """
    Routes opcodes to adapters.

    Adapters are built on first use, so a plan only needs configuration
    for the families it actually touches.
    """

    def __init__(
        self,
        protocols: dict[int, ProtocolConfig],
        simulator: HopSimulator,
        run_sub_plan: SubPlanRunner,
    ):
        self.protocols = protocols
        self.simulator = simulator
        self._run_sub_plan = run_sub_plan
        self._adapters: dict[int, Adapter] = {}

        self._table: dict[int, Handler] = {
            Command.V3_SWAP_EXACT_IN: partial(self._v3_swap, ProtocolFamily.UNISWAP_V3, True),
            Command.V3_SWAP_EXACT_OUT: partial(self._v3_swap, ProtocolFamily.UNISWAP_V3, False),
            Command.SWEEP: self._sweep,
            Command.V2_SWAP_EXACT_IN: partial(self._v2_swap, True),
            Command.V2_SWAP_EXACT_OUT: partial(self._v2_swap, False),
            Command.V4_SWAP: self._v4_swap,
            Command.EXECUTE_SUB_PLAN: self._sub_plan,
            Command.PANCAKE_V3_SWAP_EXACT_IN: partial(self._v3_swap, ProtocolFamily.PANCAKESWAP_V3, True),
            Command.PANCAKE_V3_SWAP_EXACT_OUT: partial(self._v3_swap, ProtocolFamily.PANCAKESWAP_V3, False),
            Command.SUSHI_V3_SWAP_EXACT_IN: partial(self._v3_swap, ProtocolFamily.SUSHISWAP_V3, True),
            Command.SUSHI_V3_SWAP_EXACT_OUT: partial(self._v3_swap, ProtocolFamily.SUSHISWAP_V3, False),
        }

    @property
    def supported_commands(self) -> frozenset[int]:
        return frozenset(self._table)

    def dispatch(self, ledger: Ledger, opcode: int, blob: bytes, depth: int) -> None:
        """
        Execute one command against the ledger.

        Raises:
            InvalidCommandTypeError: unsupported or unknown opcode
        """
        handler = self._table.get(opcode)
        if handler is None:
            details = {"unsupported": True} if opcode in UNSUPPORTED_COMMANDS else {}
            raise InvalidCommandTypeError(opcode, details=details)
        handler(ledger, blob, depth)

    def _adapter(self, family: int) -> Adapter:
        adapter = self._adapters.get(family)
        if adapter is None:
            protocol = get_protocol(self.protocols, family)
            if family == ProtocolFamily.UNISWAP_V2:
                adapter = ConstantProductAdapter(protocol, self.simulator)
            elif family == ProtocolFamily.UNISWAP_V4:
                adapter = BatchedActionAdapter(protocol, self.simulator)
            else:
                adapter = ConcentratedLiquidityAdapter(protocol, self.simulator)
            self._adapters[family] = adapter
        return adapter

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _sweep(self, ledger: Ledger, blob: bytes, depth: int) -> None:
        token, recipient = decode_blob(SWEEP_TYPES, blob, "SWEEP")
        ledger.sweep(to_checksum_address(token), recipient)

    def _v3_swap(self, family: int, exact_input: bool, ledger: Ledger, blob: bytes, depth: int) -> None:
        recipient, amount, path = decode_blob(V3_SWAP_TYPES, blob, "V3 swap")
        adapter = self._adapter(family)
        if exact_input:
            adapter.exact_input(ledger, recipient, amount, path)
        else:
            adapter.exact_output(ledger, recipient, amount, path)

    def _v2_swap(self, exact_input: bool, ledger: Ledger, blob: bytes, depth: int) -> None:
        recipient, amount, raw_path = decode_blob(V2_SWAP_TYPES, blob, "V2 swap")
        path = [to_checksum_address(token) for token in raw_path]
        adapter = self._adapter(ProtocolFamily.UNISWAP_V2)
        if exact_input:
            adapter.exact_input(ledger, recipient, amount, path)
        else:
            adapter.exact_output(ledger, recipient, amount, path)

    def _v4_swap(self, ledger: Ledger, blob: bytes, depth: int) -> None:
        self._adapter(ProtocolFamily.UNISWAP_V4).execute(ledger, blob)

    def _sub_plan(self, ledger: Ledger, blob: bytes, depth: int) -> None:
        self._run_sub_plan(ledger, blob, depth)
