"""
quoter/planner.py - Plan builders.

RoutePlanner assembles (commands, inputs) for Quoter.quote; V4Planner
assembles the action batch carried by a V4_SWAP command.

Usage:
    plan = RoutePlanner()
    plan.v3_swap_exact_in(MSG_SENDER, 10**18, [weth, usdc], [500])
    commands, inputs = plan.build()
"""

from typing import Any

from eth_abi import encode

from core.constants import Action, Command, ProtocolFamily
from core.models import PathKey, PoolKey
from dex.adapters.uniswap_v4 import (
    BATCH_TYPES,
    SETTLE_TYPES,
    SWAP_MULTI_TYPES,
    SWAP_SINGLE_TYPES,
    TAKE_ALL_TYPES,
    TAKE_PORTION_TYPES,
    TAKE_TYPES,
)
from dex.path import encode_path
from quoter.dispatcher import SWEEP_TYPES, V2_SWAP_TYPES, V3_SWAP_TYPES
from quoter.engine import SUB_PLAN_TYPES

# family -> (exact-in opcode, exact-out opcode)
V3_COMMANDS = {
    ProtocolFamily.UNISWAP_V3: (Command.V3_SWAP_EXACT_IN, Command.V3_SWAP_EXACT_OUT),
    ProtocolFamily.PANCAKESWAP_V3: (Command.PANCAKE_V3_SWAP_EXACT_IN, Command.PANCAKE_V3_SWAP_EXACT_OUT),
    ProtocolFamily.SUSHISWAP_V3: (Command.SUSHI_V3_SWAP_EXACT_IN, Command.SUSHI_V3_SWAP_EXACT_OUT),
}


class V4Planner:
    """Builds a manager action batch."""

    def __init__(self) -> None:
        self.actions = bytearray()
        self.params: list[bytes] = []

    def add_action(self, action: int, types: list[str], args: list[Any]) -> "V4Planner":
        self.actions.append(action)
        self.params.append(encode(types, args))
        return self

    def swap_exact_in_single(
        self,
        pool_key: PoolKey,
        zero_for_one: bool,
        amount_in: int,
        amount_out_minimum: int = 0,
        hook_data: bytes = b"",
    ) -> "V4Planner":
        return self.add_action(
            Action.SWAP_EXACT_IN_SINGLE,
            SWAP_SINGLE_TYPES,
            [(pool_key.as_tuple(), zero_for_one, amount_in, amount_out_minimum, hook_data)],
        )

    def swap_exact_out_single(
        self,
        pool_key: PoolKey,
        zero_for_one: bool,
        amount_out: int,
        amount_in_maximum: int = 0,
        hook_data: bytes = b"",
    ) -> "V4Planner":
        return self.add_action(
            Action.SWAP_EXACT_OUT_SINGLE,
            SWAP_SINGLE_TYPES,
            [(pool_key.as_tuple(), zero_for_one, amount_out, amount_in_maximum, hook_data)],
        )

    def swap_exact_in(
        self,
        currency_in: str,
        path: list[PathKey],
        amount_in: int,
        amount_out_minimum: int = 0,
    ) -> "V4Planner":
        return self.add_action(
            Action.SWAP_EXACT_IN,
            SWAP_MULTI_TYPES,
            [(currency_in, [_path_tuple(key) for key in path], amount_in, amount_out_minimum)],
        )

    def swap_exact_out(
        self,
        currency_out: str,
        path: list[PathKey],
        amount_out: int,
        amount_in_maximum: int = 0,
    ) -> "V4Planner":
        """`path` runs input to output; the last hop ends at `currency_out`."""
        return self.add_action(
            Action.SWAP_EXACT_OUT,
            SWAP_MULTI_TYPES,
            [(currency_out, [_path_tuple(key) for key in path], amount_out, amount_in_maximum)],
        )

    def settle(self, currency: str, amount: int, payer_is_user: bool = False) -> "V4Planner":
        return self.add_action(Action.SETTLE, SETTLE_TYPES, [currency, amount, payer_is_user])

    def take(self, currency: str, recipient: str, amount: int) -> "V4Planner":
        return self.add_action(Action.TAKE, TAKE_TYPES, [currency, recipient, amount])

    def take_all(self, currency: str, min_amount: int = 0) -> "V4Planner":
        return self.add_action(Action.TAKE_ALL, TAKE_ALL_TYPES, [currency, min_amount])

    def take_portion(self, currency: str, recipient: str, bips: int) -> "V4Planner":
        return self.add_action(Action.TAKE_PORTION, TAKE_PORTION_TYPES, [currency, recipient, bips])

    def build(self) -> tuple[bytes, list[bytes]]:
        return bytes(self.actions), list(self.params)

    def encode(self) -> bytes:
        """V4_SWAP parameter blob."""
        return encode(BATCH_TYPES, [bytes(self.actions), self.params])


def _path_tuple(key: PathKey) -> tuple[str, int, int, str, bytes]:
    return (key.intermediate_currency, key.fee, key.tick_spacing, key.hooks, key.hook_data)


class RoutePlanner:
    """Builds a command plan."""

    def __init__(self) -> None:
        self.commands = bytearray()
        self.inputs: list[bytes] = []

    def add_command(self, command: int, blob: bytes) -> "RoutePlanner":
        self.commands.append(command)
        self.inputs.append(blob)
        return self

    def v3_swap_exact_in(
        self,
        recipient: str,
        amount_in: int,
        tokens: list[str],
        fees: list[int],
        family: int = ProtocolFamily.UNISWAP_V3,
    ) -> "RoutePlanner":
        """`tokens` in swap order, input first."""
        command = V3_COMMANDS[family][0]
        return self.add_command(
            command, encode(V3_SWAP_TYPES, [recipient, amount_in, encode_path(tokens, fees)])
        )

    def v3_swap_exact_out(
        self,
        recipient: str,
        amount_out: int,
        tokens: list[str],
        fees: list[int],
        family: int = ProtocolFamily.UNISWAP_V3,
    ) -> "RoutePlanner":
        """`tokens` in swap order, input first; the path is encoded output first."""
        command = V3_COMMANDS[family][1]
        path = encode_path(list(reversed(tokens)), list(reversed(fees)))
        return self.add_command(command, encode(V3_SWAP_TYPES, [recipient, amount_out, path]))

    def v2_swap_exact_in(self, recipient: str, amount_in: int, path: list[str]) -> "RoutePlanner":
        return self.add_command(Command.V2_SWAP_EXACT_IN, encode(V2_SWAP_TYPES, [recipient, amount_in, path]))

    def v2_swap_exact_out(self, recipient: str, amount_out: int, path: list[str]) -> "RoutePlanner":
        return self.add_command(Command.V2_SWAP_EXACT_OUT, encode(V2_SWAP_TYPES, [recipient, amount_out, path]))

    def sweep(self, token: str, recipient: str) -> "RoutePlanner":
        return self.add_command(Command.SWEEP, encode(SWEEP_TYPES, [token, recipient]))

    def v4_swap(self, batch: V4Planner) -> "RoutePlanner":
        return self.add_command(Command.V4_SWAP, batch.encode())

    def sub_plan(self, nested: "RoutePlanner") -> "RoutePlanner":
        commands, inputs = nested.build()
        return self.add_command(Command.EXECUTE_SUB_PLAN, encode(SUB_PLAN_TYPES, [commands, inputs]))

    def build(self) -> tuple[bytes, list[bytes]]:
        return bytes(self.commands), list(self.inputs)
