"""
core/models.py - Core data models.

All amounts are raw token units (int). NO FLOATS.
Addresses are checksummed hex strings.
"""

from dataclasses import dataclass
from typing import Any, Iterator, Optional


@dataclass
class Slot:
    """One ledger slot: an asset identifier and its balance."""

    token: Optional[str] = None
    amount: int = 0

    @property
    def is_set(self) -> bool:
        return self.token is not None

    def to_dict(self) -> dict[str, Any]:
        return {"token": self.token, "amount": self.amount}


@dataclass(frozen=True)
class PoolKey:
    """Singleton-manager pool key."""

    currency0: str
    currency1: str
    fee: int
    tick_spacing: int
    hooks: str

    def as_tuple(self) -> tuple[str, str, int, int, str]:
        return (self.currency0, self.currency1, self.fee, self.tick_spacing, self.hooks)


@dataclass(frozen=True)
class PathKey:
    """One hop of a manager multi-hop path."""

    intermediate_currency: str
    fee: int
    tick_spacing: int
    hooks: str
    hook_data: bytes = b""


@dataclass(frozen=True)
class Hop:
    """
    A single-pool swap segment handed to a hop simulator.

    `pool` is the derived pool address, or the pool id for manager-style
    families where pools have no address of their own.
    """

    family: int
    pool: str
    token_in: str
    token_out: str
    fee: int = 0
    pool_key: Optional[PoolKey] = None

    @property
    def zero_for_one(self) -> bool:
        return int(self.token_in, 16) < int(self.token_out, 16)


@dataclass(frozen=True)
class HopQuote:
    """Result of one non-committing hop simulation."""

    amount: int
    gas_estimate: int


@dataclass(frozen=True)
class QuoteResult:
    """
    Result of a full plan quote.

    Unpacks as (final_start_balance, amount_out, gas_estimate).
    """

    final_start_balance: int
    amount_out: int
    gas_estimate: int
    token_start: Optional[str] = None
    token_end: Optional[str] = None

    def __iter__(self) -> Iterator[int]:
        return iter((self.final_start_balance, self.amount_out, self.gas_estimate))

    def to_dict(self) -> dict[str, Any]:
        return {
            "final_start_balance": str(self.final_start_balance),
            "amount_out": str(self.amount_out),
            "gas_estimate": self.gas_estimate,
            "token_start": self.token_start,
            "token_end": self.token_end,
        }
