from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple

from .errors import InsufficientFunds

LOGGER = logging.getLogger("holdem_ledger")


class FundsLedger(Protocol):
    """Wallet the engine settles a human player's chips against."""

    def add_funds(self, amount: int) -> None: ...

    def spend_funds(self, amount: int) -> None: ...


def _simulated_address(rng: random.Random) -> str:
    return "0x" + "".join(rng.choice("0123456789abcdef") for _ in range(40))


@dataclass
class SimulatedWallet:
    balance: int
    address: Optional[str] = None
    network: str = "Base Testnet (Simulated)"
    history: List[Tuple[str, int]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.balance < 0:
            raise ValueError("Wallet balance must be non-negative")
        if self.address is None:
            self.address = _simulated_address(random.Random())

    def spend_funds(self, amount: int) -> None:
        if amount < 0:
            raise InsufficientFunds("Cannot spend a negative amount")
        if amount > self.balance:
            raise InsufficientFunds(f"Balance {self.balance} cannot cover {amount}")
        self.balance -= amount
        self.history.append(("spend", amount))
        LOGGER.debug("Wallet %s spent %s (balance=%s)", self.address, amount, self.balance)

    def add_funds(self, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot add a negative amount")
        self.balance += amount
        self.history.append(("add", amount))
        LOGGER.debug("Wallet %s received %s (balance=%s)", self.address, amount, self.balance)
