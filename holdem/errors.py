from __future__ import annotations


class PokerError(Exception):
    """Base error carrying a short machine-readable code."""

    code = "ERROR"

    def __init__(self, msg: str, code: str | None = None) -> None:
        super().__init__(msg)
        self.msg = msg
        if code is not None:
            self.code = code


class InvalidAction(PokerError, ValueError):
    code = "ILLEGAL_ACTION"


class EngineBusy(InvalidAction):
    code = "BUSY"


class InsufficientFunds(PokerError):
    code = "INSUFFICIENT_FUNDS"


class StateInvariantViolation(PokerError, RuntimeError):
    code = "INVARIANT"
