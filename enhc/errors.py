"""Errors raised by the table engine.

Every error is recoverable: the engine validates a command fully before
mutating anything, so a caller that catches one of these can keep using the
table as if the command had never been sent.
"""


class BlackjackError(Exception):
    """Base class for all table errors."""


class InvalidState(BlackjackError):
    """Command sent while the round is in a state that does not accept it."""

    def __init__(self, message: str, state: str | None = None) -> None:
        super().__init__(message)
        self.state = state


class IllegalAction(BlackjackError):
    """Player action that the current hand or seat is not eligible for."""


class InsufficientFunds(BlackjackError):
    """Bet, double, split or insurance that the bankroll cannot cover."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(f"Need {required} credits, only {available} available")
        self.required = required
        self.available = available
