"""Player bankroll."""

from dataclasses import dataclass

from enhc.errors import InsufficientFunds

DEFAULT_BANKROLL = 1000


@dataclass
class Bankroll:
    """
    Integer credit balance that can never go negative.

    The engine is the only writer; everything else reads ``balance``.
    """

    balance: int = DEFAULT_BANKROLL

    def __post_init__(self) -> None:
        if self.balance < 0:
            raise ValueError("Bankroll cannot be negative")

    def can_afford(self, amount: int) -> bool:
        """Check if ``amount`` credits are available."""
        return 0 <= amount <= self.balance

    def require(self, amount: int) -> None:
        """
        Raise InsufficientFunds unless ``amount`` is available.

        Args:
            amount: Credits the caller is about to debit
        """
        if not self.can_afford(amount):
            raise InsufficientFunds(required=amount, available=self.balance)

    def debit(self, amount: int) -> None:
        """Take ``amount`` credits out of the bankroll."""
        self.require(amount)
        self.balance -= amount

    def credit(self, amount: int) -> None:
        """Pay ``amount`` credits into the bankroll."""
        if amount < 0:
            raise ValueError("Cannot credit a negative amount")
        self.balance += amount

    def reset(self, amount: int = DEFAULT_BANKROLL) -> None:
        """Replace the balance, e.g. when the player asks for fresh credits."""
        if amount < 0:
            raise ValueError("Bankroll cannot be negative")
        self.balance = amount

    def __int__(self) -> int:
        return self.balance
