"""Insurance records kept while the dealer shows an Ace."""

from dataclasses import dataclass
from enum import Enum


class InsuranceDecision(Enum):
    """A seat's answer to the insurance offer."""

    UNDECIDED = "undecided"
    TAKEN = "taken"
    DECLINED = "declined"


@dataclass
class InsuranceRecord:
    """Insurance stake and decision for one seat."""

    seat_index: int
    cost: int
    decision: InsuranceDecision = InsuranceDecision.UNDECIDED

    @property
    def bet(self) -> int:
        """Amount actually staked (zero unless taken)."""
        return self.cost if self.decision == InsuranceDecision.TAKEN else 0

    @property
    def payout(self) -> int:
        """Credit owed when the dealer turns out to hold blackjack (2:1)."""
        return self.bet * 2


def insurance_cost(bet: int) -> int:
    """Insurance costs half the seat's bet, rounded down."""
    return bet // 2
