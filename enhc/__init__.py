"""ENHC blackjack rules engine - UI-agnostic."""

from enhc.cards import Card, Rank, Shoe, Suit
from enhc.errors import BlackjackError, IllegalAction, InsufficientFunds, InvalidState
from enhc.hand import DealerHand, Hand
from enhc.seat import Seat

__all__ = [
    "Card",
    "Rank",
    "Shoe",
    "Suit",
    "Hand",
    "DealerHand",
    "Seat",
    "BlackjackError",
    "IllegalAction",
    "InsufficientFunds",
    "InvalidState",
]
