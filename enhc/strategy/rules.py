"""Table rules."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RuleSet:
    """
    Fixed rules of the ENHC table.

    The dealer receives no hole card, stands on every 17 and insurance is
    offered whenever the dealer's first card is an Ace.
    """

    # Shoe configuration
    num_decks: int = 6
    reshuffle_threshold: int = 20

    # Table layout
    num_seats: int = 6
    max_hands_per_seat: int = 3

    # Dealer stands once reaching this total, soft or hard
    dealer_stands_on: int = 17

    # Blackjack payout (3:2 = 1.5)
    blackjack_payout: float = 1.5

    # Insurance
    insurance_allowed: bool = True

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.num_decks < 1 or self.num_decks > 8:
            raise ValueError("num_decks must be between 1 and 8")
        if self.num_seats < 1:
            raise ValueError("num_seats must be at least 1")
        if self.max_hands_per_seat < 1:
            raise ValueError("max_hands_per_seat must be at least 1")
        if self.blackjack_payout < 1.0:
            raise ValueError("blackjack_payout must be at least 1.0")
        if not 1 <= self.reshuffle_threshold < self.num_decks * 52:
            raise ValueError("reshuffle_threshold must be between 1 and the shoe size")
