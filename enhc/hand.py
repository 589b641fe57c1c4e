"""Hand evaluation for blackjack."""

from dataclasses import dataclass, field
from typing import Iterator

from enhc.cards import Card
from enhc.errors import IllegalAction


@dataclass
class Hand:
    """A blackjack hand with value calculation and per-hand flags."""

    cards: list[Card] = field(default_factory=list)
    bet: int = 0
    is_finished: bool = False
    is_split_hand: bool = False
    is_doubled: bool = False
    is_surrendered: bool = False
    can_double: bool = False
    can_split: bool = False

    def __post_init__(self) -> None:
        self._refresh_flags()

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        if self.is_finished:
            raise IllegalAction("Cannot add a card to a finished hand")
        self.cards.append(card)
        self._refresh_flags()

    def take_second_card(self) -> Card:
        """Remove and return the second card of a pair being split."""
        if len(self.cards) != 2:
            raise IllegalAction("Only a two-card hand can give up a card")
        card = self.cards.pop()
        self._refresh_flags()
        return card

    def finish(self) -> None:
        """Freeze the hand; no more cards or actions are accepted."""
        self.is_finished = True
        self._refresh_flags()

    def _refresh_flags(self) -> None:
        self.can_double = len(self.cards) == 2 and not self.is_finished
        self.can_split = (
            len(self.cards) == 2
            and self.cards[0].points == self.cards[1].points
        )

    def _totals(self) -> tuple[int, int]:
        """Return (total with every Ace as 11, number of Aces)."""
        total = 0
        aces = 0
        for card in self.cards:
            if card.is_ace:
                aces += 1
            total += card.value(ace_as_eleven=True)
        return total, aces

    @property
    def value(self) -> int:
        """
        Calculate the best hand value.

        Aces start at 11 and are demoted to 1 one at a time while the total
        is over 21.
        """
        total, aces = self._totals()

        while total > 21 and aces > 0:
            total -= 10
            aces -= 1

        return total

    @property
    def is_soft(self) -> bool:
        """
        Check if the hand is soft.

        Soft means an Ace is still counted as 11 in the best value, i.e. the
        hard total (every Ace as 1) differs from the value.
        """
        hard = sum(card.points for card in self.cards)
        return self.value <= 21 and hard != self.value

    @property
    def is_busted(self) -> bool:
        """Check if the hand has busted (value > 21)."""
        return self.value > 21

    @property
    def is_blackjack(self) -> bool:
        """Check if the hand is a natural blackjack (21 with 2 cards, never split)."""
        return (
            len(self.cards) == 2
            and self.value == 21
            and not self.is_split_hand
        )

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        if self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"


@dataclass
class DealerHand(Hand):
    """The dealer's hand. It carries no bet and is never split."""

    @property
    def upcard(self) -> Card | None:
        """Return the first dealt card, the only one seen before the dealer plays."""
        return self.cards[0] if self.cards else None

    @property
    def shows_ace(self) -> bool:
        """Check if the dealer's first card is an Ace."""
        return self.upcard is not None and self.upcard.is_ace

    def take_second_card(self) -> Card:
        raise IllegalAction("The dealer hand cannot be split")
