"""Betting seats (boxes) and split mechanics."""

from dataclasses import dataclass, field
from typing import Callable, Iterator

from enhc.cards import Card
from enhc.errors import IllegalAction
from enhc.hand import Hand

MAX_HANDS_PER_SEAT = 3


@dataclass
class Seat:
    """
    One betting position at the table.

    A seat keeps its index for the whole session. Its bet, hands and flags
    are cleared between rounds.
    """

    index: int
    bet: int = 0
    hands: list[Hand] = field(default_factory=list)
    current_hand_index: int = 0
    is_active: bool = False
    is_finished: bool = False
    max_hands: int = MAX_HANDS_PER_SEAT

    @property
    def current_hand(self) -> Hand | None:
        """Get the hand under the cursor."""
        if 0 <= self.current_hand_index < len(self.hands):
            return self.hands[self.current_hand_index]
        return None

    @property
    def has_split(self) -> bool:
        """Check if any split happened on this seat this round."""
        return len(self.hands) > 1

    def open(self) -> Hand:
        """Activate the seat for a round with a single hand carrying the bet."""
        hand = Hand(bet=self.bet)
        self.hands = [hand]
        self.current_hand_index = 0
        self.is_active = True
        self.is_finished = False
        return hand

    def reset(self) -> None:
        """Clear everything that only lives for one round."""
        self.bet = 0
        self.hands = []
        self.current_hand_index = 0
        self.is_active = False
        self.is_finished = False

    def can_split_current(self) -> bool:
        """Check the card and hand-count conditions for splitting (not funds)."""
        hand = self.current_hand
        return (
            hand is not None
            and not hand.is_finished
            and hand.can_split
            and len(self.hands) < self.max_hands
        )

    def split_current(self, draw: Callable[[], Card]) -> Hand:
        """
        Split the hand under the cursor.

        The second card moves to a new hand inserted right after the cursor.
        The original hand is dealt a card first, then the new one. Split Aces
        receive that one card each and are finished at once. The cursor stays
        on the original hand.

        Args:
            draw: Callable returning the next card from the shoe

        Returns:
            The newly created hand
        """
        if not self.can_split_current():
            raise IllegalAction(f"Seat {self.index} cannot split")

        hand = self.hands[self.current_hand_index]
        moved = hand.take_second_card()
        new_hand = Hand(bet=hand.bet, is_split_hand=True)
        new_hand.add_card(moved)
        hand.is_split_hand = True
        self.hands.insert(self.current_hand_index + 1, new_hand)

        hand.add_card(draw())
        new_hand.add_card(draw())

        if hand.cards[0].is_ace:
            hand.finish()
            new_hand.finish()

        return new_hand

    def next_unfinished_hand(self) -> int | None:
        """Index of the first unfinished hand after the cursor, if any."""
        for i in range(self.current_hand_index + 1, len(self.hands)):
            if not self.hands[i].is_finished:
                return i
        return None

    def first_unfinished_hand(self) -> int | None:
        """Index of the first unfinished hand on the seat, if any."""
        for i, hand in enumerate(self.hands):
            if not hand.is_finished:
                return i
        return None

    def __iter__(self) -> Iterator[Hand]:
        return iter(self.hands)
