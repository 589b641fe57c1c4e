"""Card and Shoe classes - immutable card representations."""

from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from typing import Iterator

# Shoe is rebuilt before a draw once fewer cards than this remain
RESHUFFLE_THRESHOLD = 20


class Suit(Enum):
    """Card suits."""

    SPADES = auto()
    HEARTS = auto()
    DIAMONDS = auto()
    CLUBS = auto()

    def __str__(self) -> str:
        symbols = {
            Suit.SPADES: "♠",
            Suit.HEARTS: "♥",
            Suit.DIAMONDS: "♦",
            Suit.CLUBS: "♣",
        }
        return symbols[self]

    @property
    def is_red(self) -> bool:
        """Check if this is a red suit."""
        return self in (Suit.HEARTS, Suit.DIAMONDS)


class Rank(Enum):
    """Card ranks, valued 1 (Ace) to 13 (King)."""

    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    def __str__(self) -> str:
        if 2 <= self.value <= 10:
            return str(self.value)
        return {
            Rank.ACE: "A",
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
        }[self]

    @property
    def points(self) -> int:
        """Return the hard point value (Ace = 1, face cards = 10)."""
        return min(self.value, 10)

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.name}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def name(self) -> str:
        """Return the display name of the rank ('A', '2'...'10', 'J', 'Q', 'K')."""
        return str(self.rank)

    @property
    def points(self) -> int:
        """Return the hard point value, with an Ace counted as 1."""
        return self.rank.points

    def value(self, ace_as_eleven: bool = False) -> int:
        """Return the blackjack value, optionally counting an Ace as 11."""
        if self.rank.is_ace and ace_as_eleven:
            return 11
        return self.rank.points

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like 'A♠', 'AS', '10h'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        rank_map = {str(rank): rank for rank in Rank}
        rank_map["T"] = Rank.TEN

        suit_map = {
            "S": Suit.SPADES,
            "♠": Suit.SPADES,
            "H": Suit.HEARTS,
            "♥": Suit.HEARTS,
            "D": Suit.DIAMONDS,
            "♦": Suit.DIAMONDS,
            "C": Suit.CLUBS,
            "♣": Suit.CLUBS,
        }

        if rank_str not in rank_map:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in suit_map:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(rank_map[rank_str], suit_map[suit_str])


class Shoe:
    """A multi-deck shoe that rebuilds itself before running low."""

    def __init__(
        self,
        num_decks: int = 6,
        reshuffle_threshold: int = RESHUFFLE_THRESHOLD,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize a shuffled shoe.

        Args:
            num_decks: Number of 52-card decks in the shoe
            reshuffle_threshold: Rebuild and reshuffle when fewer cards remain
            rng: Random number generator for shuffling
        """
        if num_decks < 1:
            raise ValueError("Shoe must have at least 1 deck")
        if reshuffle_threshold < 0 or reshuffle_threshold >= num_decks * 52:
            raise ValueError("Reshuffle threshold must be smaller than the shoe")

        self._num_decks = num_decks
        self._reshuffle_threshold = reshuffle_threshold
        self._rng = rng or Random()
        self._cards: list[Card] = []
        self._reshuffle_count = 0
        self.build(num_decks)
        self.shuffle()

    def build(self, num_decks: int | None = None) -> None:
        """Regenerate every card of ``num_decks`` decks in order."""
        if num_decks is not None:
            self._num_decks = num_decks
        self._cards = [
            Card(rank, suit)
            for _ in range(self._num_decks)
            for suit in Suit
            for rank in Rank
        ]

    def shuffle(self) -> None:
        """Shuffle the remaining cards in place."""
        self._rng.shuffle(self._cards)

    def draw(self) -> Card:
        """Draw a card, rebuilding and reshuffling first if the shoe is low."""
        if self.needs_reshuffle:
            self.build()
            self.shuffle()
            self._reshuffle_count += 1
        return self._cards.pop()

    @property
    def needs_reshuffle(self) -> bool:
        """Check if the next draw will rebuild the shoe."""
        return len(self._cards) < self._reshuffle_threshold

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)

    @property
    def total_cards(self) -> int:
        """Return the total number of cards in a full shoe."""
        return self._num_decks * 52

    @property
    def num_decks(self) -> int:
        """Return the number of decks in the shoe."""
        return self._num_decks

    @property
    def reshuffle_threshold(self) -> int:
        """Return the reshuffle threshold."""
        return self._reshuffle_threshold

    @property
    def reshuffle_count(self) -> int:
        """Return how many times the shoe has been rebuilt by a draw."""
        return self._reshuffle_count

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)
