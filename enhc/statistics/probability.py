"""Heuristic odds for the active hand.

These numbers are deliberately approximate: fixed lookup tables and a
monotonic formula, not a combinatorial model of the shoe. They feed the
advice panel only and never influence settlement.
"""

import math
from dataclasses import dataclass

from enhc.cards import Card, Rank, Suit
from enhc.hand import Hand

# Dealer bust percentage by upcard points (Ace = 1, ten-valued cards = 10)
DEALER_BUST_PERCENT: dict[int, int] = {
    1: 12,
    2: 35,
    3: 37,
    4: 40,
    5: 42,
    6: 42,
    7: 26,
    8: 24,
    9: 23,
    10: 21,
}

# Chance the dealer reaches 21 against a player natural, by upcard points
DEALER_TWENTY_ONE_PERCENT: dict[int, float] = {
    1: 7.0,
    2: 7.4,
    3: 7.2,
    4: 6.8,
    5: 6.2,
    6: 5.8,
    7: 8.1,
    8: 7.8,
    9: 7.5,
    10: 7.7,
}

DEFAULT_DEALER_BUST_PERCENT = 25

# Synthetic six-deck buffer: 24 cards of each rank, lowest ranks first
SYNTHETIC_CARDS_PER_RANK = 24

WIN_RANGE = (5, 95)
PUSH_RANGE = (2, 25)


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def _clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return min(high, max(low, value))


@dataclass(frozen=True)
class Odds:
    """Whole-number percentages for the active hand."""

    bust: int
    win: int
    push: int


class ProbabilityEstimator:
    """Heuristic bust, win and push estimates for a hand against an upcard."""

    def __init__(self, cards_per_rank: int = SYNTHETIC_CARDS_PER_RANK) -> None:
        """
        Initialize the estimator.

        Args:
            cards_per_rank: Copies of each rank in the synthetic buffer
        """
        self._buffer = [
            Card(rank, Suit.SPADES)
            for rank in Rank
            for _ in range(cards_per_rank)
        ]

    def dealer_bust_probability(self, upcard_points: int) -> int:
        """Get the dealer bust percentage for an upcard (Ace = 1)."""
        return DEALER_BUST_PERCENT.get(min(upcard_points, 10), DEFAULT_DEALER_BUST_PERCENT)

    def remaining_cards(self, cards_in_play: int) -> list[Card]:
        """
        Return the synthetic buffer with ``cards_in_play`` cards removed.

        Cards are removed from the front of the buffer, independent of which
        cards are actually on the table.
        """
        return self._buffer[max(cards_in_play, 0):]

    def player_bust_probability(self, hand: Hand, cards_in_play: int) -> int:
        """
        Percentage of remaining synthetic cards that would bust ``hand``.

        Args:
            hand: The player hand
            cards_in_play: Number of cards currently on the table

        Returns:
            Bust percentage, 0 when the buffer is exhausted
        """
        remaining = self.remaining_cards(cards_in_play)
        if not remaining:
            return 0

        busts = 0
        for card in remaining:
            probe = Hand(cards=[*hand.cards, card])
            if probe.is_busted:
                busts += 1
        return _round_half_up(busts / len(remaining) * 100)

    def win_push(self, player_value: int, dealer_bust: int) -> tuple[int, int]:
        """
        Derive win and push percentages from the hand total.

        Args:
            player_value: Current hand value
            dealer_bust: Dealer bust percentage for the upcard

        Returns:
            (win, push), clamped to their ranges
        """
        win = 0.0
        push = 0.0
        dealer_stands = 100 - dealer_bust

        if player_value <= 21:
            if player_value == 21:
                win = max(70, dealer_bust + 20)
                push = min(15, dealer_stands * 0.1)
            elif player_value >= 19:
                win = dealer_bust + (21 - player_value) * 8
                push = max(5, (21 - player_value) * 2)
            elif player_value >= 17:
                win = dealer_bust + (21 - player_value) * 4
                push = max(8, (21 - player_value) * 3)
            else:
                win = max(15, dealer_bust - (17 - player_value) * 2)
                push = max(3, 21 - player_value)

        return (
            _clamp(_round_half_up(win), WIN_RANGE),
            _clamp(_round_half_up(push), PUSH_RANGE),
        )

    def natural_odds(self, upcard_points: int) -> Odds:
        """Odds for a player natural: only a dealer 21 keeps it from winning."""
        twenty_one = DEALER_TWENTY_ONE_PERCENT[min(upcard_points, 10)]
        return Odds(
            bust=0,
            win=_round_half_up(100 - twenty_one),
            push=_round_half_up(twenty_one),
        )

    def estimate(
        self,
        hand: Hand,
        dealer_upcard: Card,
        cards_in_play: int | None = None,
    ) -> Odds:
        """
        Estimate the odds for ``hand`` against ``dealer_upcard``.

        Args:
            hand: The player hand
            dealer_upcard: The dealer's visible card
            cards_in_play: Cards on the table; defaults to the hand plus the upcard

        Returns:
            Odds for the hand
        """
        upcard_points = dealer_upcard.points

        if hand.is_blackjack:
            return self.natural_odds(upcard_points)

        if cards_in_play is None:
            cards_in_play = len(hand) + 1

        dealer_bust = self.dealer_bust_probability(upcard_points)
        win, push = self.win_push(hand.value, dealer_bust)
        return Odds(
            bust=self.player_bust_probability(hand, cards_in_play),
            win=win,
            push=push,
        )
