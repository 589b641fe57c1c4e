"""Basic strategy tables for the ENHC table."""

from enum import Enum, auto
from typing import Mapping

from enhc.cards import Card
from enhc.hand import Hand


class Recommendation(Enum):
    """Advice shown for the active hand."""

    HIT = auto()
    STAND = auto()
    DOUBLE = auto()
    SPLIT = auto()
    ABANDON = auto()  # surrender

    def __str__(self) -> str:
        return self.name


# Dealer upcards are keyed by points: Ace = 1, ten-valued cards = 10
DEALER_UPCARDS = range(1, 11)


class BasicStrategy:
    """
    Basic strategy lookup tables.

    Three dictionaries keyed by (player total or pair points, dealer upcard
    points). The tables are fixed; they encode this table's advice chart
    as-is, including its handling of a dealer Ace.
    """

    def __init__(self) -> None:
        self._hard_table = self._build_hard_table()
        self._soft_table = self._build_soft_table()
        self._pair_table = self._build_pair_table()

    def recommend(self, hand: Hand, dealer_upcard: Card) -> Recommendation:
        """
        Get the recommendation for a hand against the dealer's upcard.

        Pairs are looked up first, then soft totals, then hard totals.
        """
        pair_points = hand.cards[0].points if hand.can_split else None
        return self.get_action(
            player_total=hand.value,
            dealer_upcard=dealer_upcard.points,
            is_soft=hand.is_soft,
            pair_points=pair_points,
        )

    def get_action(
        self,
        player_total: int,
        dealer_upcard: int,
        is_soft: bool = False,
        pair_points: int | None = None,
    ) -> Recommendation:
        """
        Get the basic strategy recommendation.

        Args:
            player_total: Player's hand value
            dealer_upcard: Dealer's upcard points (1-10, Ace = 1)
            is_soft: Whether the hand is soft
            pair_points: Points of each card when the hand is a splittable pair

        Returns:
            The recommended action
        """
        if pair_points is not None:
            action = self._pair_table.get((pair_points, dealer_upcard))
            if action:
                return action

        if is_soft:
            if player_total >= 19:
                return Recommendation.STAND
            return self._soft_table.get((player_total, dealer_upcard), Recommendation.HIT)

        if player_total >= 17:
            return Recommendation.STAND
        return self._hard_table.get((player_total, dealer_upcard), Recommendation.HIT)

    def _build_hard_table(self) -> Mapping[tuple[int, int], Recommendation]:
        """Build hard totals strategy table (totals 9-16; 8 or less always hits)."""
        H = Recommendation.HIT
        S = Recommendation.STAND
        D = Recommendation.DOUBLE
        R = Recommendation.ABANDON

        table: dict[tuple[int, int], Recommendation] = {}

        # Hard 9
        for dealer in DEALER_UPCARDS:
            table[(9, dealer)] = D if 3 <= dealer <= 6 else H

        # Hard 10
        for dealer in DEALER_UPCARDS:
            table[(10, dealer)] = H if dealer >= 10 else D

        # Hard 11
        for dealer in DEALER_UPCARDS:
            table[(11, dealer)] = H if dealer == 1 else D

        # Hard 12
        for dealer in DEALER_UPCARDS:
            if 4 <= dealer <= 6:
                table[(12, dealer)] = S
            elif dealer == 10:
                table[(12, dealer)] = R
            else:
                table[(12, dealer)] = H

        # Hard 13-14
        for total in (13, 14):
            for dealer in DEALER_UPCARDS:
                if dealer <= 6:
                    table[(total, dealer)] = S
                elif dealer in (9, 10):
                    table[(total, dealer)] = R
                else:
                    table[(total, dealer)] = H

        # Hard 15-16
        for total in (15, 16):
            for dealer in DEALER_UPCARDS:
                table[(total, dealer)] = S if dealer <= 6 else R

        return table

    def _build_soft_table(self) -> Mapping[tuple[int, int], Recommendation]:
        """Build soft totals strategy table (soft 19+ always stands)."""
        H = Recommendation.HIT
        S = Recommendation.STAND
        D = Recommendation.DOUBLE

        table: dict[tuple[int, int], Recommendation] = {}

        # Soft 13-16 (A,2 to A,5)
        for total in (13, 14, 15, 16):
            for dealer in DEALER_UPCARDS:
                table[(total, dealer)] = D if 4 <= dealer <= 6 else H

        # Soft 17 (A,6)
        for dealer in DEALER_UPCARDS:
            table[(17, dealer)] = D if 2 <= dealer <= 6 else H

        # Soft 18 (A,7)
        for dealer in DEALER_UPCARDS:
            if dealer in (2, 7, 8):
                table[(18, dealer)] = S
            elif 3 <= dealer <= 6:
                table[(18, dealer)] = D
            else:
                table[(18, dealer)] = H

        return table

    def _build_pair_table(self) -> Mapping[tuple[int, int], Recommendation]:
        """Build pair splitting strategy table."""
        H = Recommendation.HIT
        S = Recommendation.STAND
        P = Recommendation.SPLIT
        D = Recommendation.DOUBLE

        table: dict[tuple[int, int], Recommendation] = {}

        for dealer in DEALER_UPCARDS:
            # Aces and 8s: always split
            table[(1, dealer)] = P
            table[(8, dealer)] = P
            # Tens: never split
            table[(10, dealer)] = S
            # 2s, 3s and 7s
            for pair in (2, 3, 7):
                table[(pair, dealer)] = P if dealer <= 7 else H
            # 4s
            table[(4, dealer)] = P if dealer in (5, 6) else H
            # 5s: play as hard 10
            table[(5, dealer)] = D if dealer <= 9 else H
            # 6s
            table[(6, dealer)] = P if dealer <= 6 else H
            # 9s
            table[(9, dealer)] = S if dealer in (1, 7, 10) else P

        return table

    @property
    def hard_table(self) -> Mapping[tuple[int, int], Recommendation]:
        """Return the hard totals strategy table."""
        return self._hard_table

    @property
    def soft_table(self) -> Mapping[tuple[int, int], Recommendation]:
        """Return the soft totals strategy table."""
        return self._soft_table

    @property
    def pair_table(self) -> Mapping[tuple[int, int], Recommendation]:
        """Return the pair splitting strategy table."""
        return self._pair_table
