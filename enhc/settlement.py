"""Payout rules for settling a finished round."""

from dataclasses import dataclass
from enum import Enum

from enhc.hand import Hand


class Outcome(Enum):
    """How a single hand ended."""

    WIN = "win"
    BLACKJACK = "blackjack"
    PUSH = "push"
    LOSS = "loss"
    BUST = "bust"
    SURRENDER = "surrender"

    @property
    def is_win(self) -> bool:
        return self in (Outcome.WIN, Outcome.BLACKJACK)

    @property
    def is_loss(self) -> bool:
        return self in (Outcome.LOSS, Outcome.BUST)


@dataclass(frozen=True)
class HandResult:
    """
    Settlement of one (seat, hand) pair.

    ``credit`` is what goes back into the bankroll at settlement time and
    ``net`` is the win (positive) or loss (negative) for statistics.
    """

    seat_index: int
    hand_index: int
    outcome: Outcome
    bet: int
    credit: int
    net: int

    def to_dict(self) -> dict[str, int | str]:
        return {
            "seat": self.seat_index,
            "hand": self.hand_index,
            "outcome": self.outcome.value,
            "bet": self.bet,
            "credit": self.credit,
            "net": self.net,
        }


def blackjack_payout(bet: int, ratio: float = 1.5) -> int:
    """Winnings on a natural, rounded down."""
    return int(bet * ratio)


def _win(seat_index: int, hand_index: int, hand: Hand, ratio: float) -> HandResult:
    if hand.is_blackjack:
        payout = blackjack_payout(hand.bet, ratio)
        outcome = Outcome.BLACKJACK
    else:
        payout = hand.bet
        outcome = Outcome.WIN
    return HandResult(seat_index, hand_index, outcome, hand.bet, hand.bet + payout, payout)


def settle_hand(
    seat_index: int,
    hand_index: int,
    hand: Hand,
    dealer_value: int,
    dealer_busted: bool,
    blackjack_ratio: float = 1.5,
) -> HandResult:
    """
    Settle a hand against the dealer's final total.

    Args:
        seat_index: Seat the hand belongs to
        hand_index: Position of the hand within the seat
        hand: The finished player hand
        dealer_value: Dealer's final value
        dealer_busted: Whether the dealer went over 21
        blackjack_ratio: Payout ratio for a natural

    Returns:
        The HandResult for the hand
    """
    bet = hand.bet

    if hand.is_surrendered:
        # Half the bet was handed back when the player surrendered
        return HandResult(seat_index, hand_index, Outcome.SURRENDER, bet, 0, -(bet // 2))

    if hand.is_busted:
        return HandResult(seat_index, hand_index, Outcome.BUST, bet, 0, -bet)

    if dealer_busted:
        return _win(seat_index, hand_index, hand, blackjack_ratio)

    player_value = hand.value
    if player_value > dealer_value:
        return _win(seat_index, hand_index, hand, blackjack_ratio)
    if player_value == dealer_value:
        return HandResult(seat_index, hand_index, Outcome.PUSH, bet, bet, 0)
    return HandResult(seat_index, hand_index, Outcome.LOSS, bet, 0, -bet)


def settle_against_dealer_blackjack(
    seat_index: int,
    hand_index: int,
    hand: Hand,
) -> HandResult:
    """
    Settle a hand when the dealer holds blackjack.

    Only a player natural survives (push). A surrendered hand keeps its
    surrender result; everything else loses the full bet.
    """
    bet = hand.bet
    if hand.is_surrendered:
        return HandResult(seat_index, hand_index, Outcome.SURRENDER, bet, 0, -(bet // 2))
    if hand.is_blackjack:
        return HandResult(seat_index, hand_index, Outcome.PUSH, bet, bet, 0)
    if hand.is_busted:
        return HandResult(seat_index, hand_index, Outcome.BUST, bet, 0, -bet)
    return HandResult(seat_index, hand_index, Outcome.LOSS, bet, 0, -bet)
