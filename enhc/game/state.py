"""Round state and player action enumerations."""

from enum import Enum, auto


class RoundState(Enum):
    """
    Round state machine states.

    Flow: BETTING → PLAYING → (INSURANCE → PLAYING) → DEALER → FINISHED → BETTING
    """

    # Seats take bets
    BETTING = auto()

    # Cards dealt, player hands being played
    PLAYING = auto()

    # Dealer shows an Ace, seats decide on insurance one at a time
    INSURANCE = auto()

    # Dealer draws to 17
    DEALER = auto()

    # Round settled, waiting for the next round to be started
    FINISHED = auto()

    def __str__(self) -> str:
        return self.name.title()


class Action(Enum):
    """Actions a player can take on the active hand."""

    HIT = "hit"
    STAND = "stand"
    DOUBLE = "double"
    SPLIT = "split"
    SURRENDER = "surrender"

    def __str__(self) -> str:
        return self.value

