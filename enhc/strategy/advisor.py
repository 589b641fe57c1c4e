"""Advice for the active hand: a recommendation plus heuristic odds."""

from dataclasses import dataclass

from enhc.cards import Card
from enhc.hand import Hand
from enhc.statistics.probability import ProbabilityEstimator
from enhc.strategy.basic import BasicStrategy, Recommendation


@dataclass(frozen=True)
class Advice:
    """What the advice panel shows for one hand."""

    recommendation: Recommendation
    bust: int
    win: int
    push: int

    def to_dict(self) -> dict[str, int | str]:
        return {
            "recommendation": self.recommendation.name,
            "bust": self.bust,
            "win": self.win,
            "push": self.push,
        }


class StrategyAdvisor:
    """Pure function of (hand, dealer upcard) to Advice."""

    def __init__(
        self,
        strategy: BasicStrategy | None = None,
        estimator: ProbabilityEstimator | None = None,
    ) -> None:
        self.strategy = strategy or BasicStrategy()
        self.estimator = estimator or ProbabilityEstimator()

    def advise(
        self,
        hand: Hand,
        dealer_upcard: Card,
        cards_in_play: int | None = None,
    ) -> Advice:
        """
        Advise on ``hand`` against ``dealer_upcard``.

        A natural is never played, so it is always advised to stand.

        Args:
            hand: The player hand
            dealer_upcard: The dealer's visible card
            cards_in_play: Cards on the table, for the bust estimate

        Returns:
            Advice for the hand
        """
        odds = self.estimator.estimate(hand, dealer_upcard, cards_in_play)
        if hand.is_blackjack:
            recommendation = Recommendation.STAND
        else:
            recommendation = self.strategy.recommend(hand, dealer_upcard)
        return Advice(
            recommendation=recommendation,
            bust=odds.bust,
            win=odds.win,
            push=odds.push,
        )
