"""Bankroll, statistics and odds estimation."""

from enhc.statistics.bankroll import Bankroll, DEFAULT_BANKROLL
from enhc.statistics.probability import ProbabilityEstimator, Odds
from enhc.statistics.tracker import Statistics

__all__ = [
    "Bankroll",
    "DEFAULT_BANKROLL",
    "ProbabilityEstimator",
    "Odds",
    "Statistics",
]
