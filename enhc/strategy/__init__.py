"""Strategy tables, advice and table rules."""

from enhc.strategy.rules import RuleSet
from enhc.strategy.basic import BasicStrategy, Recommendation
from enhc.strategy.advisor import Advice, StrategyAdvisor

__all__ = [
    "RuleSet",
    "BasicStrategy",
    "Recommendation",
    "Advice",
    "StrategyAdvisor",
]
