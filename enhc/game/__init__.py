"""Table engine and round state management."""

from enhc.game.events import GameEvent, EventType, EventEmitter
from enhc.game.state import RoundState, Action
from enhc.game.insurance import InsuranceDecision, InsuranceRecord
from enhc.game.pacing import Pacer, PaceStep
from enhc.game.engine import BlackjackTable

__all__ = [
    "GameEvent",
    "EventType",
    "EventEmitter",
    "RoundState",
    "Action",
    "InsuranceDecision",
    "InsuranceRecord",
    "Pacer",
    "PaceStep",
    "BlackjackTable",
]
