"""Aggregate player statistics."""

from dataclasses import asdict, dataclass, fields
from typing import Any

from enhc.settlement import HandResult, Outcome


@dataclass
class Statistics:
    """
    Lifetime counters, updated once per settled hand.

    Every field is an integer so the snapshot survives a JSON round trip
    unchanged.
    """

    rounds_played: int = 0
    hands_played: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    blackjacks: int = 0
    busts: int = 0
    surrenders: int = 0
    hands_split: int = 0
    hands_doubled: int = 0
    insurances_taken: int = 0
    net_winnings: int = 0
    biggest_win: int = 0
    biggest_loss: int = 0

    def record_hand(self, result: HandResult) -> None:
        """
        Record a settled hand.

        Args:
            result: The hand's settlement
        """
        self.hands_played += 1

        if result.outcome == Outcome.SURRENDER:
            self.surrenders += 1
        elif result.outcome == Outcome.BUST:
            self.busts += 1
            self.losses += 1
        elif result.outcome == Outcome.LOSS:
            self.losses += 1
        elif result.outcome == Outcome.PUSH:
            self.pushes += 1
        else:
            self.wins += 1
            if result.outcome == Outcome.BLACKJACK:
                self.blackjacks += 1

        self.net_winnings += result.net
        if result.net > self.biggest_win:
            self.biggest_win = result.net
        if -result.net > self.biggest_loss:
            self.biggest_loss = -result.net

    def record_round(self) -> None:
        self.rounds_played += 1

    def record_split(self) -> None:
        self.hands_split += 1

    def record_double(self) -> None:
        self.hands_doubled += 1

    def record_insurance(self) -> None:
        self.insurances_taken += 1

    @property
    def win_rate(self) -> float:
        """Fraction of decided hands (wins + losses) that were won."""
        decided = self.wins + self.losses
        return self.wins / decided if decided else 0.0

    def to_dict(self) -> dict[str, int]:
        """Serialize to a plain dictionary of integers."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Statistics":
        """
        Restore from a dictionary produced by ``to_dict``.

        Unknown keys are ignored and missing keys start at zero, so snapshots
        saved by older versions still load.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Statistic {key!r} must be an integer, got {value!r}")
            values[key] = value
        return cls(**values)
