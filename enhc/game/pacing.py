"""Presentation pacing for the engine's sequential steps."""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping


class PaceStep(Enum):
    """Points at which the engine pauses for a human-perceivable beat."""

    DEAL = "deal"
    DEALER_DRAW = "dealer_draw"
    INSURANCE_OFFER = "insurance_offer"
    SETTLE = "settle"


@dataclass
class Pacer:
    """
    Ordered delays between engine steps.

    A step whose delay is zero is skipped without calling ``sleep``, so tests
    and simulations run without waiting. Delays never change outcomes: the
    engine finishes the current command before it accepts another one.
    """

    delays: Mapping[PaceStep, float] = field(default_factory=dict)
    sleep: Callable[[float], None] = time.sleep

    @classmethod
    def from_seconds(
        cls,
        deal: float = 0.0,
        dealer_draw: float = 0.0,
        insurance_offer: float = 0.0,
        settle: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "Pacer":
        """Build a pacer from per-step delays in seconds."""
        return cls(
            delays={
                PaceStep.DEAL: deal,
                PaceStep.DEALER_DRAW: dealer_draw,
                PaceStep.INSURANCE_OFFER: insurance_offer,
                PaceStep.SETTLE: settle,
            },
            sleep=sleep,
        )

    def tick(self, step: PaceStep) -> None:
        """Wait for the configured delay of ``step``, if any."""
        delay = self.delays.get(step, 0.0)
        if delay > 0:
            self.sleep(delay)
