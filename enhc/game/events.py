"""Game events for the event system."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable


class EventType(Enum):
    """Types of table events."""

    # Round flow events
    STATE_CHANGED = auto()
    ROUND_STARTED = auto()
    ROUND_ENDED = auto()
    ROUND_RESET = auto()

    # Betting events
    BET_PLACED = auto()
    BET_CLEARED = auto()
    BETS_REPEATED = auto()
    BETS_CLEARED = auto()

    # Card events
    CARD_DEALT = auto()
    SHOE_SHUFFLED = auto()

    # Player action events
    ACTIVE_HAND_CHANGED = auto()
    PLAYER_HIT = auto()
    PLAYER_STAND = auto()
    PLAYER_DOUBLE = auto()
    PLAYER_SPLIT = auto()
    PLAYER_SURRENDER = auto()

    # Insurance events
    INSURANCE_OFFERED = auto()
    INSURANCE_TAKEN = auto()
    INSURANCE_DECLINED = auto()
    INSURANCE_WINS = auto()
    INSURANCE_LOSES = auto()

    # Dealer events
    DEALER_HITS = auto()
    DEALER_STANDS = auto()
    DEALER_BUSTS = auto()
    DEALER_BLACKJACK = auto()

    # Outcome events
    PLAYER_BLACKJACK = auto()
    PLAYER_BUSTS = auto()
    HAND_SETTLED = auto()

    # Bookkeeping events
    BANKROLL_RESET = auto()
    STATISTICS_RESET = auto()


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable table event.

    Events are the only channel from the engine to the presentation layer.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "event_type": self.event_type.name,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


# Type alias for event handlers
EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Simple event emitter for table events.

    Allows subscribing to specific event types or all events.
    """

    def __init__(self, history_limit: int = 1000) -> None:
        """Initialize the event emitter."""
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._event_history: list[GameEvent] = []
        self._history_limit = history_limit

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """
        Subscribe to events.

        Args:
            handler: Function to call when event occurs
            event_type: Specific event type to subscribe to, or None for all events
        """
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """
        Unsubscribe from events.

        Args:
            handler: Handler to remove
            event_type: Event type to unsubscribe from
        """
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: GameEvent) -> None:
        """
        Emit an event to all subscribers.

        Args:
            event: The event to emit
        """
        self._event_history.append(event)
        if len(self._event_history) > self._history_limit:
            del self._event_history[0]

        handlers = self._handlers.get(event.event_type, []) + self._handlers.get(None, [])
        for handler in handlers:
            handler(event)

    def emit_new(
        self,
        event_type: EventType,
        **data: Any,
    ) -> GameEvent:
        """
        Create and emit a new event.

        Args:
            event_type: Type of event
            **data: Event data

        Returns:
            The created event
        """
        event = GameEvent(event_type=event_type, data=data)
        self.emit(event)
        return event

    @property
    def history(self) -> list[GameEvent]:
        """Return the event history."""
        return self._event_history.copy()

    def clear_history(self) -> None:
        """Clear the event history."""
        self._event_history.clear()
