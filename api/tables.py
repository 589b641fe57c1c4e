"""Per-session table cache backed by the session store."""

import asyncio
import logging
import time
from typing import Any

from api.schemas import (
    CardResponse,
    HandResponse,
    HandResultResponse,
    InsuranceRecordResponse,
    SeatResponse,
    TableStateResponse,
)
from api.session import get_session_store
from config import config
from enhc.cards import Card
from enhc.game import BlackjackTable, Pacer
from enhc.hand import Hand
from enhc.strategy.rules import RuleSet

logger = logging.getLogger(__name__)

# In-memory table cache (only the snapshot lives in the session store)
_tables: dict[str, BlackjackTable] = {}
_locks: dict[str, asyncio.Lock] = {}

# Session data keys
SESSION_KEY_SNAPSHOT = "snapshot"
SESSION_KEY_CREATED_AT = "created_at"
SESSION_KEY_LAST_ACTIVITY = "last_activity"


def build_table() -> BlackjackTable:
    """Create a table from the configured rules and pacing."""
    game = config.game
    rules = RuleSet(
        num_decks=game.num_decks,
        reshuffle_threshold=game.reshuffle_threshold,
        num_seats=game.num_seats,
        max_hands_per_seat=game.max_hands_per_seat,
        blackjack_payout=game.blackjack_payout,
    )
    pacer = Pacer.from_seconds(
        deal=game.pacing.deal,
        dealer_draw=game.pacing.dealer_draw,
        insurance_offer=game.pacing.insurance_offer,
        settle=game.pacing.settle,
    )
    return BlackjackTable(rules=rules, initial_bankroll=game.initial_bankroll, pacer=pacer)


def table_lock(session_id: str) -> asyncio.Lock:
    """Lock serializing commands sent to one session's table."""
    return _locks.setdefault(session_id, asyncio.Lock())


async def _load_snapshot(session_id: str) -> dict[str, Any] | None:
    store = await get_session_store()
    session_data = await store.get(session_id)
    if session_data and SESSION_KEY_SNAPSHOT in session_data:
        return session_data[SESSION_KEY_SNAPSHOT]
    return None


async def save_table(session_id: str, table: BlackjackTable) -> None:
    """Persist the table's bankroll and statistics."""
    store = await get_session_store()
    session_data = await store.get(session_id) or {}
    session_data[SESSION_KEY_SNAPSHOT] = table.snapshot()
    session_data[SESSION_KEY_LAST_ACTIVITY] = int(time.time())
    if SESSION_KEY_CREATED_AT not in session_data:
        session_data[SESSION_KEY_CREATED_AT] = int(time.time())
    await store.set(session_id, session_data)


async def get_table(session_id: str) -> BlackjackTable:
    """Get the session's table, rebuilding it from its snapshot if needed."""
    if session_id in _tables:
        return _tables[session_id]

    table = build_table()
    snapshot = await _load_snapshot(session_id)
    if snapshot is not None:
        try:
            table.restore(snapshot)
        except ValueError:
            logger.warning("Discarding malformed snapshot for session %s", session_id[:8])
    _tables[session_id] = table
    await save_table(session_id, table)
    return table


async def new_table(session_id: str) -> BlackjackTable:
    """Replace the session's table, carrying over bankroll and statistics."""
    await prune_expired_tables()
    previous = _tables.pop(session_id, None)
    table = build_table()
    snapshot = previous.snapshot() if previous else await _load_snapshot(session_id)
    if snapshot is not None:
        try:
            table.restore(snapshot)
        except ValueError:
            logger.warning("Discarding malformed snapshot for session %s", session_id[:8])
    _tables[session_id] = table
    await save_table(session_id, table)
    return table


def evict_table(session_id: str) -> None:
    """Drop the cached table; the next request rebuilds it from the store."""
    _tables.pop(session_id, None)
    _locks.pop(session_id, None)


async def prune_expired_tables() -> int:
    """
    Drop cached tables whose session has expired from the store.

    Tables busy with a command are left alone.

    Returns:
        Number of tables evicted
    """
    store = await get_session_store()
    evicted = 0
    for session_id in list(_tables):
        lock = _locks.get(session_id)
        if lock is not None and lock.locked():
            continue
        if not await store.exists(session_id):
            evict_table(session_id)
            evicted += 1
    if evicted:
        logger.info("Evicted %d expired table(s)", evicted)
    return evicted


def _card_response(card: Card) -> CardResponse:
    return CardResponse(rank=str(card.rank), suit=str(card.suit), value=card.points)


def _hand_response(hand: Hand) -> HandResponse:
    """Convert a Hand to HandResponse."""
    return HandResponse(
        cards=[_card_response(c) for c in hand.cards],
        value=hand.value,
        is_soft=hand.is_soft,
        is_blackjack=hand.is_blackjack,
        is_busted=hand.is_busted,
        is_finished=hand.is_finished,
        is_doubled=hand.is_doubled,
        is_split_hand=hand.is_split_hand,
        is_surrendered=hand.is_surrendered,
        bet=hand.bet,
    )


def table_state_response(table: BlackjackTable) -> TableStateResponse:
    """Convert table state to response."""
    upcard = table.dealer_upcard
    active_seat = table.active_seat
    insurance_seat = table.insurance_seat

    return TableStateResponse(
        state=table.state.name,
        bankroll=table.bankroll,
        total_wager=table.total_wager,
        last_bets=list(table.last_bets),
        seats=[
            SeatResponse(
                index=seat.index,
                bet=seat.bet,
                is_active=seat.is_active,
                is_finished=seat.is_finished,
                current_hand_index=seat.current_hand_index,
                hands=[_hand_response(h) for h in seat.hands],
            )
            for seat in table.seats
        ],
        dealer_hand=_hand_response(table.dealer_hand),
        dealer_showing=_card_response(upcard) if upcard else None,
        active_seat=active_seat.index if active_seat else None,
        active_hand_index=active_seat.current_hand_index if active_seat else None,
        insurance_seat=insurance_seat.index if insurance_seat else None,
        insurance=[
            InsuranceRecordResponse(
                seat=record.seat_index,
                cost=record.cost,
                decision=record.decision.value,
            )
            for record in table.insurance_records
        ],
        results=[HandResultResponse(**result.to_dict()) for result in table.results],
        available_actions=[action.value for action in table.available_actions()],
        shoe_cards_remaining=table.shoe.cards_remaining,
    )
