"""WebSocket connection management with table engine integration."""

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool

from api.session import extract_session_id
from api.tables import get_table, new_table, save_table, table_lock, table_state_response
from enhc.errors import BlackjackError
from enhc.game import BlackjackTable, GameEvent
from enhc.game.events import EventHandler

logger = logging.getLogger(__name__)

router = APIRouter()

# Maximum number of undelivered events per connection
EVENT_QUEUE_SIZE = 1000


class ConnectionManager:
    """Manage WebSocket connections and their event queues."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._event_queues: dict[str, asyncio.Queue[GameEvent]] = {}
        self._subscribed: dict[str, tuple[BlackjackTable, EventHandler]] = {}

    async def connect(self, websocket: WebSocket, session_id: str) -> None:
        """Accept and register a new connection."""
        await websocket.accept()
        self._connections[session_id] = websocket
        self._event_queues[session_id] = asyncio.Queue(maxsize=EVENT_QUEUE_SIZE)

    def disconnect(self, session_id: str) -> None:
        """Remove a connection and stop listening to its table."""
        self._connections.pop(session_id, None)
        self._event_queues.pop(session_id, None)
        self._unwatch(session_id)

    def watch(self, session_id: str, table: BlackjackTable) -> None:
        """
        Forward the table's events to the session's queue (once per table).

        Commands run in a worker thread, so events are handed back to the
        event loop before touching the queue.
        """
        subscribed = self._subscribed.get(session_id)
        if subscribed is not None and subscribed[0] is table:
            return
        self._unwatch(session_id)

        loop = asyncio.get_running_loop()

        def handler(event: GameEvent) -> None:
            loop.call_soon_threadsafe(self._queue_event, session_id, event)

        table.subscribe(handler)
        self._subscribed[session_id] = (table, handler)

    def _unwatch(self, session_id: str) -> None:
        subscribed = self._subscribed.pop(session_id, None)
        if subscribed is not None:
            table, handler = subscribed
            table.events.unsubscribe(handler)

    def _queue_event(self, session_id: str, event: GameEvent) -> None:
        """Queue an event for async delivery."""
        queue = self._event_queues.get(session_id)
        if queue is None:
            return
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Event queue full for session %s, dropping %s", session_id[:8], event)

    async def next_event(self, session_id: str) -> GameEvent:
        """Wait for the next event of the session."""
        return await self._event_queues[session_id].get()

    async def send_message(self, session_id: str, message: dict[str, Any]) -> None:
        """Send a message to a specific session."""
        websocket = self._connections.get(session_id)
        if websocket is not None:
            await websocket.send_json(message)

    @property
    def active_connections(self) -> int:
        """Return number of active connections."""
        return len(self._connections)


# Global connection manager
manager = ConnectionManager()


def _state_message(table: BlackjackTable) -> dict[str, Any]:
    return {"type": "state_update", "state": table_state_response(table).model_dump()}


async def _send_error(session_id: str, error: str, message: str) -> None:
    await manager.send_message(session_id, {"type": "error", "error": error, "message": message})


def _dispatch(table: BlackjackTable, message: dict[str, Any]) -> None:
    """Apply one client command to the table."""
    msg_type = message.get("type")

    if msg_type == "bet":
        table.place_bet(int(message["seat"]), int(message["amount"]))
    elif msg_type == "clear_bet":
        table.clear_bet(int(message["seat"]))
    elif msg_type == "clear_bets":
        table.clear_all_bets()
    elif msg_type == "repeat_bets":
        table.repeat_last_bets()
    elif msg_type == "deal":
        table.start_round()
    elif msg_type == "action":
        table.act(int(message["seat"]), str(message["action"]))
    elif msg_type == "insurance":
        table.decide_insurance(int(message["seat"]), bool(message["take"]))
    elif msg_type == "next_round":
        table.advance_round()
    else:
        raise ValueError(f"Unknown message type: {msg_type}")


@router.websocket("/table/{session_id}")
async def table_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint for real-time table updates.

    Messages from client:
    - {"type": "bet", "seat": 1, "amount": 100}
    - {"type": "clear_bet", "seat": 1} / {"type": "clear_bets"} / {"type": "repeat_bets"}
    - {"type": "deal"}
    - {"type": "action", "seat": 1, "action": "hit"|"stand"|"double"|"split"|"surrender"}
    - {"type": "insurance", "seat": 1, "take": true}
    - {"type": "next_round"}
    - {"type": "new_table"}
    - {"type": "get_state"}

    Messages to client:
    - {"type": "state_update", "state": {...}}
    - {"type": "event", "event_type": "...", "data": {...}, "timestamp": "..."}
    - {"type": "error", "error": "...", "message": "..."}
    """
    if extract_session_id(session_id) is None:
        await websocket.close(code=4401)
        return

    await manager.connect(websocket, session_id)
    table = await get_table(session_id)
    manager.watch(session_id, table)
    await manager.send_message(session_id, _state_message(table))

    async def forward_events() -> None:
        """Send queued table events to the client as they arrive."""
        while True:
            event = await manager.next_event(session_id)
            await manager.send_message(session_id, {"type": "event", **event.to_dict()})

    event_task = asyncio.create_task(forward_events())

    try:
        while True:
            try:
                message = json.loads(await websocket.receive_text())
            except json.JSONDecodeError as exc:
                await _send_error(session_id, "InvalidMessage", f"Malformed JSON: {exc}")
                continue
            if not isinstance(message, dict):
                await _send_error(session_id, "InvalidMessage", "Messages must be JSON objects")
                continue
            msg_type = message.get("type")

            async with table_lock(session_id):
                if msg_type == "new_table":
                    table = await new_table(session_id)
                    manager.watch(session_id, table)
                elif msg_type != "get_state":
                    table = await get_table(session_id)
                    manager.watch(session_id, table)
                    try:
                        await run_in_threadpool(_dispatch, table, message)
                    except (BlackjackError, ValueError, KeyError) as exc:
                        await _send_error(session_id, type(exc).__name__, str(exc))
                        continue
                    await save_table(session_id, table)

            # Let queued events go out before the state they produced
            await asyncio.sleep(0)
            await manager.send_message(session_id, _state_message(table))

    except WebSocketDisconnect:
        logger.debug("WebSocket for session %s disconnected", session_id[:8])
    finally:
        event_task.cancel()
        try:
            await event_task
        except asyncio.CancelledError:
            pass
        manager.disconnect(session_id)
