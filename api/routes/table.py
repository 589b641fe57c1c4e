"""Table API endpoints."""

from typing import Annotated, Callable

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.concurrency import run_in_threadpool

from api.schemas import (
    ActionRequest,
    AdviceResponse,
    BetRequest,
    InsuranceRequest,
    TableStateResponse,
)
from api.session import create_session, extract_session_id, require_session
from api.tables import get_table, new_table, save_table, table_lock, table_state_response
from enhc.game import BlackjackTable

router = APIRouter()

SessionID = Annotated[str, Depends(require_session)]


async def _run(session_id: str, command: Callable[[BlackjackTable], object]) -> TableStateResponse:
    """Run one command on the session's table, persist it and return the new state."""
    async with table_lock(session_id):
        table = await get_table(session_id)
        # Paced commands sleep between steps; keep them off the event loop
        await run_in_threadpool(command, table)
        await save_table(session_id, table)
        return table_state_response(table)


@router.post("/new")
async def new_game(
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> dict[str, str]:
    """Create a session (or reuse a valid one) with a fresh table."""
    if session_id is None or extract_session_id(session_id) is None:
        session_id = await create_session()

    async with table_lock(session_id):
        await new_table(session_id)

    return {"session_id": session_id}


@router.get("/state")
async def get_state(session_id: SessionID) -> TableStateResponse:
    """Get current table state."""
    table = await get_table(session_id)
    return table_state_response(table)


@router.post("/bet")
async def place_bet(request: BetRequest, session_id: SessionID) -> TableStateResponse:
    """Add chips to a seat."""
    return await _run(session_id, lambda t: t.place_bet(request.seat, request.amount))


@router.delete("/bet/{seat}")
async def clear_bet(seat: int, session_id: SessionID) -> TableStateResponse:
    """Remove the bet from one seat."""
    return await _run(session_id, lambda t: t.clear_bet(seat))


@router.post("/bets/repeat")
async def repeat_bets(session_id: SessionID) -> TableStateResponse:
    """Put last round's bets back on the table."""
    return await _run(session_id, lambda t: t.repeat_last_bets())


@router.delete("/bets")
async def clear_bets(session_id: SessionID) -> TableStateResponse:
    """Remove every bet."""
    return await _run(session_id, lambda t: t.clear_all_bets())


@router.post("/deal")
async def deal(session_id: SessionID) -> TableStateResponse:
    """Start the round."""
    return await _run(session_id, lambda t: t.start_round())


@router.post("/action")
async def player_action(request: ActionRequest, session_id: SessionID) -> TableStateResponse:
    """Execute a player action on the active hand."""
    return await _run(session_id, lambda t: t.act(request.seat, request.action))


@router.post("/insurance")
async def insurance(request: InsuranceRequest, session_id: SessionID) -> TableStateResponse:
    """Answer the insurance offer for the seat being asked."""
    return await _run(session_id, lambda t: t.decide_insurance(request.seat, request.take))


@router.post("/next-round")
async def next_round(session_id: SessionID) -> TableStateResponse:
    """Clear the finished round and go back to betting."""
    return await _run(session_id, lambda t: t.advance_round())


@router.get("/advice")
async def get_advice(session_id: SessionID, seat: int | None = None) -> AdviceResponse:
    """Strategy advice for a seat's current hand (the active seat by default)."""
    table = await get_table(session_id)
    advice = table.advice(seat)
    if advice is None:
        raise HTTPException(status_code=404, detail="No hand to advise on")
    seat_index = seat if seat is not None else table.active_seat.index  # type: ignore[union-attr]
    return AdviceResponse(seat=seat_index, **advice.to_dict())
