"""Statistics API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from api.schemas import ResetBankrollRequest, SnapshotResponse, StatisticsResponse
from api.session import require_session
from api.tables import get_table, save_table, table_lock
from enhc.game import BlackjackTable

router = APIRouter()

SessionID = Annotated[str, Depends(require_session)]


def _statistics_response(table: BlackjackTable) -> StatisticsResponse:
    stats = table.statistics
    return StatisticsResponse(
        bankroll=table.bankroll,
        win_rate=stats.win_rate,
        **stats.to_dict(),
    )


@router.get("/")
async def get_statistics(session_id: SessionID) -> StatisticsResponse:
    """Lifetime statistics and bankroll for the session."""
    table = await get_table(session_id)
    return _statistics_response(table)


@router.get("/snapshot")
async def get_snapshot(session_id: SessionID) -> SnapshotResponse:
    """The persisted bankroll and statistics."""
    table = await get_table(session_id)
    return SnapshotResponse(**table.snapshot())


@router.post("/reset-stats")
async def reset_statistics(session_id: SessionID) -> StatisticsResponse:
    """Zero all statistics (between rounds only)."""
    async with table_lock(session_id):
        table = await get_table(session_id)
        table.reset_statistics()
        await save_table(session_id, table)
        return _statistics_response(table)


@router.post("/reset-bankroll")
async def reset_bankroll(
    session_id: SessionID,
    request: ResetBankrollRequest | None = None,
) -> StatisticsResponse:
    """Give the player fresh credits (between rounds only)."""
    async with table_lock(session_id):
        table = await get_table(session_id)
        table.reset_bankroll(request.amount if request else None)
        await save_table(session_id, table)
        return _statistics_response(table)
