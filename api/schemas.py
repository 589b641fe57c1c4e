"""Pydantic schemas for API requests and responses."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# Table schemas
class BetRequest(BaseModel):
    """Request to add chips to a seat."""

    seat: int = Field(..., ge=1, description="Seat number (1-based)")
    amount: int = Field(..., ge=1, description="Bet amount")


class ActionRequest(BaseModel):
    """Request for player action."""

    seat: int = Field(..., ge=1)
    action: Literal["hit", "stand", "double", "split", "surrender"]


class InsuranceRequest(BaseModel):
    """Answer to an insurance offer."""

    seat: int = Field(..., ge=1)
    take: bool


class CardResponse(BaseModel):
    """Card representation."""

    model_config = ConfigDict(from_attributes=True)

    rank: str
    suit: str
    value: int


class HandResponse(BaseModel):
    """Hand representation."""

    cards: list[CardResponse]
    value: int
    is_soft: bool
    is_blackjack: bool
    is_busted: bool
    is_finished: bool = False
    is_doubled: bool = False
    is_split_hand: bool = False
    is_surrendered: bool = False
    bet: int = 0


class SeatResponse(BaseModel):
    """One betting position."""

    index: int
    bet: int
    is_active: bool
    is_finished: bool
    current_hand_index: int
    hands: list[HandResponse]


class InsuranceRecordResponse(BaseModel):
    """Insurance offer for one seat."""

    seat: int
    cost: int
    decision: Literal["undecided", "taken", "declined"]


class HandResultResponse(BaseModel):
    """Settlement of one hand."""

    seat: int
    hand: int
    outcome: Literal["win", "blackjack", "push", "loss", "bust", "surrender"]
    bet: int
    credit: int
    net: int


class TableStateResponse(BaseModel):
    """Current table state."""

    state: str
    bankroll: int
    total_wager: int
    last_bets: list[int]
    seats: list[SeatResponse]
    dealer_hand: HandResponse
    dealer_showing: CardResponse | None
    active_seat: int | None
    active_hand_index: int | None
    insurance_seat: int | None
    insurance: list[InsuranceRecordResponse]
    results: list[HandResultResponse]
    available_actions: list[str]
    shoe_cards_remaining: int


class AdviceResponse(BaseModel):
    """Strategy advice and odds for a hand."""

    seat: int
    recommendation: Literal["HIT", "STAND", "DOUBLE", "SPLIT", "ABANDON"]
    bust: int
    win: int
    push: int


# Statistics schemas
class StatisticsResponse(BaseModel):
    """Lifetime statistics with the current bankroll."""

    bankroll: int
    rounds_played: int
    hands_played: int
    wins: int
    losses: int
    pushes: int
    blackjacks: int
    busts: int
    surrenders: int
    hands_split: int
    hands_doubled: int
    insurances_taken: int
    net_winnings: int
    biggest_win: int
    biggest_loss: int
    win_rate: float


class SnapshotResponse(BaseModel):
    """Persisted part of a table."""

    bankroll: int
    statistics: dict[str, int]


class ResetBankrollRequest(BaseModel):
    """Request fresh credits."""

    amount: int | None = Field(default=None, ge=0)
