"""Multi-seat ENHC blackjack table with a round state machine."""

import logging
from random import Random
from typing import Any, Callable

from transitions import Machine

from enhc.cards import Card, Shoe
from enhc.errors import BlackjackError, IllegalAction, InvalidState
from enhc.game.events import EventEmitter, EventType, GameEvent
from enhc.game.insurance import InsuranceDecision, InsuranceRecord, insurance_cost
from enhc.game.pacing import Pacer, PaceStep
from enhc.game.state import Action, RoundState
from enhc.hand import DealerHand, Hand
from enhc.seat import Seat
from enhc.settlement import HandResult, settle_against_dealer_blackjack, settle_hand
from enhc.statistics.bankroll import DEFAULT_BANKROLL, Bankroll
from enhc.statistics.tracker import Statistics
from enhc.strategy.advisor import Advice, StrategyAdvisor
from enhc.strategy.rules import RuleSet

logger = logging.getLogger(__name__)


class BlackjackTable:
    """
    Blackjack table engine using a state machine.

    The table owns the shoe, the dealer hand, every seat and the bankroll.
    Commands either complete fully or raise a BlackjackError without touching
    any state. Presentation code subscribes to events and reads state through
    the query properties; it never mutates the table directly.
    """

    # State machine states
    STATES = [s.name.lower() for s in RoundState]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "_begin_play", "source": "betting", "dest": "playing"},
        {"trigger": "_offer_insurance", "source": "playing", "dest": "insurance"},
        {"trigger": "_close_insurance", "source": "insurance", "dest": "playing"},
        {"trigger": "_dealer_turn", "source": "playing", "dest": "dealer"},
        {"trigger": "_finish", "source": ["playing", "insurance", "dealer"], "dest": "finished"},
        {"trigger": "_new_round", "source": "finished", "dest": "betting"},
    ]

    def __init__(
        self,
        rules: RuleSet | None = None,
        initial_bankroll: int = DEFAULT_BANKROLL,
        rng: Random | None = None,
        pacer: Pacer | None = None,
        advisor: StrategyAdvisor | None = None,
    ) -> None:
        """
        Initialize a new table.

        Args:
            rules: Table rules (uses defaults if not provided)
            initial_bankroll: Starting credits
            rng: Random number generator for reproducible shoes
            pacer: Delays between steps (no delays if not provided)
            advisor: Strategy advisor for the advice query
        """
        self.rules = rules or RuleSet()
        self.shoe = Shoe(
            num_decks=self.rules.num_decks,
            reshuffle_threshold=self.rules.reshuffle_threshold,
            rng=rng,
        )
        self.seats = [
            Seat(index=i, max_hands=self.rules.max_hands_per_seat)
            for i in range(1, self.rules.num_seats + 1)
        ]
        self.dealer_hand = DealerHand()
        self.statistics = Statistics()
        self.last_bets: list[int] = [0] * self.rules.num_seats
        self._insurance: dict[int, InsuranceRecord] = {}
        self.results: list[HandResult] = []
        self.events = EventEmitter()
        self.pacer = pacer or Pacer()
        self.advisor = advisor or StrategyAdvisor()

        self._initial_bankroll = initial_bankroll
        self._bankroll = Bankroll(initial_bankroll)
        self._active_seat_index: int | None = None
        self._insurance_queue: list[int] = []

        # Initialize state machine
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="betting",
            auto_transitions=False,
            model_attribute="_machine_state",
            after_state_change="_emit_state_change",
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def state(self) -> RoundState:
        """Get current round state as enum."""
        return RoundState[self._machine_state.upper()]  # type: ignore[attr-defined]

    @property
    def bankroll(self) -> int:
        """Get the current credit balance."""
        return self._bankroll.balance

    @property
    def total_wager(self) -> int:
        """Sum of the bets currently placed on every seat."""
        return sum(seat.bet for seat in self.seats)

    @property
    def active_seats(self) -> list[Seat]:
        """Seats playing in the current round, in ascending order."""
        return [seat for seat in self.seats if seat.is_active]

    @property
    def active_seat(self) -> Seat | None:
        """Seat whose hand is being played, if any."""
        if self._active_seat_index is None:
            return None
        return self.seat(self._active_seat_index)

    @property
    def active_hand(self) -> Hand | None:
        """Hand that accepts the next player action, if any."""
        seat = self.active_seat
        return seat.current_hand if seat else None

    @property
    def dealer_upcard(self) -> Card | None:
        """The dealer's visible card."""
        return self.dealer_hand.upcard

    @property
    def insurance_seat(self) -> Seat | None:
        """Seat currently being offered insurance, if any."""
        if self.state != RoundState.INSURANCE or not self._insurance_queue:
            return None
        return self.seat(self._insurance_queue[0])

    @property
    def insurance_records(self) -> list[InsuranceRecord]:
        """Insurance offers of the current round, in seat order."""
        return [self._insurance[i] for i in sorted(self._insurance)]

    @property
    def cards_in_play(self) -> int:
        """Number of cards on the table."""
        player_cards = sum(len(hand) for seat in self.active_seats for hand in seat.hands)
        return player_cards + len(self.dealer_hand)

    def seat(self, index: int) -> Seat:
        """Get a seat by its 1-based index."""
        if not 1 <= index <= len(self.seats):
            raise IllegalAction(f"No seat {index}")
        return self.seats[index - 1]

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to table events."""
        self.events.subscribe(handler, event_type)

    def advice(self, seat_index: int | None = None) -> Advice | None:
        """
        Advice for a seat's current hand, the active seat by default.

        Returns None when there is no hand to advise on.
        """
        if self.state not in (RoundState.PLAYING, RoundState.INSURANCE):
            return None
        seat = self.seat(seat_index) if seat_index is not None else self.active_seat
        upcard = self.dealer_upcard
        if seat is None or upcard is None:
            return None
        hand = seat.current_hand
        if hand is None or not hand.cards:
            return None
        return self.advisor.advise(hand, upcard, cards_in_play=self.cards_in_play)

    def can(self, action: Action, seat_index: int | None = None) -> bool:
        """Check whether ``act`` would accept ``action`` right now."""
        if seat_index is None:
            if self._active_seat_index is None:
                return False
            seat_index = self._active_seat_index
        try:
            self._validate_action(seat_index, action)
        except BlackjackError:
            return False
        return True

    def available_actions(self) -> list[Action]:
        """Actions the active hand accepts right now."""
        return [action for action in Action if self.can(action)]

    # ------------------------------------------------------------------
    # Betting
    # ------------------------------------------------------------------

    def place_bet(self, seat_index: int, amount: int) -> None:
        """
        Add chips to a seat's bet.

        Args:
            seat_index: Seat to bet on (1-based)
            amount: Credits to add
        """
        self._require_state(RoundState.BETTING, "place a bet")
        seat = self.seat(seat_index)
        if amount <= 0:
            raise IllegalAction("Bet amount must be positive")
        self._bankroll.require(self.total_wager + amount)

        seat.bet += amount
        self.events.emit_new(EventType.BET_PLACED, seat=seat.index, amount=amount, bet=seat.bet)

    def clear_bet(self, seat_index: int) -> None:
        """Remove the bet from one seat."""
        self._require_state(RoundState.BETTING, "clear a bet")
        seat = self.seat(seat_index)
        seat.bet = 0
        self.events.emit_new(EventType.BET_CLEARED, seat=seat.index)

    def repeat_last_bets(self) -> None:
        """Put the previous round's bets back on every seat."""
        self._require_state(RoundState.BETTING, "repeat bets")
        total = sum(self.last_bets)
        if total == 0:
            raise IllegalAction("No previous bets to repeat")
        self._bankroll.require(total)

        for seat, bet in zip(self.seats, self.last_bets):
            seat.bet = bet
        self.events.emit_new(EventType.BETS_REPEATED, bets=list(self.last_bets))

    def clear_all_bets(self) -> None:
        """Remove the bets from every seat."""
        self._require_state(RoundState.BETTING, "clear bets")
        for seat in self.seats:
            seat.bet = 0
        self.events.emit_new(EventType.BETS_CLEARED)

    # ------------------------------------------------------------------
    # Round flow
    # ------------------------------------------------------------------

    def start_round(self) -> None:
        """Take the bets and deal the opening cards."""
        self._require_state(RoundState.BETTING, "start a round")
        total = self.total_wager
        if total == 0:
            raise InvalidState("No bets placed", self.state.name)
        if total > self.bankroll:
            raise InvalidState(
                f"Total wager {total} exceeds bankroll {self.bankroll}", self.state.name
            )

        self._bankroll.debit(total)
        self.last_bets = [seat.bet for seat in self.seats]
        self._insurance = {}
        self._insurance_queue = []
        self.results = []
        self.dealer_hand = DealerHand()
        self._active_seat_index = None
        for seat in self.seats:
            if seat.bet > 0:
                seat.open()
            else:
                seat.hands = []
                seat.is_active = False

        self._begin_play()
        self.events.emit_new(
            EventType.ROUND_STARTED,
            seats=[seat.index for seat in self.active_seats],
            wager=total,
            bankroll=self.bankroll,
        )
        logger.info("Round started: %d seat(s), wager %d", len(self.active_seats), total)

        self._distribute()

        if self.rules.insurance_allowed and self.dealer_hand.shows_ace:
            self._start_insurance()
        else:
            self._after_insurance()

    def _distribute(self) -> None:
        """
        Deal the opening cards, European no-hole-card style.

        One card to each active seat in order, one to the dealer, then a
        second card to each active seat. The dealer gets nothing more until
        the players are done.
        """
        seats = self.active_seats
        for seat in seats:
            self._deal_to_hand(seat, seat.hands[0])
        self._deal_to_dealer()
        for seat in seats:
            self._deal_to_hand(seat, seat.hands[0])

    def _start_insurance(self) -> None:
        self._insurance_queue = [seat.index for seat in self.active_seats]
        self._insurance = {
            seat.index: InsuranceRecord(seat.index, insurance_cost(seat.hands[0].bet))
            for seat in self.active_seats
        }
        self._offer_insurance()
        self._announce_insurance_offer()

    def _announce_insurance_offer(self) -> None:
        self.pacer.tick(PaceStep.INSURANCE_OFFER)
        seat_index = self._insurance_queue[0]
        self.events.emit_new(
            EventType.INSURANCE_OFFERED,
            seat=seat_index,
            cost=self._insurance[seat_index].cost,
        )

    def decide_insurance(self, seat_index: int, take: bool) -> None:
        """
        Answer the insurance offer for the seat currently being asked.

        Args:
            seat_index: Seat answering; must be the one being offered
            take: True to pay half the bet for insurance, False to decline
        """
        self._require_state(RoundState.INSURANCE, "decide on insurance")
        if not self._insurance_queue or self._insurance_queue[0] != seat_index:
            raise IllegalAction(
                f"Insurance is being offered to seat {self._insurance_queue[0]}, "
                f"not seat {seat_index}"
            )
        record = self._insurance[seat_index]

        if take:
            self._bankroll.debit(record.cost)
            record.decision = InsuranceDecision.TAKEN
            self.statistics.record_insurance()
            self.events.emit_new(EventType.INSURANCE_TAKEN, seat=seat_index, cost=record.cost)
        else:
            record.decision = InsuranceDecision.DECLINED
            self.events.emit_new(EventType.INSURANCE_DECLINED, seat=seat_index)

        self._insurance_queue.pop(0)
        if self._insurance_queue:
            self._announce_insurance_offer()
            return

        self._close_insurance()
        self._after_insurance()

    def _after_insurance(self) -> None:
        """Check the dealer for blackjack, stand naturals, hand over to the first player."""
        if self.dealer_hand.is_blackjack:
            self._settle_dealer_blackjack()
            return

        for seat in self.active_seats:
            hand = seat.hands[0]
            if hand.is_blackjack:
                hand.finish()
                seat.is_finished = True
                self.events.emit_new(EventType.PLAYER_BLACKJACK, seat=seat.index)

        self._activate_next_seat(after=0)

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def act(self, seat_index: int, action: Action | str) -> None:
        """
        Play an action on the active hand.

        Args:
            seat_index: Seat acting; must be the active seat
            action: One of hit, stand, double, split, surrender
        """
        try:
            action = Action(action)
        except ValueError:
            raise IllegalAction(f"Unknown action: {action!r}") from None
        seat, hand = self._validate_action(seat_index, action)

        handlers: dict[Action, Callable[[Seat, Hand], None]] = {
            Action.HIT: self._hit,
            Action.STAND: self._stand,
            Action.DOUBLE: self._double,
            Action.SPLIT: self._split,
            Action.SURRENDER: self._surrender,
        }
        handlers[action](seat, hand)

    def _validate_action(self, seat_index: int, action: Action) -> tuple[Seat, Hand]:
        """Raise unless ``action`` is legal for the seat right now."""
        self._require_state(RoundState.PLAYING, f"{action}")
        seat = self.seat(seat_index)
        if seat_index != self._active_seat_index:
            raise IllegalAction(f"Seat {seat_index} is not the active seat")
        hand = seat.current_hand
        if hand is None or hand.is_finished:
            raise IllegalAction(f"Seat {seat_index} has no hand to play")

        if action == Action.DOUBLE:
            if not hand.can_double:
                raise IllegalAction("Can only double on the first two cards")
            self._bankroll.require(hand.bet)
        elif action == Action.SPLIT:
            if not seat.can_split_current():
                raise IllegalAction("Hand cannot be split")
            self._bankroll.require(hand.bet)
        elif action == Action.SURRENDER:
            if len(hand) != 2:
                raise IllegalAction("Can only surrender on the first two cards")
            if seat.has_split:
                raise IllegalAction("Cannot surrender after splitting")
            if self.dealer_hand.shows_ace:
                raise IllegalAction("Cannot surrender against a dealer Ace")
        return seat, hand

    def _hit(self, seat: Seat, hand: Hand) -> None:
        self._deal_to_hand(seat, hand)
        self.events.emit_new(
            EventType.PLAYER_HIT, seat=seat.index, hand=seat.current_hand_index, value=hand.value
        )
        if hand.is_busted:
            self.events.emit_new(
                EventType.PLAYER_BUSTS, seat=seat.index, hand=seat.current_hand_index
            )
            hand.finish()
            self._advance(seat)

    def _stand(self, seat: Seat, hand: Hand) -> None:
        hand.finish()
        self.events.emit_new(
            EventType.PLAYER_STAND, seat=seat.index, hand=seat.current_hand_index, value=hand.value
        )
        self._advance(seat)

    def _double(self, seat: Seat, hand: Hand) -> None:
        self._bankroll.debit(hand.bet)
        hand.bet *= 2
        hand.is_doubled = True
        self.statistics.record_double()

        self._deal_to_hand(seat, hand)
        self.events.emit_new(
            EventType.PLAYER_DOUBLE,
            seat=seat.index,
            hand=seat.current_hand_index,
            value=hand.value,
            bet=hand.bet,
        )
        if hand.is_busted:
            self.events.emit_new(
                EventType.PLAYER_BUSTS, seat=seat.index, hand=seat.current_hand_index
            )
        hand.finish()
        self._advance(seat)

    def _split(self, seat: Seat, hand: Hand) -> None:
        self._bankroll.debit(hand.bet)
        new_hand = seat.split_current(self._draw)
        self.statistics.record_split()
        self.events.emit_new(
            EventType.PLAYER_SPLIT,
            seat=seat.index,
            hand=seat.current_hand_index,
            cards=[str(c) for c in hand.cards],
            new_cards=[str(c) for c in new_hand.cards],
            hands=len(seat.hands),
        )
        if hand.is_finished:
            self._advance(seat)

    def _surrender(self, seat: Seat, hand: Hand) -> None:
        refund = hand.bet // 2
        self._bankroll.credit(refund)
        hand.is_surrendered = True
        hand.finish()
        self.events.emit_new(EventType.PLAYER_SURRENDER, seat=seat.index, refund=refund)
        self._advance(seat)

    def _advance(self, seat: Seat) -> None:
        """Move to the next unfinished hand of the seat, else the next seat."""
        next_index = seat.next_unfinished_hand()
        if next_index is not None:
            seat.current_hand_index = next_index
            self._emit_active_hand(seat)
            return

        seat.is_finished = True
        self._activate_next_seat(after=seat.index)

    def _activate_next_seat(self, after: int) -> None:
        """Activate the first unfinished hand on a seat past ``after``, else the dealer."""
        for seat in self.active_seats:
            if seat.index <= after or seat.is_finished:
                continue
            hand_index = seat.first_unfinished_hand()
            if hand_index is None:
                seat.is_finished = True
                continue
            seat.current_hand_index = hand_index
            self._active_seat_index = seat.index
            self._emit_active_hand(seat)
            return

        self._active_seat_index = None
        self._play_dealer()

    def _emit_active_hand(self, seat: Seat) -> None:
        self.events.emit_new(
            EventType.ACTIVE_HAND_CHANGED, seat=seat.index, hand=seat.current_hand_index
        )

    # ------------------------------------------------------------------
    # Dealer and settlement
    # ------------------------------------------------------------------

    def _play_dealer(self) -> None:
        """Dealer draws to 17, standing on soft 17."""
        self._dealer_turn()

        while self.dealer_hand.value < self.rules.dealer_stands_on:
            self.pacer.tick(PaceStep.DEALER_DRAW)
            self._deal_to_dealer()
            self.events.emit_new(EventType.DEALER_HITS, value=self.dealer_hand.value)

        if self.dealer_hand.is_blackjack:
            self.events.emit_new(EventType.DEALER_BLACKJACK)
        elif self.dealer_hand.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, value=self.dealer_hand.value)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, value=self.dealer_hand.value)
        self._settle()

    def _settle(self) -> None:
        """Pay every hand against the dealer's final total."""
        dealer_value = self.dealer_hand.value
        dealer_busted = self.dealer_hand.is_busted

        self._finish()
        self._settle_insurance()

        for seat in self.active_seats:
            for hand_index, hand in enumerate(seat.hands):
                self._record_result(
                    settle_hand(
                        seat.index,
                        hand_index,
                        hand,
                        dealer_value,
                        dealer_busted,
                        self.rules.blackjack_payout,
                    )
                )
        self._end_round()

    def _settle_insurance(self) -> None:
        """Insurance pays 2:1 when the dealer holds blackjack and is lost otherwise."""
        dealer_blackjack = self.dealer_hand.is_blackjack
        for record in self._insurance.values():
            if not record.bet:
                continue
            if dealer_blackjack:
                self._bankroll.credit(record.payout)
                self.events.emit_new(
                    EventType.INSURANCE_WINS, seat=record.seat_index, amount=record.payout
                )
            else:
                self.events.emit_new(
                    EventType.INSURANCE_LOSES, seat=record.seat_index, amount=record.bet
                )

    def _settle_dealer_blackjack(self) -> None:
        """Dealer blackjack on the reveal: naturals push, the rest lose."""
        self.events.emit_new(EventType.DEALER_BLACKJACK)

        self._finish()
        self._settle_insurance()

        for seat in self.active_seats:
            seat.is_finished = True
            for hand_index, hand in enumerate(seat.hands):
                self._record_result(settle_against_dealer_blackjack(seat.index, hand_index, hand))
        self._end_round()

    def _record_result(self, result: HandResult) -> None:
        self.pacer.tick(PaceStep.SETTLE)
        self._bankroll.credit(result.credit)
        self.statistics.record_hand(result)
        self.results.append(result)
        self.events.emit_new(EventType.HAND_SETTLED, **result.to_dict())

    def _end_round(self) -> None:
        self._active_seat_index = None
        self.statistics.record_round()
        net = sum(result.net for result in self.results)
        self.events.emit_new(EventType.ROUND_ENDED, net=net, bankroll=self.bankroll)
        logger.info(
            "Round finished: dealer %d, net %+d, bankroll %d",
            self.dealer_hand.value,
            net,
            self.bankroll,
        )

    def advance_round(self) -> bool:
        """
        Clear the finished round and return to betting.

        Calling it again once back in betting does nothing.

        Returns:
            True if a round was cleared, False if the table was already betting
        """
        if self.state == RoundState.BETTING:
            return False
        self._require_state(RoundState.FINISHED, "start a new round")

        for seat in self.seats:
            seat.reset()
        self.dealer_hand = DealerHand()
        self._insurance = {}
        self._insurance_queue = []
        self.results = []
        self._active_seat_index = None

        self._new_round()
        self.events.emit_new(EventType.ROUND_RESET, bankroll=self.bankroll)
        return True

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def reset_bankroll(self, amount: int | None = None) -> None:
        """Give the player a fresh bankroll; bets on the table are cleared."""
        self._require_state(RoundState.BETTING, "reset the bankroll")
        amount = self._initial_bankroll if amount is None else amount
        self._bankroll.reset(amount)
        for seat in self.seats:
            seat.bet = 0
        self.events.emit_new(EventType.BANKROLL_RESET, bankroll=self.bankroll)

    def reset_statistics(self) -> None:
        """Zero all statistics."""
        self._require_state(RoundState.BETTING, "reset statistics")
        self.statistics = Statistics()
        self.events.emit_new(EventType.STATISTICS_RESET)

    def snapshot(self) -> dict[str, Any]:
        """Serializable bankroll and statistics for the persistence layer."""
        return {
            "bankroll": self.bankroll,
            "statistics": self.statistics.to_dict(),
        }

    def restore(self, snapshot: dict[str, Any]) -> None:
        """
        Load bankroll and statistics saved by ``snapshot``.

        Only allowed while betting with no chips on the table. Nothing changes
        if the snapshot is malformed.
        """
        self._require_state(RoundState.BETTING, "restore a snapshot")
        if self.total_wager:
            raise InvalidState("Cannot restore while bets are placed", self.state.name)

        bankroll = snapshot.get("bankroll", self._initial_bankroll)
        if isinstance(bankroll, bool) or not isinstance(bankroll, int) or bankroll < 0:
            raise ValueError(f"Invalid bankroll in snapshot: {bankroll!r}")
        statistics = Statistics.from_dict(snapshot.get("statistics", {}))

        self._bankroll.reset(bankroll)
        self.statistics = statistics

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_state(self, state: RoundState, what: str) -> None:
        if self.state != state:
            logger.debug("Rejected %r in state %s", what, self.state.name)
            raise InvalidState(f"Cannot {what} while {self.state}", self.state.name)

    def _draw(self) -> Card:
        """Draw from the shoe, announcing a reshuffle if one happens."""
        reshuffling = self.shoe.needs_reshuffle
        card = self.shoe.draw()
        if reshuffling:
            logger.debug("Shoe rebuilt and reshuffled")
            self.events.emit_new(EventType.SHOE_SHUFFLED, cards_remaining=self.shoe.cards_remaining)
        return card

    def _deal_to_hand(self, seat: Seat, hand: Hand) -> Card:
        self.pacer.tick(PaceStep.DEAL)
        card = self._draw()
        hand.add_card(card)
        self.events.emit_new(
            EventType.CARD_DEALT,
            target="seat",
            seat=seat.index,
            hand=seat.hands.index(hand),
            card=str(card),
            value=hand.value,
        )
        return card

    def _deal_to_dealer(self) -> Card:
        self.pacer.tick(PaceStep.DEAL)
        card = self._draw()
        self.dealer_hand.add_card(card)
        self.events.emit_new(
            EventType.CARD_DEALT,
            target="dealer",
            card=str(card),
            value=self.dealer_hand.value,
        )
        return card

    def _emit_state_change(self) -> None:
        self.events.emit_new(EventType.STATE_CHANGED, state=self.state.name)
