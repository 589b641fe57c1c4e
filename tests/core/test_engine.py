"""Tests for the table engine and its round state machine."""

from random import Random

import pytest

from conftest import stack_shoe
from enhc.errors import IllegalAction, InsufficientFunds, InvalidState
from enhc.game import Action, BlackjackTable, EventType, Pacer, PaceStep, RoundState
from enhc.game.insurance import InsuranceDecision
from enhc.settlement import Outcome


def deal(table, bets, *names):
    """Place ``bets`` ({seat: amount}), stack the shoe and start the round."""
    for seat, amount in bets.items():
        table.place_bet(seat, amount)
    stack_shoe(table, *names)
    table.start_round()


def event_types(table):
    return [event.event_type for event in table.events.history]


class TestBetting:
    """Tests for the betting phase."""

    def test_initial_state(self, table):
        assert table.state == RoundState.BETTING
        assert table.bankroll == 1000
        assert len(table.seats) == 6
        assert table.total_wager == 0

    def test_place_bet_accumulates(self, table):
        table.place_bet(2, 10)
        table.place_bet(2, 25)
        assert table.seat(2).bet == 35
        assert table.total_wager == 35
        assert table.bankroll == 1000

    def test_total_wager_cannot_exceed_bankroll(self, table):
        table.place_bet(1, 600)
        with pytest.raises(InsufficientFunds):
            table.place_bet(2, 401)
        assert table.seat(2).bet == 0

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_bet(self, table, amount):
        with pytest.raises(IllegalAction):
            table.place_bet(1, amount)

    @pytest.mark.parametrize("seat", [0, 7])
    def test_unknown_seat(self, table, seat):
        with pytest.raises(IllegalAction):
            table.place_bet(seat, 10)

    def test_clear_bets(self, table):
        table.place_bet(1, 10)
        table.place_bet(4, 10)
        table.clear_bet(1)
        assert table.total_wager == 10
        table.clear_all_bets()
        assert table.total_wager == 0

    def test_start_round_without_bets(self, table):
        with pytest.raises(InvalidState):
            table.start_round()
        assert table.state == RoundState.BETTING

    def test_repeat_without_history(self, table):
        with pytest.raises(IllegalAction):
            table.repeat_last_bets()

    def test_betting_rejected_mid_round(self, table):
        deal(table, {1: 10}, "10S", "7H", "9C")
        with pytest.raises(InvalidState):
            table.place_bet(2, 10)
        with pytest.raises(InvalidState):
            table.clear_all_bets()


class TestDistribution:
    """Tests for the no-hole-card deal."""

    def test_deal_order(self, table):
        """Each seat, the dealer's single card, then each seat again."""
        deal(table, {1: 10, 3: 10}, "2S", "3S", "9H", "4S", "5S")
        assert [str(c) for c in table.seat(1).hands[0].cards] == ["2♠", "4♠"]
        assert [str(c) for c in table.seat(3).hands[0].cards] == ["3♠", "5♠"]
        assert [str(c) for c in table.dealer_hand.cards] == ["9♥"]
        assert table.active_seat.index == 1
        assert not table.seat(2).is_active

    def test_bets_taken_at_deal(self, table):
        deal(table, {1: 100, 2: 50}, "2S", "3S", "9H", "4S", "5S")
        assert table.bankroll == 850
        assert table.last_bets == [100, 50, 0, 0, 0, 0]

    def test_reshuffle_before_deal(self, table):
        table.place_bet(1, 10)
        table.shoe._cards = table.shoe._cards[:5]
        table.start_round()
        assert EventType.SHOE_SHUFFLED in event_types(table)
        assert table.shoe.reshuffle_count == 1

    def test_full_table_never_draws_below_threshold(self, table):
        """Six seats dealt from a nearly spent shoe still draw from 20 or more cards."""
        shoe = table.shoe
        shoe._cards = shoe._cards[: shoe.reshuffle_threshold + 5]
        draw = shoe.draw
        available = []

        def counting_draw():
            card = draw()
            available.append(shoe.cards_remaining + 1)
            return card

        shoe.draw = counting_draw
        for seat in range(1, 7):
            table.place_bet(seat, 10)
        table.start_round()

        assert len(available) == 13
        assert min(available) >= shoe.reshuffle_threshold
        assert shoe.reshuffle_count == 1
        assert all(len(seat.hands[0].cards) == 2 for seat in table.seats)


class TestPlayerActions:
    """Tests for hit, stand, double, split and surrender."""

    def test_natural_pays_three_to_two(self, table):
        deal(table, {1: 100}, "AS", "9H", "KH", "8C")
        assert table.state == RoundState.FINISHED
        assert table.results[0].outcome == Outcome.BLACKJACK
        assert table.bankroll == 1150

    def test_hit_and_bust(self, table):
        deal(table, {1: 100}, "10S", "7H", "6C", "KD", "10D")
        table.act(1, Action.HIT)
        assert table.state == RoundState.FINISHED
        assert table.seat(1).hands[0].is_busted
        assert table.results[0].outcome == Outcome.BUST
        assert table.bankroll == 900
        assert table.statistics.busts == 1

    def test_stand_and_dealer_busts(self, table):
        deal(table, {1: 100}, "10S", "6H", "9C", "10D", "9S")
        table.act(1, "stand")
        assert table.dealer_hand.is_busted
        assert table.results[0].outcome == Outcome.WIN
        assert table.bankroll == 1100

    def test_dealer_stands_on_soft_17(self, table):
        deal(table, {1: 100}, "10S", "AH", "8C")
        table.decide_insurance(1, take=False)
        stack_shoe(table, "6D")
        table.act(1, Action.STAND)
        assert table.dealer_hand.value == 17
        assert table.dealer_hand.is_soft
        assert len(table.dealer_hand) == 2
        assert table.results[0].outcome == Outcome.WIN

    def test_double(self, table):
        deal(table, {1: 100}, "6S", "5H", "5C", "10D", "10C", "10H")
        table.act(1, Action.DOUBLE)
        hand = table.seat(1).hands[0]
        assert hand.is_doubled
        assert hand.bet == 200
        assert len(hand) == 3
        assert table.results[0].credit == 400
        assert table.bankroll == 1200
        assert table.statistics.hands_doubled == 1

    def test_double_without_funds_changes_nothing(self):
        table = BlackjackTable(initial_bankroll=150, rng=Random(1))
        deal(table, {1: 100}, "6S", "5H", "5C")
        with pytest.raises(InsufficientFunds):
            table.act(1, Action.DOUBLE)
        hand = table.active_hand
        assert hand.bet == 100
        assert len(hand) == 2
        assert table.bankroll == 50
        assert table.state == RoundState.PLAYING

    def test_double_after_hit_rejected(self, table):
        deal(table, {1: 10}, "2S", "5H", "3C", "2D")
        table.act(1, Action.HIT)
        with pytest.raises(IllegalAction):
            table.act(1, Action.DOUBLE)

    def test_split_eights(self, table):
        """8-8 splits into two hands carrying the bet, the first one active."""
        deal(table, {1: 100}, "8S", "10H", "8H", "3C", "KD")
        table.act(1, Action.SPLIT)
        seat = table.seat(1)
        assert len(seat.hands) == 2
        assert [h.bet for h in seat.hands] == [100, 100]
        assert table.active_hand is seat.hands[0]
        assert seat.hands[0].value == 11
        assert seat.hands[1].value == 18
        assert table.bankroll == 800
        assert table.statistics.hands_split == 1

    def test_split_hands_played_in_order(self, table):
        deal(table, {1: 100}, "8S", "10H", "8H", "3C", "KD")
        table.act(1, Action.SPLIT)
        table.act(1, Action.STAND)
        assert table.active_seat.index == 1
        assert table.seat(1).current_hand_index == 1
        table.act(1, Action.STAND)
        assert table.state == RoundState.FINISHED
        assert len(table.results) == 2

    def test_split_aces_get_one_card(self, table):
        deal(table, {1: 100}, "AS", "9H", "AH", "KC", "9D", "8C")
        table.act(1, Action.SPLIT)
        assert table.state == RoundState.FINISHED
        first, second = table.results
        assert first.outcome == Outcome.WIN
        assert first.net == 100
        assert second.outcome == Outcome.WIN
        assert table.bankroll == 1200

    def test_split_limit(self, table):
        deal(table, {1: 10}, "8S", "10H", "8H", "8C", "2D", "8D", "3D")
        table.act(1, Action.SPLIT)
        table.act(1, Action.SPLIT)
        assert len(table.seat(1).hands) == 3
        assert table.active_hand.can_split
        assert not table.can(Action.SPLIT)
        with pytest.raises(IllegalAction):
            table.act(1, Action.SPLIT)

    def test_surrender(self, table):
        deal(table, {1: 100}, "10S", "9H", "6C", "8C")
        table.act(1, Action.SURRENDER)
        assert table.state == RoundState.FINISHED
        assert table.results[0].outcome == Outcome.SURRENDER
        assert table.bankroll == 950
        assert table.statistics.surrenders == 1

    def test_no_surrender_against_ace(self, table):
        deal(table, {1: 100}, "10S", "AH", "6C")
        table.decide_insurance(1, take=False)
        with pytest.raises(IllegalAction):
            table.act(1, Action.SURRENDER)

    def test_no_surrender_after_split(self, table):
        deal(table, {1: 10}, "8S", "10H", "8H", "3C", "2D")
        table.act(1, Action.SPLIT)
        with pytest.raises(IllegalAction):
            table.act(1, Action.SURRENDER)

    def test_only_active_seat_may_act(self, table):
        deal(table, {1: 10, 2: 10}, "10S", "10C", "7H", "6C", "6D")
        with pytest.raises(IllegalAction):
            table.act(2, Action.HIT)
        table.act(1, Action.STAND)
        assert table.active_seat.index == 2

    def test_action_outside_playing(self, table):
        with pytest.raises(InvalidState):
            table.act(1, Action.HIT)

    def test_unknown_action(self, table):
        deal(table, {1: 10}, "10S", "7H", "6C")
        with pytest.raises(IllegalAction):
            table.act(1, "fold")

    def test_available_actions_for_pair(self, table):
        deal(table, {1: 10}, "8S", "10H", "8H")
        assert set(table.available_actions()) == set(Action)

    def test_available_actions_after_hit(self, table):
        deal(table, {1: 10}, "2S", "10H", "3H", "4C")
        table.act(1, Action.HIT)
        assert table.available_actions() == [Action.HIT, Action.STAND]


class TestInsurance:
    """Tests for the insurance phase."""

    def test_offered_only_against_ace(self, table):
        deal(table, {1: 10}, "10S", "9H", "6C")
        assert table.state == RoundState.PLAYING
        assert EventType.INSURANCE_OFFERED not in event_types(table)

    def test_offered_seat_by_seat(self, table):
        deal(table, {1: 50, 2: 20}, "10S", "9S", "AH", "9C", "7C")
        assert table.state == RoundState.INSURANCE
        assert table.insurance_seat.index == 1
        with pytest.raises(IllegalAction):
            table.decide_insurance(2, take=True)
        table.decide_insurance(1, take=True)
        assert table.insurance_seat.index == 2
        table.decide_insurance(2, take=False)
        assert table.state == RoundState.PLAYING
        decisions = [r.decision for r in table.insurance_records]
        assert decisions == [InsuranceDecision.TAKEN, InsuranceDecision.DECLINED]

    def test_insurance_pays_two_to_one(self, table):
        """A 25 stake returns 50 when the dealer makes blackjack."""
        deal(table, {1: 50}, "10S", "AH", "9C")
        table.decide_insurance(1, take=True)
        assert table.bankroll == 925
        stack_shoe(table, "KD")
        table.act(1, Action.STAND)
        assert table.dealer_hand.is_blackjack
        assert table.results[0].outcome == Outcome.LOSS
        assert table.bankroll == 975

    def test_insurance_lost_when_dealer_misses(self, table):
        deal(table, {1: 50}, "10S", "AH", "9C")
        table.decide_insurance(1, take=True)
        stack_shoe(table, "6D")
        table.act(1, Action.STAND)
        assert table.results[0].outcome == Outcome.WIN
        assert table.bankroll == 1000 - 50 - 25 + 100
        assert EventType.INSURANCE_LOSES in event_types(table)

    def test_natural_pushes_dealer_blackjack(self, table):
        deal(table, {1: 100}, "AS", "AH", "KH", "QD")
        table.decide_insurance(1, take=False)
        assert table.state == RoundState.FINISHED
        assert table.results[0].outcome == Outcome.PUSH
        assert table.bankroll == 1000

    def test_three_card_twenty_one_pushes_dealer_blackjack(self, table):
        """A drawn dealer blackjack is compared by total like any other 21."""
        deal(table, {1: 100}, "5S", "AH", "6C", "10D", "KD")
        table.decide_insurance(1, take=False)
        table.act(1, Action.HIT)
        table.act(1, Action.STAND)
        assert table.dealer_hand.is_blackjack
        result = table.results[0]
        assert result.outcome == Outcome.PUSH
        assert result.credit == 100
        assert result.net == 0
        assert table.bankroll == 1000
        assert EventType.DEALER_BLACKJACK in event_types(table)

    def test_insured_twenty_one_pushes_and_collects(self, table):
        deal(table, {1: 100}, "5S", "AH", "6C", "10D", "KD")
        table.decide_insurance(1, take=True)
        table.act(1, Action.HIT)
        table.act(1, Action.STAND)
        assert table.results[0].outcome == Outcome.PUSH
        assert table.bankroll == 1000 - 50 + 100
        assert EventType.INSURANCE_WINS in event_types(table)

    def test_insurance_needs_funds(self):
        table = BlackjackTable(initial_bankroll=100, rng=Random(1))
        deal(table, {1: 100}, "10S", "AH", "9C")
        with pytest.raises(InsufficientFunds):
            table.decide_insurance(1, take=True)
        assert table.state == RoundState.INSURANCE

    def test_insurance_only_in_insurance_state(self, table):
        with pytest.raises(InvalidState):
            table.decide_insurance(1, take=True)


class TestRoundLifecycle:
    """Tests for finishing and resetting rounds."""

    def test_advance_round_is_idempotent(self, table):
        deal(table, {1: 100}, "10S", "7H", "6C", "KD", "10D")
        table.act(1, Action.HIT)
        assert table.advance_round() is True
        bankroll = table.bankroll
        assert table.advance_round() is False
        assert table.state == RoundState.BETTING
        assert table.bankroll == bankroll
        assert table.total_wager == 0
        assert table.results == []
        assert table.last_bets[0] == 100

    def test_advance_round_mid_round(self, table):
        deal(table, {1: 10}, "10S", "7H", "6C")
        with pytest.raises(InvalidState):
            table.advance_round()

    def test_repeat_last_bets(self, table):
        deal(table, {2: 40, 5: 10}, "10S", "10C", "7H", "9C", "9D", "10D")
        table.act(2, Action.STAND)
        table.act(5, Action.STAND)
        table.advance_round()
        table.repeat_last_bets()
        assert table.seat(2).bet == 40
        assert table.seat(5).bet == 10

    def test_repeat_last_bets_needs_funds(self):
        table = BlackjackTable(initial_bankroll=100, rng=Random(1))
        deal(table, {1: 100}, "10S", "7H", "6C", "KD", "10D")
        table.act(1, Action.HIT)
        table.advance_round()
        with pytest.raises(InsufficientFunds):
            table.repeat_last_bets()

    def test_settlement_happens_once(self, table):
        deal(table, {1: 10, 2: 10}, "10S", "10C", "7H", "9C", "8D", "10D")
        table.act(1, Action.STAND)
        table.act(2, Action.STAND)
        settled = [e for e in table.events.history if e.event_type == EventType.HAND_SETTLED]
        assert len(settled) == 2
        assert table.statistics.hands_played == 2
        assert table.statistics.rounds_played == 1

    def test_round_events(self, table):
        deal(table, {1: 10}, "10S", "7H", "6C", "KD", "10D")
        table.act(1, Action.HIT)
        types = event_types(table)
        assert types.count(EventType.CARD_DEALT) == 5
        assert types[0] == EventType.BET_PLACED
        assert EventType.ROUND_STARTED in types
        assert types[-1] == EventType.ROUND_ENDED
        states = [
            e.data["state"] for e in table.events.history if e.event_type == EventType.STATE_CHANGED
        ]
        assert states == ["PLAYING", "DEALER", "FINISHED"]

    def test_subscribe(self, table):
        seen = []
        table.subscribe(seen.append, EventType.BET_PLACED)
        table.place_bet(1, 10)
        assert len(seen) == 1
        assert seen[0].data == {"seat": 1, "amount": 10, "bet": 10}


class TestAdvice:
    """Tests for the advice query."""

    def test_no_advice_while_betting(self, table):
        assert table.advice() is None

    def test_advice_for_active_hand(self, table):
        deal(table, {1: 10}, "10S", "6H", "7C")
        advice = table.advice()
        assert advice.recommendation.name == "STAND"
        assert 5 <= advice.win <= 95

    def test_advice_never_changes_state(self, table):
        deal(table, {1: 10}, "10S", "6H", "7C")
        before = (table.bankroll, table.shoe.cards_remaining, len(table.active_hand))
        table.advice()
        assert (table.bankroll, table.shoe.cards_remaining, len(table.active_hand)) == before


class TestBookkeeping:
    """Tests for snapshots and resets."""

    def test_snapshot_round_trip(self, table):
        deal(table, {1: 100}, "AS", "9H", "KH", "8C")
        table.advance_round()
        snapshot = table.snapshot()

        restored = BlackjackTable()
        restored.restore(snapshot)
        assert restored.bankroll == 1150
        assert restored.statistics == table.statistics
        assert restored.snapshot() == snapshot

    def test_restore_rejects_malformed_snapshot(self, table):
        with pytest.raises(ValueError):
            table.restore({"bankroll": "lots"})
        with pytest.raises(ValueError):
            table.restore({"bankroll": 10, "statistics": {"wins": 1.5}})
        assert table.bankroll == 1000

    def test_restore_only_between_rounds(self, table):
        deal(table, {1: 10}, "10S", "7H", "6C")
        with pytest.raises(InvalidState):
            table.restore({"bankroll": 10})

    def test_reset_bankroll_and_statistics(self, table):
        deal(table, {1: 100}, "10S", "7H", "6C", "KD", "10D")
        table.act(1, Action.HIT)
        table.advance_round()
        table.reset_bankroll()
        table.reset_statistics()
        assert table.bankroll == 1000
        assert table.statistics.hands_played == 0

    def test_resets_rejected_mid_round(self, table):
        deal(table, {1: 10}, "10S", "7H", "6C")
        with pytest.raises(InvalidState):
            table.reset_bankroll()
        with pytest.raises(InvalidState):
            table.reset_statistics()


class TestPacing:
    """Tests for presentation delays."""

    def test_ticks_for_each_dealt_card(self, table):
        sleeps = []
        table.pacer = Pacer.from_seconds(deal=0.25, sleep=sleeps.append)
        deal(table, {1: 10}, "10S", "7H", "6C")
        assert sleeps == [0.25, 0.25, 0.25]

    def test_zero_delay_skips_sleep(self, table):
        sleeps = []
        table.pacer = Pacer(sleep=sleeps.append)
        deal(table, {1: 10}, "10S", "7H", "6C", "KD", "10D")
        table.act(1, Action.HIT)
        assert sleeps == []

    def test_delays_never_change_outcomes(self):
        def play(pacer):
            table = BlackjackTable(rng=Random(99), pacer=pacer)
            for _ in range(5):
                table.place_bet(1, 10)
                table.place_bet(4, 10)
                table.start_round()
                while table.state == RoundState.INSURANCE:
                    table.decide_insurance(table.insurance_seat.index, take=False)
                while table.state == RoundState.PLAYING:
                    table.act(table.active_seat.index, Action.STAND)
                table.advance_round()
            return table.snapshot()

        slow = Pacer(
            delays={step: 0.01 for step in PaceStep},
            sleep=lambda seconds: None,
        )
        assert play(Pacer()) == play(slow)
