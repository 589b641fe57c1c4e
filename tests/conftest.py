"""Pytest fixtures for ENHC table tests."""

from random import Random

import pytest
from hypothesis import strategies as st

from enhc.cards import Card, Rank, Shoe, Suit
from enhc.game import BlackjackTable
from enhc.hand import Hand
from enhc.strategy import BasicStrategy, RuleSet, StrategyAdvisor
from enhc.statistics import ProbabilityEstimator


def cards(*names: str) -> list[Card]:
    """Build cards from short names, e.g. cards("AS", "10H", "KD")."""
    return [Card.from_string(name) for name in names]


def make_hand(*names: str, bet: int = 0) -> Hand:
    """Build a hand from short card names."""
    hand = Hand(bet=bet)
    for card in cards(*names):
        hand.add_card(card)
    return hand


def stack_shoe(table: BlackjackTable, *names: str) -> None:
    """
    Arrange the shoe so the given cards come out first, in order.

    Filler cards are kept underneath so dealing the stacked cards never
    drops the shoe below its reshuffle threshold.
    """
    filler = [Card(Rank.TWO, Suit.CLUBS)] * (table.shoe.reshuffle_threshold + 60)
    table.shoe._cards = filler + list(reversed(cards(*names)))


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def shoe(rng):
    """A shuffled 6-deck shoe."""
    return Shoe(num_decks=6, rng=rng)


@pytest.fixture
def empty_hand():
    """An empty player hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return make_hand("AS", "KH")


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return make_hand("AS", "6H")


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return make_hand("10S", "6H")


@pytest.fixture
def pair_8s_hand():
    """A pair of 8s hand."""
    return make_hand("8S", "8H")


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return make_hand("10S", "6H", "KC")


@pytest.fixture
def rules():
    """Default ruleset."""
    return RuleSet()


@pytest.fixture
def basic_strategy():
    """Basic strategy tables."""
    return BasicStrategy()


@pytest.fixture
def estimator():
    """Heuristic odds estimator."""
    return ProbabilityEstimator()


@pytest.fixture
def advisor():
    """Strategy advisor."""
    return StrategyAdvisor()


@pytest.fixture
def table(rng):
    """A new table with a seeded shoe and no pacing delays."""
    return BlackjackTable(initial_bankroll=1000, rng=rng)


# Hypothesis strategies for property-based testing
@st.composite
def card_strategy(draw):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(Rank)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


@st.composite
def hand_strategy(draw, min_cards=2, max_cards=5):
    """Generate a random hand."""
    drawn = draw(st.lists(card_strategy(), min_size=min_cards, max_size=max_cards))
    hand = Hand()
    for card in drawn:
        hand.add_card(card)
    return hand


@pytest.fixture
def memory_store():
    """Route the API to a fresh in-memory session store and empty table cache."""
    from api import session, tables

    store = session.InMemorySessionStore()
    session.set_session_store(store)
    tables._tables.clear()
    tables._locks.clear()
    yield store
    session.set_session_store(None)
    tables._tables.clear()
    tables._locks.clear()
