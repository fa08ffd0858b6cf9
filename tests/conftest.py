"""
Pytest configuration and shared fixtures for Orthrus tests.
"""

import random
from typing import Callable, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from orthrus.core.audit import AuditLog
from orthrus.core.card import Card, Deck, Rank, Suit, fresh_deck, parse_cards
from orthrus.core.rules import TableConfig
from orthrus.core.table import Table
from orthrus.server.app import create_app


class ManualHandle:
    """Timer handle controlled by ManualScheduler."""

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not self.cancelled and not self.fired


class ManualScheduler:
    """Scheduler whose clock only moves when a test calls advance()."""

    def __init__(self):
        self.now = 0.0
        self.handles: List[ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> List[ManualHandle]:
        return [h for h in self.handles if h.pending]

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks in order; returns how many fired."""
        self.now += seconds
        fired = 0
        while True:
            due = sorted((h for h in self.pending if h.due <= self.now), key=lambda h: h.due)
            if not due:
                return fired
            handle = due[0]
            handle.fired = True
            handle.callback()
            fired += 1


def build_stacked_deck(holes: Sequence[str], board: str = "") -> Deck:
    """
    Deck that deals ``holes`` (one "XX YY" string per dealt seat, in seat
    order) and then ``board`` as flop/turn/river, with burns in between.
    """
    hole_cards = [parse_cards(h) for h in holes]
    board_cards = parse_cards(board)
    used = [c for pair in hole_cards for c in pair] + board_cards
    spare = [c for c in fresh_deck() if c not in used]

    order: List[Card] = []
    for r in range(2):
        for pair in hole_cards:
            order.append(pair[r])
    streets = [board_cards[:3], board_cards[3:4], board_cards[4:5]]
    for street in streets:
        if not street:
            break
        order.append(spare.pop())  # burn
        order.extend(street)

    # Deck draws from the end of the list
    return Deck(spare + list(reversed(order)))


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def make_table(scheduler):
    """
    Factory: seated table with ``n`` players, optional stacks and rigged decks.

    Decks are used one per hand; once exhausted, seeded shuffled decks follow.
    """
    def factory(
        n: int = 2,
        stacks: Optional[Sequence[int]] = None,
        decks: Optional[Sequence[Deck]] = None,
        audit=None,
        start: bool = False,
        **config,
    ) -> Table:
        config.setdefault("small_blind", 10)
        config.setdefault("big_blind", 20)
        config.setdefault("starting_stack", 1000)
        rng = random.Random(1234)
        queue = list(decks or [])

        def deck_factory() -> Deck:
            return queue.pop(0) if queue else Deck.shuffled(rng)

        table = Table(
            TableConfig(**config),
            scheduler=scheduler,
            audit=audit,
            deck_factory=deck_factory,
        )
        for i in range(n):
            seat = table.join(f"p{i}")
            if stacks is not None:
                seat.stack = stacks[i]
        if start:
            table.start_table()
        return table

    return factory


@pytest.fixture
def sample_hand():
    """Create a sample 5-card hand (pair of aces)."""
    return [
        Card(Rank.ACE, Suit.SPADES),
        Card(Rank.ACE, Suit.HEARTS),
        Card(Rank.KING, Suit.DIAMONDS),
        Card(Rank.QUEEN, Suit.CLUBS),
        Card(Rank.JACK, Suit.SPADES),
    ]


@pytest.fixture
def royal_flush():
    """Create a royal flush hand."""
    return [
        Card(Rank.ACE, Suit.SPADES),
        Card(Rank.KING, Suit.SPADES),
        Card(Rank.QUEEN, Suit.SPADES),
        Card(Rank.JACK, Suit.SPADES),
        Card(Rank.TEN, Suit.SPADES),
    ]


@pytest.fixture
def wheel_straight():
    """Create a wheel straight (A-2-3-4-5)."""
    return [
        Card(Rank.ACE, Suit.SPADES),
        Card(Rank.TWO, Suit.HEARTS),
        Card(Rank.THREE, Suit.DIAMONDS),
        Card(Rank.FOUR, Suit.CLUBS),
        Card(Rank.FIVE, Suit.SPADES),
    ]


@pytest.fixture
def stacked_deck():
    """The build_stacked_deck helper, for rigging hands inside tests."""
    return build_stacked_deck


# ============= Server fixtures =============

@pytest.fixture
def table(tmp_path, scheduler):
    """Table behind the app, logging to a temporary directory."""
    config = TableConfig(small_blind=10, big_blind=20, starting_stack=1000, log_dir=str(tmp_path))
    return Table(config, scheduler=scheduler, audit=AuditLog(config.log_dir))


@pytest.fixture
def client(table):
    with TestClient(create_app(table=table)) as client:
        yield client
