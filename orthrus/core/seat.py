"""
Seats and the seat ledger.

A Seat tracks one participant's chips and per-hand fields:
- stack: chips behind
- bet: chips put in during the current street (reset each street)
- committed: chips put in during the current hand (reset each hand)
- in_hand / folded / all_in flags

The SeatLedger keeps seats ordered by seat index; list positions are what
the dealer button and turn rotation walk over.
"""

from __future__ import annotations
from typing import Any, Dict, Iterator, List, Optional
from dataclasses import dataclass, field

from orthrus.core.card import Card


@dataclass
class Seat:
    """
    A participant seated at the table.

    Attributes:
        seat_id: Unique identifier (uuid4 string)
        name: Display name
        seat: Seat index in [0, table_max)
        stack: Current chip count
        cards: Hole cards (0 or 2)
        in_hand: Dealt into the current hand
        folded: Folded this hand
        all_in: Stack reached 0 by betting this hand
        bet: Amount put in during the current street
        committed: Amount put in during the current hand
        connected: Transport link is up
        pending_removal: Leave the table once the hand settles
    """
    seat_id: str
    name: str
    seat: int
    stack: int
    cards: List[Card] = field(default_factory=list)
    in_hand: bool = False
    folded: bool = False
    all_in: bool = False
    bet: int = 0
    committed: int = 0
    connected: bool = True
    pending_removal: bool = False

    def reset_for_new_hand(self) -> None:
        """Reset hand-scoped fields; only connected seats with chips are dealt in."""
        self.cards = []
        self.in_hand = self.stack > 0 and self.connected and not self.pending_removal
        self.folded = False
        self.all_in = False
        self.bet = 0
        self.committed = 0

    def pay(self, amount: int) -> int:
        """
        Move chips from the stack onto the table.

        Args:
            amount: Requested amount, clamped to [0, stack]

        Returns:
            Actual amount paid
        """
        actual = max(0, min(int(amount), self.stack))
        self.stack -= actual
        self.bet += actual
        self.committed += actual
        if self.stack == 0 and self.in_hand:
            self.all_in = True
        return actual

    def withdraw(self) -> None:
        """Fold out of the hand without acting (disconnect or removal)."""
        self.folded = True
        self.in_hand = False

    @property
    def is_live(self) -> bool:
        """Still contesting the pot."""
        return self.in_hand and not self.folded

    @property
    def can_act(self) -> bool:
        """Still able to take betting actions this hand."""
        return self.in_hand and not self.folded and not self.all_in

    def to_dict(self, hide_cards: bool = True) -> Dict[str, Any]:
        result = {
            "id": self.seat_id,
            "name": self.name,
            "seat": self.seat,
            "stack": self.stack,
            "inHand": self.in_hand,
            "folded": self.folded,
            "allIn": self.all_in,
            "bet": self.bet,
            "committed": self.committed,
        }
        if not hide_cards:
            result["cards"] = [str(c) for c in self.cards]
        return result

    def to_public_dict(self) -> Dict[str, Any]:
        """Fields every viewer may see."""
        return {
            "id": self.seat_id,
            "name": self.name,
            "seat": self.seat,
            "stack": self.stack,
            "inHand": self.is_live,
            "folded": self.folded,
            "bet": self.bet,
        }

    def __str__(self) -> str:
        cards_str = " ".join(str(c) for c in self.cards) if self.cards else "??"
        return f"Seat {self.seat} {self.name} [{cards_str}] ${self.stack}"


class SeatLedger:
    """Ordered collection of seats with rotation helpers."""

    def __init__(self, table_max: int):
        self.table_max = table_max
        self._seats: List[Seat] = []

    def __len__(self) -> int:
        return len(self._seats)

    def __iter__(self) -> Iterator[Seat]:
        return iter(self._seats)

    def __getitem__(self, idx: int) -> Seat:
        return self._seats[idx]

    @property
    def seats(self) -> List[Seat]:
        return list(self._seats)

    @property
    def is_full(self) -> bool:
        return len(self._seats) >= self.table_max

    def first_open_seat(self) -> int:
        """Lowest free seat index, or -1 when the table is full."""
        taken = {s.seat for s in self._seats}
        for i in range(self.table_max):
            if i not in taken:
                return i
        return -1

    def add(self, seat: Seat) -> None:
        """Insert keeping seat-index order."""
        self._seats.append(seat)
        self._seats.sort(key=lambda s: s.seat)

    def remove(self, seat_id: str) -> Optional[int]:
        """Remove a seat; returns the list position it occupied."""
        idx = self.index_of(seat_id)
        if idx is not None:
            del self._seats[idx]
        return idx

    def clear(self) -> None:
        self._seats = []

    def index_of(self, seat_id: str) -> Optional[int]:
        for i, seat in enumerate(self._seats):
            if seat.seat_id == seat_id:
                return i
        return None

    def get(self, seat_id: str) -> Optional[Seat]:
        idx = self.index_of(seat_id)
        return None if idx is None else self._seats[idx]

    def at(self, idx: int) -> Optional[Seat]:
        """Seat at a list position, or None for -1 / out of range."""
        if 0 <= idx < len(self._seats):
            return self._seats[idx]
        return None

    def live(self) -> List[Seat]:
        return [s for s in self._seats if s.is_live]

    def can_act(self) -> List[Seat]:
        return [s for s in self._seats if s.can_act]

    def max_bet(self) -> int:
        return max((s.bet for s in self._seats), default=0)

    def total_stacks(self) -> int:
        return sum(s.stack for s in self._seats)

    def total_bets(self) -> int:
        return sum(s.bet for s in self._seats)

    def _next_matching(self, from_idx: int, predicate) -> Optional[int]:
        n = len(self._seats)
        for k in range(1, n + 1):
            i = (from_idx + k) % n
            if predicate(self._seats[i]):
                return i
        return None

    def next_in_hand(self, from_idx: int) -> Optional[int]:
        """Next position (wrapping) dealt into the hand and not folded."""
        if not self._seats:
            return None
        return self._next_matching(from_idx, lambda s: s.is_live)

    def next_actor(self, from_idx: int) -> Optional[int]:
        """Next position (wrapping) that can still act; all-in seats are skipped."""
        if not self._seats:
            return None
        return self._next_matching(from_idx, lambda s: s.can_act)
