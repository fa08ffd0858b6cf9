"""
Turn / action engine for one betting street.

The BettingRound decides whose turn it is, which actions are legal, applies
them to the seat ledger and reports when the street is over:

- no seat can act (everyone left is all-in): complete
- one seat can act: complete once it has matched the table's max bet
- two or more can act: complete once a bet/raise happened and every actor
  matched it, or, with no bet/raise, once the turn comes back to a seat
  that already acted this street

Anything that is not legal for the current actor is dropped; the engine
never raises for protocol violations.
"""

from __future__ import annotations
import logging
import math
from typing import Any, Dict, List, Optional, Set
from dataclasses import dataclass
from enum import Enum, auto

from orthrus.core.rules import ActionType
from orthrus.core.seat import Seat, SeatLedger


logger = logging.getLogger(__name__)


class StreetStatus(Enum):
    """Outcome of applying an action."""
    IGNORED = auto()      # Not applicable, nothing changed
    IN_PROGRESS = auto()  # Turn moved to the next actor
    COMPLETE = auto()     # Street closed, deal the next one
    HAND_OVER = auto()    # One live seat or fewer remain


def sanitize_amount(value: Any) -> int:
    """Clamp an inbound amount to a non-negative integer chip count."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number) or number <= 0:
        return 0
    return int(number)


@dataclass(frozen=True)
class Action:
    """
    An inbound action from a seat.

    ``amount`` only matters for BET/RAISE, where it is the number of chips
    to put in above the call.
    """
    seat_id: str
    kind: ActionType
    amount: int = 0

    @classmethod
    def from_payload(cls, seat_id: str, action: Any, amount: Any = 0) -> Optional[Action]:
        """Build an action from a loose payload; None if the kind is unknown."""
        try:
            kind = ActionType(str(action).strip().lower())
        except ValueError:
            return None
        return cls(seat_id=seat_id, kind=kind, amount=sanitize_amount(amount))

    @property
    def is_aggressive(self) -> bool:
        return self.kind in (ActionType.BET, ActionType.RAISE)


class BettingRound:
    """
    Street bookkeeping plus action application.

    Usage:
        betting = BettingRound(ledger, big_blind=50)
        betting.post_blind(sb_idx, 25)
        betting.post_blind(bb_idx, 50)
        betting.start_street(ledger.next_actor(bb_idx))
        status = betting.apply(Action(seat_id, ActionType.CALL))
    """

    def __init__(self, ledger: SeatLedger, big_blind: int):
        self.ledger = ledger
        self.big_blind = big_blind
        self.current_idx = -1
        self.round_first_idx = -1
        self.has_bet_or_raise = False
        self.last_raiser_idx = -1
        self.min_raise_to = big_blind
        self._acted: Set[str] = set()

    def start_street(self, first_idx: Optional[int]) -> None:
        """Reset street bookkeeping and hand the turn to ``first_idx``."""
        self.current_idx = -1 if first_idx is None else first_idx
        self.round_first_idx = self.current_idx
        self.has_bet_or_raise = False
        self.last_raiser_idx = -1
        self.min_raise_to = self.big_blind
        self._acted = set()

    def clear(self) -> None:
        """No street in progress."""
        self.start_street(None)

    @property
    def current_seat(self) -> Optional[Seat]:
        return self.ledger.at(self.current_idx)

    def post_blind(self, idx: int, amount: int) -> int:
        """Post a forced blind; a short stack posts what it has and is all-in."""
        return self.ledger[idx].pay(amount)

    def to_call(self, seat: Seat) -> int:
        return max(0, self.ledger.max_bet() - seat.bet)

    def legal_actions(self, seat: Seat) -> List[Dict[str, Any]]:
        """Legal actions for ``seat`` if it is the current actor."""
        if seat is not self.current_seat or not seat.can_act:
            return []

        to_call = self.to_call(seat)
        actions: List[Dict[str, Any]] = [{"type": ActionType.FOLD.value}]
        if to_call == 0:
            actions.append({"type": ActionType.CHECK.value})
        else:
            actions.append({"type": ActionType.CALL.value, "amount": min(to_call, seat.stack)})

        if seat.stack > to_call:
            kind = ActionType.RAISE if self.ledger.max_bet() > 0 else ActionType.BET
            actions.append({
                "type": kind.value,
                "min": min(max(self.min_raise_to, self.big_blind), seat.stack - to_call),
                "max": seat.stack - to_call,
            })
        return actions

    def apply(self, action: Action) -> StreetStatus:
        """Validate and apply ``action``; see StreetStatus for the outcome."""
        idx = self.ledger.index_of(action.seat_id)
        if idx is None or idx != self.current_idx:
            logger.debug(f"Ignoring {action.kind.value} from {action.seat_id}: not the current actor")
            return StreetStatus.IGNORED

        seat = self.ledger[idx]
        if not seat.can_act:
            logger.debug(f"Ignoring {action.kind.value} from seat {seat.seat}: cannot act")
            return StreetStatus.IGNORED

        to_call = self.to_call(seat)

        if action.kind == ActionType.FOLD:
            seat.folded = True

        elif action.kind == ActionType.CHECK:
            if to_call > 0:
                logger.debug(f"Ignoring check from seat {seat.seat}: {to_call} to call")
                return StreetStatus.IGNORED

        elif action.kind == ActionType.CALL:
            seat.pay(to_call)

        elif action.is_aggressive:
            self._acted.add(seat.seat_id)
            if self._raise(idx, seat, to_call, action.amount):
                return self._after_raise(idx)
            return self._rotate_or_complete()

        self._acted.add(seat.seat_id)
        return self._rotate_or_complete()

    def withdraw(self, idx: int) -> StreetStatus:
        """Re-evaluate after the seat at ``idx`` left the hand without acting."""
        if len(self.ledger.live()) <= 1:
            return StreetStatus.HAND_OVER
        if idx == self.current_idx:
            return self._rotate_or_complete()
        if self.is_complete():
            return StreetStatus.COMPLETE
        return StreetStatus.IN_PROGRESS

    def is_complete(self) -> bool:
        """Round-completion rule, evaluated after every applied action."""
        can_act = self.ledger.can_act()
        if not can_act:
            return True

        max_bet = self.ledger.max_bet()
        if len(can_act) == 1:
            return can_act[0].bet >= max_bet

        if self.has_bet_or_raise:
            return all(s.bet == max_bet for s in can_act)
        return False

    def _raise(self, idx: int, seat: Seat, to_call: int, amount: int) -> bool:
        """
        Put in ``to_call`` plus a raise of at least ``max(min_raise_to, big_blind)``,
        capped by the stack. Returns False when the stack only covered a call.
        """
        target = max(self.min_raise_to, self.big_blind, amount)
        paid = seat.pay(to_call + target)
        raised_by = paid - to_call
        if raised_by <= 0:
            return False

        self.min_raise_to = max(self.min_raise_to, raised_by)
        self.has_bet_or_raise = True
        self.last_raiser_idx = idx
        return True

    def _after_raise(self, idx: int) -> StreetStatus:
        nxt = self.ledger.next_actor(idx)
        if nxt is None or nxt == idx:
            return StreetStatus.COMPLETE
        self.current_idx = nxt
        return StreetStatus.IN_PROGRESS

    def _rotate_or_complete(self) -> StreetStatus:
        if len(self.ledger.live()) <= 1:
            return StreetStatus.HAND_OVER
        if self.is_complete():
            return StreetStatus.COMPLETE

        nxt = self.ledger.next_actor(self.current_idx)
        if nxt is None:
            return StreetStatus.COMPLETE
        self.current_idx = nxt

        # A full pass of checks/calls with no aggression closes the street.
        if not self.has_bet_or_raise and self.ledger[nxt].seat_id in self._acted:
            return StreetStatus.COMPLETE
        return StreetStatus.IN_PROGRESS
