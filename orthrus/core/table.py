"""
Table engine - the hand state machine.

One Table owns everything about a single shared table: the seat ledger, the
current hand, both timers and the audit trail. It handles:
- Seating (join, remove, disconnect, reconnect, hard reset)
- Hand lifecycle: deal, blinds, four betting streets, settlement
- Side pot settlement with refunds for unmatched overage
- The delay before the next hand and the stall watchdog
- Full and per-seat state projections

Every public method is one atomic step: it runs all chained transitions
(street advance, run-out, settlement) before returning, and listeners are
notified once afterwards, so observers only ever see settled state.
"""

from __future__ import annotations
import logging
import random
import uuid
from typing import Any, Callable, Dict, List, Optional

from orthrus.core.audit import AuditLog, AuditRecord, utc_timestamp
from orthrus.core.betting import Action, BettingRound, StreetStatus
from orthrus.core.card import Card, Deck
from orthrus.core.errors import JoinRejected
from orthrus.core.hand import HandEvaluator, HandRanker, HandValue
from orthrus.core.pots import Pot, PotPreview, preview_side_pots, settle_side_pots
from orthrus.core.rules import (
    ActionType, Stage, TableConfig,
    BETTING_STAGES, NEXT_STAGE, STREET_CARDS,
    HOLE_CARDS, FLOP_CARDS, TURN_CARDS, TOTAL_COMMUNITY_CARDS,
    get_blind_positions,
)
from orthrus.core.seat import Seat, SeatLedger
from orthrus.core.timers import AsyncioScheduler, Scheduler, StallWatchdog, Timer


logger = logging.getLogger(__name__)


class Table:
    """
    A single poker table.

    Usage:
        table = Table(TableConfig(), audit=AuditLog("logs"))
        alice = table.join("alice")
        bob = table.join("bob")
        table.start_table()

        table.apply_action(Action(alice.seat_id, ActionType.CALL))
        state = table.full_snapshot()
        mine = table.seat_snapshot(bob.seat_id)
    """

    def __init__(
        self,
        config: Optional[TableConfig] = None,
        *,
        ranker: Optional[HandRanker] = None,
        scheduler: Optional[Scheduler] = None,
        audit: Optional[AuditLog] = None,
        rng: Optional[random.Random] = None,
        deck_factory: Optional[Callable[[], Deck]] = None,
    ):
        self.config = config or TableConfig()
        self.ranker: HandRanker = ranker or HandEvaluator()
        self.audit = audit
        self._rng = rng
        self._deck_factory = deck_factory or (lambda: Deck.shuffled(self._rng))

        self.ledger = SeatLedger(self.config.table_max)
        self.betting = BettingRound(self.ledger, self.config.big_blind)

        # Hand state
        self.hand_id = 0
        self.stage = Stage.LOBBY
        self.community: List[Card] = []
        self.pot = 0  # swept from completed streets
        self.dealer_idx = -1
        self.deck: Optional[Deck] = None
        self.last_results: List[Dict[str, Any]] = []

        self.table_open = True
        self.has_started = False

        scheduler = scheduler or AsyncioScheduler()
        self._next_hand_timer = Timer(scheduler, "next_hand")
        self._watchdog = StallWatchdog(scheduler, self.config.stall_timeout, self._on_stall)

        self._listeners: List[Callable[[], None]] = []

    # ------------------------------------------------------------------ #
    # Read-only helpers
    # ------------------------------------------------------------------ #

    @property
    def is_hand_running(self) -> bool:
        return self.stage in BETTING_STAGES

    @property
    def current_seat(self) -> Optional[Seat]:
        if not self.is_hand_running:
            return None
        return self.betting.current_seat

    @property
    def dealer_seat(self) -> Optional[Seat]:
        return self.ledger.at(self.dealer_idx)

    @property
    def min_raise_to(self) -> int:
        return self.betting.min_raise_to

    @property
    def next_hand_pending(self) -> bool:
        return self._next_hand_timer.active

    @property
    def watchdog_armed(self) -> bool:
        return self._watchdog.armed

    def total_chips(self) -> int:
        """Stacks plus chips on the table; constant within a hand."""
        return self.ledger.total_stacks() + self.ledger.total_bets() + self.pot

    def side_pots_preview(self) -> List[PotPreview]:
        if not self.is_hand_running:
            return []
        return preview_side_pots(self.ledger)

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback run after every completed event."""
        self._listeners.append(callback)

    # ------------------------------------------------------------------ #
    # Seating and host controls
    # ------------------------------------------------------------------ #

    def join(self, name: Optional[str] = None) -> Seat:
        """
        Seat a new participant at the first open seat.

        Raises:
            JoinRejected: If the table is closed, full or already playing.
        """
        if not self.table_open or self.has_started or self.ledger.is_full:
            raise JoinRejected("Table full or game started")
        seat_no = self.ledger.first_open_seat()
        if seat_no == -1:
            raise JoinRejected("No seats available")

        default_name = f"Player{len(self.ledger) + 1}"
        display = str(name or "").strip()[: self.config.name_max_len] or default_name
        seat = Seat(
            seat_id=str(uuid.uuid4()),
            name=display,
            seat=seat_no,
            stack=self.config.starting_stack,
        )
        self.ledger.add(seat)
        logger.info(f"{seat.name} joined at seat {seat.seat}")
        self._audit("player_join", seat)
        self._publish()
        return seat

    def start_table(self) -> bool:
        """Close the table to new joins and deal the first hand."""
        if self.has_started or len(self.ledger) < 2:
            return False
        self.has_started = True
        self.table_open = False
        started = self._start_hand()
        self._publish()
        return started

    def force_advance_now(self, start_next: bool = True) -> bool:
        """
        Host override: settle the current hand immediately and, unless
        ``start_next`` is False, deal the next one without waiting.
        """
        if self.stage == Stage.LOBBY:
            return False
        if self.is_hand_running:
            self._audit("force_advance", self.current_seat)
            self._settle()
        if start_next and self.stage == Stage.SHOWDOWN:
            self._start_hand()
        self._publish()
        return True

    def reset_table(self) -> None:
        """Hard reset: cancel timers, unseat everyone, reopen the table."""
        self._next_hand_timer.cancel()
        self._watchdog.disarm()
        self._audit("hard_reset")
        logger.info("Table reset")

        self.ledger.clear()
        self.betting.clear()
        self.hand_id = 0
        self.stage = Stage.LOBBY
        self.community = []
        self.pot = 0
        self.dealer_idx = -1
        self.deck = None
        self.last_results = []
        self.table_open = True
        self.has_started = False
        self._publish()

    def cancel_timers(self) -> None:
        """Drop any pending next-hand or watchdog callback (server shutdown)."""
        self._next_hand_timer.cancel()
        self._watchdog.disarm()

    def remove_seat(self, seat_id: str) -> bool:
        """
        Remove a seat. Between hands it leaves at once; during a hand it is
        folded and leaves at settlement, so its chips stay in the pot.
        """
        seat = self.ledger.get(seat_id)
        if seat is None:
            return False

        if self.is_hand_running:
            seat.pending_removal = True
            logger.info(f"{seat.name} will be removed after hand #{self.hand_id}")
            if seat.is_live:
                self._withdraw(seat)
        else:
            self._audit("player_removed", seat)
            self._remove(seat)
            logger.info(f"{seat.name} removed from seat {seat.seat}")
            if self.stage == Stage.SHOWDOWN and len(self.ledger) < 2:
                self._return_to_lobby()

        self._publish()
        return True

    def disconnect(self, seat_id: str) -> bool:
        """Transport link dropped: fold the seat and stop dealing it in."""
        seat = self.ledger.get(seat_id)
        if seat is None:
            return False
        seat.connected = False
        self._audit("player_disconnect", seat)
        logger.info(f"{seat.name} disconnected")
        if self.is_hand_running and seat.is_live:
            self._withdraw(seat)
        self._publish()
        return True

    def reconnect(self, seat_id: str) -> bool:
        seat = self.ledger.get(seat_id)
        if seat is None:
            return False
        seat.connected = True
        logger.info(f"{seat.name} reconnected")
        self._publish()
        return True

    # ------------------------------------------------------------------ #
    # Actions
    # ------------------------------------------------------------------ #

    def apply_action(self, action: Action) -> bool:
        """
        Apply an inbound action. Returns False (and changes nothing) when the
        action is not applicable: wrong stage, wrong seat, illegal check.
        """
        if not self.is_hand_running:
            logger.debug(f"Ignoring {action.kind.value}: no street in progress")
            return False

        seat = self.ledger.get(action.seat_id)
        if seat is None:
            return False
        to_call = self.betting.to_call(seat)
        committed_before = seat.committed

        status = self.betting.apply(action)
        if status is StreetStatus.IGNORED:
            return False

        paid = seat.committed - committed_before
        self._audit("player_action", seat, _action_label(action, seat, to_call, paid), paid)
        logger.debug(f"Seat {seat.seat} {action.kind.value} paid={paid} -> {status.name}")

        self._on_street_status(status)
        self._publish()
        return True

    # ------------------------------------------------------------------ #
    # Snapshots
    # ------------------------------------------------------------------ #

    def _public_header(self) -> Dict[str, Any]:
        current = self.current_seat
        dealer = self.dealer_seat
        return {
            "handId": self.hand_id,
            "stage": self.stage.value,
            "community": [] if self.stage == Stage.LOBBY else [str(c) for c in self.community],
            "pot": self.pot,
            "dealerSeat": dealer.seat if dealer else None,
            "currentActorSeat": current.seat if current else None,
            "currentActorId": current.seat_id if current else None,
            "minRaiseTo": self.min_raise_to,
            "lastResults": [dict(r) for r in self.last_results],
        }

    def full_snapshot(self) -> Dict[str, Any]:
        """Host / spectator projection: every hole card visible."""
        state = self._public_header()
        state["sidePots"] = [p.to_dict() for p in self.side_pots_preview()]
        state["players"] = [s.to_dict(hide_cards=False) for s in self.ledger]
        return state

    def seat_snapshot(self, seat_id: str) -> Optional[Dict[str, Any]]:
        """Projection for one seat: only its own hole cards are visible."""
        me = self.ledger.get(seat_id)
        if me is None:
            return None
        state = self._public_header()
        state["toCall"] = self.betting.to_call(me) if self.is_hand_running else 0
        state["legalActions"] = self.betting.legal_actions(me) if self.is_hand_running else []
        state["me"] = me.to_dict(hide_cards=False)
        state["others"] = [
            dict(s.to_public_dict(), isMe=s is me) for s in self.ledger
        ]
        return state

    # ------------------------------------------------------------------ #
    # Hand flow
    # ------------------------------------------------------------------ #

    def _start_hand(self) -> bool:
        self._next_hand_timer.cancel()
        self._watchdog.disarm()

        ready = [s for s in self.ledger if s.stack > 0 and s.connected and not s.pending_removal]
        if len(ready) < 2:
            logger.warning("Cannot start hand: fewer than 2 seats ready")
            self._return_to_lobby()
            return False

        for seat in self.ledger:
            seat.reset_for_new_hand()

        self.hand_id += 1
        self.stage = Stage.PREFLOP
        self.community = []
        self.pot = 0
        self.last_results = []
        self.deck = self._deck_factory()
        self.dealer_idx = self.ledger.next_in_hand(self.dealer_idx)

        for _ in range(HOLE_CARDS):
            for seat in self.ledger:
                if seat.in_hand:
                    seat.cards.append(self.deck.draw())

        dealt = [i for i, s in enumerate(self.ledger) if s.in_hand]
        sb_pos, bb_pos = get_blind_positions(len(dealt), dealt.index(self.dealer_idx))
        sb_idx, bb_idx = dealt[sb_pos], dealt[bb_pos]
        self._post_blind(sb_idx, self.config.small_blind)
        self._post_blind(bb_idx, self.config.big_blind)

        self.betting.start_street(self.ledger.next_actor(bb_idx))
        logger.info(
            f"Starting hand #{self.hand_id}: dealer seat {self.ledger[self.dealer_idx].seat}, "
            f"{len(dealt)} seats dealt"
        )
        self._audit("round_start_preflop")

        if self.betting.current_idx == -1 or self.betting.is_complete():
            self._advance_stage()
        else:
            self._rearm_watchdog()
        return True

    def _post_blind(self, idx: int, amount: int) -> None:
        seat = self.ledger[idx]
        posted = self.betting.post_blind(idx, amount)
        self._audit("post_blind", seat, "blind", posted)

    def _on_street_status(self, status: StreetStatus) -> None:
        if status is StreetStatus.HAND_OVER:
            self._settle()
        elif status is StreetStatus.COMPLETE:
            self._advance_stage()
        elif status is StreetStatus.IN_PROGRESS:
            self._rearm_watchdog()

    def _withdraw(self, seat: Seat) -> None:
        idx = self.ledger.index_of(seat.seat_id)
        seat.withdraw()
        self._on_street_status(self.betting.withdraw(idx))

    def _advance_stage(self) -> None:
        """Close the street; keep dealing while nobody is left to act."""
        while True:
            if len(self.ledger.live()) <= 1:
                self._settle()
                return

            self._sweep_bets()
            next_stage = NEXT_STAGE[self.stage]
            if next_stage == Stage.SHOWDOWN:
                self._settle()
                return

            self.deck.burn()
            self.community.extend(self.deck.deal(STREET_CARDS[next_stage]))
            self.stage = next_stage
            self.betting.start_street(self.ledger.next_actor(self.dealer_idx))
            self._audit(f"round_start_{self.stage.value}")
            logger.debug(f"Hand #{self.hand_id} {self.stage.value}: {' '.join(map(str, self.community))}")

            if self.betting.current_idx != -1 and not self.betting.is_complete():
                break

        self._rearm_watchdog()

    def _sweep_bets(self) -> None:
        for seat in self.ledger:
            self.pot += seat.bet
            seat.bet = 0

    def _deal_remaining_community(self) -> None:
        while len(self.community) < TOTAL_COMMUNITY_CARDS:
            self.deck.burn()
            n = FLOP_CARDS if not self.community else TURN_CARDS
            self.community.extend(self.deck.deal(n))

    def _settle(self) -> None:
        """Showdown: refunds first, then each pot to its best eligible hand(s)."""
        self._watchdog.disarm()
        self._sweep_bets()
        self.stage = Stage.SHOWDOWN
        self.betting.clear()

        live = self.ledger.live()
        results: Dict[str, Dict[str, Any]] = {}

        if len(live) == 1:
            winner, amount = live[0], self.pot
            winner.stack += amount
            self.pot = 0
            self._credit(results, winner, amount, None)
            self._audit("win_pot", winner, "win", amount)
        elif not live:
            self._apply_refunds({s.seat_id: s.committed for s in self.ledger if s.committed > 0})
        else:
            self._deal_remaining_community()
            settlement = settle_side_pots(self.ledger)
            self._apply_refunds(settlement.refunds)
            values = {s.seat_id: self.ranker.evaluate(s.cards + self.community) for s in live}
            for pot in settlement.pots:
                self._award_pot(pot, values, results)

        self.last_results = list(results.values())
        logger.info(
            f"Hand #{self.hand_id} settled: "
            + ", ".join(f"{r['name']} +{r['amount']}" for r in self.last_results)
        )

        for seat in self.ledger.seats:
            if seat.stack <= 0:
                self._audit("player_busted", seat)
                self._remove(seat)
            elif seat.pending_removal:
                self._audit("player_removed", seat)
                self._remove(seat)

        if len(self.ledger) >= 2:
            self._next_hand_timer.arm(self.config.next_hand_delay, self._on_next_hand_timer)
        else:
            self._return_to_lobby()

    def _apply_refunds(self, refunds: Dict[str, int]) -> None:
        for seat_id, amount in refunds.items():
            seat = self.ledger.get(seat_id)
            if seat is None:
                continue
            seat.stack += amount
            self.pot -= amount
            self._audit("refund_unmatched", seat, "refund", amount)

    def _award_pot(
        self,
        pot: Pot,
        values: Dict[str, HandValue],
        results: Dict[str, Dict[str, Any]],
    ) -> None:
        contenders = [s for s in self.ledger if s.seat_id in pot.eligible_ids]
        hands = [values[s.seat_id] for s in contenders]
        best = self.ranker.winners(hands)
        winners = [s for s, v in zip(contenders, hands) if v in best]

        share, remainder = divmod(pot.amount, len(winners))
        for seat in winners:
            seat.stack += share
            self._credit(results, seat, share, values[seat.seat_id].name)
            self._audit("win_pot", seat, f"win_{values[seat.seat_id].name}", share)

        # Odd chips one at a time by ascending seat index
        ordered = sorted(winners, key=lambda s: s.seat)
        for i in range(remainder):
            seat = ordered[i % len(ordered)]
            seat.stack += 1
            self._credit(results, seat, 1, values[seat.seat_id].name)

        self.pot -= pot.amount

    @staticmethod
    def _credit(results: Dict[str, Dict[str, Any]], seat: Seat, amount: int, hand: Optional[str]) -> None:
        entry = results.setdefault(seat.seat_id, {
            "id": seat.seat_id,
            "name": seat.name,
            "seat": seat.seat,
            "amount": 0,
            "hand": hand,
        })
        entry["amount"] += amount

    def _remove(self, seat: Seat) -> None:
        idx = self.ledger.remove(seat.seat_id)
        if idx is not None and idx <= self.dealer_idx:
            self.dealer_idx -= 1

    def _return_to_lobby(self) -> None:
        self._next_hand_timer.cancel()
        self._watchdog.disarm()
        self.betting.clear()
        self.stage = Stage.LOBBY
        self.community = []
        self.has_started = False
        self.table_open = True
        logger.info("Table back in lobby")

    def _rearm_watchdog(self) -> None:
        if self.is_hand_running:
            self._watchdog.rearm(self.hand_id, self.stage)
        else:
            self._watchdog.disarm()

    # ------------------------------------------------------------------ #
    # Timer callbacks
    # ------------------------------------------------------------------ #

    def _on_next_hand_timer(self) -> None:
        if self.stage != Stage.SHOWDOWN:
            return
        self._start_hand()
        self._publish()

    def _on_stall(self, hand_id: int, stage: Stage) -> None:
        if hand_id != self.hand_id or stage != self.stage or not self.is_hand_running:
            return
        actor = self.current_seat
        logger.warning(
            f"Hand #{hand_id} stalled on {stage.value} waiting for "
            f"{actor.name if actor else 'nobody'}; forcing settlement"
        )
        self._audit("stall_timeout", actor)
        self._settle()
        self._publish()

    # ------------------------------------------------------------------ #
    # Audit / notification
    # ------------------------------------------------------------------ #

    def _audit(self, event: str, seat: Optional[Seat] = None, action: str = "", amount: int = 0) -> None:
        if self.audit is None:
            return
        self.audit.write(AuditRecord(
            timestamp=utc_timestamp(),
            hand_id=self.hand_id,
            stage=self.stage.value,
            event=event,
            player_id=seat.seat_id if seat else "",
            player_name=seat.name if seat else "",
            action=action,
            amount=amount,
            pot=self.pot,
            player_stack=seat.stack if seat else None,
            player_hand=" ".join(str(c) for c in seat.cards) if seat else "",
            stacks_snapshot="|".join(f"{s.name}:{s.stack}" for s in self.ledger),
        ))

    def _publish(self) -> None:
        for callback in list(self._listeners):
            callback()


def _action_label(action: Action, seat: Seat, to_call: int, paid: int) -> str:
    """Audit label for an applied action."""
    if action.kind in (ActionType.FOLD, ActionType.CHECK):
        return action.kind.value
    if paid == 0:
        return ActionType.CHECK.value
    if paid <= to_call or action.kind == ActionType.CALL:
        return "allin_call" if seat.all_in else "call"
    if seat.all_in:
        return "allin_raise"
    return "raise" if to_call > 0 else "bet"
