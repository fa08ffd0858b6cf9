"""
Orthrus Core - Pure Python table engine

This module contains all hand logic without any network dependencies.
"""

from orthrus.core.card import Card, Deck
from orthrus.core.errors import OrthrusError, EmptyDeck, JoinRejected
from orthrus.core.rules import ActionType, Stage, TableConfig
from orthrus.core.seat import Seat, SeatLedger
from orthrus.core.pots import Pot, PotPreview, preview_side_pots, settle_side_pots
from orthrus.core.betting import Action, BettingRound, StreetStatus
from orthrus.core.hand import HandEvaluator, HandValue, HandCategory
from orthrus.core.audit import AuditLog, AuditRecord
from orthrus.core.timers import AsyncioScheduler, Timer, StallWatchdog
from orthrus.core.table import Table

__all__ = [
    "Card",
    "Deck",
    "OrthrusError",
    "EmptyDeck",
    "JoinRejected",
    "ActionType",
    "Stage",
    "TableConfig",
    "Seat",
    "SeatLedger",
    "Pot",
    "PotPreview",
    "preview_side_pots",
    "settle_side_pots",
    "Action",
    "BettingRound",
    "StreetStatus",
    "HandEvaluator",
    "HandValue",
    "HandCategory",
    "AuditLog",
    "AuditRecord",
    "AsyncioScheduler",
    "Timer",
    "StallWatchdog",
    "Table",
]
