"""
Orthrus - a shared Texas Hold'em table server

One table, many browsers:
- Pure Python hand engine (deck, betting, side pots, showdown)
- FastAPI + WebSocket server pushing per-seat state
- CSV audit log of every mutating event

Usage:
    from orthrus.core import Table, TableConfig, Action, ActionType
"""

__version__ = "0.1.0"

from orthrus.core.card import Card, Deck
from orthrus.core.rules import ActionType, Stage, TableConfig
from orthrus.core.betting import Action
from orthrus.core.table import Table

__all__ = [
    "Card",
    "Deck",
    "ActionType",
    "Stage",
    "TableConfig",
    "Action",
    "Table",
    "__version__",
]
