"""
Append-only CSV audit log, one file per table lifetime.

Each row records one mutating event with the pot, the acting seat's stack
and hole cards, and a snapshot of every stack at the table.
"""

from __future__ import annotations
import csv
import logging
import os
from datetime import datetime, timezone
from typing import List, Optional
from dataclasses import dataclass, astuple


logger = logging.getLogger(__name__)


AUDIT_COLUMNS = [
    "timestamp", "handId", "stage", "event", "playerId", "playerName",
    "action", "amount", "pot", "playerStack", "playerHand", "stacksSnapshot",
]


@dataclass
class AuditRecord:
    """One row of the audit log."""
    timestamp: str
    hand_id: int
    stage: str
    event: str
    player_id: str = ""
    player_name: str = ""
    action: str = ""
    amount: int = 0
    pot: int = 0
    player_stack: Optional[int] = None
    player_hand: str = ""
    stacks_snapshot: str = ""

    def to_row(self) -> List[str]:
        return ["" if value is None else str(value) for value in astuple(self)]


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """
    Writes AuditRecords to ``<log_dir>/actions-<timestamp>.csv``.

    The file is created lazily on the first record.
    """

    def __init__(self, log_dir: str):
        self.log_dir = log_dir
        self.path: Optional[str] = None

    def _open_file(self) -> str:
        os.makedirs(self.log_dir, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%f")
        path = os.path.join(self.log_dir, f"actions-{stamp}.csv")
        with open(path, "w", newline="", encoding="utf-8") as fh:
            csv.writer(fh).writerow(AUDIT_COLUMNS)
        logger.info(f"Audit log created at {path}")
        return path

    def write(self, record: AuditRecord) -> None:
        if self.path is None:
            self.path = self._open_file()
        with open(self.path, "a", newline="", encoding="utf-8") as fh:
            csv.writer(fh).writerow(record.to_row())

    @staticmethod
    def latest(log_dir: str) -> Optional[str]:
        """Most recently modified audit file in ``log_dir``, if any."""
        if not os.path.isdir(log_dir):
            return None
        files = [
            os.path.join(log_dir, name)
            for name in os.listdir(log_dir)
            if name.startswith("actions-") and name.endswith(".csv")
        ]
        if not files:
            return None
        return max(files, key=os.path.getmtime)
