"""
Side pot calculation.

Contributions are banded by distinct committed levels. For consecutive
levels P < L the band width is L - P, and the band holds
``width * (seats with committed >= L)`` chips. Folded seats count toward
the amount of a band but never toward eligibility to win it.

Two views are built from the same banding:

- preview: contested bands (eligible count >= 2) for live display
- settlement: pots with eligible seat ids, plus refunds for unmatched
  overage (a band reached by one seat only) and for bands nobody live
  can claim
"""

from __future__ import annotations
from typing import Dict, Iterable, List
from dataclasses import dataclass, field

from orthrus.core.seat import Seat


@dataclass
class Pot:
    """A main or side pot at settlement."""
    amount: int
    eligible_ids: List[str] = field(default_factory=list)


@dataclass
class PotPreview:
    """A contested band shown before showdown."""
    amount: int
    eligible_count: int

    def to_dict(self) -> Dict[str, int]:
        return {"amount": self.amount, "eligibleCount": self.eligible_count}


@dataclass
class Settlement:
    """Result of banding at showdown."""
    pots: List[Pot] = field(default_factory=list)
    refunds: Dict[str, int] = field(default_factory=dict)
    total_refund: int = 0

    @property
    def total(self) -> int:
        return sum(p.amount for p in self.pots) + self.total_refund


def _levels(seats: List[Seat]) -> List[int]:
    return sorted({s.committed for s in seats if s.committed > 0})


def preview_side_pots(seats: Iterable[Seat]) -> List[PotPreview]:
    """Contested bands for display; does not touch the seats."""
    seats = list(seats)
    previews = []
    prev = 0
    for level in _levels(seats):
        band = level - prev
        reached = [s for s in seats if s.committed >= level]
        eligible = [s for s in reached if s.is_live]
        if len(eligible) >= 2:
            previews.append(PotPreview(amount=band * len(reached), eligible_count=len(eligible)))
        prev = level
    return previews


def settle_side_pots(seats: Iterable[Seat]) -> Settlement:
    """
    Split committed chips into pots and refunds.

    - exactly one seat reaches a level: the band is refunded to it
    - two or more reach it: the band is a pot for the live ones among them
    - two or more reach it but none is live: each gets one band width back

    Invariant: ``settlement.total == sum(committed)``.
    """
    seats = list(seats)
    settlement = Settlement()
    prev = 0

    for level in _levels(seats):
        band = level - prev
        reached = [s for s in seats if s.committed >= level]

        if len(reached) == 1:
            sole = reached[0]
            settlement.refunds[sole.seat_id] = settlement.refunds.get(sole.seat_id, 0) + band
            settlement.total_refund += band
        else:
            eligible = [s.seat_id for s in reached if s.is_live]
            if eligible:
                settlement.pots.append(Pot(amount=band * len(reached), eligible_ids=eligible))
            else:
                for s in reached:
                    settlement.refunds[s.seat_id] = settlement.refunds.get(s.seat_id, 0) + band
                settlement.total_refund += band * len(reached)
        prev = level

    return settlement
