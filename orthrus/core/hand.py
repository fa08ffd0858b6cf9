"""
Hand ranking for showdown.

The table only needs two capabilities from a ranker:

- ``evaluate(cards)``: best 5-card hand out of 5-7 cards, as a comparable
  HandValue carrying a human-readable category name
- ``winners(values)``: the maximal values, ties included

HandEvaluator is the built-in implementation; any object with the same two
methods can be passed to the Table instead.

Strength is a tuple ``(category, tiebreak ranks...)`` where higher is better.
Ace can play low in the A-2-3-4-5 straight (wheel).
"""

from __future__ import annotations
from typing import List, Protocol, Sequence, Tuple
from itertools import combinations
from dataclasses import dataclass, field
from enum import IntEnum
from collections import Counter

from orthrus.core.card import Card, Rank


class HandCategory(IntEnum):
    """Hand categories, higher is better."""
    HIGH_CARD = 1
    ONE_PAIR = 2
    TWO_PAIR = 3
    THREE_OF_A_KIND = 4
    STRAIGHT = 5
    FLUSH = 6
    FULL_HOUSE = 7
    FOUR_OF_A_KIND = 8
    STRAIGHT_FLUSH = 9
    ROYAL_FLUSH = 10


CATEGORY_NAMES = {
    HandCategory.ROYAL_FLUSH: "Royal Flush",
    HandCategory.STRAIGHT_FLUSH: "Straight Flush",
    HandCategory.FOUR_OF_A_KIND: "Four of a Kind",
    HandCategory.FULL_HOUSE: "Full House",
    HandCategory.FLUSH: "Flush",
    HandCategory.STRAIGHT: "Straight",
    HandCategory.THREE_OF_A_KIND: "Three of a Kind",
    HandCategory.TWO_PAIR: "Two Pair",
    HandCategory.ONE_PAIR: "Pair",
    HandCategory.HIGH_CARD: "High Card",
}


@dataclass(frozen=True, order=True)
class HandValue:
    """Comparable hand strength; only ``strength`` takes part in comparisons."""
    strength: Tuple[int, ...]
    category: HandCategory = field(compare=False)
    best_cards: Tuple[Card, ...] = field(default=(), compare=False)

    @property
    def name(self) -> str:
        return CATEGORY_NAMES[self.category]


class HandRanker(Protocol):
    """Hand-ranking collaborator used at showdown."""

    def evaluate(self, cards: Sequence[Card]) -> HandValue: ...

    def winners(self, values: Sequence[HandValue]) -> List[HandValue]: ...


class HandEvaluator:
    """Brute-force evaluator over every 5-card combination."""

    def evaluate(self, cards: Sequence[Card]) -> HandValue:
        """
        Evaluate 5-7 cards.

        Raises:
            ValueError: If not 5-7 cards provided
        """
        if len(cards) < 5 or len(cards) > 7:
            raise ValueError(f"Need 5-7 cards, got {len(cards)}")
        return max(evaluate_five(list(combo)) for combo in combinations(cards, 5))

    def winners(self, values: Sequence[HandValue]) -> List[HandValue]:
        if not values:
            return []
        best = max(values)
        return [v for v in values if v == best]


def evaluate_five(cards: List[Card]) -> HandValue:
    """Evaluate exactly 5 cards."""
    ranks = sorted((int(c.rank) for c in cards), reverse=True)
    is_flush = len({c.suit for c in cards}) == 1
    straight_high = _straight_high(ranks)

    counts = Counter(ranks)
    # Group ranks by (count, rank) so pairs/trips sort ahead of kickers
    grouped = sorted(counts.items(), key=lambda item: (item[1], item[0]), reverse=True)
    shape = [count for _, count in grouped]
    ordered = [rank for rank, _ in grouped]

    if straight_high and is_flush:
        category = HandCategory.ROYAL_FLUSH if straight_high == Rank.ACE else HandCategory.STRAIGHT_FLUSH
        tiebreak = [straight_high]
    elif shape == [4, 1]:
        category, tiebreak = HandCategory.FOUR_OF_A_KIND, ordered
    elif shape == [3, 2]:
        category, tiebreak = HandCategory.FULL_HOUSE, ordered
    elif is_flush:
        category, tiebreak = HandCategory.FLUSH, ranks
    elif straight_high:
        category, tiebreak = HandCategory.STRAIGHT, [straight_high]
    elif shape == [3, 1, 1]:
        category, tiebreak = HandCategory.THREE_OF_A_KIND, ordered
    elif shape == [2, 2, 1]:
        category, tiebreak = HandCategory.TWO_PAIR, ordered
    elif shape == [2, 1, 1, 1]:
        category, tiebreak = HandCategory.ONE_PAIR, ordered
    else:
        category, tiebreak = HandCategory.HIGH_CARD, ranks

    best = sorted(cards, key=lambda c: (counts[int(c.rank)], int(c.rank)), reverse=True)
    return HandValue(
        strength=(int(category), *tiebreak),
        category=category,
        best_cards=tuple(best),
    )


def _straight_high(ranks: List[int]) -> int:
    """High card of a straight in ``ranks`` (descending), or 0."""
    unique = sorted(set(ranks), reverse=True)
    if len(unique) != 5:
        return 0
    if unique[0] - unique[4] == 4:
        return unique[0]
    if unique == [Rank.ACE, Rank.FIVE, Rank.FOUR, Rank.THREE, Rank.TWO]:
        return int(Rank.FIVE)
    return 0
