"""
Card and Deck classes for the table.

A deck is consumed strictly from the top: ``draw()`` pops the last card of
the underlying list. A fresh, shuffled deck is built for every hand and is
never reused.
"""

from __future__ import annotations
import random
from typing import Iterable, List, Optional, Sequence
from enum import IntEnum

from orthrus.core.errors import EmptyDeck


class Suit(IntEnum):
    """Card suits in canonical deck order."""
    SPADES = 0
    HEARTS = 1
    DIAMONDS = 2
    CLUBS = 3


class Rank(IntEnum):
    """Card ranks from 2 (lowest) to Ace (highest)."""
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14


SUIT_SYMBOLS = {
    Suit.SPADES: "♠",
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
}

SUIT_CHARS = {
    Suit.SPADES: "s",
    Suit.HEARTS: "h",
    Suit.DIAMONDS: "d",
    Suit.CLUBS: "c",
}

RANK_CHARS = {
    Rank.TWO: "2",
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "10",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
    Rank.ACE: "A",
}

CHAR_TO_RANK = {v: k for k, v in RANK_CHARS.items()}
CHAR_TO_RANK["T"] = Rank.TEN
CHAR_TO_SUIT = {v: k for k, v in SUIT_CHARS.items()}
SYMBOL_TO_SUIT = {v: k for k, v in SUIT_SYMBOLS.items()}


class Card:
    """
    A playing card represented as (rank, suit).

    Cards can be created from:
    - Rank and Suit enums: Card(Rank.ACE, Suit.SPADES)
    - Token notation: Card.from_string("A♠"), Card.from_string("10h")

    ``str(card)`` gives the table token ("A♠", "10♥") used in snapshots
    and audit records.
    """

    __slots__ = ("rank", "suit")

    def __init__(self, rank: Rank, suit: Suit):
        self.rank = Rank(rank)
        self.suit = Suit(suit)

    @classmethod
    def from_string(cls, s: str) -> Card:
        """Create a card from a token such as "As", "10h" or "K♥"."""
        s = s.strip()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_part, suit_part = s[:-1].upper(), s[-1]
        if rank_part not in CHAR_TO_RANK:
            raise ValueError(f"Invalid rank: {rank_part}")

        if suit_part.lower() in CHAR_TO_SUIT:
            suit = CHAR_TO_SUIT[suit_part.lower()]
        elif suit_part in SYMBOL_TO_SUIT:
            suit = SYMBOL_TO_SUIT[suit_part]
        else:
            raise ValueError(f"Invalid suit: {suit_part}")

        return cls(CHAR_TO_RANK[rank_part], suit)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Card):
            return self.rank == other.rank and self.suit == other.suit
        return False

    def __hash__(self) -> int:
        return hash((self.rank, self.suit))

    def __repr__(self) -> str:
        return f"Card({RANK_CHARS[self.rank]}{SUIT_CHARS[self.suit]})"

    def __str__(self) -> str:
        return f"{RANK_CHARS[self.rank]}{SUIT_SYMBOLS[self.suit]}"


def fresh_deck() -> List[Card]:
    """All 52 cards in canonical (suit, rank) order."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


def shuffle(cards: Sequence[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """Return a uniformly random permutation of ``cards`` (Fisher-Yates)."""
    rng = rng or random.SystemRandom()
    shuffled = list(cards)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


class Deck:
    """
    A 52-card deck drawn from the top.

    Usage:
        deck = Deck.shuffled(random.Random(7))
        hole = [deck.draw(), deck.draw()]
        deck.burn()
        flop = deck.deal(3)
    """

    def __init__(self, cards: Optional[Iterable[Card]] = None):
        """Build a deck; the last card of ``cards`` is the top of the deck."""
        self._cards: List[Card] = list(cards) if cards is not None else fresh_deck()

    @classmethod
    def shuffled(cls, rng: Optional[random.Random] = None) -> Deck:
        return cls(shuffle(fresh_deck(), rng))

    def draw(self) -> Card:
        """
        Remove and return the top card.

        Raises:
            EmptyDeck: If no cards remain.
        """
        if not self._cards:
            raise EmptyDeck("Cannot draw from an empty deck")
        return self._cards.pop()

    def deal(self, n: int) -> List[Card]:
        """Draw ``n`` cards in order."""
        return [self.draw() for _ in range(n)]

    def burn(self) -> None:
        """Discard the top card."""
        self.draw()

    @property
    def remaining(self) -> int:
        """Number of cards remaining in the deck."""
        return len(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def __repr__(self) -> str:
        return f"Deck({self.remaining} cards remaining)"


def parse_cards(cards_str: str) -> List[Card]:
    """Parse space-separated card tokens, e.g. "A♠ 10h Kd"."""
    return [Card.from_string(s) for s in cards_str.split()]
