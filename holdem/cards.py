from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .errors import StateInvariantViolation

RANKS = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")
SUITS = ("hearts", "diamonds", "clubs", "spades")

RANK_VALUE = {rank: idx for idx, rank in enumerate(RANKS, start=2)}
_SUIT_LETTER = {suit: suit[0] for suit in SUITS}
_LETTER_SUIT = {letter: suit for suit, letter in _SUIT_LETTER.items()}


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANK_VALUE:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in _SUIT_LETTER:
            raise ValueError(f"Invalid suit: {self.suit}")

    @property
    def value(self) -> int:
        return RANK_VALUE[self.rank]

    @property
    def label(self) -> str:
        return f"{self.rank}{_SUIT_LETTER[self.suit]}"


def create_deck() -> List[Card]:
    return [Card(rank, suit) for suit in SUITS for rank in RANKS]


def shuffle_deck(deck: Sequence[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """Fisher-Yates over a copy of ``deck``; the input is left untouched."""
    rng = rng or random.Random()
    shuffled = list(deck)
    for idx in range(len(shuffled) - 1, 0, -1):
        swap = rng.randint(0, idx)
        shuffled[idx], shuffled[swap] = shuffled[swap], shuffled[idx]
    return shuffled


def build_deck(rng: Optional[random.Random] = None) -> List[Card]:
    return shuffle_deck(create_deck(), rng)


def deal(deck: List[Card], count: int) -> List[Card]:
    if len(deck) < count:
        raise StateInvariantViolation("Not enough cards left in deck")
    cards = deck[:count]
    del deck[:count]
    return cards


def cards_to_labels(cards: Sequence[Card]) -> List[str]:
    return [card.label for card in cards]


def parse_label(label: str) -> Card:
    if len(label) not in (2, 3):
        raise ValueError(f"Invalid card label: {label}")
    rank, letter = label[:-1], label[-1]
    if rank == "T":
        rank = "10"
    if letter not in _LETTER_SUIT:
        raise ValueError(f"Invalid suit: {letter}")
    return Card(rank, _LETTER_SUIT[letter])


def parse_cards(labels: Sequence[str]) -> List[Card]:
    return [parse_label(label) for label in labels]
