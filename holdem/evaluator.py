from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .cards import Card

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
    0: "Invalid Hand",
    HIGH_CARD: "High Card",
    ONE_PAIR: "One Pair",
    TWO_PAIR: "Two Pair",
    THREE_OF_A_KIND: "Three of a Kind",
    STRAIGHT: "Straight",
    FLUSH: "Flush",
    FULL_HOUSE: "Full House",
    FOUR_OF_A_KIND: "Four of a Kind",
    STRAIGHT_FLUSH: "Straight Flush",
    ROYAL_FLUSH: "Royal Flush",
}


@dataclass(frozen=True, order=True)
class HandStrength:
    rank: int
    values: Tuple[int, ...] = ()
    name: str = field(default="", compare=False)

    @property
    def is_valid(self) -> bool:
        return self.rank > 0


INVALID_HAND = HandStrength(0, (), CATEGORY_NAMES[0])


def _strength(rank: int, values: Iterable[int]) -> HandStrength:
    return HandStrength(rank, tuple(values), CATEGORY_NAMES[rank])


def evaluate(cards: Sequence[Card]) -> HandStrength:
    """Rank the best five-card hand found in 5 to 7 cards.

    Categories are tested strongest first and the first match wins. Fewer
    than five cards yields ``INVALID_HAND``.
    """
    if len(cards) < 5:
        return INVALID_HAND

    values = sorted((card.value for card in cards), reverse=True)

    counts: Dict[int, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    ordered_counts = sorted(counts.items(), key=lambda x: (x[1], x[0]), reverse=True)

    flush_values = _flush_values(cards)
    if flush_values:
        straight_flush_high = _straight_high(flush_values)
        if straight_flush_high == 14:
            return _strength(ROYAL_FLUSH, [14])
        if straight_flush_high:
            return _strength(STRAIGHT_FLUSH, [straight_flush_high])

    top_value, top_count = ordered_counts[0]
    if top_count >= 4:
        kicker = max(v for v in values if v != top_value)
        return _strength(FOUR_OF_A_KIND, [top_value, kicker])

    if top_count == 3:
        pair_candidates = [v for v, c in ordered_counts[1:] if c >= 2]
        if pair_candidates:
            return _strength(FULL_HOUSE, [top_value, max(pair_candidates)])

    if flush_values:
        return _strength(FLUSH, flush_values[:5])

    straight_high = _straight_high(values)
    if straight_high:
        return _strength(STRAIGHT, [straight_high])

    if top_count == 3:
        kickers = [v for v in values if v != top_value][:2]
        return _strength(THREE_OF_A_KIND, [top_value] + kickers)

    pairs = sorted((v for v, c in counts.items() if c == 2), reverse=True)
    if len(pairs) >= 2:
        high, low = pairs[0], pairs[1]
        kicker = max(v for v in values if v not in (high, low))
        return _strength(TWO_PAIR, [high, low, kicker])
    if pairs:
        kickers = [v for v in values if v != pairs[0]][:3]
        return _strength(ONE_PAIR, [pairs[0]] + kickers)

    return _strength(HIGH_CARD, values[:5])


def compare_hands(a: HandStrength, b: HandStrength) -> int:
    if a.rank != b.rank:
        return a.rank - b.rank
    for idx in range(max(len(a.values), len(b.values))):
        left = a.values[idx] if idx < len(a.values) else 0
        right = b.values[idx] if idx < len(b.values) else 0
        if left != right:
            return left - right
    return 0


def describe(strength: HandStrength) -> str:
    return CATEGORY_NAMES.get(strength.rank, CATEGORY_NAMES[0])


def _flush_values(cards: Sequence[Card]) -> Optional[List[int]]:
    by_suit: Dict[str, List[int]] = {}
    for card in cards:
        by_suit.setdefault(card.suit, []).append(card.value)
    for suited in by_suit.values():
        if len(suited) >= 5:
            return sorted(suited, reverse=True)
    return None


def _straight_high(values: Iterable[int]) -> Optional[int]:
    ranks = set(values)
    if 14 in ranks:  # Ace low
        ranks.add(1)
    ordered = sorted(ranks, reverse=True)
    for idx in range(len(ordered) - 4):
        if ordered[idx] - ordered[idx + 4] == 4:
            return ordered[idx]
    return None
