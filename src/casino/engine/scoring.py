from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .types import Card, GameConfig

SPADE_MAJORITY_POINTS = 1
CARD_MAJORITY_POINTS = 3


@dataclass(frozen=True)
class PileStats:
    score: int
    spade_count: int
    card_count: int
    ace_count: int
    has_big_casino: bool
    has_little_casino: bool


@dataclass(frozen=True)
class RoundScore:
    stats: PileStats
    spade_bonus: int
    card_bonus: int

    @property
    def total(self) -> int:
        return self.stats.score + self.spade_bonus + self.card_bonus


def pile_stats(pile: Iterable[Card], config: GameConfig | None = None) -> PileStats:
    """Points a captured pile is worth on its own.

    Aces score 1 each, the little casino 1 and the big casino 2. Majority
    bonuses depend on the other pile and are added by ``score_round``.
    """
    cfg = config or GameConfig()
    score = 0
    spades = 0
    cards = 0
    aces = 0
    big = False
    little = False
    for card in pile:
        cards += 1
        if card.rank == 1:
            aces += 1
            score += 1
        if card.rank == 2 and card.suit == cfg.little_casino_suit:
            little = True
            score += 1
        if card.rank == 10 and card.suit == cfg.big_casino_suit:
            big = True
            score += 2
        if card.suit == cfg.spade_suit:
            spades += 1
    return PileStats(
        score=score,
        spade_count=spades,
        card_count=cards,
        ace_count=aces,
        has_big_casino=big,
        has_little_casino=little,
    )


def score_round(
    pile1: Iterable[Card], pile2: Iterable[Card], config: GameConfig | None = None
) -> tuple[RoundScore, RoundScore]:
    s1 = pile_stats(pile1, config)
    s2 = pile_stats(pile2, config)
    # Exact ties award nobody.
    return (
        RoundScore(
            stats=s1,
            spade_bonus=SPADE_MAJORITY_POINTS if s1.spade_count > s2.spade_count else 0,
            card_bonus=CARD_MAJORITY_POINTS if s1.card_count > s2.card_count else 0,
        ),
        RoundScore(
            stats=s2,
            spade_bonus=SPADE_MAJORITY_POINTS if s2.spade_count > s1.spade_count else 0,
            card_bonus=CARD_MAJORITY_POINTS if s2.card_count > s1.card_count else 0,
        ),
    )
