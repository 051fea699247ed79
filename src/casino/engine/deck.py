from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass

from .types import SUITS, Card


@dataclass(frozen=True)
class InitialDeal:
    player1_hand: tuple[Card, ...]
    player2_hand: tuple[Card, ...]
    table: tuple[Card, ...]
    deck: tuple[Card, ...]


def new_deck() -> list[Card]:
    return [Card(rank=rank, suit=suit) for suit in SUITS for rank in range(1, 14)]


def round_rng(seed: int, round_number: int) -> random.Random:
    """Deterministic RNG for one round of one game."""

    return random.Random(f"{seed}:{round_number}")


def shuffled_deck(rng: random.Random) -> list[Card]:
    deck = new_deck()
    rng.shuffle(deck)
    return deck


def deal_initial(deck: Sequence[Card], hand_size: int = 4) -> InitialDeal:
    """Two to player1, two to the table, two to player2, repeated until each
    hand and the table hold ``hand_size`` cards."""

    if hand_size <= 0 or hand_size % 2:
        raise ValueError("Opening hands are dealt in pairs; hand_size must be even.")
    needed = hand_size * 3
    if len(deck) < needed:
        raise ValueError(f"Need at least {needed} cards for the opening deal.")
    p1: list[Card] = []
    table: list[Card] = []
    p2: list[Card] = []
    for start in range(0, needed, 6):
        p1 += deck[start : start + 2]
        table += deck[start + 2 : start + 4]
        p2 += deck[start + 4 : start + 6]
    return InitialDeal(
        player1_hand=tuple(p1),
        player2_hand=tuple(p2),
        table=tuple(table),
        deck=tuple(deck[needed:]),
    )


def deal_hands(
    deck: Sequence[Card], per_player: int = 4
) -> tuple[tuple[Card, ...], tuple[Card, ...], tuple[Card, ...]]:
    """Deal up to ``per_player`` cards each; fewer when the deck runs short.

    Returns (player1 hand, player2 hand, remaining deck).
    """

    count = min(per_player, len(deck) // 2)
    return (
        tuple(deck[:count]),
        tuple(deck[count : count * 2]),
        tuple(deck[count * 2 :]),
    )
