from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Suit = Literal["Spade", "Club", "Heart", "Diamond"]
PlayerId = Literal["player1", "player2"]
Phase = Literal["awaiting_action", "round_ended", "game_over"]

ErrorKind = Literal[
    "invalid_turn",
    "no_selection",
    "illegal_combination",
    "illegal_build_value",
    "forced_build_resolution",
    "build_value_mismatch",
    "corrupt_state",
    "stale_write_rejected",
]

SUITS: tuple[Suit, ...] = ("Spade", "Club", "Heart", "Diamond")
PLAYERS: tuple[PlayerId, PlayerId] = ("player1", "player2")
DECK_SIZE = 52

Event = dict[str, object]

RANK_LABELS = ("", "A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")
SUIT_SYMBOLS: dict[str, str] = {"Spade": "♠", "Club": "♣", "Heart": "♥", "Diamond": "♦"}


def opponent(player: PlayerId) -> PlayerId:
    return "player2" if player == "player1" else "player1"


def seat(player: PlayerId) -> int:
    return PLAYERS.index(player)


@dataclass(frozen=True, order=True)
class Card:
    """A single card. Unique within a deck, so it doubles as its own identifier."""

    rank: int
    suit: Suit

    def label(self) -> str:
        return f"{RANK_LABELS[self.rank]}{SUIT_SYMBOLS[self.suit]}"


@dataclass(frozen=True)
class Build:
    id: int
    value: int
    cards: tuple[Card, ...]
    owner: PlayerId


@dataclass(frozen=True)
class GameConfig:
    """Rule constants for a game. Defaults mirror data/rules.json."""

    target_score: int = 21
    hand_size: int = 4
    max_build_value: int = 10
    big_casino_suit: Suit = "Diamond"
    little_casino_suit: Suit = "Spade"
    spade_suit: Suit = "Spade"
    deal_delay: float = 1.5
    arbiter: PlayerId = "player1"


class IllegalAction(RuntimeError):
    """Raised inside the engine when an action breaks a rule.

    ``step`` turns it into a rejected ``StepResult``; it never leaves the engine.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        options: tuple[object, ...] = (),
        build_values: tuple[int, ...] = (),
    ) -> None:
        super().__init__(message)
        self.kind: ErrorKind = kind
        self.options = options
        self.build_values = build_values
