from __future__ import annotations

from collections.abc import Sequence

import pytest

from casino.engine.deck import new_deck
from casino.engine.state import GameState, PlayerState
from casino.engine.types import Build, Card, GameConfig, Phase, PlayerId
from casino.paths import get_paths
from casino.services.content import ContentService

_RANKS = {"A": 1, "J": 11, "Q": 12, "K": 13}
_SUITS = {"S": "Spade", "C": "Club", "H": "Heart", "D": "Diamond"}


def card(code: str) -> Card:
    """'5S' -> five of spades, 'AD' -> ace of diamonds, '10H' -> ten of hearts."""

    rank_part, suit_part = code[:-1], code[-1]
    rank = _RANKS[rank_part] if rank_part in _RANKS else int(rank_part)
    return Card(rank=rank, suit=_SUITS[suit_part])  # type: ignore[arg-type]


def cards(*codes: str) -> tuple[Card, ...]:
    return tuple(card(c) for c in codes)


def make_state(
    *,
    hand1: Sequence[str] = (),
    hand2: Sequence[str] = (),
    table: Sequence[str] = (),
    builds: Sequence[Build] = (),
    captured1: Sequence[str] = (),
    captured2: Sequence[str] = (),
    deck: Sequence[str] | None = None,
    turn: PlayerId | None = "player1",
    dealer: PlayerId = "player2",
    totals: tuple[int, int] = (0, 0),
    wins: tuple[int, int] = (0, 0),
    last_capture: PlayerId | None = None,
    phase: Phase = "awaiting_action",
    config: GameConfig | None = None,
) -> GameState:
    """A hand-arranged state. Unless ``deck`` is given, every card not placed
    elsewhere goes to the draw pile so the 52-card count still holds."""

    placed = (
        cards(*hand1)
        + cards(*hand2)
        + cards(*table)
        + cards(*captured1)
        + cards(*captured2)
        + tuple(c for b in builds for c in b.cards)
    )
    if deck is None:
        rest = tuple(c for c in new_deck() if c not in set(placed))
    else:
        rest = cards(*deck)
    return GameState(
        seed=7,
        deck=rest,
        table=cards(*table),
        players=(
            PlayerState(hand=cards(*hand1), captured=cards(*captured1), total_score=totals[0], wins=wins[0]),
            PlayerState(hand=cards(*hand2), captured=cards(*captured2), total_score=totals[1], wins=wins[1]),
        ),
        current_turn=turn,
        current_dealer=dealer,
        builds=tuple(builds),
        last_capture=last_capture,
        phase=phase,
        next_build_id=max([b.id for b in builds], default=0) + 1,
        config=config or GameConfig(),
    )


def make_build(build_id: int, value: int, codes: Sequence[str], owner: PlayerId) -> Build:
    return Build(id=build_id, value=value, cards=cards(*codes), owner=owner)


@pytest.fixture
def content() -> ContentService:
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir)


@pytest.fixture
def state_schema(content: ContentService) -> dict[str, object]:
    return content.state_schema()
