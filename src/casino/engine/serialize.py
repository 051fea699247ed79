from __future__ import annotations

from collections.abc import Iterable

from .state import GameState
from .types import Build, Card


def card_to_dict(c: Card) -> dict[str, object]:
    return {"rank": c.rank, "suit": c.suit}


def _cards(cards: Iterable[Card]) -> list[dict[str, object]]:
    return [card_to_dict(c) for c in cards]


def _build_to_dict(b: Build) -> dict[str, object]:
    return {"id": b.id, "value": b.value, "cards": _cards(b.cards), "owner": b.owner}


def snapshot(state: GameState) -> dict[str, object]:
    """Return the JSON-serializable record kept in the shared snapshot store."""

    p1, p2 = state.players
    return {
        "seed": state.seed,
        "deck": _cards(state.deck),
        "player1Hand": _cards(p1.hand),
        "player2Hand": _cards(p2.hand),
        "tableCards": _cards(state.table),
        "builds": [_build_to_dict(b) for b in state.builds],
        "player1Captured": _cards(p1.captured),
        "player2Captured": _cards(p2.captured),
        "currentTurn": state.current_turn,
        "currentDealer": state.current_dealer,
        "roundNumber": state.round_number,
        "player1Score": p1.round_score,
        "player2Score": p2.round_score,
        "player1TotalScore": p1.total_score,
        "player2TotalScore": p2.total_score,
        "player1Wins": p1.wins,
        "player2Wins": p2.wins,
        "lastCapture": state.last_capture,
        "roundEnded": state.phase != "awaiting_action",
        "gameOver": state.phase == "game_over",
        "winner": state.winner,
        "nextBuildId": state.next_build_id,
        "lastPlayMessage": state.last_message,
    }


def changed_fields(before: dict[str, object] | None, after: dict[str, object]) -> dict[str, object]:
    """The subset of ``after`` that differs from ``before``, for a partial update."""

    if before is None:
        return dict(after)
    return {k: v for k, v in after.items() if before.get(k) != v}
