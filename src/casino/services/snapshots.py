from __future__ import annotations

from typing import Mapping

from casino.engine.state import GameState, PlayerState, card_total
from casino.engine.types import DECK_SIZE, Build, Card, GameConfig, Phase, PlayerId
from casino.services.content import ContentError, validate_json


class CorruptStateError(ContentError):
    """The observed snapshot is missing fields or does not describe a real deal."""


def _require_int(obj: Mapping[str, object], key: str, default: int | None = None) -> int:
    v = obj.get(key, default)
    if not isinstance(v, int) or isinstance(v, bool):
        raise CorruptStateError(f"Expected int for {key}")
    return v


def _cards(obj: Mapping[str, object], key: str) -> tuple[Card, ...]:
    raw = obj.get(key)
    if not isinstance(raw, list):
        raise CorruptStateError(f"Expected list for {key}")
    # trust schema for rank and suit values
    return tuple(Card(rank=c["rank"], suit=c["suit"]) for c in raw)


def _player(raw: object) -> PlayerId | None:
    if raw is None:
        return None
    if raw not in ("player1", "player2"):
        raise CorruptStateError(f"Unknown player {raw!r}")
    return raw  # type: ignore[return-value]


def _builds(raw: object) -> tuple[Build, ...]:
    if not isinstance(raw, list):
        raise CorruptStateError("Expected list for builds")
    out: list[Build] = []
    for item in raw:
        owner = _player(item.get("owner"))
        if owner is None:
            raise CorruptStateError("Build without an owner")
        out.append(
            Build(
                id=_require_int(item, "id"),
                value=_require_int(item, "value"),
                cards=_cards(item, "cards"),
                owner=owner,
            )
        )
    return tuple(out)


def _phase(raw: Mapping[str, object]) -> Phase:
    if raw.get("gameOver"):
        return "game_over"
    if raw.get("roundEnded"):
        return "round_ended"
    return "awaiting_action"


def parse_snapshot(
    raw: object, schema: Mapping[str, object], config: GameConfig | None = None
) -> GameState:
    """Validate a store snapshot and turn it back into a ``GameState``.

    Raises ``CorruptStateError`` on anything the engine cannot safely act on.
    """
    validate_json(raw, schema, context="game state snapshot", error=CorruptStateError)
    if not isinstance(raw, dict):
        raise CorruptStateError("game state snapshot must be an object")

    players = (
        PlayerState(
            hand=_cards(raw, "player1Hand"),
            captured=_cards(raw, "player1Captured"),
            round_score=_require_int(raw, "player1Score", 0),
            total_score=_require_int(raw, "player1TotalScore", 0),
            wins=_require_int(raw, "player1Wins", 0),
        ),
        PlayerState(
            hand=_cards(raw, "player2Hand"),
            captured=_cards(raw, "player2Captured"),
            round_score=_require_int(raw, "player2Score", 0),
            total_score=_require_int(raw, "player2TotalScore", 0),
            wins=_require_int(raw, "player2Wins", 0),
        ),
    )
    dealer = _player(raw.get("currentDealer"))
    if dealer is None:
        raise CorruptStateError("Missing currentDealer")
    phase = _phase(raw)
    turn = _player(raw.get("currentTurn"))
    if phase == "awaiting_action" and turn is None:
        raise CorruptStateError("No player on turn during a live round")
    message = raw.get("lastPlayMessage")
    builds = _builds(raw.get("builds"))
    next_id = max([_require_int(raw, "nextBuildId", 1)] + [b.id + 1 for b in builds])

    state = GameState(
        seed=_require_int(raw, "seed", 0),
        deck=_cards(raw, "deck"),
        table=_cards(raw, "tableCards"),
        players=players,
        current_turn=turn if phase == "awaiting_action" else None,
        current_dealer=dealer,
        builds=builds,
        round_number=_require_int(raw, "roundNumber"),
        last_capture=_player(raw.get("lastCapture")),
        phase=phase,
        winner=_player(raw.get("winner")),
        next_build_id=next_id,
        last_message=message if isinstance(message, str) else None,
        config=config or GameConfig(),
    )

    total = card_total(state)
    if total != DECK_SIZE:
        raise CorruptStateError(f"Snapshot holds {total} cards, expected {DECK_SIZE}")
    everything = list(state.deck) + list(state.table)
    for ps in state.players:
        everything += list(ps.hand) + list(ps.captured)
    for b in state.builds:
        everything += list(b.cards)
    if len(set(everything)) != DECK_SIZE:
        raise CorruptStateError("Snapshot holds duplicate cards")
    return state
