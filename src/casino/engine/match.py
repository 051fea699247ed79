from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from .actions import (
    Action,
    AdvanceAction,
    BuildAction,
    CaptureAction,
    CaptureBuildAction,
    IncreaseBuildAction,
    NextRoundAction,
    TrailAction,
)
from .builds import capture_build, create_build, ensure_can_trail, increase_build
from .capture import CaptureOption, resolve_capture
from .deck import deal_hands
from .lifecycle import finish_round, new_game, start_next_round
from .state import GameState, flip_turn, hands_empty, require_in_hand
from .types import ErrorKind, Event, GameConfig, IllegalAction, PlayerId, opponent


@dataclass
class StepResult:
    ok: bool
    state: GameState
    events: list[Event]
    error: str | None = None
    error_kind: ErrorKind | None = None
    message: str | None = None
    options: tuple[CaptureOption, ...] = ()
    build_values: tuple[int, ...] = ()


def needs_advance(state: GameState) -> bool:
    """True when both hands are spent and the arbiter must deal or end the round."""

    return state.phase == "awaiting_action" and hands_empty(state)


def _require_turn(state: GameState, player: PlayerId) -> None:
    if state.phase != "awaiting_action":
        raise IllegalAction("invalid_turn", "The round is over.")
    if state.current_turn != player:
        raise IllegalAction("invalid_turn", "It's not your turn!")


def _require_arbiter(state: GameState, player: PlayerId) -> None:
    if player != state.config.arbiter:
        raise IllegalAction("invalid_turn", f"Only {state.config.arbiter} may deal.")


def _trail(state: GameState, action: TrailAction) -> tuple[GameState, Event]:
    new_hand = require_in_hand(state, action.player, action.card)
    ensure_can_trail(state, action.player)
    new_state = replace(state, table=state.table + (action.card,)).with_player(
        action.player, hand=new_hand
    )
    return new_state, {"type": "CARD_TRAILED", "player": action.player, "card": action.card.label()}


def _deal(state: GameState) -> tuple[GameState, list[Event]]:
    hand1, hand2, rest = deal_hands(state.deck, state.config.hand_size)
    dealer = opponent(state.current_dealer)
    new_state = replace(
        state,
        deck=rest,
        current_dealer=dealer,
        current_turn=opponent(dealer),
    )
    new_state = new_state.with_player("player1", hand=hand1).with_player("player2", hand=hand2)
    event: Event = {
        "type": "CARDS_DEALT",
        "dealer": dealer,
        "count": len(hand1),
        "deck_left": len(rest),
    }
    return new_state, [event]


def _advance(state: GameState, action: AdvanceAction) -> tuple[GameState, list[Event]]:
    _require_arbiter(state, action.player)
    if not needs_advance(state):
        return state, []
    if len(state.deck) >= 2:
        return _deal(state)
    return finish_round(state)


def _next_round(state: GameState, action: NextRoundAction) -> tuple[GameState, list[Event]]:
    _require_arbiter(state, action.player)
    if state.phase != "round_ended":
        raise IllegalAction("invalid_turn", "The round is still in progress.")
    return start_next_round(state)


def _play(state: GameState, action: Action) -> tuple[GameState, Event]:
    if isinstance(action, CaptureAction):
        return resolve_capture(state, action)
    if isinstance(action, BuildAction):
        return create_build(state, action)
    if isinstance(action, IncreaseBuildAction):
        return increase_build(state, action)
    if isinstance(action, CaptureBuildAction):
        return capture_build(state, action)
    if isinstance(action, TrailAction):
        return _trail(state, action)
    raise IllegalAction("no_selection", "Unknown action.")


def describe(event: Event) -> str:
    """Human-readable one-liner for an engine event."""

    t = event.get("type")
    who = event.get("player")
    if t == "CARD_CAPTURED":
        parts = list(event.get("captured") or [])  # type: ignore[call-overload]
        if event.get("build_id") is not None:
            parts.append(f"build #{event['build_id']}")
        return f"{who} captured {', '.join(parts)} with a {event['card']}"
    if t == "BUILD_CAPTURED":
        return f"{who} captured a build of {event['value']} with a {event['card']}"
    if t == "BUILD_CREATED":
        return f"{who} is building {event['value']}s"
    if t == "BUILD_INCREASED":
        return f"{who} increased a build from {event['from']} to {event['to']}"
    if t == "CARD_TRAILED":
        return f"{who} trailed a {event['card']}"
    if t == "CARDS_DEALT":
        return "New cards dealt!"
    if t == "ROUND_ENDED":
        p1, p2 = event["scores"]  # type: ignore[misc]
        return f"Round {event['round']} over! player1: {p1} pts | player2: {p2} pts"
    if t == "GAME_ENDED":
        return f"{event['winner']} wins!"
    if t == "ROUND_STARTED":
        return f"Round {event['round']} started!"
    return str(t)


def step(state: GameState, action: Action) -> StepResult:
    """Apply a single action and return the resulting state.

    ``state`` is never modified; a rejected action returns it unchanged.
    """
    if state.phase == "game_over":
        return StepResult(
            ok=False, state=state, events=[], error="Game is over.", error_kind="invalid_turn"
        )

    try:
        if isinstance(action, AdvanceAction):
            new_state, events = _advance(state, action)
        elif isinstance(action, NextRoundAction):
            new_state, events = _next_round(state, action)
        else:
            _require_turn(state, action.player)
            new_state, event = _play(state, action)
            # Every accepted play passes the turn, whatever it did.
            new_state = flip_turn(new_state)
            events = [event]
    except IllegalAction as exc:
        return StepResult(
            ok=False,
            state=state,
            events=[],
            error=str(exc),
            error_kind=exc.kind,
            options=tuple(o for o in exc.options if isinstance(o, CaptureOption)),
            build_values=exc.build_values,
        )

    if not events:
        return StepResult(ok=True, state=state, events=[], message="Nothing to do.")
    message = "; ".join(describe(e) for e in events)
    new_state = replace(new_state, last_message=message)
    return StepResult(ok=True, state=new_state, events=events, message=message)


def replay(
    seed: int,
    actions: Iterable[Action],
    config: GameConfig | None = None,
) -> GameState:
    state = new_game(seed, config)
    for a in actions:
        state = step(state, a).state
        if state.phase == "game_over":
            break
    return state

