from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from .actions import BuildAction, CaptureBuildAction, IncreaseBuildAction
from .combos import can_partition
from .state import GameState, require_in_hand, require_on_table, without
from .types import Build, Card, Event, IllegalAction, PlayerId


def build_candidates(cards: Sequence[Card], remaining_hand: Sequence[Card]) -> list[int]:
    """Values the cards could be declared as, given what is left to capture with.

    The whole sum is always a candidate; a smaller value is one only when the
    cards split into two or more groups of that value. Either way the player
    must still hold a card of that rank. No upper bound is applied here.
    """
    ranks = [c.rank for c in cards]
    total = sum(ranks)
    held = sorted({c.rank for c in remaining_hand})
    values: list[int] = []
    if total in held:
        values.append(total)
    for value in held:
        if value < total and can_partition(ranks, value):
            values.append(value)
    return sorted(values)


def _declared_value(
    candidates: Sequence[int],
    requested: int | None,
    *,
    max_value: int,
    floor: int = 0,
) -> int:
    if not candidates:
        raise IllegalAction(
            "illegal_build_value",
            "Cannot build - you need a matching card in hand to capture it later.",
        )
    legal = [v for v in candidates if v <= max_value]
    if not legal:
        raise IllegalAction("illegal_build_value", f"Cannot build higher than {max_value}.")
    legal = [v for v in legal if v > floor]
    if not legal:
        raise IllegalAction(
            "illegal_build_value", f"A build of {floor} can only be increased."
        )
    if requested is None:
        if len(legal) == 1:
            return legal[0]
        raise IllegalAction(
            "no_selection",
            "Choose a build value: " + ", ".join(str(v) for v in legal) + ".",
            build_values=tuple(legal),
        )
    if requested not in legal:
        raise IllegalAction(
            "illegal_build_value",
            f"Cannot declare a build of {requested}.",
            build_values=tuple(legal),
        )
    return requested


def create_build(state: GameState, action: BuildAction) -> tuple[GameState, Event]:
    cfg = state.config
    player = action.player
    remaining = require_in_hand(state, player, action.card)
    if not action.table_cards:
        raise IllegalAction("no_selection", "Select table cards to build with.")
    require_on_table(state, action.table_cards)

    cards = (action.card, *action.table_cards)
    if any(c.rank > cfg.max_build_value for c in cards):
        raise IllegalAction("illegal_build_value", "Cannot build with picture cards (J, Q, K).")

    value = _declared_value(
        build_candidates(cards, remaining), action.value, max_value=cfg.max_build_value
    )
    build = Build(id=state.next_build_id, value=value, cards=cards, owner=player)
    new_state = replace(
        state,
        table=without(state.table, action.table_cards),
        builds=state.builds + (build,),
        next_build_id=state.next_build_id + 1,
    ).with_player(player, hand=remaining)
    event: Event = {
        "type": "BUILD_CREATED",
        "player": player,
        "build_id": build.id,
        "value": value,
        "cards": [c.label() for c in cards],
    }
    return new_state, event


def increase_build(state: GameState, action: IncreaseBuildAction) -> tuple[GameState, Event]:
    cfg = state.config
    player = action.player
    remaining = require_in_hand(state, player, action.card)
    build = state.find_build(action.build_id)
    if action.card.rank > cfg.max_build_value:
        raise IllegalAction("illegal_build_value", "Cannot add picture cards (J, Q, K) to builds.")

    cards = (action.card, *build.cards)
    value = _declared_value(
        build_candidates(cards, remaining),
        action.value,
        max_value=cfg.max_build_value,
        floor=build.value,
    )
    raised = Build(id=build.id, value=value, cards=cards, owner=player)
    new_state = replace(
        state,
        builds=tuple(raised if b.id == build.id else b for b in state.builds),
    ).with_player(player, hand=remaining)
    event: Event = {
        "type": "BUILD_INCREASED",
        "player": player,
        "build_id": build.id,
        "from": build.value,
        "to": value,
        "previous_owner": build.owner,
    }
    return new_state, event


def capture_build(state: GameState, action: CaptureBuildAction) -> tuple[GameState, Event]:
    player = action.player
    remaining = require_in_hand(state, player, action.card)
    build = state.find_build(action.build_id)
    if action.card.rank != build.value:
        raise IllegalAction(
            "build_value_mismatch", f"You need a {build.value} to capture this build."
        )
    ps = state.player(player)
    new_state = replace(
        state,
        builds=tuple(b for b in state.builds if b.id != build.id),
        last_capture=player,
    ).with_player(player, hand=remaining, captured=ps.captured + (action.card,) + build.cards)
    event: Event = {
        "type": "BUILD_CAPTURED",
        "player": player,
        "card": action.card.label(),
        "build_id": build.id,
        "value": build.value,
        "count": len(build.cards) + 1,
    }
    return new_state, event


def ensure_can_trail(state: GameState, player: PlayerId) -> None:
    if state.owned_builds(player):
        raise IllegalAction(
            "forced_build_resolution", "You can't trail - you must capture your build first!"
        )
