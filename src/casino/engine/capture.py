from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Literal

from .actions import CaptureAction
from .combos import can_partition, groups_summing
from .state import GameState, require_in_hand, require_on_table, without
from .types import Build, Card, Event, IllegalAction, PlayerId

CaptureKind = Literal["pair", "combine", "build"]


@dataclass(frozen=True)
class CaptureOption:
    kind: CaptureKind
    cards: tuple[Card, ...]
    build_id: int | None = None

    def describe(self) -> str:
        if self.kind == "build":
            return f"build #{self.build_id}"
        return " + ".join(c.label() for c in self.cards)


def capture_options(state: GameState, card: Card) -> tuple[CaptureOption, ...]:
    """Every capture ``card`` could make right now.

    Advisory only: a capture may take several of these at once as long as
    they don't overlap.
    """
    table = state.table
    options: list[CaptureOption] = [
        CaptureOption(kind="pair", cards=(c,)) for c in table if c.rank == card.rank
    ]
    ranks = [c.rank for c in table]
    for group in groups_summing(ranks, card.rank):
        if len(group) > 1:
            options.append(CaptureOption(kind="combine", cards=tuple(table[i] for i in group)))
    for build in state.builds:
        if build.value == card.rank:
            options.append(CaptureOption(kind="build", cards=build.cards, build_id=build.id))
    return tuple(options)


def _check_forced_build(
    state: GameState,
    player: PlayerId,
    card: Card,
    selected: Sequence[Card],
    taking: Build | None,
) -> None:
    hand = state.player(player).hand
    for build in state.owned_builds(player):
        if taking is not None and build.id == taking.id:
            continue
        if card.rank != build.value:
            continue
        if not any(c.rank == build.value for c in selected):
            continue
        # The played card is the only way left to take the build.
        if sum(1 for c in hand if c.rank == build.value) == 1:
            raise IllegalAction(
                "forced_build_resolution",
                f"You have a build of {build.value} on the table; capture it with your "
                f"{card.label()} or make a different play.",
            )


def resolve_capture(state: GameState, action: CaptureAction) -> tuple[GameState, Event]:
    player = action.player
    card = action.card
    new_hand = require_in_hand(state, player, card)
    selected = action.table_cards

    if not selected and action.build_id is None:
        options = capture_options(state, card)
        if options:
            listed = ", ".join(o.describe() for o in options)
            msg = f"Select what to capture. Available: {listed}."
        else:
            msg = "No captures available with this card. Trail instead?"
        raise IllegalAction("no_selection", msg, options=options)

    require_on_table(state, selected)

    build: Build | None = None
    if action.build_id is not None:
        build = state.find_build(action.build_id)
        if build.value != card.rank:
            raise IllegalAction(
                "build_value_mismatch", f"You need a {build.value} to capture this build."
            )

    _check_forced_build(state, player, card, selected, build)

    if selected and not can_partition([c.rank for c in selected], card.rank):
        raise IllegalAction(
            "illegal_combination",
            f"Selected cards must form groups that each add up to {card.rank}.",
        )

    taken: tuple[Card, ...] = tuple(selected)
    builds = state.builds
    if build is not None:
        taken += build.cards
        builds = tuple(b for b in builds if b.id != build.id)

    ps = state.player(player)
    new_state = replace(
        state,
        table=without(state.table, selected),
        builds=builds,
        last_capture=player,
    ).with_player(player, hand=new_hand, captured=ps.captured + (card,) + taken)

    event: Event = {
        "type": "CARD_CAPTURED",
        "player": player,
        "card": card.label(),
        "captured": [c.label() for c in selected],
        "build_id": build.id if build is not None else None,
        "count": len(taken) + 1,
    }
    return new_state, event
