from __future__ import annotations

from dataclasses import dataclass

from .types import Card, PlayerId


@dataclass(frozen=True)
class CaptureAction:
    """Capture loose table cards, optionally together with one build."""

    player: PlayerId
    card: Card
    table_cards: tuple[Card, ...] = ()
    build_id: int | None = None


@dataclass(frozen=True)
class BuildAction:
    player: PlayerId
    card: Card
    table_cards: tuple[Card, ...]
    value: int | None = None


@dataclass(frozen=True)
class IncreaseBuildAction:
    player: PlayerId
    card: Card
    build_id: int
    value: int | None = None


@dataclass(frozen=True)
class CaptureBuildAction:
    player: PlayerId
    card: Card
    build_id: int


@dataclass(frozen=True)
class TrailAction:
    player: PlayerId
    card: Card


@dataclass(frozen=True)
class AdvanceAction:
    """Deal the next hands, or end the round, once both hands are empty."""

    player: PlayerId


@dataclass(frozen=True)
class NextRoundAction:
    player: PlayerId


PlayAction = CaptureAction | BuildAction | IncreaseBuildAction | CaptureBuildAction | TrailAction
Action = PlayAction | AdvanceAction | NextRoundAction
