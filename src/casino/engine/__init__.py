"""Deterministic, headless Casino rules engine.

IMPORTANT: This package does no I/O and must never import casino.services.
"""

from .actions import (
    AdvanceAction,
    BuildAction,
    CaptureAction,
    CaptureBuildAction,
    IncreaseBuildAction,
    NextRoundAction,
    TrailAction,
)
from .lifecycle import new_game, rematch
from .match import StepResult, needs_advance, replay, step
from .state import GameState, PlayerState
from .types import Build, Card, GameConfig, PlayerId

__all__ = [
    "AdvanceAction",
    "Build",
    "BuildAction",
    "CaptureAction",
    "CaptureBuildAction",
    "Card",
    "GameConfig",
    "GameState",
    "IncreaseBuildAction",
    "NextRoundAction",
    "PlayerId",
    "PlayerState",
    "StepResult",
    "TrailAction",
    "needs_advance",
    "new_game",
    "rematch",
    "replay",
    "step",
]
