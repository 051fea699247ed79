"""One participant's view of a shared table.

Each entry point reads the latest snapshot from the store, runs the engine
on it and writes back only the fields that changed. There is no lock: the
turn check keeps the two participants from playing over each other, and
only the arbiter ever deals or closes a round.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping

from casino.engine import lifecycle
from casino.engine.actions import (
    Action,
    AdvanceAction,
    BuildAction,
    CaptureAction,
    CaptureBuildAction,
    IncreaseBuildAction,
    NextRoundAction,
    TrailAction,
)
from casino.engine.capture import CaptureOption
from casino.engine.match import needs_advance, step
from casino.engine.serialize import changed_fields, snapshot
from casino.engine.state import GameState
from casino.engine.types import PLAYERS, Build, Card, ErrorKind, GameConfig, Phase, PlayerId, opponent
from casino.paths import get_paths
from casino.services.content import ContentService
from casino.services.snapshots import CorruptStateError, parse_snapshot
from casino.services.store import Snapshot, SnapshotStore, Unsubscribe
from casino.services.telemetry import TelemetryService

logger = logging.getLogger(__name__)

Scheduler = Callable[[float, Callable[[], None]], None]


def start_timer(delay: float, callback: Callable[[], None]) -> None:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()


@dataclass(frozen=True)
class ActionOutcome:
    ok: bool
    message: str
    error_kind: ErrorKind | None = None
    options: tuple[CaptureOption, ...] = ()
    build_values: tuple[int, ...] = ()


@dataclass(frozen=True)
class ScoreLine:
    round_score: int
    total_score: int
    wins: int


class TableSession:
    def __init__(
        self,
        store: SnapshotStore,
        player: PlayerId,
        *,
        schema: Mapping[str, object],
        config: GameConfig | None = None,
        telemetry: TelemetryService | None = None,
        schedule: Scheduler = start_timer,
    ) -> None:
        self.player = player
        self._store = store
        self._schema = schema
        self._config = config or GameConfig()
        self._telemetry = telemetry
        self._schedule = schedule
        self._unsubscribe: Unsubscribe | None = None
        self._observed: GameState | None = None
        self._submitting = False
        self._deal_due = False
        self._deal_scheduled = False

    @property
    def is_arbiter(self) -> bool:
        return self.player == self._config.arbiter

    # -- lifecycle -------------------------------------------------------

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(self._on_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def start_game(self, seed: int) -> ActionOutcome:
        if not self.is_arbiter:
            return ActionOutcome(False, "Waiting for the game to start...", "invalid_turn")
        if self._store.get_snapshot() is not None:
            return ActionOutcome(True, "Game already in progress.")
        state = lifecycle.new_game(seed, self._config)
        self._store.replace_state(snapshot(state))
        logger.info("%s started a game (seed=%s)", self.player, seed)
        return ActionOutcome(True, "New game started!")

    def rematch(self, seed: int) -> ActionOutcome:
        if not self.is_arbiter:
            return ActionOutcome(False, "Waiting for new game to start...", "invalid_turn")
        current = self._load(self._store.get_snapshot())
        if isinstance(current, ActionOutcome):
            return current
        if current.phase != "game_over":
            return ActionOutcome(False, "The game is still in progress.", "invalid_turn")
        self._store.replace_state(snapshot(lifecycle.rematch(current, seed)))
        logger.info("%s started a rematch (seed=%s)", self.player, seed)
        return ActionOutcome(True, "New game started!")

    # -- actions ---------------------------------------------------------

    def capture(
        self, card: Card, table_cards: Iterable[Card] = (), build_id: int | None = None
    ) -> ActionOutcome:
        return self._submit(CaptureAction(self.player, card, tuple(table_cards), build_id))

    def build(self, card: Card, table_cards: Iterable[Card], value: int | None = None) -> ActionOutcome:
        return self._submit(BuildAction(self.player, card, tuple(table_cards), value))

    def trail(self, card: Card) -> ActionOutcome:
        return self._submit(TrailAction(self.player, card))

    def capture_build(self, card: Card, build_id: int) -> ActionOutcome:
        return self._submit(CaptureBuildAction(self.player, card, build_id))

    def increase_build(self, card: Card, build_id: int, value: int | None = None) -> ActionOutcome:
        return self._submit(IncreaseBuildAction(self.player, card, build_id, value))

    def advance(self) -> ActionOutcome:
        return self._submit(AdvanceAction(self.player))

    def next_round(self) -> ActionOutcome:
        return self._submit(NextRoundAction(self.player))

    # -- reads -----------------------------------------------------------

    def observe(self) -> GameState | None:
        """Latest valid state, falling back to the last good one on a bad snapshot."""

        raw = self._store.get_snapshot()
        if raw is None:
            return self._observed
        try:
            self._observed = parse_snapshot(raw, self._schema, self._config)
        except CorruptStateError as exc:
            logger.warning("%s: keeping last good state, snapshot is corrupt: %s", self.player, exc)
        return self._observed

    def hand(self) -> tuple[Card, ...]:
        state = self.observe()
        return state.player(self.player).hand if state else ()

    def opponent_hand_size(self) -> int:
        state = self.observe()
        return len(state.player(opponent(self.player)).hand) if state else 0

    def table(self) -> tuple[Card, ...]:
        state = self.observe()
        return state.table if state else ()

    def builds(self) -> tuple[Build, ...]:
        state = self.observe()
        return state.builds if state else ()

    def scores(self) -> dict[PlayerId, ScoreLine]:
        state = self.observe()
        if state is None:
            return {}
        return {
            p: ScoreLine(
                round_score=state.player(p).round_score,
                total_score=state.player(p).total_score,
                wins=state.player(p).wins,
            )
            for p in PLAYERS
        }

    def turn(self) -> PlayerId | None:
        state = self.observe()
        return state.current_turn if state else None

    def phase(self) -> Phase | None:
        state = self.observe()
        return state.phase if state else None

    def last_round(self) -> lifecycle.RoundSummary | None:
        state = self.observe()
        if state is None or state.phase == "awaiting_action":
            return None
        return lifecycle.round_summary(state)

    # -- internals -------------------------------------------------------

    def _load(self, raw: Snapshot | None) -> GameState | ActionOutcome:
        if raw is None:
            return ActionOutcome(False, "No game in progress.", "corrupt_state")
        try:
            return parse_snapshot(raw, self._schema, self._config)
        except CorruptStateError as exc:
            logger.warning("%s: refusing to act on corrupt snapshot: %s", self.player, exc)
            return ActionOutcome(False, f"Invalid game state: {exc}", "corrupt_state")

    def _submit(self, action: Action) -> ActionOutcome:
        self._submitting = True
        try:
            return self._apply(action)
        finally:
            self._submitting = False
            # A deal noticed during our own write waits until it is recorded.
            if self._deal_due:
                self._schedule_deal()

    def _apply(self, action: Action) -> ActionOutcome:
        raw = self._store.get_snapshot()
        current = self._load(raw)
        if isinstance(current, ActionOutcome):
            return current

        result = step(current, action)
        if not result.ok:
            logger.debug("%s: %s rejected (%s)", self.player, type(action).__name__, result.error_kind)
            return ActionOutcome(
                ok=False,
                message=result.error or "Action rejected.",
                error_kind=result.error_kind,
                options=result.options,
                build_values=result.build_values,
            )

        fields = changed_fields(raw, snapshot(result.state))
        if fields and not self._store.apply_partial_update(fields):
            logger.warning("%s: write of %s was not applied", self.player, sorted(fields))
            return ActionOutcome(False, "Error updating game. Please try again.", "stale_write_rejected")

        for event in result.events:
            if event.get("type") in ("CARDS_DEALT", "ROUND_ENDED", "GAME_ENDED", "ROUND_STARTED"):
                logger.info("%s: %s", self.player, event)
            else:
                logger.debug("%s: %s", self.player, event)
        if self._telemetry is not None:
            self._telemetry.record(result.events)
        return ActionOutcome(True, result.message or "")

    def _on_change(self, raw: Snapshot) -> None:
        try:
            state = parse_snapshot(raw, self._schema, self._config)
        except CorruptStateError as exc:
            logger.warning("%s: ignoring corrupt snapshot: %s", self.player, exc)
            return
        self._observed = state
        if not self.is_arbiter or self._deal_due or self._deal_scheduled:
            return
        if needs_advance(state):
            self._deal_due = True
            if not self._submitting:
                self._schedule_deal()

    def _schedule_deal(self) -> None:
        self._deal_due = False
        self._deal_scheduled = True
        self._schedule(self._config.deal_delay, self._deal)

    def _deal(self) -> None:
        # advance() re-reads the snapshot, so a repeat is a no-op.
        self._deal_scheduled = False
        outcome = self.advance()
        if not outcome.ok:
            logger.warning("%s: advance failed: %s", self.player, outcome.message)


def open_session(
    store: SnapshotStore,
    player: PlayerId,
    *,
    telemetry: TelemetryService | None = None,
    schedule: Scheduler = start_timer,
) -> TableSession:
    """Build a session with the packaged rules and schema, already subscribed."""

    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    session = TableSession(
        store,
        player,
        schema=content.state_schema(),
        config=content.load_rules(),
        telemetry=telemetry,
        schedule=schedule,
    )
    session.attach()
    return session
