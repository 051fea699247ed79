from __future__ import annotations

from pathlib import Path
from typing import Callable

from casino.engine.serialize import snapshot
from casino.engine.types import PlayerId
from casino.services.session import TableSession, open_session
from casino.services.store import InMemorySnapshotStore
from casino.services.telemetry import TelemetryService
from conftest import card, cards, make_state


class _Timers:
    """Collects scheduled callbacks so a test decides when they fire."""

    def __init__(self) -> None:
        self.pending: list[tuple[float, Callable[[], None]]] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> None:
        self.pending.append((delay, callback))

    @property
    def delays(self) -> list[float]:
        return [d for d, _ in self.pending]

    def fire(self) -> None:
        due, self.pending = self.pending, []
        for _, callback in due:
            callback()


def _session(
    store: InMemorySnapshotStore,
    player: PlayerId,
    schema: dict[str, object],
    timers: _Timers | None = None,
    telemetry: TelemetryService | None = None,
) -> TableSession:
    session = TableSession(
        store, player, schema=schema, telemetry=telemetry, schedule=timers or _Timers()
    )
    session.attach()
    return session


def test_two_sessions_share_a_table(state_schema: dict[str, object]) -> None:
    store = InMemorySnapshotStore()
    p1 = _session(store, "player1", state_schema)
    p2 = _session(store, "player2", state_schema)

    assert not p2.start_game(seed=5).ok
    assert p1.start_game(seed=5).ok
    assert p1.start_game(seed=6).message == "Game already in progress."

    assert p1.turn() == p2.turn() == "player2"
    assert len(p1.hand()) == len(p2.hand()) == 4
    assert p1.opponent_hand_size() == 4
    assert len(p1.table()) == 4
    assert p1.scores()["player1"].total_score == 0
    assert p1.last_round() is None

    writes = store.writes
    blocked = p1.trail(p1.hand()[0])
    assert not blocked.ok
    assert blocked.error_kind == "invalid_turn"
    assert store.writes == writes

    played = p2.hand()[0]
    outcome = p2.trail(played)
    assert outcome.ok
    assert "trailed" in outcome.message
    assert played in p1.table()
    assert p1.turn() == "player1"
    assert store.get_snapshot()["lastPlayMessage"] == outcome.message  # type: ignore[index]


def test_rejected_action_reports_options(state_schema: dict[str, object]) -> None:
    store = InMemorySnapshotStore(snapshot(make_state(hand1=["7S"], hand2=["9C"], table=["7H"])))
    p1 = _session(store, "player1", state_schema)
    outcome = p1.capture(card("7S"))
    assert outcome.error_kind == "no_selection"
    assert [o.kind for o in outcome.options] == ["pair"]

    assert p1.capture(card("7S"), cards("7H")).ok
    assert p1.table() == ()


def test_write_failure_is_reported(state_schema: dict[str, object]) -> None:
    store = InMemorySnapshotStore(snapshot(make_state(hand1=["7S"], hand2=["9C"], table=["7H"])))
    p1 = _session(store, "player1", state_schema)
    before = store.get_snapshot()
    store.reject_writes = True
    outcome = p1.capture(card("7S"), cards("7H"))
    assert not outcome.ok
    assert outcome.error_kind == "stale_write_rejected"
    assert store.get_snapshot() == before
    assert store.writes == 0


def test_corrupt_snapshot_blocks_actions(state_schema: dict[str, object]) -> None:
    store = InMemorySnapshotStore()
    p1 = _session(store, "player1", state_schema)
    p2 = _session(store, "player2", state_schema)
    p1.start_game(seed=3)
    hand = p2.hand()

    store.replace_state({"deck": []})
    outcome = p2.trail(hand[0])
    assert not outcome.ok
    assert outcome.error_kind == "corrupt_state"
    # Reads keep showing the last good state.
    assert p2.hand() == hand


def test_no_game_in_progress(state_schema: dict[str, object]) -> None:
    p1 = _session(InMemorySnapshotStore(), "player1", state_schema)
    assert p1.trail(card("5S")).error_kind == "corrupt_state"
    assert p1.hand() == ()
    assert p1.turn() is None


def test_arbiter_deals_after_delay(state_schema: dict[str, object]) -> None:
    timers = _Timers()
    start = snapshot(make_state(hand1=["5S"], hand2=["6C"], table=["KC"], turn="player1"))
    store = InMemorySnapshotStore(start)
    p1 = _session(store, "player1", state_schema, timers=timers)
    p2 = _session(store, "player2", state_schema)

    assert p1.trail(card("5S")).ok
    assert timers.delays == []
    assert p2.trail(card("6C")).ok
    # The opponent's call returns before the deal runs.
    assert timers.delays == [1.5]
    assert p2.hand() == ()

    timers.fire()
    assert len(p1.hand()) == 4
    assert len(p2.hand()) == 4
    assert p2.turn() == "player2"
    assert timers.delays == []


def test_deal_is_recorded_after_the_play_that_triggered_it(
    state_schema: dict[str, object], tmp_path: Path
) -> None:
    timers = _Timers()
    telemetry = TelemetryService(tmp_path / "events.jsonl")
    start = snapshot(make_state(hand1=["5S"], table=["KC"], turn="player1"))
    store = InMemorySnapshotStore(start)
    p1 = _session(store, "player1", state_schema, timers=timers, telemetry=telemetry)

    assert p1.trail(card("5S")).ok
    assert [r["type"] for r in telemetry.read()] == ["CARD_TRAILED"]
    assert timers.delays == [1.5]

    timers.fire()
    assert [r["type"] for r in telemetry.read()] == ["CARD_TRAILED", "CARDS_DEALT"]
    assert len(p1.hand()) == 4


def test_deal_scheduled_once(state_schema: dict[str, object]) -> None:
    timers = _Timers()
    raw = snapshot(make_state(table=["KC"]))
    store = InMemorySnapshotStore(raw)
    p1 = _session(store, "player1", state_schema, timers=timers)
    store.replace_state(raw)
    store.replace_state(raw)
    assert timers.delays == [1.5]
    timers.fire()
    assert len(p1.hand()) == 4


def test_non_arbiter_never_deals(state_schema: dict[str, object]) -> None:
    timers = _Timers()
    raw = snapshot(make_state(table=["KC"]))
    store = InMemorySnapshotStore(raw)
    p2 = _session(store, "player2", state_schema, timers=timers)
    store.replace_state(raw)
    assert timers.delays == []
    assert p2.hand() == ()
    assert p2.advance().error_kind == "invalid_turn"


def test_telemetry_records_events(state_schema: dict[str, object], tmp_path: Path) -> None:
    telemetry = TelemetryService(tmp_path / "events.jsonl", room="t1")
    store = InMemorySnapshotStore(snapshot(make_state(hand1=["7S"], hand2=["9C"], table=["7H"])))
    p1 = _session(store, "player1", state_schema, telemetry=telemetry)
    p1.trail(card("7S"))
    records = telemetry.read()
    assert [r["type"] for r in records] == ["CARD_TRAILED"]
    assert records[0]["room"] == "t1"
    assert records[0]["payload"] == {"player": "player1", "card": "7♠"}


def test_rematch_after_game_over(state_schema: dict[str, object]) -> None:
    over = make_state(totals=(23, 10), wins=(3, 1), phase="game_over", turn=None)
    store = InMemorySnapshotStore(snapshot(over))
    p1 = _session(store, "player1", state_schema)
    p2 = _session(store, "player2", state_schema)
    assert p1.phase() == "game_over"
    assert not p2.rematch(seed=9).ok
    assert p1.rematch(seed=9).ok
    assert p2.phase() == "awaiting_action"
    scores = p2.scores()
    assert scores["player1"].wins == 3
    assert scores["player2"].wins == 1
    assert scores["player1"].total_score == 0


def test_open_session_uses_packaged_rules() -> None:
    store = InMemorySnapshotStore()
    session = open_session(store, "player1", schedule=_Timers())
    assert session.is_arbiter
    assert session.start_game(seed=1).ok
    assert session.turn() == "player2"
    session.detach()
