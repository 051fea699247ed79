from __future__ import annotations

import copy
import logging
from typing import Callable, Mapping, Protocol

logger = logging.getLogger(__name__)

Snapshot = dict[str, object]
Listener = Callable[[Snapshot], None]
Unsubscribe = Callable[[], None]


class SnapshotStore(Protocol):
    """The hosted store both participants read from and write to.

    Writes are per-field, last-write-wins, with no atomicity across fields.
    """

    def get_snapshot(self) -> Snapshot | None: ...

    def subscribe(self, on_change: Listener) -> Unsubscribe: ...

    def apply_partial_update(self, fields: Mapping[str, object]) -> bool: ...

    def replace_state(self, snapshot: Mapping[str, object]) -> None: ...


class InMemorySnapshotStore:
    """Process-local store for tests and hot-seat play.

    Subscribers are notified synchronously after every successful write.
    Set ``reject_writes`` to make partial updates fail.
    """

    def __init__(self, initial: Mapping[str, object] | None = None) -> None:
        self._data: Snapshot | None = copy.deepcopy(dict(initial)) if initial is not None else None
        self._listeners: list[Listener] = []
        self.reject_writes = False
        self.writes = 0

    def get_snapshot(self) -> Snapshot | None:
        return copy.deepcopy(self._data)

    def subscribe(self, on_change: Listener) -> Unsubscribe:
        self._listeners.append(on_change)

        def unsubscribe() -> None:
            if on_change in self._listeners:
                self._listeners.remove(on_change)

        return unsubscribe

    def apply_partial_update(self, fields: Mapping[str, object]) -> bool:
        if self.reject_writes or self._data is None:
            logger.warning("partial update rejected (%d fields)", len(fields))
            return False
        self._data.update(copy.deepcopy(dict(fields)))
        self.writes += 1
        self._notify()
        return True

    def replace_state(self, snapshot: Mapping[str, object]) -> None:
        self._data = copy.deepcopy(dict(snapshot))
        self.writes += 1
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.get_snapshot() or {})
