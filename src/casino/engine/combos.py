"""Bounded backtracking over small card sets.

Ranks are always positive, so any partial sum past the target is pruned
immediately. Everything here works on index tuples into a rank list.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence


def _subsets(
    ranks: Sequence[int], pool: Sequence[int], need: int, start: int = 0
) -> Iterator[tuple[int, ...]]:
    if need == 0:
        yield ()
        return
    for pos in range(start, len(pool)):
        idx = pool[pos]
        if ranks[idx] > need:
            continue
        for tail in _subsets(ranks, pool, need - ranks[idx], pos + 1):
            yield (idx, *tail)


def groups_summing(ranks: Sequence[int], target: int) -> Iterator[tuple[int, ...]]:
    """Yield every non-empty index group whose ranks add up to ``target``."""

    if target <= 0:
        return
    for group in _subsets(ranks, tuple(range(len(ranks))), target):
        if group:
            yield group


def _partition(
    ranks: Sequence[int], target: int, remaining: tuple[int, ...]
) -> list[tuple[int, ...]] | None:
    if not remaining:
        return []
    # The first unassigned card always opens the next group.
    first, rest = remaining[0], remaining[1:]
    need = target - ranks[first]
    if need < 0:
        return None
    for group in _subsets(ranks, rest, need):
        taken = set(group)
        left = tuple(i for i in rest if i not in taken)
        tail = _partition(ranks, target, left)
        if tail is not None:
            return [(first, *group), *tail]
    return None


def partition(ranks: Sequence[int], target: int) -> list[tuple[int, ...]] | None:
    """Split all of ``ranks`` into disjoint groups each summing to ``target``.

    Returns the groups as index tuples, or ``None`` when no such split exists.
    """

    if not ranks or target <= 0 or sum(ranks) % target:
        return None
    return _partition(ranks, target, tuple(range(len(ranks))))


def can_partition(ranks: Sequence[int], target: int) -> bool:
    return partition(ranks, target) is not None
