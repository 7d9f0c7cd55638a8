#!/usr/bin/env python3
# core/tasks.py
# Per-stage work described as tasks with declared buffer reads/writes.
# Ordering comes from the hazards between declarations, not from call order.
from typing import Callable, NamedTuple, Tuple


class Task(NamedTuple):
    name: str
    fn: Callable[[], None]
    reads: Tuple[str, ...] = ()
    writes: Tuple[str, ...] = ()
    sync: bool = False      # cross-rank sync point (halo exchange, barrier, allreduce)


def depends(later, earlier):
    """True if `later` must wait for `earlier` (RAW, WAR, WAW or a sync point)."""
    if later.sync or earlier.sync:
        return True
    w0, r0 = set(earlier.writes), set(earlier.reads)
    w1, r1 = set(later.writes), set(later.reads)
    return bool(w0 & r1 or r0 & w1 or w0 & w1)


class TaskGraph:
    def __init__(self, known=None):
        self.tasks = []
        self.known = None if known is None else set(known)

    def add(self, name, fn, reads=(), writes=(), sync=False):
        if self.known is not None:
            unknown = (set(reads) | set(writes)) - self.known
            if unknown:
                raise KeyError(f"task {name!r} names unknown buffers {sorted(unknown)}")
        self.tasks.append(Task(name, fn, tuple(reads), tuple(writes), sync))
        return self

    def levels(self):
        """Group tasks into waves; tasks in one wave have no hazards between them."""
        level = []
        for j, tj in enumerate(self.tasks):
            lv = 0
            for i in range(j):
                if depends(tj, self.tasks[i]):
                    lv = max(lv, level[i] + 1)
            level.append(lv)
        waves = [[] for _ in range(max(level) + 1)] if level else []
        for t, lv in zip(self.tasks, level):
            waves[lv].append(t)
        return waves

    def order(self):
        return [t.name for wave in self.levels() for t in wave]

    def run(self):
        for wave in self.levels():
            for t in wave:
                t.fn()
