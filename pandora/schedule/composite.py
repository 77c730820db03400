"""Schedule that runs nested schedules one after another."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from pandora.schedule.do_at import new_once


class _Schedule(Protocol):
    def start(self, start_at: datetime) -> None: ...

    def next(self) -> tuple[datetime, bool]: ...

    def left(self) -> int: ...


@dataclass
class CompositeConf:
    nested: list[Any] = field(default_factory=list)


class CompositeSchedule:
    """Runs nested schedules in order; each starts when the previous finishes."""

    def __init__(self, schedules: list[_Schedule], left_after: list[int]) -> None:
        self._lock = threading.Lock()
        # The first schedule may already be finished; at least one is always kept.
        self.schedules: deque[_Schedule] = deque(schedules)
        # Tokens left in the schedules after each one: exact, or -1 if unknown.
        self._left_after: deque[int] = deque(left_after)

    def start(self, start_at: datetime) -> None:
        with self._lock:
            self.schedules[0].start(start_at)

    def next(self) -> tuple[datetime, bool]:
        with self._lock:
            while True:
                tx, ok = self.schedules[0].next()
                if ok or len(self.schedules) == 1:
                    return tx, ok
                self._start_next(tx)

    def left(self) -> int:
        with self._lock:
            while True:
                left = self.schedules[0].left()
                if len(self.schedules) == 1:
                    return left
                left_after = self._left_after[0]
                if left == 0:
                    if left_after >= 0:
                        return left_after
                    # What follows was unknown when created; shift and look again.
                    finish, ok = self.schedules[0].next()
                    if ok:
                        raise RuntimeError("current schedule is not finished")
                    self._start_next(finish)
                    continue
                if left < 0:
                    return -1
                return left + left_after

    def _start_next(self, current_finish: datetime) -> None:
        self.schedules.popleft()
        self._left_after.popleft()
        self.schedules[0].start(current_finish)


def new_composite(*args: _Schedule) -> Any:
    """Chain schedules; no schedules gives an empty one, a single one is returned as is."""
    if not args:
        return new_once(0)
    if len(args) == 1:
        return args[0]
    left_after: list[int] = []
    accumulated = 0
    unknown = False
    for schedule in reversed(args):
        left_after.append(accumulated)
        schedule_left = schedule.left()
        if schedule_left < 0:
            unknown = True
            accumulated = -1
        if not unknown:
            accumulated += schedule_left
    left_after.reverse()
    return CompositeSchedule(list(args), left_after)


def new_composite_conf(conf: CompositeConf) -> Any:
    return new_composite(*conf.nested)