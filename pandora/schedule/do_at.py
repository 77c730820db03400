"""Schedules driven by a function giving the offset of every operation."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

DoAt = Callable[[int], timedelta]


class AlreadyStartedError(RuntimeError):
    """Raised when a schedule is started a second time."""


class StartSync:
    """Makes the start of a schedule safe for concurrent callers."""

    def __init__(self) -> None:
        self._started = False
        self._started_lock = threading.Lock()
        self._once_lock = threading.Lock()
        self._once_done = False

    def is_started(self) -> bool:
        return self._started

    def mark_started(self) -> None:
        """Mark the schedule started; raise AlreadyStartedError if it already was."""
        with self._started_lock:
            if self._started:
                raise AlreadyStartedError("schedule is already started")
            self._started = True

    def _start_once(self, init: Callable[[], None]) -> None:
        if self._once_done:
            return
        with self._once_lock:
            if self._once_done:
                return
            try:
                init()
            finally:
                self._once_done = True


class DoAtSchedule(StartSync):
    """Emits n operation times, the i'th at start plus do_at(i).

    Once all operations are taken, next() returns start plus duration and False.
    """

    def __init__(self, duration: timedelta, n: int, do_at: DoAt) -> None:
        super().__init__()
        self.duration = duration
        self.n = n
        self._do_at = do_at
        self._i = 0
        self._i_lock = threading.Lock()
        self._start_at: datetime | None = None

    def start(self, start_at: datetime) -> None:
        self.mark_started()

        def init() -> None:
            self._start_at = start_at

        self._start_once(init)

    def next(self) -> tuple[datetime, bool]:
        def init() -> None:
            self.mark_started()
            self._start_at = datetime.now(timezone.utc)

        self._start_once(init)
        with self._i_lock:
            i = self._i
            self._i += 1
        if i >= self.n:
            return self._start_at + self.duration, False
        return self._start_at + self._do_at(i), True

    def left(self) -> int:
        with self._i_lock:
            taken = self._i
        return max(self.n - taken, 0)


def new_do_at_schedule(duration: timedelta, n: int, do_at: DoAt) -> DoAtSchedule:
    return DoAtSchedule(duration, n, do_at)


@dataclass
class OnceConfig:
    times: int


def new_once(n: int) -> DoAtSchedule:
    """Schedule that emits n operations all at its start time."""
    return DoAtSchedule(timedelta(0), n, lambda i: timedelta(0))


def new_once_conf(conf: OnceConfig) -> DoAtSchedule:
    return new_once(conf.times)