"""Schedule that allows any number of operations for a fixed duration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from pandora.schedule.do_at import StartSync


@dataclass
class UnlimitedConfig:
    duration: timedelta


class UnlimitedSchedule(StartSync):
    """Hands out the current time as a token until duration has passed."""

    def __init__(self, duration: timedelta) -> None:
        super().__init__()
        self.duration = duration
        self.finish: datetime | None = None

    def start(self, start_at: datetime) -> None:
        self.mark_started()

        def init() -> None:
            self.finish = start_at + self.duration

        self._start_once(init)

    def next(self) -> tuple[datetime, bool]:
        def init() -> None:
            self.mark_started()
            self.finish = datetime.now(timezone.utc) + self.duration

        self._start_once(init)
        now = datetime.now(self.finish.tzinfo)
        if now < self.finish:
            return now, True
        return self.finish, False

    def left(self) -> int:
        """-1 while unknown (not started or still running), 0 once finished."""
        finish = self.finish
        if not self.is_started() or finish is None:
            return -1
        if datetime.now(finish.tzinfo) < finish:
            return -1
        return 0


def new_unlimited(duration: timedelta) -> UnlimitedSchedule:
    return UnlimitedSchedule(duration)


def new_unlimited_conf(conf: UnlimitedConfig) -> UnlimitedSchedule:
    return new_unlimited(conf.duration)