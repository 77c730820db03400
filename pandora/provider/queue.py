"""Bounded ammo queue with an input pool, and a provider of sequential numbers."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable

from pandora.errutil import Context

_SHOOTS_PER_SECOND_UPPER_BOUND = 128 * 1024
DEFAULT_AMMO_QUEUE_SIZE = _SHOOTS_PER_SECOND_UPPER_BOUND // 16

_POLL_INTERVAL = 0.01


def _cancelled(ctx: Context | None) -> bool:
    return ctx is not None and ctx.done()


class _Slot:
    __slots__ = ("item", "taken")

    def __init__(self, item: Any) -> None:
        self.item = item
        self.taken = False


class _Channel:
    """FIFO hand-over between threads that can be closed.

    With capacity zero a send completes only when a receiver takes the item.
    """

    def __init__(self, capacity: int) -> None:
        self._capacity = capacity
        self._slots: deque[_Slot] = deque()
        self._closed = False
        self._cond = threading.Condition()

    def _ensure_open(self) -> None:
        if self._closed:
            raise ValueError("send on closed queue")

    def send(self, item: Any, ctx: Context | None = None) -> bool:
        slot = _Slot(item)
        with self._cond:
            while self._capacity > 0 and len(self._slots) >= self._capacity:
                self._ensure_open()
                if _cancelled(ctx):
                    return False
                self._cond.wait(_POLL_INTERVAL)
            self._ensure_open()
            if self._capacity == 0 and _cancelled(ctx):
                return False
            self._slots.append(slot)
            self._cond.notify_all()
            if self._capacity > 0:
                return True
            while not slot.taken:
                if _cancelled(ctx):
                    self._slots.remove(slot)
                    return False
                self._cond.wait(_POLL_INTERVAL)
            return True

    def receive(self) -> tuple[Any, bool]:
        with self._cond:
            while not self._slots:
                if self._closed:
                    return None, False
                self._cond.wait()
            slot = self._slots.popleft()
            slot.taken = True
            self._cond.notify_all()
            return slot.item, True

    def close(self) -> None:
        with self._cond:
            if self._closed:
                raise ValueError("close of closed queue")
            self._closed = True
            self._cond.notify_all()


@dataclass
class AmmoQueueConfig:
    """ammo_queue_size is the most ready but not yet acquired ammo held at once."""

    ammo_queue_size: int = DEFAULT_AMMO_QUEUE_SIZE


def default_ammo_queue_config() -> AmmoQueueConfig:
    return AmmoQueueConfig(ammo_queue_size=DEFAULT_AMMO_QUEUE_SIZE)


class AmmoQueue:
    """Queue of ready ammo plus a pool of released ammo for reuse."""

    def __init__(self, new_ammo: Callable[[], Any], conf: AmmoQueueConfig | None = None) -> None:
        conf = conf if conf is not None else default_ammo_queue_config()
        if conf.ammo_queue_size < 1:
            raise ValueError(f"ammo queue size should be at least 1, but is {conf.ammo_queue_size}")
        self._new_ammo = new_ammo
        self._out = _Channel(conf.ammo_queue_size)
        self._pool: list[Any] = []
        self._pool_lock = threading.Lock()

    def acquire(self) -> tuple[Any, bool]:
        """Block until ammo is ready; return (None, False) once closed and drained."""
        return self._out.receive()

    def release(self, ammo: Any) -> None:
        """Return used ammo to the pool."""
        with self._pool_lock:
            self._pool.append(ammo)

    def put(self, ammo: Any, ctx: Context | None = None) -> bool:
        """Queue ammo, waiting for room; return False if ctx is cancelled first."""
        return self._out.send(ammo, ctx)

    def close(self) -> None:
        """Mark that no more ammo will be put."""
        self._out.close()

    def get_input(self) -> Any:
        """Take ammo from the pool, or create new ammo if the pool is empty."""
        with self._pool_lock:
            if self._pool:
                return self._pool.pop()
        return self._new_ammo()


@dataclass
class NumConfig:
    limit: int = 0


class NumProvider:
    """Provides 0, 1, 2, ... as ammo; unlimited when limit is zero or less."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self._i = 0
        self._sink = _Channel(0)

    def run(self, ctx: Context | None, deps: Any = None) -> None:
        try:
            while self.limit <= 0 or self._i < self.limit:
                if not self._sink.send(self._i, ctx):
                    return
                self._i += 1
        finally:
            self._sink.close()

    def acquire(self) -> tuple[Any, bool]:
        return self._sink.receive()

    def release(self, ammo: Any) -> None:
        return None


def new_num(limit: int) -> NumProvider:
    return NumProvider(limit)


def new_num_conf(conf: NumConfig) -> NumProvider:
    return new_num(conf.limit)