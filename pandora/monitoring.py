"""Thread-safe counters that can be published under a name."""

from __future__ import annotations

import threading


class Counter:
    """An integer counter safe for concurrent use."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def __str__(self) -> str:
        return str(self.get())

    def add(self, delta: int) -> None:
        with self._lock:
            self._value += delta

    def set(self, value: int) -> None:
        with self._lock:
            self._value = value

    def get(self) -> int:
        with self._lock:
            return self._value


_published: dict[str, Counter] = {}
_published_lock = threading.Lock()


def new_counter(name: str) -> Counter:
    """Create a counter and publish it; a name may be published only once."""
    counter = Counter()
    with _published_lock:
        if name in _published:
            raise ValueError(f"reuse of exported var name: {name}")
        _published[name] = counter
    return counter


def published(name: str) -> Counter | None:
    """Return the counter published under name, or None."""
    with _published_lock:
        return _published.get(name)