"""Error helpers: joining errors, unwrapping causes and a cancellable context."""

from __future__ import annotations

import threading


class ContextCancelled(Exception):
    """Error reported by a context after it has been cancelled."""


class Context:
    """A cancellation signal shared between a worker and whoever controls it."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._error: ContextCancelled | None = None

    def cancel(self) -> None:
        """Cancel the context. Calling it again has no further effect."""
        with self._lock:
            if self._error is None:
                self._error = ContextCancelled("context canceled")
        self._event.set()

    def done(self) -> bool:
        """Return True once the context has been cancelled."""
        return self._event.is_set()

    def error(self) -> ContextCancelled | None:
        """Return the cancellation error, or None while the context is live."""
        return self._error

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or until timeout expires; True if cancelled."""
        return self._event.wait(timeout)


def _flatten(err: BaseException) -> list[BaseException]:
    if isinstance(err, BaseExceptionGroup):
        return list(err.exceptions)
    return [err]


def join(err1: BaseException | None, err2: BaseException | None) -> BaseException | None:
    """Combine two optional errors; groups are flattened into one group."""
    if err1 is None:
        return err2
    if err2 is None:
        return err1
    errors = _flatten(err1) + _flatten(err2)
    return BaseExceptionGroup(f"{len(errors)} errors occurred", errors)


def cause(err: BaseException | None) -> BaseException | None:
    """Follow the explicit ``__cause__`` chain down to the original error."""
    while err is not None and err.__cause__ is not None:
        err = err.__cause__
    return err


def is_not_ctx_error(ctx: Context, err: BaseException | None) -> bool:
    """Return True if err is set and is not caused by the cancellation of ctx."""
    if err is None:
        return False
    if ctx.done() and ctx.error() is cause(err):
        return False
    return True