"""Small I/O helpers: multi-pass reading, write callbacks and no-op closing."""

from __future__ import annotations

from typing import Any, Callable


class MultiPassReader:
    """Reads a seekable stream several times over, rewinding at end of data.

    A passes limit of zero or less means the stream is reread forever.
    """

    def __init__(self, reader: Any, passes_limit: int) -> None:
        self._reader = reader
        self._passes_count = 0
        self._passes_limit = passes_limit

    def read(self, size: int = -1) -> bytes:
        data = self._reader.read(size)
        if data or size == 0:
            return data
        self._passes_count += 1
        if self._passes_limit <= 0 or self._passes_count < self._passes_limit:
            self._reader.seek(0)
            return self._reader.read(size)
        return data

    def unwrap(self) -> Any:
        """Return the underlying stream."""
        return self._reader


def _is_seekable(reader: Any) -> bool:
    if not callable(getattr(reader, "seek", None)):
        return False
    seekable = getattr(reader, "seekable", None)
    if callable(seekable):
        return bool(seekable())
    return True


def new_multi_pass_reader(reader: Any, passes: int) -> Any:
    """Wrap reader for multiple passes, or return it as is when that is impossible."""
    if passes == 1 or not _is_seekable(reader):
        return reader
    return MultiPassReader(reader, passes)


class CallbackWriter:
    """Writer that calls a hook before every write to the wrapped writer."""

    def __init__(self, writer: Any, on_write: Callable[[], None]) -> None:
        self._writer = writer
        self._on_write = on_write

    def write(self, data: bytes) -> int:
        self._on_write()
        return self._writer.write(data)


def new_callback_writer(writer: Any, on_write: Callable[[], None]) -> CallbackWriter:
    return CallbackWriter(writer, on_write)


class NopCloser:
    """Mixin giving a class a close method, and context management, that release nothing.

    Closing only marks the object as closed.
    """

    closed = False

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()