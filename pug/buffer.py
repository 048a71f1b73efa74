"""Thread-safe output buffer that can be copied or streamed while written."""

from __future__ import annotations

import io
import threading
from collections.abc import Iterator


class OutputBuffer:
    """Accumulates bytes and lets readers follow them as they arrive."""

    def __init__(self) -> None:
        self._data = bytearray()
        self._cond = threading.Condition()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes) -> int:
        """Append data and wake any streams waiting for it."""
        with self._cond:
            if self._closed:
                raise ValueError("write to closed buffer")
            self._data += data
            self._cond.notify_all()
        return len(data)

    def new_reader(self) -> io.BytesIO:
        """Return an independent copy of everything written so far."""
        with self._cond:
            return io.BytesIO(bytes(self._data))

    def stream(self) -> Iterator[bytes]:
        """Yield the buffer's contents as written; ends once the buffer is closed."""
        offset = 0
        while True:
            with self._cond:
                self._cond.wait_for(lambda: len(self._data) > offset or self._closed)
                chunk = bytes(self._data[offset:])
                closed = self._closed
            offset += len(chunk)
            if chunk:
                yield chunk
            elif closed:
                return

    def close(self) -> None:
        """Mark the buffer finished, ending all streams once drained."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()