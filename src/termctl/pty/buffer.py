"""Append/drain output buffer for PTY sessions."""

from __future__ import annotations

import threading


class OutputBuffer:
    """Thread-safe text accumulator for one session's terminal output.

    Text only ever grows through ``append()`` and is emptied atomically by
    ``drain()``, which returns everything appended before the call.  No
    escape-sequence processing is done here; the buffer holds exactly what
    the terminal emitted.
    """

    def __init__(self) -> None:
        self._chunks: list[str] = []
        self._lock = threading.Lock()

    def append(self, text: str) -> None:
        if not text:
            return
        with self._lock:
            self._chunks.append(text)

    def drain(self) -> str:
        """Swap the contents for empty and return what was there."""
        with self._lock:
            chunks, self._chunks = self._chunks, []
        return "".join(chunks)
