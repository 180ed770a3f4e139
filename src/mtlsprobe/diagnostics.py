# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Diagnostic log shared by concurrent probes.

Transport tracing hooks append lines while a probe runs; the runner copies the
buffer when it builds the outcome. The lock only guards buffer mutation and
copies, so concurrent probes never wait on each other's network I/O.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from .errors import LogAccessError

DEFAULT_LOCK_TIMEOUT = 5.0


class DiagnosticLog:
    """Append-only text buffer guarded by a single exclusive lock."""

    def __init__(self, lock_timeout: float = DEFAULT_LOCK_TIMEOUT):
        self.lock_timeout = lock_timeout
        self._lock = threading.Lock()
        self._chunks: list[str] = []
        self._length = 0

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if self.lock_timeout > 0:
            acquired = self._lock.acquire(timeout=self.lock_timeout)
        else:
            acquired = self._lock.acquire(blocking=False)
        if not acquired:
            raise LogAccessError(f"diagnostic log lock not acquired within {self.lock_timeout}s")
        try:
            yield
        finally:
            self._lock.release()

    def append(self, text: str) -> None:
        line = text if text.endswith("\n") else text + "\n"
        with self._locked():
            self._chunks.append(line)
            self._length += len(line)

    def snapshot(self) -> str:
        with self._locked():
            content = "".join(self._chunks)
            # collapse so later snapshots stay cheap
            self._chunks = [content] if content else []
            return content

    def clear(self) -> None:
        with self._locked():
            self._chunks = []
            self._length = 0

    def __len__(self) -> int:
        with self._locked():
            return self._length


__all__ = ["DEFAULT_LOCK_TIMEOUT", "DiagnosticLog"]
