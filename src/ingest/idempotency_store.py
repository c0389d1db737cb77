"""In-memory idempotency markers.

This module records the latest digest processed for each key (a source
name or a document identifier) so unchanged inputs are not reprocessed
for the lifetime of the process. Only the latest digest per key counts:
content that returns to an earlier value is processed again.
"""

from __future__ import annotations

import threading


class IdempotencyStore:
    """Lock-protected map from key to the latest processed digest.

    Markers never expire; growth is bounded by the number of keys.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._latest: dict[str, str] = {}

    def seen(self, key: str, digest: str) -> bool:
        """Return whether ``digest`` is the latest one marked for ``key``."""
        with self._lock:
            return self._latest.get(key) == digest

    def mark_seen(self, key: str, digest: str) -> None:
        """Record ``digest`` as the latest processed value for ``key``."""
        with self._lock:
            self._latest[key] = digest

    def latest(self, key: str) -> str | None:
        with self._lock:
            return self._latest.get(key)

    def clear(self) -> None:
        """Forget every marker."""
        with self._lock:
            self._latest.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._latest)
