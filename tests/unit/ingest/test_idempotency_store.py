"""Unit tests for in-memory idempotency markers."""

from __future__ import annotations

import threading

from ingest.idempotency_store import IdempotencyStore


def test_mark_seen_then_seen() -> None:
    """A marked digest should be reported as seen for its key only."""
    store = IdempotencyStore("batch_digests")
    store.mark_seen("file", "abc")

    assert store.seen("file", "abc")
    assert not store.seen("file", "def") and not store.seen("s3", "abc")


def test_mark_seen_is_idempotent() -> None:
    """Marking a digest twice should keep one marker."""
    store = IdempotencyStore("record_digests")
    store.mark_seen("doc-1", "abc")
    store.mark_seen("doc-1", "abc")

    assert len(store) == 1


def test_earlier_digest_is_not_seen_after_change() -> None:
    """A value returning to an earlier digest should be processed again."""
    store = IdempotencyStore("record_digests")
    store.mark_seen("doc-1", "digest-a")
    store.mark_seen("doc-1", "digest-b")

    assert not store.seen("doc-1", "digest-a") and store.latest("doc-1") == "digest-b"


def test_clear_forgets_markers() -> None:
    """Clearing should drop every marker."""
    store = IdempotencyStore("freshness_tokens")
    store.mark_seen("file", "token")
    store.clear()

    assert not store.seen("file", "token")


def test_concurrent_marks_are_all_recorded() -> None:
    """Markers from several threads should all be kept."""
    store = IdempotencyStore("record_digests")

    def _mark(offset: int) -> None:
        for index in range(200):
            store.mark_seen(f"{offset}-{index}", "digest")

    threads = [threading.Thread(target=_mark, args=(offset,)) for offset in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store) == 800
