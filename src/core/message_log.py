"""Buffered per-conversation, per-day message log.

Records are appended in memory and merged into storage by a periodic flush.
A bucket is trimmed only after its records were written, so a failed flush
leaves them in place for the next cycle (at-least-once delivery).
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import date, datetime, timezone
from typing import Callable, Tuple

from core.models import MessageRecord
from core.ports import LogStorePort

LOGGER = logging.getLogger(__name__)

BucketKey = Tuple[str, date]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MessageLog:
    """Owns the in-memory buckets and flushes them to a log store."""

    def __init__(self, store: LogStorePort, clock: Callable[[], datetime] = _utc_now) -> None:
        self._store = store
        self._clock = clock
        self._buckets: dict[BucketKey, list[MessageRecord]] = {}
        # Guards append, snapshot and trim; flush I/O runs in worker threads.
        self._lock = threading.Lock()
        # One flush at a time, so two cycles never write the same snapshot.
        self._flush_lock = asyncio.Lock()

    def record(self, label: str, record: MessageRecord) -> None:
        key = (label, self._clock().date())
        with self._lock:
            self._buckets.setdefault(key, []).append(record)

    def pending(self) -> dict[BucketKey, int]:
        with self._lock:
            return {key: len(records) for key, records in self._buckets.items() if records}

    def _snapshot(self) -> list[tuple[BucketKey, list[MessageRecord]]]:
        with self._lock:
            return [(key, list(records)) for key, records in self._buckets.items() if records]

    def _trim(self, key: BucketKey, count: int) -> None:
        with self._lock:
            records = self._buckets.get(key)
            if records is None:
                return
            del records[:count]
            if not records:
                del self._buckets[key]

    def _persist(self, key: BucketKey, records: list[MessageRecord]) -> None:
        label, day = key
        existing = self._store.read(label, day)
        self._store.write(label, day, existing + [record.to_dict() for record in records])

    async def flush(self) -> int:
        """Write every non-empty bucket; return how many records were persisted."""

        written = 0
        async with self._flush_lock:
            for key, records in self._snapshot():
                try:
                    await asyncio.to_thread(self._persist, key, records)
                except Exception:
                    LOGGER.exception("Error writing message log for %s on %s", key[0], key[1].isoformat())
                    continue
                # Only the snapshotted prefix is removed; records appended while
                # the write was in flight stay for the next cycle.
                self._trim(key, len(records))
                written += len(records)
        if written:
            LOGGER.info("Messages saved to files: %s", written)
        return written

    async def run_periodic(self, interval_seconds: float) -> None:
        """Flush forever on a fixed period until cancelled."""

        while True:
            await asyncio.sleep(interval_seconds)
            # Cancelling the loop must not abandon a write already handed to a
            # worker thread; the shielded flush keeps the flush lock until done.
            await asyncio.shield(self.flush())
