"""Single-slot cache for the bulk export snapshot.

The cache owns at most one ``ExportSnapshot``. Readers never touch the
snapshot directly: they hold a ``SnapshotLease``, and a snapshot's artifact
is deleted only once it has been retired (replaced, expired or invalidated)
*and* every lease on it has been released.

Invalidation bumps an epoch counter. A snapshot whose build began in an
older epoch is refused by ``put``, so a scan that was already running when
a write happened can never repopulate the cache with pre-write data.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
import threading

from translation_service.core.base_models import utcnow
from translation_service.core.logging import get_logger
from translation_service.export.storage import SnapshotArtifact, SnapshotStorage
from translation_service.translations.store import WriteEvent

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 300


@dataclass(eq=False)
class ExportSnapshot:
    """A materialized export of the whole translation table."""

    generation: str
    filename: str
    count: int
    artifact: SnapshotArtifact
    created_at: datetime
    expires_at: datetime | None = None

    _readers: int = field(default=0, init=False, repr=False)
    _retired: bool = field(default=False, init=False, repr=False)
    _deleted: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    @property
    def size(self) -> int:
        return self.artifact.size

    @property
    def retired(self) -> bool:
        return self._retired

    @property
    def deleted(self) -> bool:
        return self._deleted

    def acquire(self) -> "SnapshotLease":
        """Take a reference that keeps the artifact alive until released."""
        with self._lock:
            if self._deleted:
                raise RuntimeError(
                    f"snapshot {self.generation} has already been deleted"
                )
            self._readers += 1
        return SnapshotLease(self)

    def retire(self) -> None:
        """Mark the snapshot as no longer current.

        The artifact is deleted now if nobody is reading it, otherwise
        when the last lease is released. Idempotent.
        """
        with self._lock:
            if self._retired:
                return
            self._retired = True
            delete_now = self._readers == 0 and not self._deleted
            if delete_now:
                self._deleted = True
        if delete_now:
            self.artifact.delete()

    def _release(self) -> None:
        with self._lock:
            self._readers -= 1
            delete_now = self._retired and self._readers == 0 and not self._deleted
            if delete_now:
                self._deleted = True
        if delete_now:
            self.artifact.delete()


class SnapshotLease:
    """A reader's hold on a snapshot. ``release`` is idempotent."""

    def __init__(self, snapshot: ExportSnapshot):
        self.snapshot = snapshot
        self._released = False
        self._lock = threading.Lock()

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
        self.snapshot._release()

    def __enter__(self) -> "SnapshotLease":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class ExportCache:
    """Holds the current export snapshot.

    ``get``/``put``/``invalidate`` only swap the slot under a lock; no lock
    is held while a snapshot is being built or streamed. An expired snapshot
    is evicted by the next ``get`` or by ``evict_expired``, which
    ``sweep_expired`` calls periodically.

    Args:
        storage: Backend that holds snapshot artifacts
        ttl_seconds: Default lifetime of a snapshot, measured from ``put``
        clock: Source of the current UTC time
    """

    def __init__(
        self,
        storage: SnapshotStorage,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.storage = storage
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._current: ExportSnapshot | None = None
        self._epoch = 0

    @property
    def epoch(self) -> int:
        with self._lock:
            return self._epoch

    def _is_live(self, snapshot: ExportSnapshot) -> bool:
        return snapshot.expires_at is None or self._clock() < snapshot.expires_at

    def get(self) -> SnapshotLease | None:
        """Lease the current snapshot, or None on a miss or expiry."""
        with self._lock:
            snapshot = self._current
            if snapshot is None:
                return None
            if self._is_live(snapshot):
                return snapshot.acquire()
            self._current = None

        logger.info("export_cache_expired", generation=snapshot.generation)
        snapshot.retire()
        return None

    def evict_expired(self) -> bool:
        """Retire the current snapshot if its TTL has lapsed.

        Returns:
            True if a snapshot was evicted
        """
        with self._lock:
            snapshot = self._current
            if snapshot is None or self._is_live(snapshot):
                return False
            self._current = None

        logger.info("export_cache_expired", generation=snapshot.generation)
        snapshot.retire()
        return True

    def put(
        self,
        snapshot: ExportSnapshot,
        ttl_seconds: float | None = None,
        *,
        epoch: int | None = None,
    ) -> bool:
        """Make ``snapshot`` the current one, replacing any previous snapshot.

        Args:
            snapshot: Freshly built snapshot
            ttl_seconds: Lifetime override for this snapshot
            epoch: Epoch observed when the build started; a mismatch means
                   a write happened since, and the snapshot is retired
                   instead of stored

        Returns:
            True if the snapshot was stored
        """
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        previous: ExportSnapshot | None = None
        with self._lock:
            stale = epoch is not None and epoch != self._epoch
            if not stale:
                snapshot.expires_at = self._clock() + timedelta(seconds=ttl)
                previous, self._current = self._current, snapshot

        if stale:
            logger.info(
                "export_snapshot_stale",
                generation=snapshot.generation,
                built_in_epoch=epoch,
            )
            snapshot.retire()
            return False

        if previous is not None and previous is not snapshot:
            previous.retire()
        logger.debug(
            "export_cache_stored",
            generation=snapshot.generation,
            ttl=ttl,
            size=snapshot.size,
        )
        return True

    def invalidate(self) -> None:
        """Discard the current snapshot regardless of its TTL. Idempotent."""
        with self._lock:
            self._epoch += 1
            previous, self._current = self._current, None

        if previous is not None:
            logger.info("export_cache_invalidated", generation=previous.generation)
            previous.retire()


def invalidate_on_write(cache: ExportCache) -> Callable[[WriteEvent], None]:
    """Build the store listener that retires the export on every write."""

    def _on_write(event: WriteEvent) -> None:
        logger.debug(
            "export_invalidation_triggered",
            operation=event.operation,
            translation_id=event.translation_id,
        )
        cache.invalidate()

    return _on_write


async def sweep_expired(cache: ExportCache, interval_seconds: float) -> None:
    """Evict the expired snapshot every ``interval_seconds`` until cancelled.

    Without it an expired artifact would stay in storage until the next
    export request or write.
    """
    if interval_seconds <= 0:
        raise ValueError("interval_seconds must be positive")
    while True:
        await asyncio.sleep(interval_seconds)
        cache.evict_expired()
