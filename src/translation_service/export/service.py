"""Export orchestration: cache lookup, single-flight build, streaming.

Per request::

    CHECK_CACHE --hit--> SERVE
         |
        miss
         v
       SCAN (join or start the build for the current epoch)
         |---fail--> FAILED (error raised, nothing cached, artifact removed)
         v
       STORE (put with the build's epoch)
         v
       SERVE

Concurrent misses collapse into one build per cache epoch. A request that
arrives after an invalidation never joins a build that started before it;
it starts a fresh one, so the invalidation always happens-before the data
it is served.
"""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
import threading
import time
import uuid

from translation_service.core.base_models import utcnow
from translation_service.core.exceptions import (
    CacheUnavailable,
    ExportCancelled,
    ExportError,
    ExportScanFailed,
)
from translation_service.core.logging import get_logger
from translation_service.export.cache import ExportCache, ExportSnapshot, SnapshotLease
from translation_service.export.serializer import write_json_array
from translation_service.export.storage import MemorySnapshotStorage, SnapshotStorage
from translation_service.translations.store import TranslationStore

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 1000
STREAM_CHUNK_SIZE = 64 * 1024


def snapshot_filename(prefix: str, created_at: datetime, generation: str) -> str:
    """Download name, unique per generation, e.g.
    ``translations_20260101T120000123456Z_3f2a9c1b7d4e.json``."""
    return f"{prefix}_{created_at:%Y%m%dT%H%M%S%f}Z_{generation[:12]}.json"


@dataclass(eq=False)
class _Build:
    """One in-flight snapshot computation and the requests waiting on it."""

    epoch: int
    future: "asyncio.Future[ExportSnapshot]"
    stop: threading.Event = field(default_factory=threading.Event)
    waiters: int = 0
    # Keeps the artifact alive until every waiter has its own lease
    builder_lease: SnapshotLease | None = None
    task: "asyncio.Task[None] | None" = None


class ExportService:
    """Serves the bulk export from the cache, building it on a miss.

    Args:
        store: Record store to scan
        cache: Export cache (also provides the storage backend)
        page_size: Records pulled from the store per page
        filename_prefix: Prefix of snapshot download names
        fallback_storage: Where to build when the cache backend is
                          unavailable; such snapshots are served once and
                          not cached
    """

    def __init__(
        self,
        store: TranslationStore,
        cache: ExportCache,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        filename_prefix: str = "translations",
        fallback_storage: SnapshotStorage | None = None,
    ):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._store = store
        self._cache = cache
        self._page_size = page_size
        self._filename_prefix = filename_prefix
        self._fallback_storage = fallback_storage or MemorySnapshotStorage()
        self._inflight: _Build | None = None

    async def export(self) -> tuple[SnapshotLease, bool]:
        """Return a lease on an up-to-date snapshot.

        The caller must release the lease once the snapshot has been sent.

        Returns:
            Tuple of (lease, cache_hit)

        Raises:
            ExportError: The snapshot could not be built
        """
        lease = self._cache.get()
        if lease is not None:
            logger.info(
                "export_cache_hit",
                generation=lease.snapshot.generation,
                size=lease.snapshot.size,
            )
            return lease, True

        logger.info("export_cache_miss")
        build = self._join_or_start()
        return await self._wait(build), False

    def _join_or_start(self) -> _Build:
        epoch = self._cache.epoch
        build = self._inflight
        if build is not None and build.epoch == epoch and not build.stop.is_set():
            logger.debug("export_build_joined", epoch=epoch, waiters=build.waiters)
            return build

        build = _Build(epoch=epoch, future=asyncio.get_running_loop().create_future())
        self._inflight = build
        build.task = asyncio.create_task(self._run(build))
        return build

    async def _wait(self, build: _Build) -> SnapshotLease:
        build.waiters += 1
        try:
            snapshot = await asyncio.shield(build.future)
            return snapshot.acquire()
        finally:
            build.waiters -= 1
            if build.waiters == 0:
                if not build.future.done():
                    # Nobody is left to serve; stop pulling pages
                    logger.info("export_build_abandoned", epoch=build.epoch)
                    build.stop.set()
                elif build.builder_lease is not None:
                    build.builder_lease.release()

    async def _run(self, build: _Build) -> None:
        started = time.perf_counter()
        logger.info("export_build_started", epoch=build.epoch)
        try:
            snapshot, cacheable = await asyncio.to_thread(
                self._build_snapshot, build.stop
            )
        except Exception as e:
            error = e if isinstance(e, ExportError) else ExportScanFailed(e)
            log = logger.info if isinstance(error, ExportCancelled) else logger.error
            log(
                "export_build_failed",
                epoch=build.epoch,
                error_code=error.error_code,
                error=str(e),
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            build.future.set_exception(error)
            if build.waiters == 0:
                # Mark retrieved; there is no one to re-raise it to
                build.future.exception()
        else:
            build.builder_lease = snapshot.acquire()
            if cacheable:
                self._cache.put(snapshot, epoch=build.epoch)
            else:
                snapshot.retire()
            logger.info(
                "export_build_completed",
                epoch=build.epoch,
                generation=snapshot.generation,
                count=snapshot.count,
                bytes=snapshot.size,
                cached=cacheable,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            build.future.set_result(snapshot)
            if build.waiters == 0:
                build.builder_lease.release()
        finally:
            if not build.future.done():
                build.future.cancel()
            if self._inflight is build:
                self._inflight = None

    def _build_snapshot(self, stop: threading.Event) -> tuple[ExportSnapshot, bool]:
        """Scan the store into a new artifact. Runs in a worker thread."""
        created_at = utcnow()
        generation = uuid.uuid4().hex
        filename = snapshot_filename(self._filename_prefix, created_at, generation)

        cacheable = True
        try:
            writer = self._cache.storage.open_writer(filename)
        except CacheUnavailable as e:
            logger.warning(
                "export_cache_unavailable",
                backend=self._cache.storage.name,
                error=e.message,
            )
            writer = self._fallback_storage.open_writer(filename)
            cacheable = False

        try:
            count = write_json_array(
                self._store.scan_pages(self._page_size),
                writer,
                should_stop=stop.is_set,
            )
            artifact = writer.commit()
        except BaseException:
            writer.abort()
            raise

        snapshot = ExportSnapshot(
            generation=generation,
            filename=filename,
            count=count,
            artifact=artifact,
            created_at=created_at,
        )
        return snapshot, cacheable


async def iter_snapshot(
    lease: SnapshotLease, chunk_size: int = STREAM_CHUNK_SIZE
) -> AsyncIterator[bytes]:
    """Stream a leased snapshot, reading off the event loop.

    The lease is released when the stream ends, fails or is closed.
    """
    try:
        fh = await asyncio.to_thread(lease.snapshot.artifact.open)
        try:
            while chunk := await asyncio.to_thread(fh.read, chunk_size):
                yield chunk
        finally:
            fh.close()
    finally:
        lease.release()
