"""
Unit tests for the export snapshot cache (export/cache.py)
"""
import asyncio
from datetime import UTC, datetime, timedelta
import uuid

import pytest

from translation_service.export.cache import (
    ExportCache,
    ExportSnapshot,
    invalidate_on_write,
    sweep_expired,
)
from translation_service.export.storage import DiskSnapshotStorage
from translation_service.translations import WriteEvent


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage(tmp_path):
    return DiskSnapshotStorage(tmp_path)


@pytest.fixture
def cache(storage, clock):
    return ExportCache(storage, ttl_seconds=300, clock=clock)


@pytest.fixture
def make_snapshot(storage, clock):
    def _make(payload: bytes = b"[]") -> ExportSnapshot:
        generation = uuid.uuid4().hex
        filename = f"translations_{generation}.json"
        writer = storage.open_writer(filename)
        writer.write(payload)
        return ExportSnapshot(
            generation=generation,
            filename=filename,
            count=0,
            artifact=writer.commit(),
            created_at=clock(),
        )

    return _make


def files(path):
    return sorted(p.name for p in path.iterdir())


class TestExportCacheLookup:
    """Test get/put/TTL behaviour."""

    def test_empty_cache_misses(self, cache):
        assert cache.get() is None

    def test_put_then_get_hits(self, cache, make_snapshot):
        snapshot = make_snapshot(b"[1]")
        assert cache.put(snapshot) is True

        lease = cache.get()
        assert lease is not None
        assert lease.snapshot is snapshot
        lease.release()

    def test_expiry_measured_from_put(self, cache, make_snapshot, clock):
        snapshot = make_snapshot()
        clock.advance(1000)  # build time does not count against the TTL
        cache.put(snapshot)

        clock.advance(299)
        lease = cache.get()
        assert lease is not None
        lease.release()

        clock.advance(1)
        assert cache.get() is None

    def test_expired_snapshot_is_deleted(self, cache, make_snapshot, clock, tmp_path):
        cache.put(make_snapshot())
        clock.advance(301)

        assert cache.get() is None
        assert files(tmp_path) == []

    def test_per_put_ttl_override(self, cache, make_snapshot, clock):
        cache.put(make_snapshot(), ttl_seconds=10)
        clock.advance(11)
        assert cache.get() is None

    def test_put_replaces_and_deletes_previous(self, cache, make_snapshot, tmp_path):
        first = make_snapshot()
        second = make_snapshot()
        cache.put(first)
        cache.put(second)

        assert first.deleted
        assert files(tmp_path) == [second.filename]

    def test_invalid_ttl_rejected(self, storage):
        with pytest.raises(ValueError):
            ExportCache(storage, ttl_seconds=0)


class TestExportCacheEviction:
    """Test eager eviction of expired snapshots without any lookup."""

    def test_evict_expired_deletes_artifact(self, cache, make_snapshot, clock, tmp_path):
        cache.put(make_snapshot())
        clock.advance(3600)

        assert cache.evict_expired() is True
        assert files(tmp_path) == []
        assert cache.get() is None

    def test_live_snapshot_is_kept(self, cache, make_snapshot, clock, tmp_path):
        snapshot = make_snapshot()
        cache.put(snapshot)
        clock.advance(299)

        assert cache.evict_expired() is False
        assert files(tmp_path) == [snapshot.filename]

    def test_empty_cache(self, cache):
        assert cache.evict_expired() is False

    def test_eviction_waits_for_readers(self, cache, make_snapshot, clock, tmp_path):
        snapshot = make_snapshot()
        cache.put(snapshot)
        lease = cache.get()
        clock.advance(301)

        assert cache.evict_expired() is True
        assert files(tmp_path) == [snapshot.filename]

        lease.release()
        assert files(tmp_path) == []

    @pytest.mark.asyncio
    async def test_sweeper_evicts_on_its_own(self, cache, make_snapshot, clock, tmp_path):
        cache.put(make_snapshot())
        clock.advance(3600)

        task = asyncio.create_task(sweep_expired(cache, interval_seconds=0.01))
        try:
            for _ in range(200):
                if not files(tmp_path):
                    break
                await asyncio.sleep(0.01)
        finally:
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert files(tmp_path) == []

    @pytest.mark.asyncio
    async def test_sweeper_rejects_invalid_interval(self, cache):
        with pytest.raises(ValueError):
            await sweep_expired(cache, interval_seconds=0)


class TestExportCacheInvalidation:
    """Test invalidation and the epoch guard."""

    def test_invalidate_discards_regardless_of_ttl(self, cache, make_snapshot, tmp_path):
        cache.put(make_snapshot())
        cache.invalidate()

        assert cache.get() is None
        assert files(tmp_path) == []

    def test_invalidate_is_idempotent(self, cache):
        cache.invalidate()
        cache.invalidate()
        assert cache.get() is None
        assert cache.epoch == 2

    def test_stale_epoch_put_is_refused(self, cache, make_snapshot, tmp_path):
        epoch = cache.epoch
        snapshot = make_snapshot()
        cache.invalidate()  # a write lands while the snapshot is being built

        assert cache.put(snapshot, epoch=epoch) is False
        assert cache.get() is None
        assert snapshot.deleted
        assert files(tmp_path) == []

    def test_current_epoch_put_is_stored(self, cache, make_snapshot):
        cache.invalidate()
        assert cache.put(make_snapshot(), epoch=cache.epoch) is True
        lease = cache.get()
        assert lease is not None
        lease.release()

    def test_invalidate_on_write_listener(self, cache, make_snapshot):
        cache.put(make_snapshot())
        listener = invalidate_on_write(cache)

        listener(WriteEvent(operation="update", translation_id=1, locale="en", key="k"))

        assert cache.get() is None


class TestSnapshotLeases:
    """Test that artifacts outlive their readers."""

    def test_invalidate_defers_delete_until_release(
        self, cache, make_snapshot, tmp_path
    ):
        snapshot = make_snapshot(b"[1,2]")
        cache.put(snapshot)
        lease = cache.get()

        cache.invalidate()

        assert snapshot.retired
        assert not snapshot.deleted
        with lease.snapshot.artifact.open() as fh:
            assert fh.read() == b"[1,2]"

        lease.release()
        assert snapshot.deleted
        assert files(tmp_path) == []

    def test_delete_waits_for_every_reader(self, cache, make_snapshot):
        snapshot = make_snapshot()
        cache.put(snapshot)
        first, second = cache.get(), cache.get()

        cache.put(make_snapshot())
        first.release()
        assert not snapshot.deleted

        second.release()
        assert snapshot.deleted

    def test_release_is_idempotent(self, cache, make_snapshot):
        snapshot = make_snapshot()
        cache.put(snapshot)
        held = cache.get()
        lease = cache.get()

        cache.invalidate()
        lease.release()
        lease.release()

        assert lease.released
        assert not snapshot.deleted
        held.release()
        assert snapshot.deleted

    def test_lease_context_manager(self, cache, make_snapshot):
        snapshot = make_snapshot()
        cache.put(snapshot)

        with cache.get() as lease:
            cache.invalidate()
            assert not lease.snapshot.deleted
        assert snapshot.deleted

    def test_acquire_after_delete_fails(self, make_snapshot):
        snapshot = make_snapshot()
        snapshot.retire()
        with pytest.raises(RuntimeError):
            snapshot.acquire()
