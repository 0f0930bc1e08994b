"""Backing storage for export snapshots.

A storage backend hands out writers; a committed writer becomes an
artifact that can be re-opened for reading any number of times and is
deleted once the export cache retires it and no reader holds it.

Every snapshot generation gets its own artifact name, so a reader of an
older generation never races with the writer of a newer one.
"""

from abc import ABC, abstractmethod
import contextlib
import io
import os
from pathlib import Path
from typing import BinaryIO

from translation_service.core.exceptions import CacheUnavailable, SinkWriteFailed
from translation_service.core.logging import get_logger

logger = get_logger(__name__)

# Buffer for the many small per-record writes the serializer issues
WRITE_BUFFER_SIZE = 256 * 1024

PARTIAL_SUFFIX = ".part"


class SnapshotArtifact(ABC):
    """Committed, immutable snapshot bytes."""

    size: int

    @abstractmethod
    def open(self) -> BinaryIO:
        """Open the artifact for reading from the start."""

    @abstractmethod
    def delete(self) -> None:
        """Release the artifact's storage. Idempotent."""


class SnapshotWriter(ABC):
    """Append-only sink for one snapshot generation."""

    @abstractmethod
    def write(self, data: bytes) -> None: ...

    @abstractmethod
    def commit(self) -> SnapshotArtifact:
        """Finish writing and publish the artifact.

        Raises:
            SinkWriteFailed: The bytes could not be persisted
        """

    @abstractmethod
    def abort(self) -> None:
        """Discard everything written so far. Safe to call more than once."""


class SnapshotStorage(ABC):
    name: str

    @abstractmethod
    def open_writer(self, filename: str) -> SnapshotWriter:
        """Start a new artifact.

        Raises:
            CacheUnavailable: The backend cannot accept new snapshots
        """

    def purge(self, prefix: str) -> int:
        """Remove artifacts left behind by an earlier process."""
        return 0


# --- Disk ---------------------------------------------------------------


class DiskArtifact(SnapshotArtifact):
    def __init__(self, path: Path, size: int):
        self.path = path
        self.size = size

    def open(self) -> BinaryIO:
        return self.path.open("rb")

    def delete(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            # Left for purge() at next startup
            logger.warning(
                "export_artifact_delete_failed", path=str(self.path), error=str(e)
            )
        else:
            logger.debug("export_artifact_deleted", path=str(self.path))

    def __repr__(self) -> str:
        return f"DiskArtifact(path={str(self.path)!r}, size={self.size})"


class DiskSnapshotWriter(SnapshotWriter):
    """Writes to ``<name>.part`` and renames into place on commit."""

    def __init__(self, path: Path):
        self._path = path
        self._partial = path.with_name(path.name + PARTIAL_SUFFIX)
        self._fh: BinaryIO | None = self._partial.open(
            "xb", buffering=WRITE_BUFFER_SIZE
        )
        self._size = 0

    def write(self, data: bytes) -> None:
        if self._fh is None:
            raise ValueError("write to a closed snapshot writer")
        self._fh.write(data)
        self._size += len(data)

    def commit(self) -> SnapshotArtifact:
        if self._fh is None:
            raise ValueError("commit of a closed snapshot writer")
        try:
            self._fh.flush()
            os.fsync(self._fh.fileno())
            self._fh.close()
            self._fh = None
            os.replace(self._partial, self._path)
        except OSError as e:
            self.abort()
            raise SinkWriteFailed(e) from e
        return DiskArtifact(self._path, self._size)

    def abort(self) -> None:
        if self._fh is not None:
            # The bytes are being thrown away; a failing close changes nothing
            with contextlib.suppress(OSError):
                self._fh.close()
            self._fh = None
        try:
            self._partial.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(
                "export_partial_delete_failed", path=str(self._partial), error=str(e)
            )


class DiskSnapshotStorage(SnapshotStorage):
    """One JSON file per snapshot generation inside ``directory``."""

    name = "disk"

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def open_writer(self, filename: str) -> SnapshotWriter:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            return DiskSnapshotWriter(self.directory / filename)
        except OSError as e:
            raise CacheUnavailable("disk snapshot storage", str(e)) from e

    def purge(self, prefix: str) -> int:
        if not self.directory.is_dir():
            return 0
        removed = 0
        for path in self.directory.glob(f"{prefix}_*.json*"):
            if not (path.suffix == ".json" or path.name.endswith(PARTIAL_SUFFIX)):
                continue
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(
                    "export_purge_failed", path=str(path), error=str(e)
                )
        if removed:
            logger.info(
                "export_artifacts_purged", directory=str(self.directory), count=removed
            )
        return removed


# --- Memory -------------------------------------------------------------


class MemoryArtifact(SnapshotArtifact):
    def __init__(self, data: bytes):
        self._data = data
        self.size = len(data)

    def open(self) -> BinaryIO:
        return io.BytesIO(self._data)

    def delete(self) -> None:
        self._data = b""


class MemorySnapshotWriter(SnapshotWriter):
    def __init__(self) -> None:
        self._buffer: io.BytesIO | None = io.BytesIO()

    def write(self, data: bytes) -> None:
        if self._buffer is None:
            raise ValueError("write to a closed snapshot writer")
        self._buffer.write(data)

    def commit(self) -> SnapshotArtifact:
        if self._buffer is None:
            raise ValueError("commit of a closed snapshot writer")
        artifact = MemoryArtifact(self._buffer.getvalue())
        self._buffer = None
        return artifact

    def abort(self) -> None:
        self._buffer = None


class MemorySnapshotStorage(SnapshotStorage):
    """Keeps snapshot bytes in process memory.

    Suitable for small tables, tests, and as the uncached fallback when
    the configured backend is unavailable.
    """

    name = "memory"

    def open_writer(self, filename: str) -> SnapshotWriter:
        return MemorySnapshotWriter()


def build_snapshot_storage(kind: str, directory: Path | str) -> SnapshotStorage:
    if kind == "memory":
        return MemorySnapshotStorage()
    if kind == "disk":
        return DiskSnapshotStorage(directory)
    raise ValueError(f"Unknown export storage backend: {kind}")
