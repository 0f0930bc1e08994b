from translation_service.export.cache import (
    ExportCache,
    ExportSnapshot,
    SnapshotLease,
    invalidate_on_write,
    sweep_expired,
)
from translation_service.export.serializer import encode_record, write_json_array
from translation_service.export.service import (
    ExportService,
    iter_snapshot,
    snapshot_filename,
)
from translation_service.export.storage import (
    DiskSnapshotStorage,
    MemorySnapshotStorage,
    SnapshotStorage,
    build_snapshot_storage,
)

__all__ = [
    # Cache
    "ExportCache",
    "ExportSnapshot",
    "SnapshotLease",
    "invalidate_on_write",
    "sweep_expired",
    # Serializer
    "encode_record",
    "write_json_array",
    # Orchestration
    "ExportService",
    "iter_snapshot",
    "snapshot_filename",
    # Storage
    "DiskSnapshotStorage",
    "MemorySnapshotStorage",
    "SnapshotStorage",
    "build_snapshot_storage",
]
