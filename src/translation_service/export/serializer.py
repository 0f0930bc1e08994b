"""Chunked JSON array serializer for the bulk export.

Turns an ordered stream of record pages into ``[obj,obj,...]`` written
straight to a byte sink, holding at most one page in memory.
"""

from collections.abc import Callable, Iterable, Iterator, Sequence
import json
from typing import Any, Protocol

from translation_service.core.exceptions import (
    ExportCancelled,
    ExportScanFailed,
    SinkWriteFailed,
)


class ByteSink(Protocol):
    """Anything that accepts appended bytes (file, socket wrapper, buffer)."""

    def write(self, data: bytes, /) -> Any: ...


class ExportRow(Protocol):
    id: int
    locale: str
    key: str
    value: str
    tags: list[str] | None


def encode_record(row: ExportRow) -> bytes:
    """Encode one record in the export projection.

    Timestamps are not part of the projection. Missing tags render as
    ``[]`` so consumers never have to handle ``null``.
    """
    return json.dumps(
        {
            "id": row.id,
            "locale": row.locale,
            "key": row.key,
            "value": row.value,
            "tags": list(row.tags) if row.tags else [],
        },
        ensure_ascii=False,
        separators=(",", ":"),
    ).encode("utf-8")


def _write(sink: ByteSink, data: bytes) -> None:
    try:
        sink.write(data)
    except OSError as e:
        raise SinkWriteFailed(e) from e


def _next_page(pages: Iterator[Sequence[ExportRow]]) -> Sequence[ExportRow] | None:
    try:
        return next(pages)
    except StopIteration:
        return None
    except Exception as e:
        raise ExportScanFailed(e) from e


def write_json_array(
    pages: Iterable[Sequence[ExportRow]],
    sink: ByteSink,
    *,
    should_stop: Callable[[], bool] | None = None,
) -> int:
    """Stream ``pages`` into ``sink`` as a single JSON array.

    Records are written in the order received, a comma before every record
    but the first. On any exception the sink holds an unterminated array
    and must be discarded by the caller.

    Args:
        pages: Ordered record pages, pulled lazily one at a time
        sink: Destination for the encoded bytes
        should_stop: Checked before each page is pulled; returning True
                     aborts the run

    Returns:
        Number of records written

    Raises:
        ExportScanFailed: Pulling a page from the store failed
        SinkWriteFailed: The sink raised OSError
        ExportCancelled: should_stop() returned True
    """
    try:
        page_iter = iter(pages)
    except Exception as e:
        raise ExportScanFailed(e) from e

    first = True
    count = 0
    _write(sink, b"[")
    while True:
        if should_stop is not None and should_stop():
            raise ExportCancelled()

        page = _next_page(page_iter)
        if page is None:
            break

        for row in page:
            chunk = encode_record(row)
            _write(sink, chunk if first else b"," + chunk)
            first = False
            count += 1
        # Drop the reference so only one page is alive at a time
        del page

    _write(sink, b"]")
    return count
