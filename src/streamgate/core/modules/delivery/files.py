"""Per-request file delivery with optional byte ranges."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from streamgate.core.modules.delivery.media import PROTECTED_HEADERS, PUBLIC_HEADERS, content_type_for
from streamgate.core.modules.delivery.ranges import parse_range
from streamgate.errors import NotFoundError

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class FileDelivery:
    """Everything needed to answer one file request."""

    path: Path
    status_code: int
    start: int
    end: int  # Inclusive; -1 for an empty file
    headers: dict[str, str] = field(default_factory=dict)

    def iter_bytes(self) -> Iterator[bytes]:
        return iter_file_range(self.path, self.start, self.end)


def prepare_delivery(path: Path, range_header: str | None, protected: bool) -> FileDelivery:
    """Work out status, headers and byte window for serving ``path``.

    Raises:
        NotFoundError: File does not exist
        RangeNotSatisfiableError: Range header cannot be served
    """
    if not path.is_file():
        raise NotFoundError("File not found")

    size = path.stat().st_size
    byte_range = parse_range(range_header, size)

    headers = dict(PROTECTED_HEADERS if protected else PUBLIC_HEADERS)
    headers["Content-Type"] = content_type_for(path.name)

    if byte_range is None:
        headers["Content-Length"] = str(size)
        return FileDelivery(path=path, status_code=200, start=0, end=size - 1, headers=headers)

    headers["Content-Range"] = byte_range.content_range(size)
    headers["Content-Length"] = str(byte_range.length)
    return FileDelivery(path=path, status_code=206, start=byte_range.start, end=byte_range.end, headers=headers)


def iter_file_range(path: Path, start: int, end: int, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield bytes ``start..end`` (inclusive) of ``path``.

    The handle belongs to this generator alone and is closed when iteration
    finishes or the generator is closed early (client disconnect).
    """
    remaining = end - start + 1
    with path.open("rb") as f:
        f.seek(start)
        while remaining > 0:
            chunk = f.read(min(chunk_size, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk
