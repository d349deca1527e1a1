"""Parsing of single byte-range requests."""

import re
from dataclasses import dataclass

from streamgate.errors import RangeNotSatisfiableError

RANGE_RE = re.compile(r"^bytes=(\d+)-(\d*)$")


@dataclass(frozen=True)
class ByteRange:
    """Inclusive byte interval of an asset."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        return f"bytes {self.start}-{self.end}/{size}"


def parse_range(header: str | None, size: int) -> ByteRange | None:
    """Parse a ``Range`` header against an asset of ``size`` bytes.

    Only ``bytes=START-`` and ``bytes=START-END`` are served; END past the last
    byte is clamped. Returns None when no range was requested.

    Raises:
        RangeNotSatisfiableError: Other units, multiple or suffix ranges,
            START beyond the asset, or END before START
    """
    if header is None or not header.strip():
        return None

    match = RANGE_RE.fullmatch(header.strip().replace(" ", ""))
    if match is None:
        raise RangeNotSatisfiableError(size, f"Unsupported range: {header}")

    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else size - 1
    if start >= size:
        raise RangeNotSatisfiableError(size, f"Range start {start} beyond size {size}")
    if end < start:
        raise RangeNotSatisfiableError(size, f"Range end {end} before start {start}")
    return ByteRange(start=start, end=min(end, size - 1))
