"""Parsing of HTTP ``Range`` headers."""

from __future__ import annotations

import re
from dataclasses import dataclass

_DIGITS_RE = re.compile(r"[0-9]+")


class RangeError(ValueError):
    """Raised when a Range header is malformed or cannot be satisfied."""


@dataclass(frozen=True)
class ByteRange:
    """An inclusive range of byte offsets."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


def _parse_offset(text: str) -> int | None:
    text = text.strip()
    return int(text) if _DIGITS_RE.fullmatch(text) else None


def parse_range(size: int, header: str) -> list[ByteRange]:
    """Return the satisfiable ranges of ``header`` for a body of ``size`` bytes.

    Ranges that cannot be satisfied are dropped; if none is left, or the header
    is malformed, :class:`RangeError` is raised.
    """
    _, sep, spec = header.partition("=")
    if not sep:
        raise RangeError("range malformed")
    ranges = []
    for part in spec.split(","):
        first, dash, last = part.strip().partition("-")
        if not dash:
            raise RangeError("range malformed")
        start = _parse_offset(first)
        end = _parse_offset(last)
        if start is None:
            if end is None:
                continue
            start, end = size - end, size - 1
        elif end is None or end > size - 1:
            end = size - 1
        if start < 0 or start > end:
            continue
        ranges.append(ByteRange(start, end))
    if not ranges:
        raise RangeError("range unsatisfiable")
    return ranges