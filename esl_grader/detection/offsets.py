"""Span overlap checks and UTF-16 offset conversion."""

from bisect import bisect_right
from typing import Iterable, List, Optional

from ..models import Issue, Offsets


def is_covered(start: int, end: int, existing_issues: Iterable[Issue]) -> bool:
    """True if ``[start, end)`` overlaps any existing issue span.

    Touching spans (``end == other.start``) do not overlap.
    """
    for issue in existing_issues:
        if not (start >= issue.end or end <= issue.start):
            return True
    return False


class Utf16Index:
    """Maps code-point indices of a string to UTF-16 code-unit offsets.

    Offsets on the wire are UTF-16 code units. For text without astral
    characters both measures agree and no table is built.
    """

    def __init__(self, text: str):
        self.text = text
        self._prefix: Optional[List[int]] = None
        if any(ord(ch) > 0xFFFF for ch in text):
            prefix = [0]
            for ch in text:
                prefix.append(prefix[-1] + (2 if ord(ch) > 0xFFFF else 1))
            self._prefix = prefix

    def __len__(self) -> int:
        if self._prefix is None:
            return len(self.text)
        return self._prefix[-1]

    def to_utf16(self, index: int) -> int:
        if self._prefix is None:
            return index
        return self._prefix[index]

    def from_utf16(self, offset: int) -> int:
        """Code-point index of the character containing ``offset``."""
        if self._prefix is None:
            return offset
        return bisect_right(self._prefix, offset) - 1

    def offsets(self, start: int, end: int) -> Offsets:
        """Build wire offsets from code-point indices."""
        return Offsets(self.to_utf16(start), self.to_utf16(end))

    def slice(self, offsets: Offsets) -> str:
        """Return the essay text a wire span points at."""
        return self.text[self.from_utf16(offsets.start):self.from_utf16(offsets.end)]
