"""
Break point discovery for the chunk splitter.

A break point is a character offset where a chunk may safely end. Offsets
are pooled from four structural patterns, most significant first:

1. Paragraph breaks: just after two or more newlines.
2. Section headers: the start of a line opening with a numbered heading
   (``12.`` or ``4.2``) or an all-caps label such as ``SCHEDULE:``.
3. Line breaks: just after a single newline.
4. Sentence ends: just after the whitespace following ``.``, ``!`` or ``?``.

All functions here are pure: each call scans the text from the start with
its own match iterators.
"""

import bisect
import re
from enum import IntEnum
from typing import Dict, List, NamedTuple, Optional


class BreakKind(IntEnum):
    """Structural significance of a break point (higher is stronger)."""
    SENTENCE = 1
    LINE = 2
    HEADER = 3
    PARAGRAPH = 4


class BreakPoint(NamedTuple):
    offset: int
    kind: BreakKind


_PARAGRAPH_RE = re.compile(r"\n{2,}")
_HEADER_RE = re.compile(r"^(?:\d+\.\d+|\d+\.|[A-Z]{3,}[A-Z ]*:?)(?=\s)", re.MULTILINE)
_NEWLINE_RE = re.compile(r"\n")
_SENTENCE_RE = re.compile(r"[.!?]\s+")


def _paragraph_offsets(text: str) -> List[int]:
    return [match.end() for match in _PARAGRAPH_RE.finditer(text)]


def _header_offsets(text: str) -> List[int]:
    return [match.start() for match in _HEADER_RE.finditer(text)]


def _line_offsets(text: str) -> List[int]:
    return [match.end() for match in _NEWLINE_RE.finditer(text)]


def _sentence_offsets(text: str) -> List[int]:
    return [match.end() for match in _SENTENCE_RE.finditer(text)]


def find_break_points(text: str) -> List[BreakPoint]:
    """
    Find all candidate break points in normalised text.

    Args:
        text: Normalised document text.

    Returns:
        Break points sorted by offset, one per offset, each tagged with
        the most significant kind found there. Offset 0 is never a break.
    """
    kinds: Dict[int, BreakKind] = {}
    finders = (
        (BreakKind.PARAGRAPH, _paragraph_offsets),
        (BreakKind.HEADER, _header_offsets),
        (BreakKind.LINE, _line_offsets),
        (BreakKind.SENTENCE, _sentence_offsets),
    )
    for kind, finder in finders:
        for offset in finder(text):
            if offset <= 0:
                continue
            if offset not in kinds or kinds[offset] < kind:
                kinds[offset] = kind

    return [BreakPoint(offset, kinds[offset]) for offset in sorted(kinds)]


def break_offsets(text: str) -> List[int]:
    """Ascending, de-duplicated break offsets of ``text``."""
    return [point.offset for point in find_break_points(text)]


def find_best_break(
    break_points: List[BreakPoint],
    target: int,
    min_pos: int,
    max_pos: int,
) -> Optional[int]:
    """
    Pick the break point in ``[min_pos, max_pos]`` closest to ``target``.

    Equally distant candidates are settled by structural kind (stronger
    first), then by the earlier offset.

    Args:
        break_points: Output of ``find_break_points``, sorted by offset.
        target: Preferred chunk end.
        min_pos: Smallest acceptable offset (inclusive).
        max_pos: Largest acceptable offset (inclusive).

    Returns:
        The chosen offset, or None if the window holds no break point.
    """
    offsets = [point.offset for point in break_points]
    return _closest_break(break_points, offsets, target, min_pos, max_pos)


def _closest_break(
    break_points: List[BreakPoint],
    offsets: List[int],
    target: int,
    min_pos: int,
    max_pos: int,
) -> Optional[int]:
    # offsets[i] == break_points[i].offset; the splitter builds it once per text
    if min_pos > max_pos:
        return None

    lo = bisect.bisect_left(offsets, min_pos)
    hi = bisect.bisect_right(offsets, max_pos)
    if lo >= hi:
        return None

    def rank(point: BreakPoint):
        return (abs(point.offset - target), -point.kind, point.offset)

    return min(break_points[lo:hi], key=rank).offset
