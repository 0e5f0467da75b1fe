"""Clean-up of raw extracted document text before chunking."""

import re
import unicodedata

_INLINE_WHITESPACE_RE = re.compile(r"[^\S\n]+")
_PAGE_NUMBER_LINE_RE = re.compile(r"\d+")
_MULTIPLE_NEWLINES_RE = re.compile(r"\n{3,}")


def normalize_text(text: str) -> str:
    """
    Normalise whitespace, newlines and stray page-number lines.

    Line endings become ``\\n`` and form feeds become paragraph breaks.
    Inline whitespace collapses to a single space, every line is trimmed,
    lines holding nothing but a number are dropped and runs of three or
    more newlines collapse to exactly two.

    Args:
        text: Raw text as produced by an extractor.

    Returns:
        The normalised text. Empty input gives an empty string; callers
        decide whether that is an error.
    """
    if not text:
        return ""

    normalized = unicodedata.normalize("NFC", text)
    normalized = normalized.replace("\r\n", "\n").replace("\r", "\n")
    normalized = normalized.replace("\f", "\n\n")
    normalized = _INLINE_WHITESPACE_RE.sub(" ", normalized)

    lines = []
    for line in normalized.split("\n"):
        line = line.strip()
        if _PAGE_NUMBER_LINE_RE.fullmatch(line):
            continue
        lines.append(line)

    normalized = _MULTIPLE_NEWLINES_RE.sub("\n\n", "\n".join(lines))
    return normalized.strip()
