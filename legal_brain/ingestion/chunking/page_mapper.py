import re
from dataclasses import replace
from typing import List, NamedTuple, Optional, Pattern, Union

from ...utils.logger import get_logger
from .chunk import DocumentChunk
from .splitter import ChunkSplitter

logger = get_logger(__name__)

DEFAULT_PAGE_MARKER = re.compile(r"PAGE\s+(\d+)", re.IGNORECASE)


class PageSegment(NamedTuple):
    page_number: int
    start: int
    end: int


class PageMapper:
    """
    Page-aware chunking for text carrying ``PAGE <n>`` style markers.

    The text is cut into segments that each start at a marker and run to
    the next one (the first segment also keeps anything before the first
    marker). Every segment is chunked on its own, so no chunk spans two
    pages, and chunks are re-offset into the full text and re-indexed.
    """

    def __init__(
        self,
        splitter: Optional[ChunkSplitter] = None,
        pattern: Union[str, Pattern, None] = None,
    ):
        """
        Args:
            splitter: Splitter applied to each page segment
            pattern: Page marker regex. Its first group, if any, holds the
                page number; otherwise pages are numbered by position.
        """
        self.splitter = splitter or ChunkSplitter()
        if pattern is None:
            self.pattern = DEFAULT_PAGE_MARKER
        elif isinstance(pattern, str):
            self.pattern = re.compile(pattern, re.IGNORECASE)
        else:
            self.pattern = pattern

    def find_segments(self, text: str) -> List[PageSegment]:
        """Locate page segments; empty when the text has no markers."""
        matches = list(self.pattern.finditer(text))
        segments: List[PageSegment] = []
        for i, match in enumerate(matches):
            start = 0 if i == 0 else match.start()
            end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
            segments.append(PageSegment(self._page_number(match, i), start, end))
        return segments

    def split(self, text: str) -> List[DocumentChunk]:
        """
        Chunk ``text`` page by page.

        Without markers the whole text is page 1.
        """
        segments = self.find_segments(text)
        if not segments:
            logger.debug("No page markers found, treating text as a single page")
            return [replace(chunk, page_number=1) for chunk in self.splitter.split(text)]

        chunks: List[DocumentChunk] = []
        for segment in segments:
            # rstrip keeps segment offsets valid
            segment_text = text[segment.start:segment.end].rstrip()
            if not segment_text.strip():
                continue
            for chunk in self.splitter.split(segment_text):
                chunks.append(replace(
                    chunk,
                    index=len(chunks),
                    page_number=segment.page_number,
                    char_start=segment.start + chunk.char_start,
                    char_end=segment.start + chunk.char_end,
                ))

        logger.debug("Chunked %d pages into %d chunks", len(segments), len(chunks))
        return chunks

    def _page_number(self, match: "re.Match", position: int) -> int:
        if self.pattern.groups:
            try:
                return int(match.group(1))
            except (TypeError, ValueError):
                pass
        return position + 1
