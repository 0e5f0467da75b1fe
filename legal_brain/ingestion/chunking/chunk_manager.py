from typing import List, Optional

from ...config import ChunkingConfig
from ...errors import EmptyInputError
from ...utils.logger import get_logger
from ..normalization import normalize_text
from .chunk import DocumentChunk
from .merger import merge_small_chunks
from .page_mapper import PageMapper
from .splitter import ChunkSplitter

logger = get_logger(__name__)


class ChunkManager:
    """Runs the chunking stages: normalise, page map, split and merge."""

    def __init__(
        self,
        target_tokens: int = 500,
        max_tokens: int = 1000,
        min_tokens: int = 100,
        overlap_tokens: int = 50,
        detect_pages: bool = False,
        page_marker_pattern: Optional[str] = None,
        merge_small: bool = True,
    ):
        """
        Initialize the chunking pipeline.

        Args:
            target_tokens: Preferred chunk size in tokens
            max_tokens: Hard upper bound on chunk size
            min_tokens: Smallest chunk kept on its own
            overlap_tokens: Tokens shared between consecutive chunks
            detect_pages: Split on page markers before chunking
            page_marker_pattern: Override for the ``PAGE <n>`` marker regex
            merge_small: Fold chunks below ``min_tokens`` into a neighbour
        """
        self.splitter = ChunkSplitter(
            target_tokens=target_tokens,
            max_tokens=max_tokens,
            min_tokens=min_tokens,
            overlap_tokens=overlap_tokens,
        )
        self.page_mapper = PageMapper(self.splitter, page_marker_pattern)
        self.detect_pages = detect_pages
        self.merge_small = merge_small
        self.min_tokens = min_tokens

    @classmethod
    def from_config(cls, config: ChunkingConfig) -> "ChunkManager":
        return cls(
            target_tokens=config.target_tokens,
            max_tokens=config.max_tokens,
            min_tokens=config.min_tokens,
            overlap_tokens=config.overlap_tokens,
            detect_pages=config.detect_pages,
            page_marker_pattern=config.page_marker_pattern,
            merge_small=config.merge_small_chunks,
        )

    def chunk_text(self, text: str, detect_pages: Optional[bool] = None) -> List[DocumentChunk]:
        """
        Normalise raw text and chunk it.

        Chunk offsets refer to the normalised text.

        Raises:
            EmptyInputError: If nothing is left after normalisation.
        """
        normalized = normalize_text(text)
        if not normalized:
            raise EmptyInputError("Text is empty after normalisation", stage="normalization")
        return self.chunk_normalized(normalized, detect_pages=detect_pages)

    def chunk_normalized(self, text: str, detect_pages: Optional[bool] = None) -> List[DocumentChunk]:
        """Chunk text that has already been normalised."""
        use_pages = self.detect_pages if detect_pages is None else detect_pages

        if use_pages:
            chunks = self.page_mapper.split(text)
        else:
            chunks = self.splitter.split(text)

        if self.merge_small:
            before = len(chunks)
            chunks = merge_small_chunks(chunks, self.min_tokens)
            if len(chunks) != before:
                logger.debug("Merged %d small chunks", before - len(chunks))

        logger.debug("Produced %d chunks from %d chars", len(chunks), len(text))
        return chunks
