from .chunk import DocumentChunk, make_chunk_id
from .tokens import CHARS_PER_TOKEN, estimate_tokens, tokens_to_chars
from .break_points import BreakKind, BreakPoint, find_break_points, break_offsets, find_best_break
from .splitter import ChunkSplitter
from .page_mapper import PageMapper
from .merger import merge_small_chunks
from .chunk_manager import ChunkManager

__all__ = [
    'DocumentChunk',
    'make_chunk_id',
    'CHARS_PER_TOKEN',
    'estimate_tokens',
    'tokens_to_chars',
    'BreakKind',
    'BreakPoint',
    'find_break_points',
    'break_offsets',
    'find_best_break',
    'ChunkSplitter',
    'PageMapper',
    'merge_small_chunks',
    'ChunkManager',
]
