from dataclasses import replace
from typing import List, Optional

from .chunk import DocumentChunk

MERGE_SEPARATOR = "\n\n"


def _fold(first: DocumentChunk, second: DocumentChunk) -> DocumentChunk:
    """Append ``second`` to ``first``, keeping the first chunk's page."""
    return replace(
        first,
        content=first.content + MERGE_SEPARATOR + second.content,
        char_end=second.char_end,
        token_count=first.token_count + second.token_count,
    )


def merge_small_chunks(chunks: List[DocumentChunk], min_tokens: int = 100) -> List[DocumentChunk]:
    """
    Fold undersized chunks into a neighbour.

    A chunk below ``min_tokens`` absorbs the chunk after it; an undersized
    last chunk is appended to the previous merged chunk instead. The
    result is re-indexed from 0. Applying the merge to its own output
    changes nothing.

    Args:
        chunks: Chunks of one document, in order.
        min_tokens: Token count below which a chunk is folded.

    Returns:
        The merged chunk list.
    """
    if len(chunks) <= 1:
        return list(chunks)

    merged: List[DocumentChunk] = []
    pending: Optional[DocumentChunk] = None

    for chunk in chunks:
        if pending is None:
            pending = chunk
        elif pending.token_count < min_tokens:
            pending = _fold(pending, chunk)
        else:
            merged.append(pending)
            pending = chunk

    if pending is not None:
        if pending.token_count < min_tokens and merged:
            merged[-1] = _fold(merged[-1], pending)
        else:
            merged.append(pending)

    return [replace(chunk, index=i) for i, chunk in enumerate(merged)]
