import math
from typing import List

from ...errors import EmptyInputError
from .break_points import _closest_break, find_break_points
from .chunk import DocumentChunk
from .tokens import CHARS_PER_TOKEN, estimate_tokens, tokens_to_chars


class ChunkSplitter:
    """
    Greedy token-bounded splitter that snaps chunk ends to break points.

    Each chunk aims for ``target_tokens`` and never exceeds ``max_tokens``.
    Its end is the break point in the window ``[min, max]``
    closest to the target; failing that the last space in the window, failing
    that a hard cut at the maximum. Consecutive chunks share up to
    ``overlap_tokens`` of text.

    Token budgets are converted to characters with ``tokens_to_chars``.
    """

    def __init__(
        self,
        target_tokens: int = 500,
        max_tokens: int = 1000,
        min_tokens: int = 100,
        overlap_tokens: int = 50,
    ):
        """
        Args:
            target_tokens: Preferred chunk size
            max_tokens: Hard upper bound on chunk size
            min_tokens: Smallest non-terminal chunk worth emitting
            overlap_tokens: Text shared between consecutive chunks

        Raises:
            ValueError: If the sizes are negative or out of order.
        """
        if min(target_tokens, max_tokens, min_tokens, overlap_tokens) < 0:
            raise ValueError("Chunk sizes must be non-negative")
        if target_tokens <= 0:
            raise ValueError("target_tokens must be positive")
        if not min_tokens <= target_tokens <= max_tokens:
            raise ValueError(
                f"Expected min_tokens ({min_tokens}) <= target_tokens "
                f"({target_tokens}) <= max_tokens ({max_tokens})"
            )

        self.target_tokens = target_tokens
        self.max_tokens = max_tokens
        self.min_tokens = min_tokens
        self.overlap_tokens = overlap_tokens

        self.target_chars = tokens_to_chars(target_tokens)
        self.max_chars = tokens_to_chars(max_tokens)
        self.min_chars = tokens_to_chars(min_tokens)
        self.overlap_chars = tokens_to_chars(overlap_tokens)

    @classmethod
    def from_chars(
        cls,
        target_chars: int,
        max_chars: int,
        min_chars: int = 0,
        overlap_chars: int = 0,
    ) -> "ChunkSplitter":
        """
        Build a splitter from character budgets instead of token budgets.

        The token attributes are the character budgets rounded up to whole
        tokens; the walk itself uses the exact character budgets.

        Raises:
            ValueError: If the sizes are negative or out of order.
        """
        if not 0 <= min_chars <= target_chars <= max_chars or overlap_chars < 0:
            raise ValueError(
                f"Expected 0 <= min_chars ({min_chars}) <= target_chars "
                f"({target_chars}) <= max_chars ({max_chars}) and overlap_chars >= 0"
            )
        if target_chars <= 0:
            raise ValueError("target_chars must be positive")

        splitter = cls(
            target_tokens=math.ceil(target_chars / CHARS_PER_TOKEN),
            max_tokens=math.ceil(max_chars / CHARS_PER_TOKEN),
            min_tokens=math.ceil(min_chars / CHARS_PER_TOKEN),
            overlap_tokens=math.ceil(overlap_chars / CHARS_PER_TOKEN),
        )
        splitter.target_chars = target_chars
        splitter.max_chars = max_chars
        splitter.min_chars = min_chars
        splitter.overlap_chars = overlap_chars
        return splitter

    def split(self, text: str) -> List[DocumentChunk]:
        """
        Split normalised text into chunks.

        Offsets refer to ``text`` itself. The final chunk always runs to the
        end of the text and may be shorter than ``min_tokens``.

        Raises:
            EmptyInputError: If ``text`` is blank.
        """
        if not text or not text.strip():
            raise EmptyInputError("Cannot chunk empty text")

        text_length = len(text)
        break_points = find_break_points(text)
        offsets = [point.offset for point in break_points]

        chunks: List[DocumentChunk] = []
        current_start = 0
        # End of a chunk rejected as too short; the retry must end later
        retry_after = None

        while current_start < text_length:
            target_end = current_start + self.target_chars
            max_end = min(current_start + self.max_chars, text_length)
            min_end = current_start + self.min_chars
            if retry_after is not None:
                min_end = max(min_end, retry_after + 1)

            if target_end >= text_length:
                chunk_end = text_length
            else:
                chunk_end = self._choose_end(
                    text, break_points, offsets, current_start, target_end, min_end, max_end
                )

            content = text[current_start:chunk_end].strip()
            is_terminal = chunk_end >= text_length

            if content and len(content) < self.min_chars and not is_terminal and chunk_end < max_end:
                # Too short once trimmed: extend from the same start instead of losing it
                retry_after = chunk_end
                continue
            retry_after = None

            if content:
                chunks.append(DocumentChunk(
                    content=content,
                    index=len(chunks),
                    char_start=current_start,
                    char_end=chunk_end,
                    token_count=estimate_tokens(content),
                ))

            if is_terminal:
                break

            # +1 keeps the walk moving when the overlap would stall it
            current_start = max(chunk_end - self.overlap_chars, current_start + 1)

        return chunks

    def _choose_end(
        self,
        text: str,
        break_points,
        offsets: List[int],
        current_start: int,
        target_end: int,
        min_end: int,
        max_end: int,
    ) -> int:
        """Pick where a non-terminal chunk ends."""
        best = _closest_break(
            break_points,
            offsets,
            target_end,
            max(min_end, current_start + 1),
            max_end,
        )
        if best is not None:
            return best

        # Try to at least break at a word boundary
        space = text.rfind(" ", min_end, max_end)
        if space != -1:
            return space + 1

        return max_end
