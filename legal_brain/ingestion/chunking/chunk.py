from dataclasses import dataclass
from typing import Any, Dict, Optional


def make_chunk_id(document_id: str, chunk_index: int) -> str:
    """Generate the stable store key for a document's chunk."""
    return f"{document_id}_chunk_{chunk_index}"


@dataclass(frozen=True)
class DocumentChunk:
    """A contiguous, addressable slice of a normalised document."""
    content: str
    index: int

    # Offsets into the normalised source text
    char_start: int
    char_end: int

    # Estimated, see chunking.tokens
    token_count: int

    # Only set when page markers were detected
    page_number: Optional[int] = None

    def __len__(self):
        return len(self.content)

    def __str__(self):
        page = f", page {self.page_number}" if self.page_number is not None else ""
        return f"DocumentChunk({self.index}, {len(self)} chars{page})"

    def to_metadata(
        self,
        document_id: str,
        title: Optional[str] = None,
        document_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Build the record persisted next to the chunk's embedding.

        ``title`` and ``document_type`` describe the whole document and are
        repeated on every chunk so queries can be scoped by them.
        """
        return {
            "document_id": document_id,
            "title": title,
            "document_type": document_type,
            "content": self.content,
            "index": self.index,
            "page_number": self.page_number,
            "char_start": self.char_start,
            "char_end": self.char_end,
            "token_count": self.token_count,
        }

    @classmethod
    def from_metadata(cls, metadata: Dict[str, Any]) -> "DocumentChunk":
        """Rebuild a chunk from its persisted record.

        Raises:
            KeyError: If a required field is missing.
        """
        page_number = metadata.get("page_number")
        return cls(
            content=metadata["content"],
            index=int(metadata["index"]),
            char_start=int(metadata["char_start"]),
            char_end=int(metadata["char_end"]),
            token_count=int(metadata["token_count"]),
            page_number=int(page_number) if page_number is not None else None,
        )
