from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..chunking.chunk import DocumentChunk

# Called with a record's metadata; False excludes the record from results
MetadataFilter = Callable[[Dict[str, Any]], bool]


@dataclass
class QueryMatch:
    """A raw match as returned by a vector store."""
    chunk_id: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)


class SearchResult:
    """Represents a single ranked retrieval result."""

    def __init__(
        self,
        chunk: DocumentChunk,
        score: float,
        rank: int,
        document_id: str,
        chunk_id: str,
        title: Optional[str] = None,
        document_type: Optional[str] = None,
    ):
        self.chunk = chunk
        self.score = score
        self.rank = rank
        self.document_id = document_id
        self.chunk_id = chunk_id
        self.title = title
        self.document_type = document_type

    def __repr__(self) -> str:
        return f"SearchResult(rank={self.rank}, score={self.score:.4f}, chunk_id={self.chunk_id})"


class VectorStore(ABC):
    """Abstract base class for vector storage backends."""

    @abstractmethod
    def upsert(self, chunk_id: str, vector: Sequence[float], metadata: Dict[str, Any]) -> None:
        """
        Insert or replace the record stored under ``chunk_id``.

        Args:
            chunk_id: Stable record key
            vector: Embedding of the store's dimension
            metadata: Chunk record, including ``document_id``
        """
        pass

    @abstractmethod
    def query(
        self,
        vector: Sequence[float],
        top_k: int = 5,
        metadata_filter: Optional[MetadataFilter] = None,
    ) -> List[QueryMatch]:
        """
        Find the records most similar to ``vector``.

        Records rejected by ``metadata_filter`` are skipped before the
        ``top_k`` cut, so a filtered query still fills its results.

        Returns:
            Up to ``top_k`` matches, most similar first
        """
        pass

    @abstractmethod
    def delete(self, document_id: str) -> int:
        """
        Delete all records belonging to a document.

        Returns:
            Number of records deleted
        """
        pass

    @abstractmethod
    def delete_chunks(self, chunk_ids: Iterable[str]) -> int:
        """
        Delete individual records by chunk id; unknown ids are ignored.

        Returns:
            Number of records deleted
        """
        pass

    @abstractmethod
    def get_document_records(self, document_id: str) -> List[Dict[str, Any]]:
        """Get the metadata of every record stored for a document."""
        pass

    @property
    @abstractmethod
    def size(self) -> int:
        """Get the number of vectors in the store."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove all data from the store."""
        pass
