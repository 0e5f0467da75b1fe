from typing import Iterable, List, Optional

from ..errors import EmptyQueryError, LegalBrainError, StoreError
from ..ingestion.chunking.chunk import DocumentChunk
from ..ingestion.embeddings.embedding_client import EmbeddingClient
from ..ingestion.storage.vector_store import MetadataFilter, SearchResult, VectorStore
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RetrievalCoordinator:
    """
    Answers a natural-language query with the most similar stored chunks.

    The query is embedded with the same client used at ingestion time, the
    store is asked for the nearest records, and those records are turned
    back into ``DocumentChunk`` objects ranked by descending score.

    Errors keep their type and are tagged with the stage that raised them
    (``"embedding"`` or ``"store_query"``). Unexpected store exceptions
    are wrapped in ``StoreError``.
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        vector_store: VectorStore,
        min_score: Optional[float] = None,
    ):
        """
        Args:
            embedding_client: Client used to embed queries
            vector_store: Store holding the chunk records
            min_score: Default similarity threshold; weaker matches are dropped
        """
        self.embedding_client = embedding_client
        self.vector_store = vector_store
        self.min_score = min_score

    def retrieve(
        self,
        query: str,
        top_k: int = 5,
        min_score: Optional[float] = None,
        document_ids: Optional[Iterable[str]] = None,
        document_types: Optional[Iterable[str]] = None,
    ) -> List[SearchResult]:
        """
        Retrieve the chunks most relevant to a query.

        Args:
            query: Natural-language query text
            top_k: Maximum number of results
            min_score: Threshold overriding the coordinator default
            document_ids: Only search chunks of these documents
            document_types: Only search chunks of documents with these types

        Returns:
            At most ``top_k`` results, highest score first, ranked from 1

        Raises:
            EmptyQueryError: If the query is blank.
            ValueError: If ``top_k`` is below 1.
            StoreError: If the store fails or returns a malformed record.
        """
        if not query or not query.strip():
            raise EmptyQueryError("Query cannot be empty")
        if top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}")

        threshold = self.min_score if min_score is None else min_score

        try:
            embedding = self.embedding_client.embed(query).embedding
        except LegalBrainError as e:
            raise e.annotate(stage="embedding")

        try:
            matches = self.vector_store.query(
                embedding, top_k, metadata_filter=_build_filter(document_ids, document_types)
            )
        except LegalBrainError as e:
            raise e.annotate(stage="store_query")
        except Exception as e:
            raise StoreError(f"Vector store query failed: {e}", stage="store_query") from e

        matches = sorted(matches, key=lambda m: m.score, reverse=True)
        if threshold is not None:
            matches = [m for m in matches if m.score >= threshold]

        results = []
        for match in matches[:top_k]:
            try:
                chunk = DocumentChunk.from_metadata(match.metadata)
                document_id = match.metadata["document_id"]
            except (KeyError, TypeError, ValueError) as e:
                raise StoreError(
                    f"Malformed record for {match.chunk_id}: {e}",
                    stage="store_query",
                ) from e

            results.append(SearchResult(
                chunk=chunk,
                score=match.score,
                rank=len(results) + 1,
                document_id=document_id,
                chunk_id=match.chunk_id,
                title=match.metadata.get("title"),
                document_type=match.metadata.get("document_type"),
            ))

        logger.debug("Query returned %d results (top_k=%d)", len(results), top_k)
        return results


def _build_filter(
    document_ids: Optional[Iterable[str]],
    document_types: Optional[Iterable[str]],
) -> Optional[MetadataFilter]:
    """Combine the optional id and type restrictions into one record filter."""
    if document_ids is None and document_types is None:
        return None

    ids = set(document_ids) if document_ids is not None else None
    types = set(document_types) if document_types is not None else None

    def matches(metadata) -> bool:
        if ids is not None and metadata.get("document_id") not in ids:
            return False
        if types is not None and metadata.get("document_type") not in types:
            return False
        return True

    return matches
