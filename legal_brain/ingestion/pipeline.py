"""
Ingestion pipeline: normalise, chunk, embed and store one document.

Chunks are embedded in batches of ``batch_size``, with up to
``max_concurrency`` batches in flight on a thread pool. Batches are issued
in waves; each wave's results are matched to chunks by the batch they were
submitted with, then upserted on the calling thread in chunk order.

A ``threading.Event`` passed as ``cancel_event`` stops further waves from
being issued. Chunks stored before cancellation stay stored, and since
upserts are keyed by chunk id a later call can safely repeat them.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional

from ..errors import (
    EmptyInputError,
    LegalBrainError,
    ProviderError,
    StoreError,
)
from ..utils.logger import get_logger
from .chunking.chunk import DocumentChunk, make_chunk_id
from .chunking.chunk_manager import ChunkManager
from .embeddings.embedding_client import EmbeddingClient, EmbeddingResult
from .normalization import normalize_text
from .storage.vector_store import VectorStore

logger = get_logger(__name__)


@dataclass
class IngestionResult:
    """Outcome of ingesting one document."""
    document_id: str
    chunks: List[DocumentChunk] = field(default_factory=list)
    embedded_chunks: int = 0
    # Sum of the per-chunk token estimates reported by the embedding client
    token_usage: int = 0
    cancelled: bool = False

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)


class IngestionPipeline:
    """Turns document text into embedded, stored chunk records."""

    def __init__(
        self,
        chunk_manager: ChunkManager,
        embedding_client: EmbeddingClient,
        vector_store: VectorStore,
        batch_size: int = 32,
        max_concurrency: int = 4,
        min_document_chars: int = 100,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.chunk_manager = chunk_manager
        self.embedding_client = embedding_client
        self.vector_store = vector_store
        self.batch_size = batch_size
        self.max_concurrency = max_concurrency
        self.min_document_chars = min_document_chars

    def ingest(
        self,
        document_id: str,
        text: str,
        detect_pages: Optional[bool] = None,
        cancel_event: Optional[threading.Event] = None,
        resume_from: int = 0,
        title: Optional[str] = None,
        document_type: Optional[str] = None,
    ) -> IngestionResult:
        """
        Ingest a document's text.

        Args:
            document_id: Identifier all chunk records are stored under
            text: Raw extracted text
            detect_pages: Override the chunk manager's page detection
            cancel_event: Set to stop issuing further embedding batches
            resume_from: Skip embedding chunks with a lower index, as after
                a failure reported at that ``chunk_index``
            title: Document title copied onto every chunk record
            document_type: Category such as ``"lease"``, usable as a
                search filter

        Returns:
            IngestionResult with all chunks and how many were stored

        Raises:
            EmptyInputError: If the cleaned text is empty or too short.
            ProviderError: If embedding fails (``chunk_index`` is the first
                chunk of the failing batch).
            StoreError: If an upsert fails.
        """
        normalized = normalize_text(text)
        if len(normalized) < max(self.min_document_chars, 1):
            raise EmptyInputError(
                f"Document appears to be empty or unreadable "
                f"({len(normalized)} chars after cleaning)",
                stage="normalization",
                document_id=document_id,
            )

        try:
            chunks = self.chunk_manager.chunk_normalized(normalized, detect_pages=detect_pages)
        except LegalBrainError as e:
            raise e.annotate(stage="chunking", document_id=document_id)

        logger.info("Chunked document %s into %d chunks", document_id, len(chunks))
        result = IngestionResult(document_id=document_id, chunks=chunks)

        pending = [chunk for chunk in chunks if chunk.index >= resume_from]
        batches = [
            pending[i:i + self.batch_size]
            for i in range(0, len(pending), self.batch_size)
        ]

        with ThreadPoolExecutor(max_workers=self.max_concurrency) as executor:
            for wave_start in range(0, len(batches), self.max_concurrency):
                if cancel_event is not None and cancel_event.is_set():
                    result.cancelled = True
                    logger.warning(
                        "Ingestion of %s cancelled after %d of %d chunks",
                        document_id, result.embedded_chunks, len(pending),
                    )
                    break

                wave = batches[wave_start:wave_start + self.max_concurrency]
                futures = [
                    executor.submit(self.embedding_client.embed_batch, [c.content for c in batch])
                    for batch in wave
                ]

                for batch, future in zip(wave, futures):
                    embeddings = self._collect(future, batch, document_id)
                    for chunk, embedding in zip(batch, embeddings):
                        self._store(document_id, chunk, embedding, title, document_type)
                        result.embedded_chunks += 1
                        result.token_usage += embedding.token_count

        if not result.cancelled:
            logger.info(
                "Ingested document %s: %d chunks stored, %d tokens",
                document_id, result.embedded_chunks, result.token_usage,
            )
        return result

    def delete_document(self, document_id: str) -> int:
        """Remove every stored chunk of a document."""
        try:
            deleted = self.vector_store.delete(document_id)
        except LegalBrainError as e:
            raise e.annotate(stage="delete", document_id=document_id)
        except Exception as e:
            raise StoreError(
                f"Failed to delete document: {e}",
                stage="delete",
                document_id=document_id,
            ) from e

        logger.info("Deleted %d chunks of document %s", deleted, document_id)
        return deleted

    def prune_document(self, document_id: str, chunk_count: int) -> int:
        """Remove a document's records whose chunk index is ``chunk_count`` or above.

        Used after re-ingesting a document that now has fewer chunks.
        """
        try:
            stale = [
                make_chunk_id(document_id, record["index"])
                for record in self.vector_store.get_document_records(document_id)
                if record["index"] >= chunk_count
            ]
            pruned = self.vector_store.delete_chunks(stale) if stale else 0
        except LegalBrainError as e:
            raise e.annotate(stage="delete", document_id=document_id)
        except Exception as e:
            raise StoreError(
                f"Failed to prune stale chunks: {e}",
                stage="delete",
                document_id=document_id,
            ) from e

        if pruned:
            logger.info("Pruned %d stale chunks of document %s", pruned, document_id)
        return pruned

    def _collect(self, future, batch: List[DocumentChunk], document_id: str) -> List[EmbeddingResult]:
        first_index = batch[0].index
        try:
            embeddings = future.result()
        except LegalBrainError as e:
            raise e.annotate(document_id=document_id, chunk_index=first_index)

        # Chunk contents are never blank, so nothing should have been dropped
        if len(embeddings) != len(batch):
            raise ProviderError(
                f"Expected {len(batch)} embeddings, got {len(embeddings)}",
                stage="embedding",
                document_id=document_id,
                chunk_index=first_index,
            )
        return embeddings

    def _store(
        self,
        document_id: str,
        chunk: DocumentChunk,
        embedding: EmbeddingResult,
        title: Optional[str],
        document_type: Optional[str],
    ) -> None:
        chunk_id = make_chunk_id(document_id, chunk.index)
        metadata = chunk.to_metadata(document_id, title=title, document_type=document_type)
        try:
            self.vector_store.upsert(chunk_id, embedding.embedding, metadata)
        except LegalBrainError as e:
            raise e.annotate(stage="upsert", document_id=document_id, chunk_index=chunk.index)
        except Exception as e:
            raise StoreError(
                f"Failed to store chunk {chunk_id}: {e}",
                stage="upsert",
                document_id=document_id,
                chunk_index=chunk.index,
            ) from e
