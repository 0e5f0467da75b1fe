"""High-level API for the Legal Brain."""
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..config import AppConfig, get_config
from ..utils.logger import get_logger
from .chunking.chunk import DocumentChunk
from .chunking.chunk_manager import ChunkManager
from .document_manager import DocumentManager
from .embeddings.embedding_client import EmbeddingClient
from .embeddings.providers import EmbeddingProvider, SentenceTransformerProvider
from .pipeline import IngestionPipeline, IngestionResult
from .storage.faiss_store import FAISSVectorStore
from .storage.vector_store import SearchResult
from ..retrieval.coordinator import RetrievalCoordinator

logger = get_logger(__name__)


class KnowledgeBase:
    """High-level API for the Legal Brain.

    Wires the configured embedding provider, FAISS store, ingestion
    pipeline and retrieval coordinator together, and persists the index
    to ``storage.index_path`` when ``storage.auto_save`` is on.

    Supports: .pdf, .txt, .md (via DocumentManager routing).
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        provider: Optional[EmbeddingProvider] = None,
        vector_store: Optional[FAISSVectorStore] = None,
        index_path: Union[str, Path, None] = None,
    ):
        self.config = config or get_config()
        self.index_path = Path(index_path or self.config.storage.index_path)

        provider = provider or SentenceTransformerProvider(
            model_name=self.config.embedding.model_name,
            batch_size=self.config.embedding.batch_size,
        )
        self._client = EmbeddingClient(provider, dimension=self.config.embedding.dimension)
        self._store = vector_store or FAISSVectorStore(embedding_dim=self._client.dimension)
        self._doc_manager = DocumentManager()
        self._chunker = ChunkManager.from_config(self.config.chunking)

        self._pipeline = IngestionPipeline(
            chunk_manager=self._chunker,
            embedding_client=self._client,
            vector_store=self._store,
            batch_size=self.config.embedding.batch_size,
            max_concurrency=self.config.embedding.max_concurrency,
            min_document_chars=self.config.ingestion.min_document_chars,
        )
        self._retriever = RetrievalCoordinator(
            self._client, self._store, min_score=self.config.retrieval.min_score,
        )

        if Path(str(self.index_path) + ".faiss").exists():
            self.load()
            logger.info("Loaded existing index from %s (%d chunks)", self.index_path, self.size)

    def ingest_text(
        self,
        text: str,
        document_id: str,
        detect_pages: Optional[bool] = None,
        cancel_event: Optional[threading.Event] = None,
        title: Optional[str] = None,
        document_type: Optional[str] = None,
    ) -> IngestionResult:
        """Ingest raw document text under ``document_id``.

        Re-ingesting a document overwrites its records by chunk id. Once the
        new version is fully stored, records past its last chunk are pruned.
        A failed or cancelled ingestion leaves the earlier records in place.
        """
        result = self._pipeline.ingest(
            document_id,
            text,
            detect_pages=detect_pages,
            cancel_event=cancel_event,
            title=title,
            document_type=document_type,
        )
        if not result.cancelled:
            self._pipeline.prune_document(document_id, result.chunk_count)
        if self.config.storage.auto_save:
            self.save()
        return result

    def ingest_file(
        self,
        file_path: Union[str, Path],
        document_id: Optional[str] = None,
        detect_pages: Optional[bool] = None,
        cancel_event: Optional[threading.Event] = None,
        document_type: Optional[str] = None,
    ) -> IngestionResult:
        """Ingest a single document of any supported format.

        Args:
            file_path: Path to the document (.pdf, .txt, .md).
            document_id: Defaults to a hash of the absolute path.
            detect_pages: Defaults to on for sources carrying page markers.
            document_type: Optional category such as "lease" for filtering.

        Raises:
            ValueError: If the file format is not supported.
        """
        file_path = Path(file_path)
        logger.info("Ingesting document: %s", file_path.name)
        parsed = self._doc_manager.parse_document(file_path)

        if detect_pages is None:
            detect_pages = parsed.has_page_markers or self.config.chunking.detect_pages

        return self.ingest_text(
            parsed.text,
            document_id or parsed.document_id,
            detect_pages=detect_pages,
            cancel_event=cancel_event,
            title=parsed.title,
            document_type=document_type,
        )

    def ingest_upload(
        self,
        data: bytes,
        name: str,
        document_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        document_type: Optional[str] = None,
    ) -> IngestionResult:
        """Ingest a document received as bytes (a PDF or a text file).

        Raises:
            ValueError: If the upload is neither a PDF nor a text file.
        """
        parsed = self._doc_manager.parse_upload(data, name)
        return self.ingest_text(
            parsed.text,
            document_id or parsed.document_id,
            detect_pages=parsed.has_page_markers or self.config.chunking.detect_pages,
            cancel_event=cancel_event,
            title=parsed.title,
            document_type=document_type,
        )

    def find_documents(self, directory: Union[str, Path]) -> List[Path]:
        """List the supported documents under a directory."""
        return self._doc_manager.find_documents(Path(directory))

    @property
    def supported_formats(self) -> List[str]:
        """Return list of supported file extensions."""
        return self._doc_manager.supported_extensions

    def search(
        self,
        query: str,
        top_k: Optional[int] = None,
        min_score: Optional[float] = None,
        document_ids: Optional[Iterable[str]] = None,
        document_types: Optional[Iterable[str]] = None,
    ) -> List[SearchResult]:
        """Semantic search over ingested chunks, optionally limited to some
        documents or document types."""
        logger.debug("Searching for: '%s' (top_k=%s)", query, top_k)
        return self._retriever.retrieve(
            query,
            top_k=top_k or self.config.retrieval.top_k,
            min_score=min_score,
            document_ids=document_ids,
            document_types=document_types,
        )

    def delete_document(self, document_id: str) -> int:
        deleted = self._pipeline.delete_document(document_id)
        if self.config.storage.auto_save and deleted > 0:
            self.save()
        return deleted

    def save(self, path=None):
        save_path = Path(path) if path else self.index_path
        self._store.save(str(save_path))

    def load(self, path=None):
        load_path = Path(path) if path else self.index_path
        self._store.load(str(load_path))

    def clear(self): self._store.clear()
    @property
    def size(self) -> int: return self._store.size
    @property
    def document_ids(self) -> List[str]: return self._store.get_document_ids()
    def get_document_chunks(self, document_id: str) -> List[DocumentChunk]:
        records = self._store.get_document_records(document_id)
        return sorted((DocumentChunk.from_metadata(r) for r in records), key=lambda c: c.index)
    def __len__(self): return self.size
    def __repr__(self): return f"KnowledgeBase(size={self.size}, documents={len(self.document_ids)})"
