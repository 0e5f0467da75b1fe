"""Document ingestion: parsing, normalisation, chunking, embedding and storage."""

from .normalization import normalize_text
from .document import ParsedDocument
from .parsers import PDFParser, TextParser
from .chunking import DocumentChunk, ChunkManager
from .embeddings import EmbeddingClient, EmbeddingResult, SentenceTransformerProvider
from .storage import VectorStore, FAISSVectorStore, QueryMatch, SearchResult
from .pipeline import IngestionPipeline, IngestionResult
from .document_manager import DocumentManager

__all__ = [
    # High-level API
    "IngestionPipeline",
    "IngestionResult",
    "DocumentManager",
    # Documents
    "ParsedDocument",
    "normalize_text",
    # Parsers
    "PDFParser",
    "TextParser",
    # Chunking
    "DocumentChunk",
    "ChunkManager",
    # Embeddings
    "EmbeddingClient",
    "EmbeddingResult",
    "SentenceTransformerProvider",
    # Storage
    "VectorStore",
    "FAISSVectorStore",
    "QueryMatch",
    "SearchResult",
]
