from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from sentence_transformers import SentenceTransformer

from ...utils.logger import get_logger

logger = get_logger(__name__)


class EmbeddingProvider(ABC):
    """Abstract base class for embedding backends."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of every vector this provider returns."""
        pass

    @abstractmethod
    def embed_many(self, texts: List[str]) -> Tuple[List[List[float]], int]:
        """
        Embed a batch of texts in a single call.

        Args:
            texts: Non-empty, already trimmed texts

        Returns:
            Tuple of (one vector per text in input order, total tokens used)
        """
        pass


class SentenceTransformerProvider(EmbeddingProvider):
    """Local embedding provider backed by sentence-transformers."""

    DEFAULT_MODEL = "all-MiniLM-L6-v2"

    def __init__(self, model_name: Optional[str] = None, batch_size: int = 32):
        """
        Initialize the provider.

        Args:
            model_name: Name of the sentence-transformers model to use.
                       Defaults to 'all-MiniLM-L6-v2' (384 dimensions, fast).
                       Other options:
                       - 'all-mpnet-base-v2': 768 dims, better quality
                       - 'multi-qa-MiniLM-L6-cos-v1': optimized for semantic search
            batch_size: Batch size used inside encode()
        """
        self.model_name = model_name or self.DEFAULT_MODEL
        self.batch_size = batch_size
        self._model: Optional[SentenceTransformer] = None

    @property
    def model(self) -> SentenceTransformer:
        """Lazy load the model on first use."""
        if self._model is None:
            logger.info("Loading embedding model: %s", self.model_name)
            self._model = SentenceTransformer(self.model_name)
        return self._model

    @property
    def dimension(self) -> int:
        return self.model.get_sentence_embedding_dimension()

    def embed_many(self, texts: List[str]) -> Tuple[List[List[float]], int]:
        embeddings = self.model.encode(
            texts,
            convert_to_numpy=True,
            show_progress_bar=False,
            batch_size=self.batch_size,
        )
        return embeddings.tolist(), self.count_tokens(texts)

    def count_tokens(self, texts: List[str]) -> int:
        """Count tokens with the model's own tokenizer (padding excluded)."""
        features = self.model.tokenize(texts)
        return int(features["attention_mask"].sum())
