from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ...errors import (
    AllInputsEmptyError,
    DimensionMismatchError,
    EmptyInputError,
    LegalBrainError,
    ProviderError,
)
from ...utils.logger import get_logger
from .providers import EmbeddingProvider

logger = get_logger(__name__)

STAGE = "embedding"


@dataclass(frozen=True)
class EmbeddingResult:
    """An embedding vector plus the tokens billed for producing it."""
    embedding: List[float]
    token_count: int


class EmbeddingClient:
    """
    Validating front end for an ``EmbeddingProvider``.

    Inputs are trimmed and checked before any provider call, and every
    response is checked for count and dimension. A failed embedding is
    reported as an error, never replaced by a default vector.
    """

    def __init__(self, provider: EmbeddingProvider, dimension: Optional[int] = None):
        """
        Args:
            provider: Backend producing the vectors
            dimension: Expected vector length. Defaults to the provider's.
        """
        self.provider = provider
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        if self._dimension is None:
            self._dimension = self.provider.dimension
        return self._dimension

    def embed(self, text: str) -> EmbeddingResult:
        """
        Embed a single text.

        Raises:
            EmptyInputError: If the text is blank.
            ProviderError: If the provider call fails.
            DimensionMismatchError: If the vector has the wrong length.
        """
        cleaned = text.strip() if text else ""
        if not cleaned:
            raise EmptyInputError("Cannot generate embedding for empty text", stage=STAGE)

        vectors, total_tokens = self._call_provider([cleaned])
        return EmbeddingResult(embedding=vectors[0], token_count=total_tokens)

    def embed_batch(self, texts: Sequence[str]) -> List[EmbeddingResult]:
        """
        Embed several texts in one provider call.

        Blank entries are dropped, so results line up with the surviving
        inputs only. The provider reports one token total per call; each
        result gets ``total // n`` as an estimate.

        Raises:
            AllInputsEmptyError: If texts were given but all are blank.
        """
        if not texts:
            return []

        cleaned = [t.strip() for t in texts if t and t.strip()]
        if not cleaned:
            raise AllInputsEmptyError("All texts are empty", stage=STAGE)

        vectors, total_tokens = self._call_provider(cleaned)
        per_item = total_tokens // len(cleaned)
        return [EmbeddingResult(embedding=v, token_count=per_item) for v in vectors]

    def _call_provider(self, texts: List[str]):
        try:
            vectors, total_tokens = self.provider.embed_many(texts)
        except LegalBrainError as e:
            raise e.annotate(stage=STAGE)
        except Exception as e:
            raise ProviderError(f"Embedding provider failed: {e}", stage=STAGE) from e

        try:
            vectors = [list(map(float, v)) for v in vectors]
        except (TypeError, ValueError) as e:
            raise ProviderError(f"Provider returned malformed vectors: {e}", stage=STAGE) from e

        if len(vectors) != len(texts):
            raise ProviderError(
                f"Provider returned {len(vectors)} vectors for {len(texts)} inputs",
                stage=STAGE,
            )

        expected = self.dimension
        for vector in vectors:
            if len(vector) != expected:
                raise DimensionMismatchError(
                    f"Expected embedding of dimension {expected}, got {len(vector)}",
                    stage=STAGE,
                )

        logger.debug("Embedded %d texts (%d tokens)", len(texts), total_tokens)
        return vectors, int(total_tokens)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Compute cosine similarity between two embeddings.

    Args:
        a: First embedding vector
        b: Second embedding vector

    Returns:
        Cosine similarity score between -1 and 1

    Raises:
        DimensionMismatchError: If the vectors differ in length.
        ValueError: If either vector is all zeros.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"Embeddings must have same dimensions ({len(a)} != {len(b)})"
        )

    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        raise ValueError("Cosine similarity is undefined for a zero vector")

    return float(np.dot(a, b) / (norm_a * norm_b))
