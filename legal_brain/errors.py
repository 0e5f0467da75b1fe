"""
Error taxonomy for the Legal Brain.

Every error carries optional context (the pipeline stage, the document and
the chunk index it concerns) so an outer retry policy can resume work
without re-chunking. Context is filled in with ``annotate()`` as an error
crosses layers; values that are already set are never overwritten.
"""

from typing import Optional


class LegalBrainError(Exception):
    """Base class for all Legal Brain errors."""

    def __init__(
        self,
        message: str,
        *,
        stage: Optional[str] = None,
        document_id: Optional[str] = None,
        chunk_index: Optional[int] = None,
    ):
        super().__init__(message)
        self.stage = stage
        self.document_id = document_id
        self.chunk_index = chunk_index

    def annotate(
        self,
        *,
        stage: Optional[str] = None,
        document_id: Optional[str] = None,
        chunk_index: Optional[int] = None,
    ) -> "LegalBrainError":
        """Attach missing context and return the same error."""
        if self.stage is None:
            self.stage = stage
        if self.document_id is None:
            self.document_id = document_id
        if self.chunk_index is None:
            self.chunk_index = chunk_index
        return self


class EmptyInputError(LegalBrainError):
    """Raised when there is no usable text to chunk or embed."""


class AllInputsEmptyError(LegalBrainError):
    """Raised when every entry of an embedding batch is blank."""


class DimensionMismatchError(LegalBrainError, ValueError):
    """Raised when embeddings of different dimensionality meet."""


class EmptyQueryError(LegalBrainError):
    """Raised when a retrieval query is blank."""


class ProviderError(LegalBrainError):
    """Raised when the embedding provider fails or misbehaves."""


class StoreError(LegalBrainError):
    """Raised when the vector store fails or returns malformed records."""
