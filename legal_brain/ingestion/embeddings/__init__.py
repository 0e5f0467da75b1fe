from .providers import EmbeddingProvider, SentenceTransformerProvider
from .embedding_client import EmbeddingClient, EmbeddingResult, cosine_similarity

__all__ = [
    'EmbeddingProvider',
    'SentenceTransformerProvider',
    'EmbeddingClient',
    'EmbeddingResult',
    'cosine_similarity',
]
