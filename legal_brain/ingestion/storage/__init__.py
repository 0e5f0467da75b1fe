from .vector_store import VectorStore, QueryMatch, SearchResult, MetadataFilter
from .faiss_store import FAISSVectorStore

__all__ = ['VectorStore', 'QueryMatch', 'FAISSVectorStore', 'SearchResult', 'MetadataFilter']
