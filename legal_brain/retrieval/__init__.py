"""Query-time retrieval of stored chunks."""

from .coordinator import RetrievalCoordinator

__all__ = [
    "RetrievalCoordinator",
]
