"""Legal Brain - Document ingestion and semantic retrieval."""

from .config import AppConfig, get_config, set_config
from .errors import LegalBrainError
from .ingestion.knowledge_base import KnowledgeBase

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "get_config",
    "set_config",
    "LegalBrainError",
    "KnowledgeBase",
]
