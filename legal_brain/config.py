"""
Application configuration with Pydantic validation.

Typed, validated configuration models loaded from YAML. Missing keys
fall back to defaults and out-of-range values raise ValidationError
before anything is ingested.

Usage:
    config = AppConfig.from_yaml("configs/config.yaml")
    config = AppConfig()  # Uses defaults
"""

import re
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("configs/config.yaml")


class EmbeddingConfig(BaseModel):
    """Configuration for the embedding provider and batching."""
    model_name: str = Field(
        default="all-MiniLM-L6-v2",
        description="HuggingFace sentence-transformer model identifier.",
    )
    dimension: Optional[int] = Field(
        default=None, ge=1,
        description="Expected vector dimension (None to take the model's).",
    )
    batch_size: int = Field(
        default=32, ge=1, le=512,
        description="Chunks per embedding request.",
    )
    max_concurrency: int = Field(
        default=4, ge=1, le=64,
        description="Embedding batches in flight at once.",
    )


class ChunkingConfig(BaseModel):
    """Configuration for the chunking pipeline. Sizes are in tokens."""
    target_tokens: int = Field(
        default=500, ge=1, le=8000,
        description="Preferred chunk size.",
    )
    max_tokens: int = Field(
        default=1000, ge=1, le=16000,
        description="Hard upper bound on chunk size.",
    )
    min_tokens: int = Field(
        default=100, ge=0,
        description="Smallest chunk kept on its own.",
    )
    overlap_tokens: int = Field(
        default=50, ge=0,
        description="Tokens shared between consecutive chunks.",
    )
    detect_pages: bool = Field(
        default=False,
        description="Split on page markers before chunking.",
    )
    page_marker_pattern: str = Field(
        default=r"PAGE\s+(\d+)",
        description="Regex for page markers; group 1 holds the page number.",
    )
    merge_small_chunks: bool = Field(
        default=True,
        description="Fold chunks below min_tokens into a neighbour.",
    )

    @field_validator("page_marker_pattern")
    @classmethod
    def pattern_compiles(cls, v):
        """Reject page marker patterns that are not valid regexes."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid page_marker_pattern: {e}") from e
        return v

    @model_validator(mode="after")
    def sizes_ordered(self):
        """Ensure min <= target <= max and overlap < target."""
        if not self.min_tokens <= self.target_tokens <= self.max_tokens:
            raise ValueError(
                f"Expected min_tokens ({self.min_tokens}) <= target_tokens "
                f"({self.target_tokens}) <= max_tokens ({self.max_tokens})"
            )
        if self.overlap_tokens >= self.target_tokens:
            raise ValueError(
                f"overlap_tokens ({self.overlap_tokens}) must be less than "
                f"target_tokens ({self.target_tokens})"
            )
        return self


class StorageConfig(BaseModel):
    """Configuration for vector storage."""
    index_path: str = Field(
        default="data/index/default",
        description="Path for persisting the FAISS index.",
    )
    auto_save: bool = Field(
        default=True,
        description="Automatically save after ingestion and deletion.",
    )


class RetrievalConfig(BaseModel):
    """Configuration for query-time retrieval."""
    top_k: int = Field(
        default=5, ge=1, le=100,
        description="Number of chunks returned per query.",
    )
    min_score: Optional[float] = Field(
        default=None, ge=-1.0, le=1.0,
        description="Drop matches scoring below this (None to keep all).",
    )


class IngestionConfig(BaseModel):
    """Configuration for document acceptance."""
    min_document_chars: int = Field(
        default=100, ge=0,
        description="Documents shorter than this after cleaning are rejected.",
    )


class AppConfig(BaseModel):
    """Root application configuration.

    Aggregates all sub-configurations and provides factory
    methods for loading from and saving to YAML.
    """
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "AppConfig":
        """Load configuration from a YAML file.

        Missing keys use defaults. Extra keys are ignored.
        Invalid values raise ValidationError with details.
        """
        path = Path(path)
        if not path.exists():
            logger.warning(
                "Config file not found: %s. Using defaults.", path
            )
            return cls()

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        config = cls(**raw)
        logger.info("Loaded configuration from %s", path)
        return config

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(), f,
                default_flow_style=False, sort_keys=False,
            )
        logger.info("Saved configuration to %s", path)


# Global default config instance
_default_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _default_config
    if _default_config is None:
        _default_config = AppConfig.from_yaml(DEFAULT_CONFIG_PATH)
    return _default_config


def set_config(config: Optional[AppConfig]) -> None:
    """Set the global configuration instance (None resets it)."""
    global _default_config
    _default_config = config
