"""Tests for the pydantic configuration models."""

import pytest
import yaml
from pydantic import ValidationError

from legal_brain.config import (
    AppConfig,
    ChunkingConfig,
    EmbeddingConfig,
    RetrievalConfig,
    get_config,
    set_config,
)


class TestDefaults:
    """Default values mirror the documented chunking budgets."""

    def test_chunking_defaults(self):
        config = ChunkingConfig()

        assert config.target_tokens == 500
        assert config.max_tokens == 1000
        assert config.min_tokens == 100
        assert config.overlap_tokens == 50
        assert config.detect_pages is False
        assert config.merge_small_chunks is True

    def test_app_defaults(self):
        config = AppConfig()

        assert config.embedding.model_name == "all-MiniLM-L6-v2"
        assert config.embedding.max_concurrency == 4
        assert config.retrieval.top_k == 5
        assert config.retrieval.min_score is None
        assert config.ingestion.min_document_chars == 100


class TestValidation:
    """Out-of-range values are rejected."""

    def test_min_above_target(self):
        with pytest.raises(ValidationError):
            ChunkingConfig(min_tokens=600)

    def test_target_above_max(self):
        with pytest.raises(ValidationError):
            ChunkingConfig(target_tokens=800, max_tokens=600)

    def test_overlap_not_below_target(self):
        with pytest.raises(ValidationError):
            ChunkingConfig(target_tokens=100, min_tokens=10, overlap_tokens=100)

    def test_bad_page_pattern(self):
        with pytest.raises(ValidationError):
            ChunkingConfig(page_marker_pattern="PAGE (")

    def test_batch_size_positive(self):
        with pytest.raises(ValidationError):
            EmbeddingConfig(batch_size=0)

    def test_min_score_range(self):
        with pytest.raises(ValidationError):
            RetrievalConfig(min_score=1.5)


class TestYaml:
    """Loading and saving YAML files."""

    def test_missing_file_uses_defaults(self, tmp_path):
        config = AppConfig.from_yaml(tmp_path / "missing.yaml")
        assert config == AppConfig()

    def test_partial_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"chunking": {"target_tokens": 300}, "unknown": 1}))

        config = AppConfig.from_yaml(path)

        assert config.chunking.target_tokens == 300
        assert config.chunking.max_tokens == 1000

    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        original = AppConfig(retrieval={"top_k": 9, "min_score": 0.25})

        original.to_yaml(path)

        assert AppConfig.from_yaml(path) == original

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"retrieval": {"top_k": 0}}))

        with pytest.raises(ValidationError):
            AppConfig.from_yaml(path)


class TestGlobalConfig:
    """Process-wide configuration access."""

    def test_set_and_get(self):
        config = AppConfig(retrieval={"top_k": 3})
        set_config(config)
        assert get_config() is config

    def test_get_loads_once(self):
        assert get_config() is get_config()
