"""Pytest configuration and shared fixtures."""

import hashlib
import re
from typing import List, Tuple

import pytest

from legal_brain.config import AppConfig, set_config
from legal_brain.ingestion.embeddings import EmbeddingClient, EmbeddingProvider
from legal_brain.ingestion.storage import FAISSVectorStore

TEST_DIM = 256

_WORD_RE = re.compile(r"\w+")


class HashingEmbeddingProvider(EmbeddingProvider):
    """Deterministic bag-of-words embeddings, so tests never load a model.

    Texts sharing words get similar vectors. Each word counts as one token.
    """

    def __init__(self, dim: int = TEST_DIM):
        self._dim = dim
        self.calls: List[List[str]] = []

    @property
    def dimension(self) -> int:
        return self._dim

    def embed_many(self, texts: List[str]) -> Tuple[List[List[float]], int]:
        self.calls.append(list(texts))
        vectors = []
        tokens = 0
        for text in texts:
            words = _WORD_RE.findall(text.lower())
            tokens += len(words)
            vector = [0.0] * self._dim
            for word in words:
                slot = int(hashlib.md5(word.encode()).hexdigest(), 16) % self._dim
                vector[slot] += 1.0
            if not words:
                vector[0] = 1.0
            vectors.append(vector)
        return vectors, tokens


@pytest.fixture(autouse=True)
def reset_global_config():
    """Keep the process-wide config from leaking between tests."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def provider() -> HashingEmbeddingProvider:
    return HashingEmbeddingProvider()


@pytest.fixture
def embedding_client(provider) -> EmbeddingClient:
    return EmbeddingClient(provider)


@pytest.fixture
def vector_store() -> FAISSVectorStore:
    """Create a FAISS vector store matching the test provider."""
    return FAISSVectorStore(embedding_dim=TEST_DIM)


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """Small-chunk configuration persisting into a temp directory."""
    return AppConfig(
        chunking={
            "target_tokens": 40,
            "max_tokens": 80,
            "min_tokens": 5,
            "overlap_tokens": 5,
        },
        storage={"index_path": str(tmp_path / "index" / "test")},
        ingestion={"min_document_chars": 20},
    )


@pytest.fixture
def lease_text() -> str:
    """A short multi-clause lease used across tests."""
    return (
        "LEASE AGREEMENT\n\n"
        "1. Parties. This lease is made between the Landlord and the Tenant "
        "for the premises known as Flat 4, Abbey House.\n\n"
        "2. Rent. The Tenant shall pay rent of 1,200 pounds per month in "
        "advance on the first day of each month.\n\n"
        "3. Repairs. The Landlord is responsible for structural repairs. "
        "The Tenant must keep the interior in good condition.\n\n"
        "4. Break clause. Either party may terminate this lease by giving "
        "two months written notice after the first twelve months.\n\n"
        "5. Deposit. A deposit of 1,500 pounds is held in a protected scheme "
        "and returned within ten days of the end of the tenancy."
    )


@pytest.fixture
def paged_text() -> str:
    """Three marked pages, as produced by the PDF parser."""
    return (
        "PAGE 1\nThe Landlord lets the premises to the Tenant for a term of "
        "three years. The rent is payable monthly in advance.\n\n"
        "PAGE 2\nThe Tenant shall keep the premises clean and tidy and shall "
        "not make alterations without written consent.\n\n"
        "PAGE 3\nThis agreement is governed by the law of England and Wales. "
        "Notices must be served in writing at the addresses above."
    )


@pytest.fixture
def fake_model(monkeypatch):
    """Make KnowledgeBase build the hashing provider instead of loading a model."""
    monkeypatch.setattr(
        "legal_brain.ingestion.knowledge_base.SentenceTransformerProvider",
        lambda **kwargs: HashingEmbeddingProvider(),
    )
