"""Integration tests for the full ingestion pipeline."""

import threading
from unittest.mock import Mock

import pytest

from legal_brain import KnowledgeBase
from legal_brain.errors import EmptyInputError, ProviderError, StoreError
from legal_brain.ingestion import (
    ChunkManager,
    EmbeddingClient,
    IngestionPipeline,
    VectorStore,
)
from legal_brain.ingestion.chunking import make_chunk_id
from legal_brain.ingestion.embeddings import EmbeddingProvider


class FailingProvider(EmbeddingProvider):
    """Wraps a provider and fails its n-th request."""

    def __init__(self, inner: EmbeddingProvider, fail_on_call: int):
        self.inner = inner
        self.fail_on_call = fail_on_call
        self.requests = 0

    @property
    def dimension(self):
        return self.inner.dimension

    def embed_many(self, texts):
        self.requests += 1
        if self.requests == self.fail_on_call:
            raise RuntimeError("upstream returned 503")
        return self.inner.embed_many(texts)


class CancellingProvider(EmbeddingProvider):
    """Wraps a provider and sets a cancel event once a request is served."""

    def __init__(self, inner: EmbeddingProvider, event: threading.Event):
        self.inner = inner
        self.event = event

    @property
    def dimension(self):
        return self.inner.dimension

    def embed_many(self, texts):
        result = self.inner.embed_many(texts)
        self.event.set()
        return result


@pytest.fixture
def chunk_manager():
    return ChunkManager(target_tokens=40, max_tokens=80, min_tokens=5, overlap_tokens=5)


def _pipeline(chunk_manager, provider, store, batch_size=2, max_concurrency=2):
    return IngestionPipeline(
        chunk_manager=chunk_manager,
        embedding_client=EmbeddingClient(provider),
        vector_store=store,
        batch_size=batch_size,
        max_concurrency=max_concurrency,
        min_document_chars=20,
    )


class TestIngestionPipeline:
    """End-to-end ingestion with the hashing provider and FAISS."""

    def test_every_chunk_stored(self, chunk_manager, provider, vector_store, lease_text):
        pipeline = _pipeline(chunk_manager, provider, vector_store)

        result = pipeline.ingest("lease", lease_text)

        assert result.chunk_count >= 3
        assert result.embedded_chunks == result.chunk_count
        assert not result.cancelled
        assert result.token_usage > 0
        assert vector_store.size == result.chunk_count

    def test_records_match_chunks(self, chunk_manager, provider, vector_store, lease_text):
        result = _pipeline(chunk_manager, provider, vector_store).ingest("lease", lease_text)

        for chunk in result.chunks:
            metadata = vector_store.get_chunk_metadata(make_chunk_id("lease", chunk.index))
            assert metadata["content"] == chunk.content
            assert metadata["document_id"] == "lease"
            assert metadata["char_start"] == chunk.char_start

    def test_embedding_matches_its_chunk(self, chunk_manager, provider, vector_store, lease_text):
        result = _pipeline(chunk_manager, provider, vector_store).ingest("lease", lease_text)
        client = EmbeddingClient(provider)

        for chunk in result.chunks:
            match = vector_store.query(client.embed(chunk.content).embedding, top_k=1)[0]
            assert match.chunk_id == make_chunk_id("lease", chunk.index)

    def test_batches_bounded(self, chunk_manager, provider, vector_store, lease_text):
        result = _pipeline(chunk_manager, provider, vector_store).ingest("lease", lease_text)

        assert all(len(call) <= 2 for call in provider.calls)
        assert sum(len(call) for call in provider.calls) == result.chunk_count

    def test_too_short_document(self, chunk_manager, provider, vector_store):
        pipeline = _pipeline(chunk_manager, provider, vector_store)

        with pytest.raises(EmptyInputError) as exc_info:
            pipeline.ingest("memo", "  Tiny.  ")

        assert exc_info.value.stage == "normalization"
        assert exc_info.value.document_id == "memo"
        assert provider.calls == []

    def test_reingest_is_idempotent(self, chunk_manager, provider, vector_store, lease_text):
        pipeline = _pipeline(chunk_manager, provider, vector_store)

        first = pipeline.ingest("lease", lease_text)
        pipeline.ingest("lease", lease_text)

        assert vector_store.size == first.chunk_count

    def test_resume_from(self, chunk_manager, provider, vector_store, lease_text):
        pipeline = _pipeline(chunk_manager, provider, vector_store)

        result = pipeline.ingest("lease", lease_text, resume_from=2)

        assert result.embedded_chunks == result.chunk_count - 2
        assert vector_store.size == result.chunk_count - 2
        assert vector_store.get_chunk_metadata("lease_chunk_0") is None

    def test_document_fields_on_records(self, chunk_manager, provider, vector_store, lease_text):
        pipeline = _pipeline(chunk_manager, provider, vector_store)

        pipeline.ingest("lease", lease_text, title="Abbey House Lease", document_type="lease")

        for record in vector_store.get_document_records("lease"):
            assert record["title"] == "Abbey House Lease"
            assert record["document_type"] == "lease"

    def test_prune_document(self, chunk_manager, provider, vector_store, lease_text):
        pipeline = _pipeline(chunk_manager, provider, vector_store)
        first = pipeline.ingest("lease", lease_text)

        pruned = pipeline.prune_document("lease", 2)

        assert pruned == first.chunk_count - 2
        assert sorted(r["index"] for r in vector_store.get_document_records("lease")) == [0, 1]
        assert pipeline.prune_document("lease", 2) == 0

    def test_delete_document(self, chunk_manager, provider, vector_store, lease_text, paged_text):
        pipeline = _pipeline(chunk_manager, provider, vector_store)
        lease = pipeline.ingest("lease", lease_text)
        other = pipeline.ingest("terms", paged_text, detect_pages=True)

        assert pipeline.delete_document("lease") == lease.chunk_count
        assert vector_store.size == other.chunk_count
        assert vector_store.get_document_ids() == ["terms"]


class TestCancellation:
    """A cancel event stops further batches; stored chunks remain."""

    def test_cancelled_before_start(self, chunk_manager, provider, vector_store, lease_text):
        event = threading.Event()
        event.set()

        result = _pipeline(chunk_manager, provider, vector_store).ingest(
            "lease", lease_text, cancel_event=event
        )

        assert result.cancelled
        assert result.embedded_chunks == 0
        assert provider.calls == []
        assert vector_store.size == 0

    def test_cancelled_midway(self, chunk_manager, provider, vector_store, lease_text):
        event = threading.Event()
        cancelling = CancellingProvider(provider, event)
        pipeline = _pipeline(chunk_manager, cancelling, vector_store, batch_size=1, max_concurrency=1)

        result = pipeline.ingest("lease", lease_text, cancel_event=event)

        assert result.cancelled
        assert result.embedded_chunks == 1
        assert vector_store.size == 1
        assert vector_store.get_chunk_metadata("lease_chunk_0") is not None


class TestFailures:
    """Failures carry the stage, document and chunk they happened at."""

    def test_provider_failure_reports_batch(self, chunk_manager, provider, vector_store, lease_text):
        failing = FailingProvider(provider, fail_on_call=2)
        pipeline = _pipeline(chunk_manager, failing, vector_store, batch_size=2, max_concurrency=1)

        with pytest.raises(ProviderError) as exc_info:
            pipeline.ingest("lease", lease_text)

        error = exc_info.value
        assert error.stage == "embedding"
        assert error.document_id == "lease"
        assert error.chunk_index == 2
        assert isinstance(error.__cause__, RuntimeError)
        assert vector_store.size == 2

    def test_resume_after_failure(self, chunk_manager, provider, vector_store, lease_text):
        failing = _pipeline(chunk_manager, FailingProvider(provider, fail_on_call=2), vector_store,
                            batch_size=2, max_concurrency=1)
        with pytest.raises(ProviderError) as exc_info:
            failing.ingest("lease", lease_text)

        retry = _pipeline(chunk_manager, provider, vector_store)
        result = retry.ingest("lease", lease_text, resume_from=exc_info.value.chunk_index)

        assert vector_store.size == result.chunk_count

    def test_store_failure_wrapped(self, chunk_manager, provider, lease_text):
        store = Mock(spec=VectorStore)
        store.upsert.side_effect = RuntimeError("disk full")
        pipeline = _pipeline(chunk_manager, provider, store)

        with pytest.raises(StoreError) as exc_info:
            pipeline.ingest("lease", lease_text)

        assert exc_info.value.stage == "upsert"
        assert exc_info.value.chunk_index == 0
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestKnowledgeBase:
    """The high-level API with the hashing provider standing in for the model."""

    def test_ingest_and_search(self, app_config, fake_model, lease_text):
        kb = KnowledgeBase(config=app_config)

        result = kb.ingest_text(lease_text, "lease")
        results = kb.search("two months written notice terminate")

        assert kb.size == result.chunk_count
        assert kb.document_ids == ["lease"]
        assert "notice" in results[0].chunk.content
        assert results[0].document_id == "lease"
        assert len(results) <= app_config.retrieval.top_k

    def test_auto_save_and_reload(self, app_config, fake_model, lease_text):
        kb = KnowledgeBase(config=app_config)
        kb.ingest_text(lease_text, "lease")

        reloaded = KnowledgeBase(config=app_config)

        assert reloaded.size == kb.size
        assert reloaded.document_ids == ["lease"]

    def test_ingest_paged_file(self, app_config, fake_model, tmp_path, paged_text):
        path = tmp_path / "terms.txt"
        path.write_text(paged_text, encoding="utf-8")
        kb = KnowledgeBase(config=app_config)

        kb.ingest_file(path, document_id="terms")
        chunks = kb.get_document_chunks("terms")

        assert {c.page_number for c in chunks} == {1, 2, 3}
        assert [c.index for c in chunks] == list(range(len(chunks)))

    def test_reingest_replaces(self, app_config, fake_model, lease_text):
        kb = KnowledgeBase(config=app_config)
        kb.ingest_text(lease_text, "lease")

        result = kb.ingest_text("The rent is now 1,300 pounds per month.", "lease")

        assert kb.size == result.chunk_count == 1

    def test_blank_reingest_keeps_existing(self, app_config, fake_model, lease_text):
        kb = KnowledgeBase(config=app_config)
        first = kb.ingest_text(lease_text, "lease")

        with pytest.raises(EmptyInputError):
            kb.ingest_text("   ", "lease")

        assert kb.size == first.chunk_count
        assert [c.content for c in kb.get_document_chunks("lease")] == [c.content for c in first.chunks]

    def test_failed_reingest_keeps_existing(self, app_config, fake_model, lease_text):
        kb = KnowledgeBase(config=app_config)
        first = kb.ingest_text(lease_text, "lease")
        kb._client.provider = FailingProvider(kb._client.provider, fail_on_call=1)

        with pytest.raises(ProviderError):
            kb.ingest_text(lease_text + "\n\nA further clause on parking.", "lease")

        assert kb.size == first.chunk_count

    def test_cancelled_reingest_keeps_existing(self, app_config, fake_model, lease_text):
        kb = KnowledgeBase(config=app_config)
        first = kb.ingest_text(lease_text, "lease")
        event = threading.Event()
        event.set()

        result = kb.ingest_text("The rent is now 1,300 pounds per month.", "lease", cancel_event=event)

        assert result.cancelled
        assert kb.size == first.chunk_count

    def test_search_by_document_type(self, app_config, fake_model, lease_text, paged_text):
        kb = KnowledgeBase(config=app_config)
        kb.ingest_text(lease_text, "lease", title="Shop Lease", document_type="lease")
        kb.ingest_text(paged_text, "terms", document_type="terms")

        results = kb.search("rent", top_k=50, document_types=["terms"])

        assert results
        assert {r.document_id for r in results} == {"terms"}
        assert kb.search("rent", document_ids=["lease"])[0].title == "Shop Lease"

    def test_file_title_stored(self, app_config, fake_model, tmp_path, lease_text):
        path = tmp_path / "shop_lease.txt"
        path.write_text(lease_text, encoding="utf-8")
        kb = KnowledgeBase(config=app_config)

        kb.ingest_file(path, document_id="lease", document_type="lease")
        results = kb.search("rent", document_types=["lease"])

        assert results[0].title == "shop_lease"
        assert results[0].document_type == "lease"

    def test_delete_document(self, app_config, fake_model, lease_text):
        kb = KnowledgeBase(config=app_config)
        result = kb.ingest_text(lease_text, "lease")

        assert kb.delete_document("lease") == result.chunk_count
        assert kb.size == 0
        assert kb.delete_document("lease") == 0

    def test_unsupported_file(self, app_config, fake_model, tmp_path):
        path = tmp_path / "lease.docx"
        path.write_bytes(b"data")

        with pytest.raises(ValueError):
            KnowledgeBase(config=app_config).ingest_file(path)

    def test_ingest_upload(self, app_config, fake_model, paged_text):
        kb = KnowledgeBase(config=app_config)

        result = kb.ingest_upload(paged_text.encode("utf-8"), "terms.md", document_id="terms")

        assert {c.page_number for c in result.chunks} == {1, 2, 3}
        assert kb.document_ids == ["terms"]
