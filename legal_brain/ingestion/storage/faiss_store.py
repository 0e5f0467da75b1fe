import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

import numpy as np

try:
    import faiss
except ImportError:
    faiss = None

from ...errors import DimensionMismatchError
from ...utils.logger import get_logger
from .vector_store import MetadataFilter, QueryMatch, VectorStore

logger = get_logger(__name__)


class FAISSVectorStore(VectorStore):
    """
    FAISS-based vector store for efficient similarity search.

    Uses FAISS IndexFlatIP (inner product) which is equivalent to
    cosine similarity when vectors are normalized. Records are keyed by
    chunk id; upserting an existing id replaces its vector and metadata.
    """

    def __init__(self, embedding_dim: int = 384):
        """
        Initialize the FAISS vector store.

        Args:
            embedding_dim: Dimension of embedding vectors.
                          Default 384 matches 'all-MiniLM-L6-v2'.
        """
        if faiss is None:
            raise ImportError(
                "FAISS is not installed. Install it with: pip install faiss-cpu"
            )

        self.embedding_dim = embedding_dim
        self._index = faiss.IndexFlatIP(embedding_dim)
        self._chunk_ids: List[str] = []
        self._metadatas: List[Dict[str, Any]] = []
        self._id_to_index: Dict[str, int] = {}

    def _prepare(self, vector: Sequence[float]) -> np.ndarray:
        if len(vector) != self.embedding_dim:
            raise DimensionMismatchError(
                f"Expected vector of dimension {self.embedding_dim}, got {len(vector)}"
            )
        # Normalize for cosine similarity
        array = np.asarray(vector, dtype=np.float32).reshape(1, -1).copy()
        faiss.normalize_L2(array)
        return array

    def upsert(self, chunk_id: str, vector: Sequence[float], metadata: Dict[str, Any]) -> None:
        array = self._prepare(vector)
        existing = self._id_to_index.get(chunk_id)

        if existing is None:
            self._index.add(array)
            self._id_to_index[chunk_id] = len(self._chunk_ids)
            self._chunk_ids.append(chunk_id)
            self._metadatas.append(dict(metadata))
            return

        # IndexFlatIP can't update in place, so rebuild with the new row
        vectors = self._index.reconstruct_n(0, self._index.ntotal)
        vectors[existing] = array[0]
        self._index.reset()
        self._index.add(vectors)
        self._metadatas[existing] = dict(metadata)
        logger.debug("Replaced record %s", chunk_id)

    def query(
        self,
        vector: Sequence[float],
        top_k: int = 5,
        metadata_filter: Optional[MetadataFilter] = None,
    ) -> List[QueryMatch]:
        query = self._prepare(vector)
        if self._index.ntotal == 0:
            return []

        # A filter may reject any row, so rank everything before cutting
        k = self._index.ntotal if metadata_filter else min(top_k, self._index.ntotal)
        scores, indices = self._index.search(query, k)

        matches = []
        for score, idx in zip(scores[0], indices[0]):
            if idx == -1:  # FAISS returns -1 for unfilled slots
                continue
            if metadata_filter and not metadata_filter(self._metadatas[idx]):
                continue
            if len(matches) == top_k:
                break
            matches.append(QueryMatch(
                chunk_id=self._chunk_ids[idx],
                score=float(score),
                metadata=dict(self._metadatas[idx]),
            ))
        return matches

    def delete(self, document_id: str) -> int:
        """Delete all records belonging to a document."""
        deleted = self._remove(
            lambda chunk_id, metadata: metadata.get("document_id") == document_id
        )
        if deleted:
            logger.debug("Deleted %d records of document %s", deleted, document_id)
        return deleted

    def delete_chunks(self, chunk_ids: Iterable[str]) -> int:
        """Delete the records stored under the given chunk ids."""
        targets = set(chunk_ids)
        return self._remove(lambda chunk_id, metadata: chunk_id in targets)

    def _remove(self, should_remove: Callable[[str, Dict[str, Any]], bool]) -> int:
        # A flat index has no row deletion, so rebuild it from the kept rows
        keep = [
            i for i, (chunk_id, metadata) in enumerate(zip(self._chunk_ids, self._metadatas))
            if not should_remove(chunk_id, metadata)
        ]
        deleted_count = len(self._metadatas) - len(keep)

        if deleted_count == 0:
            return 0

        if not keep:
            self.clear()
            return deleted_count

        vectors = self._index.reconstruct_n(0, self._index.ntotal)[keep]
        self._index.reset()
        self._index.add(np.ascontiguousarray(vectors))

        self._chunk_ids = [self._chunk_ids[i] for i in keep]
        self._metadatas = [self._metadatas[i] for i in keep]
        self._id_to_index = {chunk_id: i for i, chunk_id in enumerate(self._chunk_ids)}
        return deleted_count

    def save(self, path: Union[str, Path]) -> None:
        """
        Save the vector store to disk.

        Creates two files:
        - {path}.faiss: The FAISS index
        - {path}.meta.json: Chunk ids and metadata
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        faiss.write_index(self._index, str(path) + ".faiss")

        metadata = {
            "embedding_dim": self.embedding_dim,
            "records": [
                {"chunk_id": chunk_id, "metadata": meta}
                for chunk_id, meta in zip(self._chunk_ids, self._metadatas)
            ],
        }

        with open(str(path) + ".meta.json", "w", encoding="utf-8") as f:
            json.dump(metadata, f, indent=2)

    def load(self, path: Union[str, Path]) -> None:
        """
        Load the vector store from disk.

        Args:
            path: Base path (without extension) to load from
        """
        path = Path(path)

        index_path = str(path) + ".faiss"
        if not Path(index_path).exists():
            raise FileNotFoundError(f"FAISS index not found: {index_path}")

        meta_path = str(path) + ".meta.json"
        if not Path(meta_path).exists():
            raise FileNotFoundError(f"Metadata file not found: {meta_path}")

        self._index = faiss.read_index(index_path)

        with open(meta_path, "r", encoding="utf-8") as f:
            metadata = json.load(f)

        self.embedding_dim = metadata["embedding_dim"]
        self._chunk_ids = [record["chunk_id"] for record in metadata["records"]]
        self._metadatas = [record["metadata"] for record in metadata["records"]]
        self._id_to_index = {chunk_id: i for i, chunk_id in enumerate(self._chunk_ids)}

    @property
    def size(self) -> int:
        """Get the number of vectors in the store."""
        return self._index.ntotal

    def clear(self) -> None:
        """Remove all data from the store."""
        self._index.reset()
        self._chunk_ids = []
        self._metadatas = []
        self._id_to_index = {}

    def get_chunk_metadata(self, chunk_id: str) -> Optional[Dict[str, Any]]:
        """Get the metadata stored under a chunk id."""
        idx = self._id_to_index.get(chunk_id)
        if idx is not None:
            return dict(self._metadatas[idx])
        return None

    def get_document_records(self, document_id: str) -> List[Dict[str, Any]]:
        """Get the metadata of every record of a document."""
        return [
            dict(meta) for meta in self._metadatas
            if meta.get("document_id") == document_id
        ]

    def get_document_ids(self) -> List[str]:
        """Get all unique document IDs in the store."""
        return sorted(set(meta.get("document_id") for meta in self._metadatas))
