"""FAISS-backed knowledge storage with SQLite metadata.

Each tenant gets its own index file, so a search can only ever see vectors
that were ingested for that tenant.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

import faiss
import numpy as np

from praxischat.config import config
from praxischat.knowledge_store.base import BaseKnowledgeStore
from praxischat.models import RetrievalMatch

if TYPE_CHECKING:
    from praxischat.models import KnowledgeChunk

logger = config.get_logger(__name__)


class FaissKnowledgeStore(BaseKnowledgeStore):
    """Knowledge storage using per-tenant FAISS indexes and SQLite metadata."""

    backend = "faiss"

    def __init__(
        self,
        db_path: Path = Path("data/praxischat.db"),
        index_dir: Path = Path("data/faiss"),
    ) -> None:
        """Configure FAISS-backed knowledge store."""
        self.index_dir = Path(index_dir)
        self.index_dir.mkdir(exist_ok=True, parents=True)

        # Indexes with vectors added since the last save(), keyed by tenant.
        self._pending: dict[str, faiss.IndexIDMap] = {}
        # Metadata rows whose vectors only live in a pending index.
        self._pending_ids: dict[str, list[int]] = {}

        super().__init__(db_path)

    def index_path(self, tenant_id: str) -> Path:
        """Location of a tenant's index file."""  # noqa: DOC201
        return self.index_dir / f"{tenant_id}.faiss"

    @staticmethod
    def _normalize_embedding(embedding: np.ndarray) -> np.ndarray:
        """Normalize embedding for cosine similarity using inner product search.

        Returns:
            Normalized embedding vector.
        """
        vector = np.array(embedding, dtype="float32")
        norm = np.linalg.norm(vector)
        if norm == 0:
            return vector
        faiss.normalize_L2(vector.reshape(1, -1))
        return vector

    def _read_index(self, tenant_id: str) -> faiss.IndexIDMap | None:
        """Read a tenant's index from disk.

        Returns:
            The index wrapped for id mapping, or None if none was saved yet.
        """
        path = self.index_path(tenant_id)
        if not path.exists():
            return None

        index = faiss.read_index(str(path))
        if not isinstance(index, (faiss.IndexIDMap, faiss.IndexIDMap2)):
            logger.warning(
                "Loaded FAISS index is %s; wrapping with IndexIDMap to enable IDs",
                type(index).__name__,
            )
            index = faiss.IndexIDMap(index)
        return index

    @staticmethod
    def _init_index(dimension: int) -> faiss.IndexIDMap:
        """Create an empty inner-product index.

        Returns:
            New IndexIDMap over a flat inner-product index.
        """
        logger.info("Initialized FAISS IndexIDMap with dimension %d", dimension)
        return faiss.IndexIDMap(faiss.IndexFlatIP(dimension))

    def add_chunks(self, chunks: list[KnowledgeChunk]) -> int:
        """Add chunks to their tenant's FAISS index and the metadata store.

        Returns:
            Number of chunks stored.

        Raises:
            ValueError: If embedding dimension mismatches the tenant's index.
        """
        if not chunks:
            return 0

        batches: dict[str, tuple[list[np.ndarray], list[int]]] = {}

        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()

            for chunk in chunks:
                if chunk.embedding is None:
                    logger.warning(
                        "Skipping chunk %s without embedding",
                        chunk.metadata.get("chunk_index"),
                    )
                    continue

                embedding = self._normalize_embedding(chunk.embedding)
                index = self._pending.get(chunk.tenant_id)
                if index is None:
                    index = self._read_index(chunk.tenant_id)
                    if index is None:
                        index = self._init_index(embedding.shape[0])
                    self._pending[chunk.tenant_id] = index
                if embedding.shape[0] != index.d:
                    msg = (
                        f"Embedding dimension {embedding.shape[0]} does not match "
                        f"FAISS index dimension {index.d}"
                    )
                    raise ValueError(msg)

                embedding_id = self._insert_chunk_rows(cursor, chunk)
                chunk.metadata["embedding_id"] = embedding_id

                vectors, ids = batches.setdefault(chunk.tenant_id, ([], []))
                vectors.append(embedding)
                ids.append(embedding_id)

            conn.commit()

        inserted = 0
        for tenant_id, (vectors, ids) in batches.items():
            self._pending[tenant_id].add_with_ids(  # pyright: ignore[reportCallIssue]
                np.vstack(vectors).astype("float32"),
                np.asarray(ids, dtype="int64"),
            )
            self._pending_ids.setdefault(tenant_id, []).extend(ids)
            inserted += len(ids)
            logger.info("Added %d vectors to FAISS index of %s", len(ids), tenant_id)

        return inserted

    def nearest_neighbors(
        self,
        tenant_id: str,
        query_embedding: np.ndarray,
        k: int,
    ) -> list[RetrievalMatch]:
        """Search the tenant's saved FAISS index.

        Returns:
            Matches ordered by ascending cosine distance.
        """
        index = self._read_index(tenant_id)
        if index is None or index.ntotal == 0:
            logger.warning("No FAISS index for tenant %s; returning no results", tenant_id)
            return []

        normalized_query = self._normalize_embedding(query_embedding)
        scores, vector_ids = index.search(
            normalized_query.reshape(1, -1),
            min(k, index.ntotal),
        )  # pyright: ignore[reportCallIssue]

        hits = [
            (int(vector_id), float(score))
            for score, vector_id in zip(scores[0], vector_ids[0], strict=True)
            if int(vector_id) != -1  # faiss returns -1 for empty results
        ]

        with sqlite3.connect(str(self.db_path)) as conn:
            rows = self._fetch_rows_by_ids(
                conn.cursor(),
                tenant_id,
                (vector_id for vector_id, _score in hits),
            )

        matches = []
        for vector_id, score in hits:
            row = rows.get(vector_id)
            if row is None:
                logger.warning("Vector %d has no metadata for tenant %s", vector_id, tenant_id)
                continue
            content, source = row
            matches.append(
                RetrievalMatch(
                    content=content,
                    distance=1.0 - score,
                    source=source,
                    embedding_id=vector_id,
                )
            )
        return matches

    def _discard_pending(self) -> None:
        """Drop unsaved indexes and the metadata rows only they referenced."""
        ids = [
            embedding_id
            for tenant_ids in self._pending_ids.values()
            for embedding_id in tenant_ids
        ]
        self._pending.clear()
        self._pending_ids.clear()
        self.delete_chunks(ids)

    def save(self) -> None:
        """Persist every index that received vectors since the last save.

        If an index cannot be written, the rows of every still unsaved index
        are deleted again so the metadata never outlives its vectors.
        """
        if not self._pending:
            logger.warning("No FAISS index to save")
            return

        for tenant_id in list(self._pending):
            index = self._pending[tenant_id]
            path = self.index_path(tenant_id)
            try:
                faiss.write_index(index, str(path))
            except Exception:
                logger.exception("Error saving FAISS index to %s", path)
                self._discard_pending()
                raise
            del self._pending[tenant_id]
            self._pending_ids.pop(tenant_id, None)
            logger.info("Saved FAISS index with %d vectors to %s", index.ntotal, path)
