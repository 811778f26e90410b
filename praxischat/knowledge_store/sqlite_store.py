"""SQLite-based knowledge storage with numpy file backend."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import numpy as np

from praxischat.config import config
from praxischat.knowledge_store.base import BaseKnowledgeStore
from praxischat.models import KnowledgeChunk, RetrievalMatch  # noqa: TC001

logger = config.get_logger(__name__)


class SQLiteKnowledgeStore(BaseKnowledgeStore):
    """Knowledge storage using SQLite for metadata and numpy files for vectors."""

    backend = "sqlite"

    def __init__(
        self,
        db_path: Path = Path("data/praxischat.db"),
        vectors_dir: Path = Path("data/vectors"),
    ) -> None:
        """Initialize the store with database and vector directory paths.

        Args:
            db_path: Path to the SQLite database file.
            vectors_dir: Directory to store numpy vector files.
        """
        self.vectors_dir = Path(vectors_dir)
        self.vectors_dir.mkdir(exist_ok=True, parents=True)

        super().__init__(db_path)

    def add_chunks(self, chunks: list[KnowledgeChunk]) -> int:
        """Add chunks with embeddings to the store.

        Returns:
            Number of chunks stored.
        """
        if not chunks:
            return 0

        inserted = 0

        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()

            for chunk in chunks:
                if chunk.embedding is None:
                    logger.warning(
                        "Skipping chunk %s without embedding",
                        chunk.metadata.get("chunk_index"),
                    )
                    continue

                embedding_id = self._insert_chunk_rows(cursor, chunk)

                tenant_dir = self.vectors_dir / chunk.tenant_id
                tenant_dir.mkdir(exist_ok=True, parents=True)
                vector_filename = f"{chunk.tenant_id}/emb{embedding_id:08d}.npy"
                np.save(self.vectors_dir / vector_filename, chunk.embedding)

                cursor.execute(
                    "UPDATE embeddings SET vector_file = ? WHERE id = ?",
                    (vector_filename, embedding_id),
                )
                chunk.metadata["embedding_id"] = embedding_id
                inserted += 1

            conn.commit()

        logger.info("Added %d chunks to SQLite knowledge store", inserted)
        return inserted

    @staticmethod
    def cosine_distances(
        query_embedding: np.ndarray,
        embeddings: np.ndarray,
    ) -> np.ndarray:
        """Calculate cosine distance between query and stored embeddings.

        Returns:
            np.ndarray: ``1 - cosine similarity`` for each stored embedding.
        """
        query_norm = query_embedding / np.linalg.norm(query_embedding)
        doc_norms = embeddings / np.linalg.norm(embeddings, axis=1, keepdims=True)

        return 1.0 - np.dot(doc_norms, query_norm)

    def nearest_neighbors(
        self,
        tenant_id: str,
        query_embedding: np.ndarray,
        k: int,
    ) -> list[RetrievalMatch]:
        """Scan the tenant's vectors and return the k nearest.

        Returns:
            Matches ordered by ascending cosine distance.
        """
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT e.id, e.content, e.vector_file, k.source
                FROM embeddings e
                JOIN knowledge_items k ON e.knowledge_item_id = k.id
                WHERE e.tenant_id = ? AND e.vector_file IS NOT NULL
                ORDER BY e.id
                """,
                (tenant_id,),
            )
            rows = cursor.fetchall()

        candidates = []
        vectors = []
        for embedding_id, content, vector_file, source in rows:
            vector_path = self.vectors_dir / vector_file
            if not vector_path.exists():
                logger.warning("Vector file not found: %s", vector_path)
                continue
            candidates.append((int(embedding_id), content, source))
            vectors.append(np.load(vector_path))

        if not vectors:
            return []

        distances = self.cosine_distances(
            np.asarray(query_embedding, dtype="float32"),
            np.vstack(vectors),
        )
        order = np.argsort(distances, kind="stable")[:k]

        return [
            RetrievalMatch(
                content=candidates[idx][1],
                distance=float(distances[idx]),
                source=candidates[idx][2],
                embedding_id=candidates[idx][0],
            )
            for idx in order
        ]

    def save(self) -> None:  # noqa: PLR6301
        """Save operation - data is already persisted in SQLite and files.

        Note:
            Kept as an instance method for interface consistency with the
            FAISS store, even though it does not use `self`.
        """
        logger.info("Data already persisted in SQLite database and vector files")
