"""Shared schema and helpers for SQLite-backed knowledge stores."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

from praxischat.config import config

if TYPE_CHECKING:
    from collections.abc import Iterable

    import numpy as np

    from praxischat.models import KnowledgeChunk, RetrievalMatch

logger = config.get_logger(__name__)


class BaseKnowledgeStore:
    """Common schema management for tenant-scoped knowledge chunks.

    Every chunk is written as one ``knowledge_items`` row (the raw text and
    its source URL) and one ``embeddings`` row (the text the vector was
    computed from and where the vector lives). Rows are append-only:
    ingesting the same URL again adds new rows next to the old ones.
    """

    backend = "base"

    def __init__(self, db_path: Path) -> None:
        """Initialize metadata store and ensure schema exists."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(exist_ok=True, parents=True)
        self._create_tables()

    def _create_tables(self) -> None:
        """Create knowledge tables and indexes if they don't exist."""
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS knowledge_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    tenant_id TEXT NOT NULL,
                    source TEXT NOT NULL,
                    raw_text TEXT NOT NULL,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS embeddings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    tenant_id TEXT NOT NULL,
                    knowledge_item_id INTEGER NOT NULL,
                    content TEXT NOT NULL,
                    chunk_index INTEGER,
                    vector_file TEXT,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    FOREIGN KEY (knowledge_item_id) REFERENCES knowledge_items (id)
                )
            """)

            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_items_tenant_source "
                "ON knowledge_items(tenant_id, source)"
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_embeddings_tenant "
                "ON embeddings(tenant_id)"
            )
            conn.commit()

    @staticmethod
    def _insert_chunk_rows(
        cursor: sqlite3.Cursor,
        chunk: KnowledgeChunk,
        *,
        vector_file: str | None = None,
    ) -> int:
        """Persist the knowledge item and embedding rows for one chunk.

        Raises:
            RuntimeError: If a row id cannot be obtained.

        Returns:
            Row id of the embedding, used as the vector id.
        """
        cursor.execute(
            "INSERT INTO knowledge_items (tenant_id, source, raw_text) VALUES (?, ?, ?)",
            (chunk.tenant_id, chunk.source, chunk.content),
        )
        item_id = cursor.lastrowid
        if item_id is None:
            msg = "Failed to insert knowledge item row"
            raise RuntimeError(msg)

        cursor.execute(
            """
            INSERT INTO embeddings (
                tenant_id,
                knowledge_item_id,
                content,
                chunk_index,
                vector_file
            )
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                chunk.tenant_id,
                int(item_id),
                chunk.content,
                chunk.metadata.get("chunk_index"),
                vector_file,
            ),
        )
        embedding_id = cursor.lastrowid
        if embedding_id is None:
            msg = "Failed to insert embedding row"
            raise RuntimeError(msg)
        return int(embedding_id)

    @staticmethod
    def _fetch_rows_by_ids(
        cursor: sqlite3.Cursor,
        tenant_id: str,
        embedding_ids: Iterable[int],
    ) -> dict[int, tuple[str, str]]:
        """Fetch ``(content, source)`` for embedding ids owned by a tenant.

        Ids that belong to another tenant are silently absent from the result.

        Returns:
            Mapping of embedding id to content and source URL.
        """
        ids = [int(embedding_id) for embedding_id in embedding_ids]
        if not ids:
            return {}

        placeholders = ", ".join("?" for _ in ids)
        cursor.execute(
            f"""
            SELECT e.id, e.content, k.source
            FROM embeddings e
            JOIN knowledge_items k ON e.knowledge_item_id = k.id
            WHERE e.tenant_id = ? AND e.id IN ({placeholders})
            """,  # noqa: S608
            (tenant_id, *ids),
        )
        return {int(row[0]): (row[1], row[2]) for row in cursor.fetchall()}

    def delete_chunks(self, embedding_ids: Iterable[int]) -> int:
        """Remove embedding rows and their knowledge items.

        Returns:
            Number of embedding rows deleted.
        """
        ids = [int(embedding_id) for embedding_id in embedding_ids]
        if not ids:
            return 0

        placeholders = ", ".join("?" for _ in ids)
        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                DELETE FROM knowledge_items WHERE id IN (
                    SELECT knowledge_item_id FROM embeddings WHERE id IN ({placeholders})
                )
                """,  # noqa: S608
                ids,
            )
            cursor.execute(
                f"DELETE FROM embeddings WHERE id IN ({placeholders})",  # noqa: S608
                ids,
            )
            deleted = cursor.rowcount
            conn.commit()

        logger.info("Deleted %d chunk rows", deleted)
        return deleted

    def count_chunks(self, tenant_id: str, source: str | None = None) -> int:
        """Count stored chunks for a tenant, optionally for one source URL."""  # noqa: DOC201
        query = (
            "SELECT COUNT(*) FROM embeddings e "
            "JOIN knowledge_items k ON e.knowledge_item_id = k.id "
            "WHERE e.tenant_id = ?"
        )
        params: tuple[str, ...] = (tenant_id,)
        if source is not None:
            query += " AND k.source = ?"
            params = (tenant_id, source)

        with sqlite3.connect(str(self.db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return int(cursor.fetchone()[0])

    def add_chunks(self, chunks: list[KnowledgeChunk]) -> int:
        """Store embedded chunks. Implemented by subclasses.

        Returns:
            Number of chunks stored.
        """
        raise NotImplementedError

    def nearest_neighbors(
        self,
        tenant_id: str,
        query_embedding: np.ndarray,
        k: int,
    ) -> list[RetrievalMatch]:
        """Return the k chunks of a tenant closest to the query.

        Implemented by subclasses.

        Returns:
            Matches ordered by ascending distance.
        """
        raise NotImplementedError

    def save(self) -> None:
        """Persist pending vector data. Implemented by subclasses."""
        raise NotImplementedError
