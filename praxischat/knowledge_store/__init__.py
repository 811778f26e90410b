"""Knowledge store adapters and factory."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from praxischat.config import config

from .faiss_store import FaissKnowledgeStore
from .sqlite_store import SQLiteKnowledgeStore

if TYPE_CHECKING:
    from pathlib import Path

KnowledgeBackend = Literal["faiss", "sqlite"]
KnowledgeStore = FaissKnowledgeStore | SQLiteKnowledgeStore


def get_knowledge_store(
    store: str | None = None,
    *,
    db_path: Path | None = None,
    vectors_dir: Path | None = None,
    index_dir: Path | None = None,
) -> KnowledgeStore:
    """Return a configured knowledge store instance.

    Raises:
        ValueError: If an unsupported backend is requested.
    """
    backend = (store if store is not None else config.VECTOR_BACKEND).lower()
    if db_path is None:
        db_path = config.DATABASE_PATH

    if backend == "faiss":
        return FaissKnowledgeStore(
            db_path=db_path,
            index_dir=index_dir if index_dir is not None else config.FAISS_INDEX_DIR,
        )

    if backend == "sqlite":
        return SQLiteKnowledgeStore(
            db_path=db_path,
            vectors_dir=(
                vectors_dir if vectors_dir is not None else config.VECTOR_STORE_DIR
            ),
        )

    msg = f"Unsupported vector store backend: {store}"
    raise ValueError(msg)


__all__ = [
    "FaissKnowledgeStore",
    "KnowledgeBackend",
    "KnowledgeStore",
    "SQLiteKnowledgeStore",
    "get_knowledge_store",
]
