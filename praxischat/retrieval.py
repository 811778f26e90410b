"""Tenant-scoped knowledge retrieval."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import config

if TYPE_CHECKING:
    from .embeddings import EmbeddingService
    from .knowledge_store import KnowledgeStore
    from .models import RetrievalMatch

logger = config.get_logger(__name__)

DEFAULT_TOP_K = 4


class KnowledgeRetriever:
    """Embeds a query and searches one tenant's knowledge chunks."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        knowledge_store: KnowledgeStore,
    ) -> None:
        """Initialize the retriever with its two collaborators.

        Args:
            embedding_service: Produces the query vector.
            knowledge_store: Answers nearest-neighbour searches per tenant.
        """
        self.embedding_service = embedding_service
        self.knowledge_store = knowledge_store

    def retrieve(
        self,
        tenant_id: str,
        query: str,
        k: int = DEFAULT_TOP_K,
    ) -> list[RetrievalMatch]:
        """Return up to k snippets of the tenant nearest to the query.

        Errors from the embedding call or the search propagate unchanged.

        Returns:
            Matches ordered by ascending distance.
        """
        query_embedding = self.embedding_service.get_embedding(query)
        matches = self.knowledge_store.nearest_neighbors(tenant_id, query_embedding, k)

        logger.info("Retrieved %d chunks for tenant %s", len(matches), tenant_id)
        for i, match in enumerate(matches):
            logger.debug(
                "  Match %d: %s (distance: %.4f) %s...",
                i + 1,
                match.source,
                match.distance,
                match.content[:100],
            )
        return matches
