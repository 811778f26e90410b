"""PraxisChat - retrieval-augmented chat assistant for medical practices."""

from .embeddings import EmbeddingService
from .generation import ChatGenerator
from .guardrails import GuardrailCategory, classify
from .ingestion import KnowledgeIngestor, PageExtractor, TextChunker
from .knowledge_store import (
    FaissKnowledgeStore,
    SQLiteKnowledgeStore,
    get_knowledge_store,
)
from .models import (
    ChatReply,
    ChatTurn,
    ComposedPrompt,
    FailureReason,
    IngestionReport,
    KnowledgeChunk,
    ReplyKind,
    RetrievalMatch,
    Tenant,
    TenantVariables,
)
from .pipeline import ChatPipeline
from .prompts import compose_prompt
from .retrieval import KnowledgeRetriever
from .slugs import resolve_tenant_slug
from .tenants import TenantNotFoundError, TenantRepository

__all__ = [
    "ChatGenerator",
    "ChatPipeline",
    "ChatReply",
    "ChatTurn",
    "ComposedPrompt",
    "EmbeddingService",
    "FailureReason",
    "FaissKnowledgeStore",
    "GuardrailCategory",
    "IngestionReport",
    "KnowledgeChunk",
    "KnowledgeIngestor",
    "KnowledgeRetriever",
    "PageExtractor",
    "ReplyKind",
    "RetrievalMatch",
    "SQLiteKnowledgeStore",
    "Tenant",
    "TenantNotFoundError",
    "TenantRepository",
    "TenantVariables",
    "TextChunker",
    "classify",
    "compose_prompt",
    "get_knowledge_store",
    "resolve_tenant_slug",
]
