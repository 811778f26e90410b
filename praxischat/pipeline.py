"""Response pipeline: guardrails, retrieval, prompt composition and generation."""

from __future__ import annotations

from collections.abc import Sequence

from .config import config
from .embeddings import EmbeddingService
from .generation import ChatGenerator
from .guardrails import GuardrailCategory, classify, short_circuit_reply
from .knowledge_store import get_knowledge_store
from .models import ChatReply, FailureReason, ReplyKind, TenantVariables
from .prompts import compose_prompt
from .retrieval import DEFAULT_TOP_K, KnowledgeRetriever
from .slugs import DEFAULT_STRATEGIES, SlugStrategy, resolve_tenant_slug
from .tenants import TenantRepository

logger = config.get_logger(__name__)

MESSAGE_REQUIRED_TEXT = "message required"
MISSING_SLUG_TEXT = "Technischer Fehler: Kein Mandanten-Slug vorhanden."
NO_INFORMATION_TEXT = "Entschuldigung, dazu habe ich gerade keine Auskunft."

_GUARDED_KINDS = {
    GuardrailCategory.EMERGENCY: ReplyKind.EMERGENCY,
    GuardrailCategory.MEDICAL_ADVICE_RESTRICTED: ReplyKind.RESTRICTED,
}


def contact_fallback_text(variables: TenantVariables | None = None) -> str:
    """Plain-language text shown when a backend dependency failed.

    Returns:
        A sentence pointing the user to the practice, with its phone number
        when known.
    """
    text = (
        "Entschuldigung, es ist ein technischer Fehler aufgetreten. "
        "Bitte wenden Sie sich direkt an die Praxis"
    )
    if variables is not None and variables.contact_phone:
        return f"{text} unter {variables.contact_phone}."
    return f"{text}."


class ChatPipeline:
    """Answers one chat message for one tenant.

    Every call runs the same linear sequence and ends in exactly one
    ChatReply; no state is kept between calls.
    """

    def __init__(
        self,
        tenants: TenantRepository,
        retriever: KnowledgeRetriever,
        generator: ChatGenerator,
        slug_strategies: Sequence[SlugStrategy] = DEFAULT_STRATEGIES,
    ) -> None:
        """Initialize the pipeline with its collaborators.

        Args:
            tenants: Tenant configuration lookups.
            retriever: Tenant-scoped knowledge retrieval.
            generator: Single-shot chat model client.
            slug_strategies: Ordered slug resolution strategies.
        """
        self.tenants = tenants
        self.retriever = retriever
        self.generator = generator
        self.slug_strategies = tuple(slug_strategies)

    @classmethod
    def from_config(cls, openai_api_key: str | None = None) -> ChatPipeline:
        """Build a pipeline wired to the configured database and OpenAI.

        Returns:
            ChatPipeline with production collaborators.
        """
        tenants = TenantRepository()
        retriever = KnowledgeRetriever(
            EmbeddingService(api_key=openai_api_key),
            get_knowledge_store(),
        )
        logger.info("Using %s knowledge storage", retriever.knowledge_store.backend)
        return cls(tenants, retriever, ChatGenerator(api_key=openai_api_key))

    @staticmethod
    def _failure(
        reason: FailureReason,
        exc: Exception,
        variables: TenantVariables | None = None,
    ) -> ChatReply:
        return ChatReply(
            text=contact_fallback_text(variables),
            kind=ReplyKind.ERROR,
            failure=reason,
            detail=str(exc) or type(exc).__name__,
        )

    def answer(
        self,
        message: str | None,
        slug: str | None = None,
        referer: str | None = None,
    ) -> ChatReply:
        """Produce the reply for a single chat message.

        Args:
            message: The user's question.
            slug: Tenant slug sent with the request, if any.
            referer: Referer header of the request, used to infer the slug.

        Returns:
            ChatReply holding the reply text or a typed failure.
        """
        if not message or not message.strip():
            return ChatReply(
                text=MESSAGE_REQUIRED_TEXT,
                kind=ReplyKind.ERROR,
                failure=FailureReason.MISSING_MESSAGE,
            )

        tenant_slug = resolve_tenant_slug(slug, referer, self.slug_strategies)
        if not tenant_slug:
            logger.warning("No tenant slug in request or referer %r", referer)
            return ChatReply(
                text=MISSING_SLUG_TEXT,
                kind=ReplyKind.ERROR,
                failure=FailureReason.MISSING_TENANT_SLUG,
            )

        try:
            tenant = self.tenants.get_tenant_by_slug(tenant_slug)
            variables = self.tenants.get_tenant_variables(tenant.id)
        except Exception as e:  # noqa: BLE001
            logger.exception("Tenant lookup failed for %s", tenant_slug)
            return self._failure(FailureReason.TENANT_LOOKUP_FAILED, e)

        category = classify(message)
        guarded_reply = short_circuit_reply(category)
        if guarded_reply is not None:
            logger.info("Short-circuit %s reply for tenant %s", category.value, tenant.slug)
            return ChatReply(text=guarded_reply, kind=_GUARDED_KINDS[category])

        try:
            matches = self.retriever.retrieve(tenant.id, message, k=DEFAULT_TOP_K)
        except Exception as e:  # noqa: BLE001
            logger.exception("Knowledge retrieval failed for %s", tenant.slug)
            return self._failure(FailureReason.RETRIEVAL_FAILED, e, variables)

        prompt = compose_prompt(variables, matches, message)

        try:
            text = self.generator.generate(prompt.system_text, prompt.user_text)
        except Exception as e:  # noqa: BLE001
            logger.exception("Generation failed for %s", tenant.slug)
            return self._failure(FailureReason.GENERATION_FAILED, e, variables)

        if not text or not text.strip():
            logger.warning("Model returned no content for tenant %s", tenant.slug)
            return ChatReply(text=NO_INFORMATION_TEXT, kind=ReplyKind.NO_INFORMATION)

        return ChatReply(text=text)
