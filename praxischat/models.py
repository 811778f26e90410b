"""Data models for the chat backend."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

import numpy as np


@dataclass(frozen=True)
class Tenant:
    """A practice whose configuration and knowledge base are isolated."""

    id: str
    slug: str
    name: str = ""


@dataclass(frozen=True)
class TenantVariables:
    """Display variables used to personalise the assistant for one tenant."""

    display_name: str
    location: str
    contact_phone: str
    average_response_time: str

    @classmethod
    def from_settings(cls, variables: dict[str, Any]) -> "TenantVariables":
        """Build variables from the stored settings object.

        Returns:
            TenantVariables with missing keys rendered as empty strings.
        """
        return cls(
            display_name=str(variables.get("Praxisname", "")),
            location=str(variables.get("Ort", "")),
            contact_phone=str(variables.get("Kontakt_Tel", "")),
            average_response_time=str(variables.get("Antwortzeit", "")),
        )

    def to_settings(self) -> dict[str, str]:
        """Serialize to the stored settings layout.

        Returns:
            Mapping keyed the way tenant settings are persisted.
        """
        return {
            "Praxisname": self.display_name,
            "Ort": self.location,
            "Kontakt_Tel": self.contact_phone,
            "Antwortzeit": self.average_response_time,
        }


@dataclass
class KnowledgeChunk:
    """Represents a chunk of a tenant's source page."""

    content: str
    tenant_id: str
    source: str
    metadata: dict[str, Any] = field(default_factory=dict)
    embedding: np.ndarray | None = None


@dataclass(frozen=True)
class RetrievalMatch:
    """A retrieved snippet and its cosine distance to the query."""

    content: str
    distance: float
    source: str | None = None
    embedding_id: int | None = None


@dataclass(frozen=True)
class ChatTurn:
    """Represents a single message of a chat session."""

    role: Literal["user", "assistant"]
    text: str


@dataclass(frozen=True)
class ComposedPrompt:
    """System instruction and user turn sent to the generation model."""

    system_text: str
    user_text: str


class ReplyKind(str, Enum):
    """Which terminal state produced a reply."""

    ANSWER = "answer"
    EMERGENCY = "emergency"
    RESTRICTED = "restricted"
    NO_INFORMATION = "no_information"
    ERROR = "error"


class FailureReason(str, Enum):
    """Typed reason for a reply that did not complete normally."""

    MISSING_MESSAGE = "missing_message"
    MISSING_TENANT_SLUG = "missing_tenant_slug"
    TENANT_LOOKUP_FAILED = "tenant_lookup_failed"
    RETRIEVAL_FAILED = "retrieval_failed"
    GENERATION_FAILED = "generation_failed"


@dataclass(frozen=True)
class ChatReply:
    """Exactly one text payload produced for one chat request."""

    text: str
    kind: ReplyKind = ReplyKind.ANSWER
    failure: FailureReason | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        """True when the reply is not a failure."""
        return self.failure is None


@dataclass(frozen=True)
class IngestionReport:
    """Outcome of ingesting one source URL for one tenant."""

    tenant_id: str
    source: str
    chunk_count: int
    skipped: bool = False
