"""Pydantic models for the HTTP surface."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Body of ``POST /api/chat``; both fields may be missing."""

    slug: str | None = None
    message: str | None = None


class ChatResponse(BaseModel):
    text: str


class ChatTurnSchema(BaseModel):
    role: Literal["user", "assistant"]
    text: str


class AskResponse(BaseModel):
    """Debug answer with the one-question transcript."""

    text: str
    turns: list[ChatTurnSchema] = Field(default_factory=list)


class PingResponse(BaseModel):
    ok: bool
    tenants: int = 0
