"""Offline ingestion: fetch a page, chunk its text, embed and store it."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import requests
import trafilatura
from bs4 import BeautifulSoup

from .config import config
from .models import IngestionReport, KnowledgeChunk

if TYPE_CHECKING:
    from .embeddings import EmbeddingService
    from .knowledge_store import KnowledgeStore
    from .tenants import TenantRepository

logger = config.get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Replace whitespace runs by single spaces and trim."""  # noqa: DOC201
    return _WHITESPACE.sub(" ", text).strip()


class PageExtractor:
    """Downloads a page and extracts its visible main text."""

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize the extractor with a shared HTTP session.

        Args:
            timeout: Request timeout in seconds. If None, uses
                config.HTTP_TIMEOUT.
        """
        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT
        self.session = requests.Session()
        self.session.headers.update(config.get_api_headers())

    def fetch(self, url: str) -> str:
        """Download the HTML of a page.

        Returns:
            The response body as text.
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException:
            logger.exception("Error fetching %s", url)
            raise
        return response.text

    @staticmethod
    def extract_text(html: str, url: str | None = None) -> str:
        """Extract readable text, falling back to the whole body text.

        Returns:
            Extracted text; empty if the page has none.
        """
        text = trafilatura.extract(
            html,
            url=url,
            include_comments=False,
            include_tables=True,
        )
        if text and text.strip():
            return text.strip()

        soup = BeautifulSoup(html, "html.parser")
        body = soup.body or soup
        return collapse_whitespace(body.get_text(" "))

    def extract_from_url(self, url: str) -> str:
        """Fetch a page and return its text."""  # noqa: DOC201
        return self.extract_text(self.fetch(url), url=url)


class TextChunker:
    """Handles text chunking with a fixed window and overlap."""

    def __init__(self, chunk_size: int | None = None, overlap: int | None = None) -> None:
        """Initialize the TextChunker with chunk size and overlap.

        Args:
            chunk_size: The size of each text window in characters.
            overlap: The number of characters shared by consecutive windows.

        Raises:
            ValueError: If the overlap does not leave a positive step.
        """
        self.chunk_size = chunk_size if chunk_size is not None else config.CHUNK_SIZE
        self.overlap = overlap if overlap is not None else config.CHUNK_OVERLAP
        if self.chunk_size <= 0 or not 0 <= self.overlap < self.chunk_size:
            msg = (
                f"Invalid chunking window: size={self.chunk_size}, "
                f"overlap={self.overlap}"
            )
            raise ValueError(msg)

    def chunk_text(self, text: str, tenant_id: str, source: str) -> list[KnowledgeChunk]:
        """Split text into overlapping windows.

        Windows are cut from the raw text, then whitespace-collapsed; windows
        that end up empty are dropped. The trailing partial window is kept.

        Returns:
            A list of KnowledgeChunk objects without embeddings.
        """
        chunks = []
        step = self.chunk_size - self.overlap
        start = 0

        while start < len(text):
            end = min(start + self.chunk_size, len(text))
            content = collapse_whitespace(text[start:end])
            if content:
                chunks.append(
                    KnowledgeChunk(
                        content=content,
                        tenant_id=tenant_id,
                        source=source,
                        metadata={
                            "chunk_index": len(chunks),
                            "start_char": start,
                            "end_char": end,
                            "length": len(content),
                        },
                    )
                )
            start += step

        logger.info("Text split into %d chunks", len(chunks))
        return chunks


class KnowledgeIngestor:
    """Main ingestion flow orchestrating Fetch -> Split -> Embed -> Store."""

    def __init__(  # noqa: PLR0913,PLR0917
        self,
        tenants: TenantRepository,
        extractor: PageExtractor,
        chunker: TextChunker,
        embedding_service: EmbeddingService,
        knowledge_store: KnowledgeStore,
        min_text_length: int | None = None,
    ) -> None:
        """Initialize the ingestor with its collaborators."""
        self.tenants = tenants
        self.extractor = extractor
        self.chunker = chunker
        self.embedding_service = embedding_service
        self.knowledge_store = knowledge_store
        self.min_text_length = (
            min_text_length
            if min_text_length is not None
            else config.INGEST_MIN_TEXT_LENGTH
        )

    def ingest(self, slug: str, url: str) -> IngestionReport:
        """Ingest one URL into a tenant's knowledge base.

        Existing chunks of the same URL are left in place; the new chunks are
        added next to them.

        Returns:
            Report with the number of chunks stored.
        """
        tenant = self.tenants.get_tenant_by_slug(slug)
        logger.info("Ingesting %s for tenant %s", url, tenant.slug)

        text = self.extractor.extract_from_url(url)
        if len(text) < self.min_text_length:
            logger.warning("Empty or tiny page, skipping: %s", url)
            return IngestionReport(
                tenant_id=tenant.id,
                source=url,
                chunk_count=0,
                skipped=True,
            )

        chunks = self.chunker.chunk_text(text, tenant_id=tenant.id, source=url)
        embeddings = self.embedding_service.get_embeddings_batch(
            [chunk.content for chunk in chunks]
        )
        for chunk, embedding in zip(chunks, embeddings, strict=True):
            chunk.embedding = embedding

        stored = self.knowledge_store.add_chunks(chunks)
        self.knowledge_store.save()

        logger.info("Stored %d chunks from %s", stored, url)
        return IngestionReport(tenant_id=tenant.id, source=url, chunk_count=stored)
