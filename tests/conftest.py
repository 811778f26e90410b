"""Test configuration and fixtures for PraxisChat tests.

This module provides reusable test fixtures organized by functionality:
- Constants and test data
- Mock services and API responses
- EmbeddingService fixtures
- Tenant repository and knowledge store fixtures
- Pipeline fixtures with mocked collaborators
"""

import hashlib
from unittest.mock import Mock, create_autospec, patch

import numpy as np
import pytest

from praxischat import (
    ChatGenerator,
    ChatPipeline,
    EmbeddingService,
    FaissKnowledgeStore,
    KnowledgeChunk,
    KnowledgeRetriever,
    RetrievalMatch,
    SQLiteKnowledgeStore,
    Tenant,
    TenantRepository,
    TenantVariables,
)


class TestConstants:
    """Centralized test constants to avoid repetition across test files."""

    # API Configuration
    TEST_API_KEY = "test-key"
    TEST_OPENAI_MODEL = "text-embedding-3-large"
    DEFAULT_EMBEDDING_DIMENSION = 64

    # Tenants
    TENANT_SLUG = "hausarzt-muster"
    OTHER_TENANT_SLUG = "zahnarzt-beispiel"
    TENANT_PHONE = "09401 12345"

    # Sources
    SOURCE_URL = "https://praxis-muster.de/oeffnungszeiten"


class MockEmbeddingService:
    """Mock embedding service for testing without API calls.

    Generates deterministic embeddings based on text content hash,
    ensuring consistent test results across runs.
    """

    def __init__(
        self, dimension: int = TestConstants.DEFAULT_EMBEDDING_DIMENSION
    ) -> None:
        self.dimension = dimension

    def get_embedding(self, text: str) -> np.ndarray:
        """Generate deterministic mock embedding based on text hash."""
        seed = int.from_bytes(
            hashlib.sha256(text.lower().encode("utf-8")).digest()[:8],
            byteorder="big",
            signed=False,
        )
        rng = np.random.default_rng(seed)
        embedding = rng.normal(0, 1, self.dimension)
        return (embedding / np.linalg.norm(embedding)).astype(np.float32)

    def get_embeddings_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate batch of mock embeddings."""
        return [self.get_embedding(text) for text in texts]


def create_mock_openai_response(embeddings: list[list[float]]) -> Mock:
    """Create a mock OpenAI embeddings API response."""
    mock_response = Mock()
    mock_response.data = [Mock(embedding=emb) for emb in embeddings]
    return mock_response


def create_mock_chat_response(content: str | None) -> Mock:
    """Create a mock OpenAI chat completion response."""
    mock_response = Mock()
    mock_response.choices = [Mock(message=Mock(content=content))]
    return mock_response


@pytest.fixture
def openai_embeddings_api_mock():
    """Patch OpenAI embeddings.create and return the mock."""
    with patch("openai.resources.embeddings.Embeddings.create") as mock_create:
        yield mock_create


@pytest.fixture
def openai_embeddings_factory(openai_embeddings_api_mock):
    """Factory for configuring the embeddings API mock per scenario."""

    def _create_mock(  # noqa: ANN202
        scenario="single_success",
        embeddings=None,
        error_message="API Error",
    ):
        openai_embeddings_api_mock.reset_mock()
        openai_embeddings_api_mock.side_effect = None
        openai_embeddings_api_mock.return_value = None

        if scenario == "single_success":
            mock_embedding = embeddings or [0.1, 0.2, 0.3, 0.4, 0.5]
            openai_embeddings_api_mock.return_value = create_mock_openai_response(
                [mock_embedding]
            )
        elif scenario == "batch_success":
            mock_embeddings = embeddings or [
                [0.1, 0.2, 0.3],
                [0.4, 0.5, 0.6],
                [0.7, 0.8, 0.9],
            ]
            openai_embeddings_api_mock.return_value = create_mock_openai_response(
                mock_embeddings
            )
        elif scenario == "multiple_batches":
            openai_embeddings_api_mock.side_effect = [
                create_mock_openai_response([[0.1, 0.2], [0.3, 0.4]]),
                create_mock_openai_response([[0.5, 0.6], [0.7, 0.8]]),
            ]
        elif scenario == "error":
            openai_embeddings_api_mock.side_effect = Exception(error_message)

        return openai_embeddings_api_mock

    return _create_mock


@pytest.fixture
def embedding_service_factory():
    """Factory for creating EmbeddingService instances."""

    def _create_service(api_key=None, model=None):  # noqa: ANN202
        api_key = api_key or TestConstants.TEST_API_KEY
        if model is not None:
            return EmbeddingService(api_key=api_key, model=model)
        return EmbeddingService(api_key=api_key)

    return _create_service


@pytest.fixture
def embedding_service(embedding_service_factory):
    """Default EmbeddingService with test API key."""
    return embedding_service_factory()


@pytest.fixture(scope="session")
def mock_embedding_service():
    """Pre-configured MockEmbeddingService for consistent test embeddings."""
    return MockEmbeddingService()


@pytest.fixture
def tenant_variables():
    """Display variables of the test practice."""
    return TenantVariables(
        display_name="Hausarztpraxis Dr. Muster",
        location="Painten",
        contact_phone=TestConstants.TENANT_PHONE,
        average_response_time="1-2 Werktage",
    )


@pytest.fixture
def db_path(tmp_path):
    """Shared SQLite database file for tenants and knowledge."""
    return tmp_path / "praxischat.db"


@pytest.fixture
def tenant_repository(db_path):
    """Tenant repository on a temporary database."""
    return TenantRepository(db_path)


@pytest.fixture
def tenant(tenant_repository, tenant_variables):
    """The test practice, persisted in the temporary database."""
    return tenant_repository.create_tenant(TestConstants.TENANT_SLUG, tenant_variables)


@pytest.fixture
def other_tenant(tenant_repository):
    """A second practice, used to check tenant isolation."""
    return tenant_repository.create_tenant(
        TestConstants.OTHER_TENANT_SLUG,
        TenantVariables(
            display_name="Zahnarztpraxis Beispiel",
            location="Regensburg",
            contact_phone="0941 99999",
            average_response_time="24 Stunden",
        ),
    )


@pytest.fixture
def sqlite_store(db_path, tmp_path):
    """SQLite knowledge store with numpy vectors under tmp_path."""
    return SQLiteKnowledgeStore(db_path, tmp_path / "vectors")


@pytest.fixture
def faiss_store(db_path, tmp_path):
    """FAISS knowledge store with per-tenant indexes under tmp_path."""
    return FaissKnowledgeStore(db_path=db_path, index_dir=tmp_path / "faiss")


@pytest.fixture(params=["sqlite", "faiss"])
def knowledge_store(request):
    """Run a test against both knowledge store backends."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def chunk_factory(mock_embedding_service):
    """Factory creating embedded knowledge chunks for a tenant."""

    def _create_chunks(
        tenant_id: str,
        texts: list[str],
        source: str = TestConstants.SOURCE_URL,
    ) -> list[KnowledgeChunk]:
        return [
            KnowledgeChunk(
                content=text,
                tenant_id=tenant_id,
                source=source,
                metadata={"chunk_index": i},
                embedding=mock_embedding_service.get_embedding(text),
            )
            for i, text in enumerate(texts)
        ]

    return _create_chunks


@pytest.fixture
def opening_hours_matches():
    """Three retrieved snippets describing the opening hours."""
    return [
        RetrievalMatch(content="Montag: 08:00–12:00, 16:00–18:00", distance=0.12),
        RetrievalMatch(content="Mittwoch: 08:00–12:00", distance=0.18),
        RetrievalMatch(content="Freitag: 08:00–13:00", distance=0.25),
    ]


@pytest.fixture
def mock_tenants(tenant_variables):
    """Autospec tenant repository returning the test practice."""
    tenants = create_autospec(TenantRepository, instance=True)
    tenants.get_tenant_by_slug.return_value = Tenant(
        id="tenant-1",
        slug=TestConstants.TENANT_SLUG,
        name=tenant_variables.display_name,
    )
    tenants.get_tenant_variables.return_value = tenant_variables
    return tenants


@pytest.fixture
def mock_retriever(opening_hours_matches):
    """Autospec retriever returning the opening-hours snippets."""
    retriever = create_autospec(KnowledgeRetriever, instance=True)
    retriever.retrieve.return_value = opening_hours_matches
    return retriever


@pytest.fixture
def mock_generator():
    """Autospec generator returning a fixed answer."""
    generator = create_autospec(ChatGenerator, instance=True)
    generator.generate.return_value = "Die Praxis ist montags ab 08:00 Uhr geöffnet."
    return generator


@pytest.fixture
def pipeline(mock_tenants, mock_retriever, mock_generator):
    """ChatPipeline wired to mocked collaborators."""
    return ChatPipeline(
        tenants=mock_tenants,
        retriever=mock_retriever,
        generator=mock_generator,
    )
