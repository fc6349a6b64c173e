"""
Shared test configuration and fixtures for StackRAG tests.
"""

import os
import pytest
import numpy as np
from typing import List
import sys

# Add project directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from stackrag import (
    Chunk,
    ChunkMetadata,
    EmbeddingGateway,
    MockProvider,
    RAGService,
    Settings,
    VectorStore,
)

TEST_DIMENSION = 64


def make_chunk(
    id: str,
    embedding: List[float],
    content: str = None,
    source: str = "uploaded",
    title: str = "Doc",
    section: str = None,
    namespace: str = None,
    url: str = None,
) -> Chunk:
    return Chunk(
        id=id,
        content=content or f"Content of {id}",
        embedding=embedding,
        metadata=ChunkMetadata(
            source=source,
            title=title,
            url=url,
            section=section,
            namespace=namespace,
        ),
    )


@pytest.fixture
def chunk_factory():
    return make_chunk


@pytest.fixture
def settings() -> Settings:
    """Offline settings that ignore any local .env file."""
    return Settings(
        _env_file=None,
        mock_mode=True,
        embedding_dimension=TEST_DIMENSION,
        openai_api_key=None,
    )


@pytest.fixture
def mock_gateway() -> EmbeddingGateway:
    return EmbeddingGateway(MockProvider(dimension=TEST_DIMENSION))


@pytest.fixture
def store() -> VectorStore:
    return VectorStore(name="test-store")


@pytest.fixture
def service(settings, store, mock_gateway) -> RAGService:
    return RAGService(settings, store=store, gateway=mock_gateway)


@pytest.fixture
def sample_chunks() -> List[Chunk]:
    """Create sample test chunks."""
    return [
        make_chunk(
            "chunk1",
            [0.1, 0.2, 0.3, 0.4],
            content="First test chunk about machine learning",
            source="openai-docs",
            title="Tech",
        ),
        make_chunk(
            "chunk2",
            [0.5, 0.6, 0.7, 0.8],
            content="Second chunk about nature and forests",
            source="openai-docs",
            title="Nature",
            namespace="acme",
        ),
        make_chunk(
            "chunk3",
            [0.2, 0.4, 0.6, 0.8],
            content="Third chunk discussing red flowers",
            source="openai-docs",
            title="Nature",
            section="Flowers",
            namespace="acme",
        ),
        make_chunk(
            "chunk4",
            [0.9, 0.1, 0.3, 0.7],
            content="Fourth chunk about blue ocean waves",
            source="openai-docs",
            title="Ocean",
            namespace="globex",
        ),
    ]


@pytest.fixture
def populated_store(store, sample_chunks) -> VectorStore:
    store.add_many(sample_chunks)
    return store


@pytest.fixture
def random_vectors():
    """Generate random test vectors."""

    def _generate(num_vectors: int = 100, dim: int = 128) -> List[List[float]]:
        np.random.seed(42)  # For reproducible tests
        return np.random.randn(num_vectors, dim).astype(np.float32).tolist()

    return _generate


@pytest.fixture
def large_dataset(random_vectors):
    """Create a large dataset for performance testing."""
    vectors = random_vectors(1000, 128)
    return [
        make_chunk(
            f"perf_chunk_{i}",
            vector,
            content=f"Performance test chunk {i}",
            source="openai-docs",
            namespace=f"tenant-{i % 10}",
        )
        for i, vector in enumerate(vectors)
    ]


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line(
        "markers", "integration: Integration tests for component interaction"
    )
    config.addinivalue_line("markers", "performance: Performance and benchmark tests")
    config.addinivalue_line("markers", "slow: Tests that take more than a few seconds")
    config.addinivalue_line("markers", "api: Tests that exercise the HTTP API")


# Pytest collection configuration
def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on location."""
    for item in items:
        # Add markers based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "performance" in str(item.fspath):
            item.add_marker(pytest.mark.performance)
            item.add_marker(pytest.mark.slow)

        # Mark API tests
        if "api" in str(item.fspath):
            item.add_marker(pytest.mark.api)
