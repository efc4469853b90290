"""Shared pytest fixtures."""

import pytest

from fakes import HashEmbedder
from mnemo.tools.memory.vector_store import VectorStore


@pytest.fixture
def embedder():
    return HashEmbedder(dimension=64)


@pytest.fixture
def store(tmp_path):
    store = VectorStore(tmp_path / "memory", name="test-store", dimension=64)
    yield store
    store.close()
