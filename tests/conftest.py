"""Shared fixtures for the portfolio search tests.

Provides a throwaway SQLite repository, sample projects and in-memory
stand-ins for the embedding and completion providers so no test touches
the network.
"""

import math
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import AppConfig
from core.llm_provider import (
    CompletionProvider, EmbeddingProvider, LLMProviderError, LLMResponse
)
from database.repository import ProjectRepository


# =============================================================================
# Fake Providers
# =============================================================================

class FakeEmbeddingProvider(EmbeddingProvider):
    """
    Returns the vector of the first keyword found in the text.

    Texts with no matching keyword get ``default``. Any text containing a
    keyword from ``fail_on`` raises, as does every call when ``fail`` is set.
    """

    def __init__(self, vectors=None, default=None, fail=False, fail_on=()):
        self.vectors = vectors or {}
        self.default = default if default is not None else [0.0, 1.0]
        self.fail = fail
        self.fail_on = set(fail_on)
        self.calls = []

    @property
    def name(self):
        return "fake-embeddings"

    def embed(self, text):
        self.calls.append(text)

        if self.fail or any(word in text for word in self.fail_on):
            raise LLMProviderError("embedding service unavailable", self.name)

        for keyword, vector in self.vectors.items():
            if keyword in text:
                return list(vector)
        return list(self.default)


class FakeCompletionProvider(CompletionProvider):
    """Records requests and returns canned analysis text."""

    def __init__(self, content="## Analysis\nGreat fit.", fail=False):
        self.content = content
        self.fail = fail
        self.requests = []

    @property
    def name(self):
        return "fake-completions"

    def complete(self, request):
        self.requests.append(request)

        if self.fail:
            raise LLMProviderError("completion service unavailable", self.name)

        return LLMResponse(
            content=self.content,
            model="fake-model",
            provider=self.name,
            input_tokens=10,
            output_tokens=20,
            latency_ms=1.0,
            cost_usd=0.0
        )


def unit_vector(cos_with_x):
    """2-D unit vector whose cosine with [1, 0] is ``cos_with_x``."""
    return [cos_with_x, math.sqrt(1 - cos_with_x ** 2)]


# =============================================================================
# Sample Data
# =============================================================================

def make_project(title="Booking Platform", **overrides):
    project = {
        "project_title": title,
        "client_name": "Acme Ltd",
        "project_source": "Upwork",
        "project_url": "https://example.com/projects/booking",
        "category": "Web Development",
        "short_description": f"{title} built for a small business",
        "platform": "Web",
        "estimated_duration": "6 weeks",
        "start_date": "2024-03-01",
        "tagline": "Appointments made simple",
        "proposed_budget": 4500,
        "features": ["Calendar sync", "Payments"],
        "developers": ["Alice", "Bob"],
    }
    project.update(overrides)
    return project


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "portfolio.db")


@pytest.fixture
def repo(db_path):
    return ProjectRepository(db_path)


@pytest.fixture
def config(db_path):
    """Search-enabled settings with no pacing between reindex calls."""
    return AppConfig(db_path=db_path, openai_api_key="test-key", reindex_delay=0)


@pytest.fixture
def disabled_config(db_path):
    return AppConfig(db_path=db_path, openai_api_key=None, reindex_delay=0)


@pytest.fixture
def project_factory():
    return make_project


@pytest.fixture
def embedding_provider():
    return FakeEmbeddingProvider()


@pytest.fixture
def completion_provider():
    return FakeCompletionProvider()


@pytest.fixture
def fake_embeddings():
    """Factory for embedding fakes with custom keyword vectors."""
    return FakeEmbeddingProvider


@pytest.fixture
def fake_completions():
    return FakeCompletionProvider


@pytest.fixture
def vector_at():
    return unit_vector
