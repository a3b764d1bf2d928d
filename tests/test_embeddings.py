"""
Tests for the embedding client and vector helpers.
"""

import json
import math

import numpy as np
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from search.embeddings import (
    EmbeddingClient, cosine_similarity, serialize_embedding, deserialize_embedding
)
from search.errors import DimensionMismatch, ProviderError


class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_scale_invariant(self):
        assert cosine_similarity([1.0, 1.0], [5.0, 5.0]) == pytest.approx(1.0)

    def test_known_angle(self, vector_at):
        assert cosine_similarity([1.0, 0.0], vector_at(0.9)) == pytest.approx(0.9)

    def test_zero_vector_scores_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
        assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0

    def test_dimension_mismatch(self):
        with pytest.raises(DimensionMismatch):
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])

    def test_dimension_mismatch_is_value_error(self):
        with pytest.raises(ValueError):
            cosine_similarity([1.0], [1.0, 2.0])

    def test_returns_python_float(self):
        assert type(cosine_similarity([1.0, 2.0], [2.0, 1.0])) is float

    @pytest.mark.parametrize("a,b", [
        ([1.0, 2.0, 3.0], [4.0, -5.0, 6.0]),
        ([0.3, -0.7], [-0.2, 0.9]),
        ([1e-6, 2e-6, 3e-6, 4e-6], [10.0, -20.0, 30.0, -40.0]),
        ([0.0, 0.0], [1.0, 1.0]),
    ])
    def test_symmetric(self, a, b):
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    @pytest.mark.parametrize("seed", range(10))
    def test_bounded(self, seed):
        rng = np.random.default_rng(seed)
        size = int(rng.integers(1, 64))
        a = rng.normal(scale=100.0, size=size).tolist()
        b = rng.normal(scale=0.01, size=size).tolist()

        score = cosine_similarity(a, b)

        assert -1.0 - 1e-9 <= score <= 1.0 + 1e-9


class TestEmbeddingSerialization:
    """Tests for the stored embedding format."""

    def test_serialize_is_json_array(self):
        data = serialize_embedding([0.1, 2, -3.5])

        assert json.loads(data) == [0.1, 2.0, -3.5]

    def test_deserialize(self):
        assert deserialize_embedding("[0.5, 1, -2]") == [0.5, 1.0, -2.0]

    def test_deserialize_preserves_values(self):
        vector = [math.pi, -0.000123, 42.0]

        assert deserialize_embedding(serialize_embedding(vector)) == vector

    @pytest.mark.parametrize("data", [
        "not json",
        "{}",
        "[]",
        '["a", "b"]',
        "[true, false]",
        "42",
    ])
    def test_deserialize_rejects_invalid(self, data):
        with pytest.raises(ValueError):
            deserialize_embedding(data)

    def test_deserialize_rejects_out_of_range_integer(self):
        with pytest.raises(ValueError):
            deserialize_embedding("[1" + "0" * 400 + ", 1]")


class TestEmbeddingClient:
    """Tests for EmbeddingClient."""

    def test_returns_provider_vector(self, fake_embeddings):
        provider = fake_embeddings(vectors={"booking": [0.1, 0.2, 0.3]})
        client = EmbeddingClient(provider)

        assert client.embed("a booking app") == [0.1, 0.2, 0.3]
        assert provider.calls == ["a booking app"]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_empty_text_rejected_without_call(self, embedding_provider, text):
        client = EmbeddingClient(embedding_provider)

        with pytest.raises(ValueError):
            client.embed(text)

        assert embedding_provider.calls == []

    def test_provider_failure_wrapped(self, fake_embeddings):
        client = EmbeddingClient(fake_embeddings(fail=True))

        with pytest.raises(ProviderError) as exc_info:
            client.embed("anything")

        assert exc_info.value.status_code == 502
        assert exc_info.value.details["provider"] == "fake-embeddings"

    def test_empty_vector_is_error(self, fake_embeddings):
        client = EmbeddingClient(fake_embeddings(default=[]))

        with pytest.raises(ProviderError):
            client.embed("anything")

    def test_no_retry_on_failure(self, fake_embeddings):
        provider = fake_embeddings(fail=True)
        client = EmbeddingClient(provider)

        with pytest.raises(ProviderError):
            client.embed("anything")

        assert len(provider.calls) == 1
