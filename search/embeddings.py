"""
Embeddings for Semantic Project Search

Uses the OpenAI embeddings API (text-embedding-3-small, 1536 dimensions).

Features:
- Single-text embedding through a configured provider
- Cosine similarity with explicit dimension checking
- JSON (de)serialization for the projects.embedding column

Usage:
    from search.embeddings import EmbeddingClient, cosine_similarity

    client = EmbeddingClient(provider)
    vec = client.embed("booking system with calendar")
    score = cosine_similarity(vec, other_vec)
"""

import json
import logging
from typing import List, Sequence

import numpy as np

from core.llm_provider import EmbeddingProvider
from .errors import DimensionMismatch, ProviderError

logger = logging.getLogger(__name__)

Vector = List[float]


class EmbeddingClient:
    """
    Turns text into vectors using the configured embedding provider.

    Every call is a fresh provider request: no caching, no retries.
    """

    def __init__(self, provider: EmbeddingProvider):
        """
        Args:
            provider: Embedding provider (OpenAIProvider in production)
        """
        self.provider = provider

    def embed(self, text: str) -> Vector:
        """
        Generate embedding for a single text.

        Args:
            text: Input text; must contain non-whitespace characters

        Returns:
            The provider's vector, unmodified

        Raises:
            ValueError: If text is empty
            ProviderError: If the provider call fails or returns nothing
        """
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")

        try:
            vector = self.provider.embed(text)
        except Exception as e:
            logger.error(f"Error generating embedding: {e}")
            raise ProviderError(f"Embedding request failed: {e}", provider=self.provider.name) from e

        if not vector:
            raise ProviderError("Embedding provider returned no data", provider=self.provider.name)

        return vector


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """
    Compute cosine similarity between two vectors.

    Args:
        vec1: First vector
        vec2: Second vector (same length)

    Returns:
        Cosine similarity score (-1 to 1); 0.0 if either vector has zero norm

    Raises:
        DimensionMismatch: If the vectors differ in length
    """
    if len(vec1) != len(vec2):
        raise DimensionMismatch(
            f"Vectors must have the same length ({len(vec1)} != {len(vec2)})",
            expected=len(vec1),
            actual=len(vec2)
        )

    a = np.asarray(vec1, dtype=float)
    b = np.asarray(vec2, dtype=float)

    norm1 = np.linalg.norm(a)
    norm2 = np.linalg.norm(b)

    if norm1 == 0 or norm2 == 0:
        return 0.0

    return float(np.dot(a, b) / (norm1 * norm2))


def serialize_embedding(vector: Sequence[float]) -> str:
    """Encode a vector for the projects.embedding TEXT column."""
    return json.dumps([float(x) for x in vector])


def deserialize_embedding(data: str) -> Vector:
    """
    Decode a stored embedding.

    Raises:
        ValueError: If the data is not a JSON array of finite-size numbers
    """
    vector = json.loads(data)

    if not isinstance(vector, list) or not vector:
        raise ValueError("Stored embedding is not a non-empty array")
    if not all(isinstance(x, (int, float)) and not isinstance(x, bool) for x in vector):
        raise ValueError("Stored embedding contains non-numeric values")

    try:
        return [float(x) for x in vector]
    except OverflowError as e:
        raise ValueError(f"Stored embedding value out of range: {e}") from e
