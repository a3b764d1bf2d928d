"""
Search System for Portfolio Search

Provides:
- OpenAI embeddings for projects and queries
- Cosine similarity ranking with threshold and top-K
- Best-effort project indexing (inline or queued)
- LLM-written analysis of the best matches

Usage:
    from search import EmbeddingClient, ProjectIndexer, SearchOrchestrator

    client = EmbeddingClient(provider)
    indexer = ProjectIndexer(repo, client, config)
    indexer.reindex(project)

    searcher = SearchOrchestrator(repo, client, provider, config)
    outcome = searcher.search("mobile app for restaurant bookings")
"""

from .embeddings import (
    EmbeddingClient, cosine_similarity, serialize_embedding, deserialize_embedding
)
from .errors import (
    SearchError, InvalidQuery, ProviderNotConfigured, ProviderError,
    QueryEmbeddingFailed, DimensionMismatch, CompletionProviderFailed
)
from .indexer import IndexingQueue, IndexingStats, ProjectIndexer
from .searchable_text import create_searchable_text
from .semantic_search import (
    SearchFailure, SearchOrchestrator, SearchResult, SearchSuccess
)

__all__ = [
    'EmbeddingClient',
    'cosine_similarity',
    'serialize_embedding',
    'deserialize_embedding',
    'create_searchable_text',
    'ProjectIndexer',
    'IndexingQueue',
    'IndexingStats',
    'SearchOrchestrator',
    'SearchResult',
    'SearchSuccess',
    'SearchFailure',
    'SearchError',
    'InvalidQuery',
    'ProviderNotConfigured',
    'ProviderError',
    'QueryEmbeddingFailed',
    'DimensionMismatch',
    'CompletionProviderFailed',
]
