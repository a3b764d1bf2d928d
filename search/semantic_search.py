"""
Semantic Project Search

Ranks stored projects against a natural-language client query and adds a
generated analysis of the best matches.

Pipeline:
1. Validate the query and provider configuration
2. Embed the query (hard failure if this fails)
3. Score every indexed project with cosine similarity
4. Keep scores above the threshold, best first, top K
5. Generate an analysis (falls back to a fixed text on failure)

The outcome is a SearchSuccess or a SearchFailure, never an ad hoc dict:
"no matches" is a success with an advisory, "could not search" is a failure.

Usage:
    from search.semantic_search import SearchOrchestrator, SearchSuccess

    searcher = SearchOrchestrator(repo, embedding_client, provider, config)
    outcome = searcher.search("booking system with calendar")

    if isinstance(outcome, SearchSuccess):
        for result in outcome.results:
            print(f"{result.score:.2f} - {result.project['project_title']}")
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from core.config import AppConfig
from core.llm_provider import CompletionProvider
from database.repository import ProjectRepository, public_project
from .analysis import FALLBACK_ANALYSIS, generate_analysis
from .embeddings import EmbeddingClient, Vector, cosine_similarity, deserialize_embedding
from .errors import (
    CompletionProviderFailed,
    InvalidQuery,
    ProviderError,
    ProviderNotConfigured,
    QueryEmbeddingFailed,
    SearchError,
)

logger = logging.getLogger(__name__)

NOT_INDEXED_MESSAGE = (
    'No projects have been indexed for search yet. '
    'Please run the embedding generation script first.'
)

NO_MATCH_MESSAGE = (
    'No matching projects found for your query. '
    'Try using different keywords or a more general description.'
)

SimilarityFn = Callable[[Sequence[float], Sequence[float]], float]


@dataclass
class SearchResult:
    """A project (public fields only) with its similarity to the query."""
    project: Dict[str, Any]
    score: float

    def to_dict(self) -> dict:
        return {
            'project': self.project,
            'score': self.score,
        }


@dataclass
class SearchSuccess:
    """Search ran; results may be empty (see ``analysis`` for why)."""
    analysis: str
    results: List[SearchResult] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict:
        return {
            'success': True,
            'analysis': self.analysis,
            'results': [r.to_dict() for r in self.results],
            'count': self.count,
            'similarity_scores': {r.project['id']: r.score for r in self.results},
        }


@dataclass
class SearchFailure:
    """Search could not be performed."""
    kind: str
    message: str
    status_code: int = 500

    @classmethod
    def from_error(cls, error: SearchError) -> 'SearchFailure':
        return cls(kind=error.error_type, message=error.message, status_code=error.status_code)

    def to_dict(self) -> dict:
        return {
            'success': False,
            'error': self.kind,
            'message': self.message,
        }


SearchOutcome = Union[SearchSuccess, SearchFailure]


class SearchOrchestrator:
    """
    Stateless semantic search over indexed projects.

    Read-only: projects are loaded once per call and never modified.
    """

    def __init__(
        self,
        repository: ProjectRepository,
        embedding_client: Optional[EmbeddingClient],
        completion_provider: Optional[CompletionProvider],
        config: AppConfig,
        similarity: SimilarityFn = cosine_similarity
    ):
        """
        Args:
            repository: Source of indexed projects
            embedding_client: None when search is not configured
            completion_provider: None disables analysis (fallback text is used)
            config: Threshold, top-K and completion settings
            similarity: Scoring function for (query_vec, project_vec)
        """
        self.repository = repository
        self.embedding_client = embedding_client
        self.completion_provider = completion_provider
        self.config = config
        self.similarity = similarity

    def search(self, query: str) -> SearchOutcome:
        """Run a search, converting strict failures into SearchFailure."""
        try:
            return self._search(query)
        except (InvalidQuery, ProviderNotConfigured, QueryEmbeddingFailed) as e:
            logger.warning(f"Search failed ({e.error_type}): {e.message}")
            return SearchFailure.from_error(e)

    def _search(self, query: str) -> SearchSuccess:
        if not isinstance(query, str) or not query.strip():
            raise InvalidQuery()

        if not self.config.search_enabled or self.embedding_client is None:
            raise ProviderNotConfigured()

        query_vec = self._embed_query(query)

        projects = self.repository.load_projects_with_embedding()
        if not projects:
            return SearchSuccess(analysis=NOT_INDEXED_MESSAGE)

        results = self.rank(query_vec, projects)
        if not results:
            return SearchSuccess(analysis=NO_MATCH_MESSAGE)

        analysis = self._analyze(query, results)

        logger.info(
            f"Search returned {len(results)} projects",
            extra={'results_count': len(results), 'candidates': len(projects)}
        )
        return SearchSuccess(analysis=analysis, results=results)

    def _embed_query(self, query: str) -> Vector:
        try:
            return self.embedding_client.embed(query)
        except (ProviderError, ValueError) as e:
            logger.error(f"Error generating query embedding: {e}")
            raise QueryEmbeddingFailed() from e

    def rank(self, query_vec: Vector, projects: List[Dict[str, Any]]) -> List[SearchResult]:
        """
        Score, filter, sort and truncate.

        Projects whose stored embedding cannot be decoded or compared are
        skipped. Equal scores keep the order the projects were loaded in.
        """
        threshold = self.config.similarity_threshold
        scored = []

        for project in projects:
            if not project.get('embedding'):
                continue

            try:
                project_vec = deserialize_embedding(project['embedding'])
                score = self.similarity(query_vec, project_vec)
            except (ValueError, TypeError) as e:
                logger.error(f"Error processing embedding for project {project.get('id')}: {e}")
                continue

            if score > threshold:
                scored.append(SearchResult(project=public_project(project), score=score))

        scored.sort(key=lambda r: r.score, reverse=True)

        return scored[:self.config.top_k]

    def _analyze(self, query: str, results: List[SearchResult]) -> str:
        try:
            return generate_analysis(
                self.completion_provider,
                query,
                results,
                temperature=self.config.completion_temperature,
                max_tokens=self.config.completion_max_tokens,
            )
        except CompletionProviderFailed as e:
            logger.error(f"Falling back to default analysis: {e.message}")
            return FALLBACK_ANALYSIS
