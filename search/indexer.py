"""
Project Indexer

Keeps each project's searchable text and embedding in step with its fields.

Indexing is best-effort: a project write has already committed by the time
it is indexed, so indexing failures are logged and swallowed and the project
stays usable with a stale or missing index until the next successful run.

Components:
- ProjectIndexer: reindex one project, or a batch with rate limiting
- IndexingQueue: fire-and-forget reindexing on a background worker

Usage:
    indexer = ProjectIndexer(repo, embedding_client, config)
    queue = IndexingQueue(indexer, repo)

    project = repo.update(project_id, changes)
    queue.submit(project['id'])
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from core.config import AppConfig
from database.repository import ProjectRepository
from .embeddings import EmbeddingClient, serialize_embedding
from .searchable_text import create_searchable_text

logger = logging.getLogger(__name__)


@dataclass
class IndexingStats:
    """Outcome of a batch reindex."""
    total: int = 0
    indexed: int = 0
    failed: int = 0
    skipped: int = 0
    failed_ids: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        return {
            'total': self.total,
            'indexed': self.indexed,
            'failed': self.failed,
            'skipped': self.skipped,
            'failed_ids': self.failed_ids,
            'duration_seconds': round(self.duration_seconds, 2),
        }


class ProjectIndexer:
    """Computes and stores searchable text + embedding for projects."""

    def __init__(
        self,
        repository: ProjectRepository,
        embedding_client: Optional[EmbeddingClient],
        config: AppConfig
    ):
        """
        Args:
            repository: Where search fields are persisted
            embedding_client: None when search is disabled
            config: Application settings (search_enabled, reindex_delay)
        """
        self.repository = repository
        self.embedding_client = embedding_client
        self.config = config

    @property
    def enabled(self) -> bool:
        return self.config.search_enabled and self.embedding_client is not None

    def reindex(self, project: Dict[str, Any]) -> bool:
        """
        Refresh one project's search fields. Never raises.

        Returns:
            True if new search fields were stored
        """
        if not self.enabled:
            return False

        project_id = project.get('id')

        try:
            searchable_text = create_searchable_text(project)
            vector = self.embedding_client.embed(searchable_text)
            stored = self.repository.update_search_fields(
                project_id,
                searchable_text,
                serialize_embedding(vector)
            )
        except Exception as e:
            logger.error(
                f"Error generating embedding for project {project_id}: {e}",
                extra={'project_id': project_id}
            )
            return False

        if not stored:
            logger.warning(f"Project {project_id} disappeared before it could be indexed")
            return False

        logger.debug(f"Indexed project {project_id}")
        return True

    def reindex_all(
        self,
        projects: Iterable[Dict[str, Any]],
        delay: Optional[float] = None,
        progress=None
    ) -> IndexingStats:
        """
        Reindex many projects, continuing past individual failures.

        Args:
            projects: Projects to index
            delay: Seconds between provider calls (defaults to config.reindex_delay)
            progress: Optional callback(position, total, project, ok)

        Returns:
            IndexingStats summary
        """
        projects = list(projects)
        delay = self.config.reindex_delay if delay is None else delay
        stats = IndexingStats(total=len(projects))
        start = time.time()

        if not self.enabled:
            stats.skipped = len(projects)
            logger.warning("Search is not configured; skipping reindex")
            return stats

        for i, project in enumerate(projects):
            ok = self.reindex(project)

            if ok:
                stats.indexed += 1
            else:
                stats.failed += 1
                stats.failed_ids.append(project.get('id'))

            if progress:
                progress(i + 1, len(projects), project, ok)

            # Rate limiting between provider calls
            if delay and i < len(projects) - 1:
                time.sleep(delay)

        stats.duration_seconds = time.time() - start

        logger.info(
            f"Reindex finished: {stats.indexed}/{stats.total} indexed, {stats.failed} failed",
            extra=stats.to_dict()
        )
        return stats


class IndexingQueue:
    """
    Runs reindexing after project writes without blocking the request.

    A single worker keeps provider calls sequential. The project is re-read
    when the job runs so the newest committed fields are indexed.
    """

    def __init__(self, indexer: ProjectIndexer, repository: ProjectRepository, max_workers: int = 1):
        self.indexer = indexer
        self.repository = repository
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='indexer')
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()

    def submit(self, project_id: str) -> Optional[Future]:
        """Queue a project for reindexing. Returns None when search is disabled."""
        if not self.indexer.enabled:
            return None

        future = self._executor.submit(self._run, project_id)

        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)

        return future

    def _run(self, project_id: str) -> bool:
        try:
            project = self.repository.get(project_id)
        except Exception as e:
            logger.error(f"Could not load project {project_id} for indexing: {e}")
            return False

        if project is None:
            return False

        return self.indexer.reindex(project)

    def _discard(self, future: Future):
        with self._lock:
            self._pending.discard(future)

    def drain(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for queued jobs to finish.

        Returns:
            True if nothing is left pending
        """
        with self._lock:
            pending = list(self._pending)

        if pending:
            wait(pending, timeout=timeout)

        with self._lock:
            return not self._pending

    def shutdown(self, wait_for_jobs: bool = True):
        self._executor.shutdown(wait=wait_for_jobs)
