#!/usr/bin/env python3
"""
Portfolio Search Reindex Script

Regenerates searchable text and embeddings for every project in the
portfolio database. Run it after importing projects in bulk, after changing
the embedding model, or to repair projects whose background indexing failed.

Usage:
    # Reindex everything
    python reindex_projects.py

    # Only projects that have no embedding yet
    python reindex_projects.py --only-missing

    # Custom database and pacing
    python reindex_projects.py --db data/portfolio.db --delay 0.5
"""

import argparse
import logging
import sys

from core.config import load_config
from core.llm_provider import create_provider
from database.repository import ProjectRepository
from search.embeddings import EmbeddingClient
from search.indexer import ProjectIndexer
from web.logging_config import AuditLogger


def print_progress(position, total, project, ok):
    icon = "✓" if ok else "✗"
    title = project.get('project_title') or project.get('id')
    print(f"  {icon} [{position}/{total}] {title}")


def run_reindex(config, only_missing=False, delay=None, provider=None):
    """
    Reindex projects and print a summary.

    Args:
        config: Resolved AppConfig
        only_missing: Skip projects that already have an embedding
        delay: Seconds between provider calls (defaults to config.reindex_delay)
        provider: Embedding provider (built from config if omitted)

    Returns:
        IndexingStats for the run
    """
    repo = ProjectRepository(config.db_path)
    provider = provider or create_provider(config.provider_config())
    indexer = ProjectIndexer(repo, EmbeddingClient(provider), config)

    projects = repo.get_all()
    if only_missing:
        projects = [p for p in projects if not p.get('embedding')]

    print(f"Reindexing {len(projects)} projects from {config.db_path}")

    stats = indexer.reindex_all(projects, delay=delay, progress=print_progress)

    print()
    print(f"  Indexed: {stats.indexed}")
    print(f"  Failed:  {stats.failed}")
    print(f"  Time:    {stats.duration_seconds:.1f}s")

    AuditLogger().log_reindex(
        stats.total, stats.indexed, stats.failed,
        duration_seconds=round(stats.duration_seconds, 2)
    )

    return stats


def main(argv=None):
    parser = argparse.ArgumentParser(description="Regenerate portfolio search embeddings")
    parser.add_argument('--db', help='Path to the portfolio database')
    parser.add_argument('--delay', type=float, default=None,
                        help='Seconds to wait between provider calls (default: 0.2)')
    parser.add_argument('--only-missing', action='store_true',
                        help='Only index projects without an embedding')

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format='%(levelname)s %(name)s: %(message)s')

    overrides = {'db_path': args.db} if args.db else {}
    config = load_config(**overrides)

    if not config.search_enabled:
        print("OPENAI_API_KEY is not set; cannot generate embeddings.")
        sys.exit(1)

    stats = run_reindex(config, only_missing=args.only_missing, delay=args.delay)

    sys.exit(0 if stats.failed == 0 else 1)


if __name__ == '__main__':
    main()
