#!/usr/bin/env python3
"""
Portfolio Search Web Server

Features:
- Project CRUD API with background search indexing
- Semantic search with AI analysis
- Health and readiness endpoints
- Structured request logging

Usage:
    # Development
    python -m web.app

    # Production
    gunicorn -c web/gunicorn.conf.py "web.app:create_app()"
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from flask import Flask
from flask_cors import CORS

from core.config import AppConfig, load_config
from core.llm_provider import (
    CompletionProvider, EmbeddingProvider, OpenAIProvider, create_provider
)
from database.repository import ProjectRepository
from search.embeddings import EmbeddingClient
from search.indexer import IndexingQueue, ProjectIndexer
from search.semantic_search import SearchOrchestrator
from .api import api
from .error_handlers import setup_error_handlers
from .health import health_bp
from .logging_config import AuditLogger, setup_logging, setup_request_logging

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the request handlers need, built once per app."""
    config: AppConfig
    repository: ProjectRepository
    provider: Optional[OpenAIProvider]
    embedding_client: Optional[EmbeddingClient]
    indexer: ProjectIndexer
    indexing_queue: IndexingQueue
    searcher: SearchOrchestrator
    audit: AuditLogger


def build_services(
    config: AppConfig,
    embedding_provider: Optional[EmbeddingProvider] = None,
    completion_provider: Optional[CompletionProvider] = None
) -> Services:
    """
    Wire repository, providers, indexer and searcher from config.

    Providers default to a single OpenAIProvider when search is enabled;
    they can be passed in explicitly (tests, alternative backends).
    """
    repository = ProjectRepository(config.db_path)

    provider = None
    if config.search_enabled and (embedding_provider is None or completion_provider is None):
        provider = create_provider(config.provider_config())
        embedding_provider = embedding_provider or provider
        completion_provider = completion_provider or provider

    embedding_client = None
    if config.search_enabled and embedding_provider is not None:
        embedding_client = EmbeddingClient(embedding_provider)

    indexer = ProjectIndexer(repository, embedding_client, config)

    return Services(
        config=config,
        repository=repository,
        provider=provider,
        embedding_client=embedding_client,
        indexer=indexer,
        indexing_queue=IndexingQueue(indexer, repository),
        searcher=SearchOrchestrator(repository, embedding_client, completion_provider, config),
        audit=AuditLogger(),
    )


def create_app(
    config: Optional[AppConfig] = None,
    embedding_provider: Optional[EmbeddingProvider] = None,
    completion_provider: Optional[CompletionProvider] = None
) -> Flask:
    """
    Application factory.

    Args:
        config: Settings (loaded from .env/config.yaml/environment if omitted)
        embedding_provider: Override the embedding backend
        completion_provider: Override the completion backend
    """
    config = config or load_config()

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = 2 * 1024 * 1024  # JSON bodies only
    app.json.sort_keys = False

    CORS(app)

    setup_logging(app, level=config.log_level, json_format=config.json_logs)
    setup_request_logging(app)
    setup_error_handlers(app)

    app.extensions['portfolio'] = build_services(
        config,
        embedding_provider=embedding_provider,
        completion_provider=completion_provider
    )

    app.register_blueprint(health_bp)
    app.register_blueprint(api, url_prefix='/api')

    logger.info(
        'Portfolio search app ready',
        extra={'db_path': config.db_path, 'search_enabled': config.search_enabled}
    )

    return app


if __name__ == '__main__':
    app = create_app()
    port = int(os.getenv('PORT', 5001))
    debug = os.getenv('FLASK_ENV', 'development') == 'development'
    app.run(host='0.0.0.0', port=port, debug=debug)
