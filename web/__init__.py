"""
Web layer for Portfolio Search

Flask application factory, REST API, health endpoints, error handling and
structured logging.

Usage:
    from web import create_app

    app = create_app()
    app.run(port=5001)
"""

from .app import create_app, build_services, Services

__all__ = [
    'create_app',
    'build_services',
    'Services',
]
