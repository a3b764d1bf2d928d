"""
Portfolio Structured Logging Configuration

Provides:
- JSON structured logging for production
- Colorized console output for development
- Request logging middleware
- Audit logging for searches, project writes and reindex runs

Usage:
    from web.logging_config import setup_logging, get_logger

    # At app startup
    setup_logging(app, level='INFO', json_format=True)

    # In modules
    logger = get_logger(__name__)
    logger.info('Message', extra={'project_id': project_id})
"""

import logging
import json
import sys
import traceback
from datetime import datetime, timezone
from flask import request, g
import time
import uuid

# Attributes every LogRecord has; anything else came in through ``extra``
_RESERVED = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
    'levelno', 'lineno', 'module', 'msecs', 'pathname', 'process',
    'processName', 'relativeCreated', 'stack_info', 'exc_info', 'exc_text',
    'thread', 'threadName', 'taskName', 'message',
}


# =============================================================================
# Custom Formatters
# =============================================================================

class JSONFormatter(logging.Formatter):
    """JSON structured log formatter for production."""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith('_'):
                log_entry[key] = value

        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': traceback.format_exception(*record.exc_info)
            }

        return json.dumps(log_entry, default=str)


class ColoredFormatter(logging.Formatter):
    """Colorized console formatter for development."""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.COLORS.get(record.levelname, '')
        reset = self.RESET

        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')

        parts = [
            f'{color}[{timestamp}]{reset}',
            f'{color}{record.levelname:8}{reset}',
            f'{record.name}:',
            record.getMessage()
        ]

        if hasattr(record, 'request_id'):
            parts.insert(2, f'[{record.request_id[:8]}]')

        if getattr(record, 'project_id', None):
            parts.append(f'<project {record.project_id[:8]}>')

        if hasattr(record, 'duration_ms'):
            parts.append(f'({record.duration_ms}ms)')

        message = ' '.join(parts)

        if record.exc_info:
            message += '\n' + ''.join(traceback.format_exception(*record.exc_info))

        return message


# =============================================================================
# Logger Setup
# =============================================================================

def setup_logging(app, level='INFO', json_format=False):
    """
    Configure logging for the Flask application.

    Args:
        app: Flask application instance
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format (production) instead of colored output
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(ColoredFormatter())

    root_logger.addHandler(console_handler)

    # Flask's logger propagates to root
    app.logger.handlers = []
    app.logger.setLevel(log_level)

    app.logger.info('Logging configured', extra={
        'format': 'json' if json_format else 'colored',
        'level': level
    })

    return root_logger


def get_logger(name):
    """Get a logger with the given name."""
    return logging.getLogger(name)


# =============================================================================
# Request Logging Middleware
# =============================================================================

def setup_request_logging(app):
    """
    Set up request logging middleware.

    Logs:
    - Request start with method, path, and request ID
    - Request end with status code and duration
    """
    logger = get_logger('portfolio.requests')

    @app.before_request
    def before_request():
        """Log request start and set up context."""
        g.request_id = request.headers.get('X-Request-ID', str(uuid.uuid4()))
        g.start_time = time.time()

        logger.info(
            f'{request.method} {request.path}',
            extra={
                'request_id': g.request_id,
                'method': request.method,
                'path': request.path,
                'remote_addr': request.remote_addr,
                'user_agent': request.user_agent.string[:100] if request.user_agent else None
            }
        )

    @app.after_request
    def after_request(response):
        """Log request completion."""
        duration_ms = int((time.time() - g.get('start_time', time.time())) * 1000)
        request_id = g.get('request_id', 'unknown')

        if response.status_code >= 500:
            log_method = logger.error
        elif response.status_code >= 400:
            log_method = logger.warning
        else:
            log_method = logger.info

        log_method(
            f'{request.method} {request.path} -> {response.status_code}',
            extra={
                'request_id': request_id,
                'method': request.method,
                'path': request.path,
                'status_code': response.status_code,
                'duration_ms': duration_ms,
                'content_length': response.content_length
            }
        )

        response.headers['X-Request-ID'] = request_id

        return response


# =============================================================================
# Audit Logging
# =============================================================================

class AuditLogger:
    """
    Audit logger for tracking important operations.

    Usage:
        audit = AuditLogger()
        audit.log_search(query='booking app', results_count=4)
    """

    def __init__(self):
        self.logger = get_logger('portfolio.audit')

    def log_search(self, query, results_count, outcome='success'):
        """Log a search operation."""
        self.logger.info(
            'Search performed',
            extra={
                'audit_type': 'search',
                'query': query[:100] if isinstance(query, str) else None,
                'results_count': results_count,
                'outcome': outcome
            }
        )

    def log_project_write(self, action, project_id, title=None):
        """Log a project create/update/delete."""
        self.logger.info(
            f'Project {action}',
            extra={
                'audit_type': 'project',
                'action': action,
                'project_id': project_id,
                'title': title
            }
        )

    def log_reindex(self, total, indexed, failed, duration_seconds=None):
        """Log a batch reindex run."""
        self.logger.info(
            'Reindex completed',
            extra={
                'audit_type': 'reindex',
                'total_projects': total,
                'indexed_projects': indexed,
                'failed_projects': failed,
                'duration_seconds': duration_seconds
            }
        )
