"""
Portfolio Health Check System

Health and readiness endpoints with:
- Database connectivity checks
- Search index coverage
- Provider configuration
- Resource usage monitoring

Endpoints:
- /health - liveness probe (is the process alive?)
- /ready - readiness probe (can it serve traffic?)
- /health/detailed - Full diagnostic report
- /metrics - Key numbers for monitoring
"""

from flask import Blueprint, current_app, jsonify
import sys
import time
import psutil

health_bp = Blueprint('health', __name__)

# Track startup time
STARTUP_TIME = time.time()


def _services():
    return current_app.extensions['portfolio']


def check_database():
    """Check that the project database answers queries."""
    try:
        stats = _services().repository.get_index_stats()
        return {'status': 'ok', 'projects': stats['total']}
    except Exception as e:
        return {'status': 'error', 'error': str(e)}


def check_search_index():
    """How many projects carry an embedding."""
    try:
        stats = _services().repository.get_index_stats()
        coverage = stats['indexed'] / stats['total'] if stats['total'] else 1.0
        return {
            'status': 'ok' if stats['missing'] == 0 else 'partial',
            'indexed': stats['indexed'],
            'missing': stats['missing'],
            'coverage': round(coverage, 3)
        }
    except Exception as e:
        return {'status': 'error', 'error': str(e)}


def check_provider():
    """Check whether the AI provider is configured."""
    services = _services()
    if not services.config.search_enabled:
        return {'status': 'not_configured', 'message': 'OPENAI_API_KEY not set'}

    result = {
        'status': 'ok',
        'embedding_model': services.config.embedding_model,
        'completion_model': services.config.completion_model,
    }
    if services.provider is not None:
        result['usage'] = services.provider.get_stats()
    return result


def get_system_resources():
    """Get current system resource usage."""
    try:
        process = psutil.Process()

        return {
            'memory': {
                'rss_mb': round(process.memory_info().rss / 1024 / 1024, 2),
                'percent': round(process.memory_percent(), 2)
            },
            'cpu': {
                'percent': round(process.cpu_percent(interval=0.1), 2),
                'num_threads': process.num_threads()
            },
            'system': {
                'memory_available_mb': round(psutil.virtual_memory().available / 1024 / 1024, 2),
                'disk_free_gb': round(psutil.disk_usage('/').free / 1024 / 1024 / 1024, 2)
            }
        }
    except Exception as e:
        return {'status': 'error', 'error': str(e)}


# =============================================================================
# Health Endpoints
# =============================================================================

@health_bp.route('/health')
def liveness():
    """Returns 200 if the process is alive and can respond."""
    return jsonify({
        'status': 'ok',
        'uptime_seconds': int(time.time() - STARTUP_TIME)
    })


@health_bp.route('/ready')
def readiness():
    """
    Returns 200 if the service can accept traffic.

    Only the database is critical; search degrades on its own.
    """
    db_check = check_database()
    is_ready = db_check.get('status') == 'ok'

    response = {
        'status': 'ready' if is_ready else 'not_ready',
        'checks': {
            'database': db_check.get('status'),
            'search': 'enabled' if _services().config.search_enabled else 'disabled'
        }
    }

    return jsonify(response), 200 if is_ready else 503


@health_bp.route('/health/detailed')
def detailed_health():
    """Comprehensive status of all components."""
    return jsonify({
        'status': 'ok',
        'uptime_seconds': int(time.time() - STARTUP_TIME),
        'python_version': sys.version,
        'checks': {
            'database': check_database(),
            'search_index': check_search_index(),
            'provider': check_provider()
        },
        'resources': get_system_resources()
    })


@health_bp.route('/metrics')
def metrics():
    """Key metrics in a flat format for monitoring systems."""
    index = check_search_index()
    resources = get_system_resources()

    return jsonify({
        'portfolio_uptime_seconds': int(time.time() - STARTUP_TIME),
        'portfolio_projects_indexed': index.get('indexed', 0),
        'portfolio_projects_unindexed': index.get('missing', 0),
        'process_memory_mb': resources.get('memory', {}).get('rss_mb', 0),
        'process_cpu_percent': resources.get('cpu', {}).get('percent', 0)
    })
