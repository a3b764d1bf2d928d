"""
Portfolio Search Gunicorn Configuration

Usage:
    gunicorn -c web/gunicorn.conf.py "web.app:create_app()"
"""

import os
import multiprocessing

# =============================================================================
# Server Socket
# =============================================================================

bind = os.getenv('GUNICORN_BIND', '0.0.0.0:5001')

backlog = 2048

# =============================================================================
# Workers
# =============================================================================

# Recommendation: (2 x CPU cores) + 1
workers = int(os.getenv('GUNICORN_WORKERS', (multiprocessing.cpu_count() * 2) + 1))

worker_class = os.getenv('GUNICORN_WORKER_CLASS', 'sync')

# Search requests wait on the AI provider, so allow several per worker
threads = int(os.getenv('GUNICORN_THREADS', 4))

max_requests = int(os.getenv('GUNICORN_MAX_REQUESTS', 1000))

max_requests_jitter = int(os.getenv('GUNICORN_MAX_REQUESTS_JITTER', 100))

# =============================================================================
# Timeouts
# =============================================================================

# Must exceed provider timeout plus completion retries
timeout = int(os.getenv('GUNICORN_TIMEOUT', 120))

graceful_timeout = int(os.getenv('GUNICORN_GRACEFUL_TIMEOUT', 30))

keepalive = int(os.getenv('GUNICORN_KEEPALIVE', 5))

# =============================================================================
# Logging
# =============================================================================

proc_name = 'portfolio-search'

accesslog = os.getenv('GUNICORN_ACCESS_LOG', '-')  # '-' = stdout

errorlog = os.getenv('GUNICORN_ERROR_LOG', '-')  # '-' = stderr

loglevel = os.getenv('GUNICORN_LOG_LEVEL', 'info')

access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

capture_output = True

# =============================================================================
# Security
# =============================================================================

limit_request_line = 4094

limit_request_fields = 100

limit_request_field_size = 8190

# =============================================================================
# Hooks
# =============================================================================

def on_starting(server):
    """Called just before the master process is initialized."""
    print(f"[Portfolio] Starting Gunicorn server with {workers} workers")


def post_fork(server, worker):
    """Called just after a worker has been forked."""
    print(f"[Portfolio] Worker {worker.pid} spawned")


def worker_exit(server, worker):
    """Let queued indexing jobs finish before the worker goes away."""
    app = getattr(worker, 'wsgi', None)
    services = getattr(app, 'extensions', {}).get('portfolio') if app else None
    if services is not None:
        services.indexing_queue.shutdown(wait_for_jobs=True)
    print(f"[Portfolio] Worker {worker.pid} exited")


def on_exit(server):
    """Called just before exiting Gunicorn."""
    print("[Portfolio] Gunicorn shutting down")
