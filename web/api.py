"""
Portfolio REST API

Provides a Flask blueprint for:
- Project CRUD (each write queues the project for search indexing)
- Semantic search with generated analysis
- Search index status

Usage:
    from web.api import api
    app.register_blueprint(api, url_prefix='/api')
"""

from datetime import datetime
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request

from database.repository import DEFAULT_STATUS, PROJECT_FIELDS, public_project
from search.semantic_search import SearchSuccess
from .error_handlers import (
    NotFoundError, ValidationError, validate_query_params, validate_request_json
)

api = Blueprint('api', __name__)

REQUIRED_FIELDS = (
    'project_title', 'client_name', 'project_source', 'category',
    'short_description', 'platform', 'estimated_duration', 'start_date',
)

BUDGET_FIELDS = ('proposed_budget', 'finalized_budget')
DATE_FIELDS = ('start_date', 'end_date')
NAME_LIST_FIELDS = ('features', 'developers')


def _services():
    return current_app.extensions['portfolio']


def _clean_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize project fields from a request body.

    Unknown keys are dropped; blank optional strings become None and a
    blank status falls back to the default, as on create.
    """
    cleaned: Dict[str, Any] = {}

    for key in PROJECT_FIELDS:
        if key not in data:
            continue
        value = data[key]

        if isinstance(value, bool) or not isinstance(value, (str, int, float, type(None))):
            raise ValidationError(f'{key} must be a string or number', field=key)

        if isinstance(value, str):
            value = value.strip() or None

        if key in REQUIRED_FIELDS and value is None:
            raise ValidationError(f'{key} cannot be empty', field=key)

        if key == 'status' and value is None:
            value = DEFAULT_STATUS

        if key in BUDGET_FIELDS and value is not None:
            try:
                value = float(value)
            except (TypeError, ValueError, OverflowError):
                raise ValidationError(f'{key} must be a number', field=key)

        if key in DATE_FIELDS and value is not None:
            try:
                datetime.fromisoformat(str(value).replace('Z', '+00:00'))
            except ValueError:
                raise ValidationError(f'{key} must be an ISO date', field=key)

        cleaned[key] = value

    for key in NAME_LIST_FIELDS:
        if key not in data:
            continue
        names = data[key] or []
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise ValidationError(f'{key} must be a list of names', field=key)
        cleaned[key] = names

    return cleaned


# =============================================================================
# Project Endpoints
# =============================================================================

@api.route('/projects', methods=['GET'])
@validate_query_params(
    page={'type': int, 'default': 1, 'min': 1},
    limit={'type': int, 'default': 25, 'min': 1, 'max': 100}
)
def list_projects():
    """
    List projects, newest first.

    Query params:
        category, platform, status, project_source: exact-match filters
        page: Page number
        limit: Results per page
    """
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', 25, type=int)

    filters = {
        key: request.args.get(key)
        for key in ('category', 'platform', 'status', 'project_source')
        if request.args.get(key)
    }

    repo = _services().repository
    projects = repo.list_projects(limit=limit, offset=(page - 1) * limit, filters=filters)

    return jsonify({
        'projects': [public_project(p) for p in projects],
        'total': repo.count(filters=filters),
        'page': page,
        'limit': limit
    })


@api.route('/projects', methods=['POST'])
@validate_request_json(*REQUIRED_FIELDS)
def create_project():
    """Create a project and queue it for indexing."""
    services = _services()
    payload = _clean_payload(request.get_json())

    project = services.repository.create(payload)
    services.audit.log_project_write('created', project['id'], project['project_title'])

    services.indexing_queue.submit(project['id'])

    return jsonify({'project': public_project(project)}), 201


@api.route('/projects/<project_id>', methods=['GET'])
def get_project(project_id):
    """Get a single project."""
    project = _services().repository.get(project_id)

    if project is None:
        raise NotFoundError('Project not found', project_id=project_id)

    return jsonify({'project': public_project(project)})


@api.route('/projects/<project_id>', methods=['PUT', 'PATCH'])
def update_project(project_id):
    """
    Update a project and queue it for reindexing.

    Only fields present in the body change; 'features'/'developers'
    replace the existing lists. The response never depends on indexing.
    """
    services = _services()
    data = request.get_json(silent=True)

    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')

    project = services.repository.update(project_id, _clean_payload(data))

    if project is None:
        raise NotFoundError('Project not found', project_id=project_id)

    services.audit.log_project_write('updated', project_id, project['project_title'])
    services.indexing_queue.submit(project_id)

    return jsonify({'project': public_project(project)})


@api.route('/projects/<project_id>', methods=['DELETE'])
def delete_project(project_id):
    """Delete a project."""
    services = _services()

    if not services.repository.delete(project_id):
        raise NotFoundError('Project not found', project_id=project_id)

    services.audit.log_project_write('deleted', project_id)

    return jsonify({'deleted': True, 'project_id': project_id})


# =============================================================================
# Search Endpoints
# =============================================================================

@api.route('/search', methods=['POST'])
def semantic_search():
    """
    Rank portfolio projects against a client query or job post.

    Body:
        query: Free-text query

    Returns:
        analysis, results [{project, score}], count, similarity_scores
    """
    services = _services()
    data = request.get_json(silent=True) or {}
    query = data.get('query') if isinstance(data, dict) else None

    outcome = services.searcher.search(query)

    if isinstance(outcome, SearchSuccess):
        services.audit.log_search(query, outcome.count)
        return jsonify(outcome.to_dict())

    services.audit.log_search(query, 0, outcome=outcome.kind)
    return jsonify(outcome.to_dict()), outcome.status_code


@api.route('/index/status', methods=['GET'])
def index_status():
    """How much of the portfolio is searchable."""
    services = _services()
    stats = services.repository.get_index_stats()
    stats['search_enabled'] = services.config.search_enabled

    return jsonify(stats)
