"""
Portfolio Error Handling

Provides:
- Custom exception classes
- Flask error handlers (including search errors)
- Request validation decorators

Usage:
    from web.error_handlers import setup_error_handlers, NotFoundError

    # In the app factory
    setup_error_handlers(app)

    # In routes
    if not project:
        raise NotFoundError("Project not found", project_id=project_id)
"""

from flask import jsonify, request, current_app
from functools import wraps
from werkzeug.exceptions import HTTPException
import traceback
import logging

from search.errors import SearchError

logger = logging.getLogger('portfolio.errors')

HTTP_ERROR_TYPES = {
    400: 'bad_request',
    404: 'not_found',
    405: 'method_not_allowed',
    413: 'payload_too_large',
    415: 'unsupported_media_type',
}


# =============================================================================
# Custom Exceptions
# =============================================================================

class PortfolioError(Exception):
    """Base exception for API errors."""

    status_code = 500
    error_type = 'internal_error'
    message = 'An unexpected error occurred'

    def __init__(self, message=None, **kwargs):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = kwargs

    def to_dict(self):
        return {
            'error': self.error_type,
            'message': self.message,
            'details': self.details
        }


class NotFoundError(PortfolioError):
    """Resource not found."""
    status_code = 404
    error_type = 'not_found'
    message = 'Resource not found'


class ValidationError(PortfolioError):
    """Invalid input data."""
    status_code = 400
    error_type = 'validation_error'
    message = 'Invalid input'


# =============================================================================
# Error Handlers
# =============================================================================

def setup_error_handlers(app):
    """Register error handlers with Flask app."""

    @app.errorhandler(PortfolioError)
    @app.errorhandler(SearchError)
    def handle_portfolio_error(error):
        """Handle custom API and search errors."""
        logger.warning(
            f'{error.error_type}: {error.message}',
            extra={
                'error_type': error.error_type,
                'details': error.details,
                'path': request.path
            }
        )

        response = jsonify(error.to_dict())
        response.status_code = error.status_code
        return response

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        """Handle routing/protocol errors (404, 405, 413, ...) as JSON."""
        if error.code == 404:
            message = f'Resource not found: {request.path}'
        elif error.code == 405:
            message = f'Method {request.method} not allowed for {request.path}'
        else:
            message = error.description or error.name

        return jsonify({
            'error': HTTP_ERROR_TYPES.get(error.code, 'http_error'),
            'message': message
        }), error.code

    @app.errorhandler(500)
    def handle_internal_error(error):
        """Handle internal server errors."""
        logger.exception(
            f'Internal server error: {str(error)}',
            extra={'path': request.path}
        )

        # Don't expose internal error details in production
        if current_app.debug:
            message = str(error)
        else:
            message = 'An internal error occurred'

        return jsonify({
            'error': 'internal_error',
            'message': message
        }), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        """Handle any unexpected errors."""
        logger.exception(
            f'Unexpected error: {type(error).__name__}: {str(error)}',
            extra={
                'error_type': type(error).__name__,
                'path': request.path
            }
        )

        if current_app.debug:
            return jsonify({
                'error': 'unexpected_error',
                'message': str(error),
                'type': type(error).__name__,
                'traceback': traceback.format_exc()
            }), 500
        else:
            return jsonify({
                'error': 'unexpected_error',
                'message': 'An unexpected error occurred'
            }), 500


# =============================================================================
# Request Validation
# =============================================================================

def validate_request_json(*required_fields):
    """
    Decorator to validate required JSON fields in request.

    Fields must be present and not blank.

    Usage:
        @validate_request_json('project_title', 'client_name')
        def create_project():
            data = request.get_json()
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            data = request.get_json(silent=True)

            if not isinstance(data, dict):
                raise ValidationError('Request body must be a JSON object')

            missing = [
                f for f in required_fields
                if data.get(f) is None or (isinstance(data.get(f), str) and not data[f].strip())
            ]
            if missing:
                raise ValidationError(
                    f'Missing required fields: {", ".join(missing)}',
                    missing_fields=missing
                )

            return func(*args, **kwargs)
        return wrapper
    return decorator


def validate_query_params(**param_specs):
    """
    Decorator to validate query parameters.

    Usage:
        @validate_query_params(
            page={'type': int, 'default': 1, 'min': 1},
            limit={'type': int, 'default': 25, 'max': 100}
        )
        def list_projects():
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            for param, spec in param_specs.items():
                value = request.args.get(param, spec.get('default'))

                if value is None and spec.get('required'):
                    raise ValidationError(f'Missing required parameter: {param}')

                if value is None:
                    continue

                try:
                    value = spec['type'](value)
                except (ValueError, TypeError):
                    raise ValidationError(
                        f'{param} must be of type {spec["type"].__name__}',
                        param=param,
                        expected_type=spec['type'].__name__
                    )

                if 'min' in spec and value < spec['min']:
                    raise ValidationError(
                        f'{param} must be at least {spec["min"]}',
                        param=param,
                        min_value=spec['min']
                    )
                if 'max' in spec and value > spec['max']:
                    raise ValidationError(
                        f'{param} must be at most {spec["max"]}',
                        param=param,
                        max_value=spec['max']
                    )

            return func(*args, **kwargs)
        return wrapper
    return decorator
