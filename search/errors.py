"""
Search Error Taxonomy

Each error carries the HTTP status and machine-readable type the web layer
reports, in the same shape as web.error_handlers.PortfolioError.

Strict failures (surfaced to the caller):
- InvalidQuery, ProviderNotConfigured, QueryEmbeddingFailed

Absorbed failures (logged, never surfaced):
- DimensionMismatch (record skipped during ranking)
- CompletionProviderFailed (fallback analysis used)
- ProviderError inside the indexer
"""


class SearchError(Exception):
    """Base exception for search and indexing errors."""

    status_code = 500
    error_type = 'search_error'
    message = 'Search operation failed'

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


class InvalidQuery(SearchError):
    """Empty or whitespace-only query."""
    status_code = 400
    error_type = 'invalid_query'
    message = 'Query is required'


class ProviderNotConfigured(SearchError):
    """No API key for the embedding provider."""
    status_code = 503
    error_type = 'provider_not_configured'
    message = 'OpenAI API key is not configured. Set OPENAI_API_KEY to enable search.'


class ProviderError(SearchError):
    """The embedding or completion service call failed."""
    status_code = 502
    error_type = 'provider_error'
    message = 'The AI provider request failed'


class QueryEmbeddingFailed(SearchError):
    """The query could not be embedded; nothing can be ranked."""
    status_code = 502
    error_type = 'query_embedding_failed'
    message = 'Failed to process query. Please try again.'


class DimensionMismatch(SearchError, ValueError):
    """Two vectors of different length were compared."""
    error_type = 'dimension_mismatch'
    message = 'Vectors must have the same length'


class CompletionProviderFailed(SearchError):
    """The analysis text could not be generated."""
    status_code = 502
    error_type = 'completion_failed'
    message = 'Unable to generate analysis'
