"""
Core services for Portfolio Search

- config: layered application settings
- llm_provider: OpenAI embedding and completion provider
"""

from .config import AppConfig, load_config
from .llm_provider import (
    LLMRequest, LLMResponse, LLMProviderError, OpenAIProvider, create_provider
)

__all__ = [
    'AppConfig',
    'load_config',
    'LLMRequest',
    'LLMResponse',
    'LLMProviderError',
    'OpenAIProvider',
    'create_provider',
]
