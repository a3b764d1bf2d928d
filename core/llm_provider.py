"""
OpenAI Provider Layer for Portfolio Search

Wraps the two external model services the search feature depends on:
- Text embeddings (project and query vectors)
- Chat completions (natural-language analysis of search results)

Provides:
- Standardized request/response models
- Cost estimation per call
- Error classification (rate limit, auth, missing model)
- Rate-limit retry for completions only; embeddings are never retried

Usage:
    from core.llm_provider import OpenAIProvider, LLMRequest

    provider = OpenAIProvider({"api_key": "sk-..."})
    vector = provider.embed("Booking system with calendar sync")
    response = provider.complete(LLMRequest(
        messages=[{"role": "user", "content": "Hello"}],
        system_prompt="Be brief"
    ))
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from datetime import datetime
import time
import logging

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

logger = logging.getLogger(__name__)


# =============================================================================
# Data Models
# =============================================================================

@dataclass
class LLMRequest:
    """
    Standardized chat completion request.

    Attributes:
        messages: Conversation messages (role/content dicts)
        max_tokens: Maximum tokens in response
        temperature: Sampling temperature (0-1)
        system_prompt: Optional system prompt, sent as the first message
    """
    messages: List[Dict[str, str]]
    max_tokens: int = 1024
    temperature: float = 0.3
    system_prompt: Optional[str] = None

    def to_openai_format(self) -> Dict[str, Any]:
        """Convert to OpenAI API format."""
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.extend(self.messages)
        return {
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }


@dataclass
class LLMResponse:
    """
    Standardized completion response.

    Attributes:
        content: The generated text content
        model: Model identifier used
        provider: Provider name
        input_tokens: Number of input tokens
        output_tokens: Number of output tokens
        latency_ms: Request latency in milliseconds
        cost_usd: Estimated cost in USD
        raw_response: Selected fields of the provider response (for debugging)
    """
    content: str
    model: str
    provider: str
    input_tokens: int
    output_tokens: int
    latency_ms: float
    cost_usd: float
    raw_response: Optional[Dict[str, Any]] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def total_tokens(self) -> int:
        """Total tokens used."""
        return self.input_tokens + self.output_tokens


# =============================================================================
# Cost Estimation
# =============================================================================

class CostCalculator:
    """
    Calculates estimated costs for OpenAI API calls.

    Prices per 1M tokens, as published for 2024 models.
    """

    # (input, output)
    PRICING = {
        "gpt-4o": (2.5, 10.0),
        "gpt-4o-mini": (0.15, 0.6),
        "gpt-4-turbo": (10.0, 30.0),
        "gpt-3.5-turbo": (0.5, 1.5),
    }

    # Embeddings are billed on input only
    EMBEDDING_PRICING = {
        "text-embedding-3-small": 0.02,
        "text-embedding-3-large": 0.13,
        "text-embedding-ada-002": 0.10,
    }

    @classmethod
    def estimate(cls, model: str, input_tokens: int, output_tokens: int) -> float:
        """
        Estimate cost for a completion request.

        Args:
            model: Model identifier
            input_tokens: Number of input tokens
            output_tokens: Number of output tokens

        Returns:
            Estimated cost in USD
        """
        if model in cls.PRICING:
            input_price, output_price = cls.PRICING[model]
        else:
            # Longest matching prefix, so "gpt-4o-mini-2024" maps to gpt-4o-mini
            matches = [name for name in cls.PRICING if model.startswith(name)]
            if matches:
                input_price, output_price = cls.PRICING[max(matches, key=len)]
            else:
                # Default conservative estimate
                input_price, output_price = (5.0, 15.0)

        input_cost = (input_tokens / 1_000_000) * input_price
        output_cost = (output_tokens / 1_000_000) * output_price

        return input_cost + output_cost

    @classmethod
    def estimate_embedding(cls, model: str, input_tokens: int) -> float:
        """Estimate cost for an embedding request."""
        price = cls.EMBEDDING_PRICING.get(model, 0.13)
        return (input_tokens / 1_000_000) * price


# =============================================================================
# Provider Exceptions
# =============================================================================

class LLMProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(
        self,
        message: str,
        provider: str,
        retryable: bool = True,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.provider = provider
        self.retryable = retryable
        self.original_error = original_error


class RateLimitError(LLMProviderError):
    """Rate limit exceeded."""

    def __init__(self, message: str, provider: str):
        super().__init__(message, provider, retryable=True)


class AuthenticationError(LLMProviderError):
    """Authentication failed."""

    def __init__(self, message: str, provider: str):
        super().__init__(message, provider, retryable=False)


class ModelNotFoundError(LLMProviderError):
    """Requested model not available."""

    def __init__(self, message: str, provider: str, model: str):
        super().__init__(message, provider, retryable=False)
        self.model = model


def classify_error(error: Exception, provider: str, model: str) -> LLMProviderError:
    """Map a raw SDK/transport exception onto the provider error hierarchy."""
    if isinstance(error, LLMProviderError):
        return error

    error_str = str(error).lower()

    if "rate limit" in error_str or "429" in error_str:
        return RateLimitError(str(error), provider)
    if "authentication" in error_str or "401" in error_str or "api_key" in error_str:
        return AuthenticationError(str(error), provider)
    if "model" in error_str and "not found" in error_str:
        return ModelNotFoundError(str(error), provider, model)
    return LLMProviderError(str(error), provider, original_error=error)


# =============================================================================
# Provider Interfaces
# =============================================================================

class EmbeddingProvider(ABC):
    """Anything that turns text into a fixed-length vector."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """
        Embed a single text.

        Raises:
            LLMProviderError: If the request fails or returns no data
        """
        pass


class CompletionProvider(ABC):
    """Anything that answers a chat completion request."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def complete(self, request: LLMRequest) -> LLMResponse:
        """
        Execute a completion request.

        Raises:
            LLMProviderError: If request fails
        """
        pass


# =============================================================================
# OpenAI Provider
# =============================================================================

class OpenAIProvider(EmbeddingProvider, CompletionProvider):
    """
    OpenAI implementation of both provider interfaces.

    The SDK client is built lazily with a bounded timeout and SDK-level
    retries disabled, so retry behaviour is decided here and nowhere else.
    """

    DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
    DEFAULT_COMPLETION_MODEL = "gpt-4o-mini"

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self._client = None
        self._api_key = config.get("api_key")
        self._base_url = config.get("base_url")  # For Azure or compatible APIs
        self._timeout = config.get("timeout", 30.0)
        self.embedding_model = config.get("embedding_model") or self.DEFAULT_EMBEDDING_MODEL
        self.completion_model = config.get("completion_model") or self.DEFAULT_COMPLETION_MODEL

        self._call_count = 0
        self._error_count = 0
        self._total_cost = 0.0

    @property
    def name(self) -> str:
        return "openai"

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _get_client(self):
        """Lazy initialization of OpenAI client."""
        if self._client is None:
            if not self._api_key:
                raise AuthenticationError("OpenAI API key is not configured", self.name)

            from openai import OpenAI

            kwargs = {
                "api_key": self._api_key,
                "timeout": self._timeout,
                "max_retries": 0,
            }
            if self._base_url:
                kwargs["base_url"] = self._base_url
            self._client = OpenAI(**kwargs)
        return self._client

    def _record_call(self, success: bool, cost_usd: float = 0.0):
        self._call_count += 1
        self._total_cost += cost_usd
        if not success:
            self._error_count += 1

    def embed(self, text: str) -> List[float]:
        """Request an embedding for ``text``. Never retried."""
        client = self._get_client()

        try:
            response = client.embeddings.create(
                model=self.embedding_model,
                input=text,
            )
        except Exception as e:
            self._record_call(success=False)
            raise classify_error(e, self.name, self.embedding_model)

        if not response.data:
            self._record_call(success=False)
            raise LLMProviderError(
                "Embedding response contained no data",
                self.name,
                retryable=False
            )

        usage = getattr(response, "usage", None)
        tokens = getattr(usage, "prompt_tokens", 0) or 0
        self._record_call(
            success=True,
            cost_usd=CostCalculator.estimate_embedding(self.embedding_model, tokens)
        )

        return list(response.data[0].embedding)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((RateLimitError,)),
        reraise=True
    )
    def complete(self, request: LLMRequest) -> LLMResponse:
        """Execute completion request against OpenAI API."""
        client = self._get_client()
        model = self.completion_model

        start_time = time.time()

        try:
            response = client.chat.completions.create(
                model=model,
                **request.to_openai_format()
            )
        except Exception as e:
            self._record_call(success=False)
            raise classify_error(e, self.name, model)

        latency_ms = (time.time() - start_time) * 1000

        choice = response.choices[0]
        content = choice.message.content or ""
        input_tokens = response.usage.prompt_tokens
        output_tokens = response.usage.completion_tokens
        cost = CostCalculator.estimate(model, input_tokens, output_tokens)

        self._record_call(success=True, cost_usd=cost)

        return LLMResponse(
            content=content,
            model=model,
            provider=self.name,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            latency_ms=latency_ms,
            cost_usd=cost,
            raw_response={"id": response.id, "finish_reason": choice.finish_reason}
        )

    def get_stats(self) -> Dict[str, Any]:
        """Call statistics for health/metrics endpoints."""
        return {
            "calls": self._call_count,
            "errors": self._error_count,
            "cost_usd": round(self._total_cost, 6),
        }


def create_provider(config: Dict[str, Any]) -> Optional[OpenAIProvider]:
    """
    Create the OpenAI provider, or None when no API key is configured.

    Args:
        config: Provider configuration (see AppConfig.provider_config)
    """
    if not config.get("api_key"):
        logger.info("No OpenAI API key configured; provider not created")
        return None
    return OpenAIProvider(config)
