from .base import LLMConfig, LLMMessage, LLMProvider, LLMResponse
from .errors import ProviderError, ProviderRateLimitError, ProviderTimeoutError
from .providers import default_config, get_provider
from .retry import RetryPolicy, call_with_retries

__all__ = [
    "LLMConfig",
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "ProviderError",
    "ProviderRateLimitError",
    "ProviderTimeoutError",
    "default_config",
    "get_provider",
    "RetryPolicy",
    "call_with_retries",
]
