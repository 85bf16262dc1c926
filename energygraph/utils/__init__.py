"""
Utility modules for the Energy Graph service.

Provides embedding/generation providers and logging utilities.
"""

from energygraph.utils.llm_factory import (
    LLMFactoryError,
    ProviderClient,
    ProviderError,
    get_embedding_model,
    get_llm,
)
from energygraph.utils.logger import (
    LogContext,
    get_logger,
    setup_logging,
)

__all__ = [
    # Providers
    "get_llm",
    "get_embedding_model",
    "ProviderClient",
    "ProviderError",
    "LLMFactoryError",
    # Logging
    "get_logger",
    "setup_logging",
    "LogContext",
]
