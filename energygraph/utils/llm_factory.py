"""
LLM Factory - Embedding and Generation Providers.

Provides a unified interface for LLM and embedding backends (OpenAI, Ollama,
HuggingFace) and wraps them as the two async capabilities the graph core
consumes: ``embed(text)`` and ``generate(prompt)``.
"""

from collections.abc import Awaitable, Callable, Sequence
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from llama_index.core.base.llms.types import ChatMessage, MessageRole
from llama_index.core.embeddings import BaseEmbedding
from llama_index.core.llms import LLM

from app.config import EmbeddingBackend, LLMBackend, get_settings
from energygraph.utils.logger import get_logger

if TYPE_CHECKING:
    from app.config import Settings

logger = get_logger(__name__)

EmbedFn = Callable[[str], Awaitable[Sequence[float]]]
GenerateFn = Callable[[str], Awaitable[str]]

SYSTEM_INSTRUCTIONS = (
    "You are an expert in power systems, renewable integration, and energy policy. "
    "Always answer in plain text paragraphs with no markdown headings or bullet characters."
)


class LLMFactoryError(Exception):
    """Raised when a backend cannot be configured."""

    pass


class ProviderError(Exception):
    """Raised when an embedding or generation call fails."""

    pass


def _create_openai_llm(settings: "Settings") -> LLM:
    """Create OpenAI LLM instance."""
    try:
        from llama_index.llms.openai import OpenAI
    except ImportError as e:
        raise LLMFactoryError(
            "OpenAI LLM not installed. Run: pip install llama-index-llms-openai"
        ) from e

    if not settings.openai_api_key:
        raise LLMFactoryError(
            "OPENAI_API_KEY not set. Required when llm_backend='openai'"
        )

    logger.info(f"Initializing OpenAI LLM with model: {settings.openai_model}")
    return OpenAI(
        model=settings.openai_model,
        api_key=settings.openai_api_key,
    )


def _create_ollama_llm(settings: "Settings") -> LLM:
    """Create Ollama LLM instance for local inference."""
    try:
        from llama_index.llms.ollama import Ollama
    except ImportError as e:
        raise LLMFactoryError(
            "Ollama LLM not installed. Run: pip install llama-index-llms-ollama"
        ) from e

    logger.info(
        f"Initializing Ollama LLM with model: {settings.ollama_model} "
        f"at {settings.ollama_base_url}"
    )
    return Ollama(
        model=settings.ollama_model,
        base_url=settings.ollama_base_url,
        request_timeout=settings.ollama_request_timeout,
    )


def _create_huggingface_embedding(settings: "Settings") -> BaseEmbedding:
    """Create HuggingFace embedding model for local embeddings."""
    try:
        from llama_index.embeddings.huggingface import HuggingFaceEmbedding
    except ImportError as e:
        raise LLMFactoryError(
            "HuggingFace embeddings not installed. "
            "Run: pip install llama-index-embeddings-huggingface"
        ) from e

    logger.info(f"Initializing HuggingFace embeddings with model: {settings.embedding_model}")
    return HuggingFaceEmbedding(model_name=settings.embedding_model)


def _create_openai_embedding(settings: "Settings") -> BaseEmbedding:
    """Create OpenAI embedding model."""
    try:
        from llama_index.embeddings.openai import OpenAIEmbedding
    except ImportError as e:
        raise LLMFactoryError(
            "OpenAI embeddings not installed. "
            "Run: pip install llama-index-embeddings-openai"
        ) from e

    if not settings.openai_api_key:
        raise LLMFactoryError(
            "OPENAI_API_KEY not set. Required when embedding_backend='openai'"
        )

    logger.info(f"Initializing OpenAI embeddings with model: {settings.embedding_model}")
    return OpenAIEmbedding(
        model_name=settings.embedding_model,
        api_key=settings.openai_api_key,
    )


def create_llm(settings: "Settings") -> LLM:
    """
    Create an LLM for the given settings.

    Raises:
        LLMFactoryError: If configuration is invalid or dependencies missing
    """
    match settings.llm_backend:
        case LLMBackend.OPENAI:
            return _create_openai_llm(settings)
        case LLMBackend.OLLAMA:
            return _create_ollama_llm(settings)
        case _:
            raise LLMFactoryError(f"Unsupported LLM backend: {settings.llm_backend}")


def create_embedding_model(settings: "Settings") -> BaseEmbedding:
    """
    Create an embedding model for the given settings.

    Raises:
        LLMFactoryError: If configuration is invalid or dependencies missing
    """
    match settings.embedding_backend:
        case EmbeddingBackend.HUGGINGFACE:
            return _create_huggingface_embedding(settings)
        case EmbeddingBackend.OPENAI:
            return _create_openai_embedding(settings)
        case _:
            raise LLMFactoryError(
                f"Unsupported embedding backend: {settings.embedding_backend}"
            )


@lru_cache
def get_llm() -> LLM:
    """Get the LLM configured by the cached settings."""
    return create_llm(get_settings())


@lru_cache
def get_embedding_model() -> BaseEmbedding:
    """Get the embedding model configured by the cached settings."""
    return create_embedding_model(get_settings())


def normalize_embedding_text(text: str | None) -> str:
    """Collapse newlines and substitute a placeholder for blank input."""
    clean = (text or "").replace("\n", " ").strip()
    return clean or "empty"


class ProviderClient:
    """
    Async embedding/generation capabilities backed by llama-index models.

    Every backend failure surfaces as ``ProviderError`` so callers only have
    one exception type to handle.

    Usage:
        client = ProviderClient(llm=get_llm(), embed_model=get_embedding_model())
        vector = await client.embed("Cascading failures in power grids")
        text = await client.generate(prompt)
    """

    def __init__(
        self,
        llm: Any = None,
        embed_model: Any = None,
        system_prompt: str = SYSTEM_INSTRUCTIONS,
    ) -> None:
        self._llm = llm
        self._embed_model = embed_model
        self.system_prompt = system_prompt

    @property
    def llm(self) -> Any:
        """Get LLM instance."""
        if self._llm is None:
            self._llm = get_llm()
        return self._llm

    @property
    def embed_model(self) -> Any:
        """Get embedding model instance."""
        if self._embed_model is None:
            self._embed_model = get_embedding_model()
        return self._embed_model

    async def embed(self, text: str) -> list[float]:
        """Embed a piece of text."""
        try:
            vector = await self.embed_model.aget_text_embedding(normalize_embedding_text(text))
        except LLMFactoryError as e:
            raise ProviderError(f"Embedding backend unavailable: {e}") from e
        except Exception as e:
            logger.error(f"Embedding call failed: {e}")
            raise ProviderError(f"Embedding error: {e}") from e

        return [float(x) for x in vector]

    async def generate(self, prompt: str) -> str:
        """Generate a plain-text completion for ``prompt``."""
        messages = [
            ChatMessage(role=MessageRole.SYSTEM, content=self.system_prompt),
            ChatMessage(role=MessageRole.USER, content=prompt),
        ]
        try:
            response = await self.llm.achat(messages)
        except LLMFactoryError as e:
            raise ProviderError(f"Generation backend unavailable: {e}") from e
        except Exception as e:
            logger.error(f"Generation call failed: {e}")
            raise ProviderError(f"GPT error: {e}") from e

        return (response.message.content or "").strip()
