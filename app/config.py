"""
Application Configuration.

Pydantic settings for type-safe environment configuration.
Embedding and generation backends are swappable (OpenAI, Ollama, HuggingFace).
"""

from enum import Enum
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMBackend(str, Enum):
    """Supported text-generation backends."""

    OPENAI = "openai"
    OLLAMA = "ollama"


class EmbeddingBackend(str, Enum):
    """Supported embedding backends."""

    HUGGINGFACE = "huggingface"
    OPENAI = "openai"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === LLM Backend Selection ===
    llm_backend: LLMBackend = Field(
        default=LLMBackend.OPENAI,
        description="Generation backend to use: 'openai' or 'ollama'",
    )

    # === OpenAI Configuration ===
    openai_api_key: str = Field(
        default="",
        description="OpenAI API key (required for any 'openai' backend)",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model used for answers and summaries",
    )

    # === Ollama Configuration ===
    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama API base URL",
    )
    ollama_model: str = Field(
        default="llama3",
        description="Ollama model to use",
    )
    ollama_request_timeout: float = Field(
        default=120.0,
        description="Request timeout for Ollama in seconds",
    )

    # === Embedding Configuration ===
    embedding_backend: EmbeddingBackend = Field(
        default=EmbeddingBackend.OPENAI,
        description="Embedding backend: 'huggingface' or 'openai'",
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model to use",
    )

    # === Retrieval / Ingestion ===
    rag_top_k: int = Field(
        default=8,
        ge=1,
        description="Number of graph nodes retrieved as RAG context",
    )
    embed_concurrency: int = Field(
        default=1,
        ge=1,
        description="Maximum in-flight embedding calls during ingestion (1 = sequential)",
    )

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # === API Configuration ===
    api_host: str = Field(
        default="0.0.0.0",
        description="API host to bind to",
    )
    api_port: int = Field(
        default=8000,
        description="API port to bind to",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
