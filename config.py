"""
Configuration module for the session chat backend.

Loads environment variables using pydantic-settings for type-safe configuration.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SYSTEM_PROMPT = (
    "You are a friendly assistant that recommends books, films and other "
    "things worth a reader's time. Keep answers short and concrete."
)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # LLM Configuration
    llm_api_key: str = Field(
        ...,
        description="API key for the OpenAI-compatible completion provider"
    )
    llm_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        description="Base URL of the OpenAI-compatible completion endpoint"
    )
    llm_model: str = Field(
        default="gemini-2.5-flash",
        description="Model name passed to the completion endpoint"
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for every completion call"
    )
    completion_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound on a single completion call"
    )
    completion_max_retries: int = Field(
        default=2,
        ge=0,
        description="Retries performed by the OpenAI client on transient errors"
    )
    tracing_disabled: bool = Field(
        default=True,
        description="Disable Agents SDK tracing export"
    )

    # Conversation Configuration
    system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT,
        description="Persona instruction sent as the leading system message"
    )
    max_history_turns: Optional[int] = Field(
        default=20,
        ge=2,
        description="Most recent turns replayed to the model (empty, 0 or 'none' = all)"
    )

    # Embeddings Configuration
    cohere_api_key: Optional[str] = Field(
        default=None,
        description="Cohere API key for query embeddings"
    )
    cohere_embed_model: str = Field(
        default="embed-v4.0",
        description="Cohere embedding model"
    )

    # Vector Database Configuration
    qdrant_url: Optional[str] = Field(
        default=None,
        description="Qdrant instance URL (retrieval disabled when unset)"
    )
    qdrant_api_key: Optional[str] = Field(
        default=None,
        description="Qdrant API key for authentication"
    )
    qdrant_collection_name: str = Field(
        default="knowledge_base_v1",
        description="Qdrant collection holding passage embeddings"
    )
    qdrant_timeout: float = Field(
        default=10.0,
        description="Qdrant client timeout in seconds"
    )
    retrieval_limit: int = Field(
        default=5,
        ge=1,
        description="Candidates fetched from Qdrant per query"
    )
    retrieval_score_threshold: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Minimum similarity score for a passage to be used"
    )

    # Rate Limiting Configuration
    rate_limit_per_minute: int = Field(
        default=20,
        description="Maximum requests per minute per client"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("max_history_turns", mode="before")
    @classmethod
    def _unlimited_history(cls, v):
        if v is None or str(v).strip().lower() in ("", "0", "none"):
            return None
        return v

    @property
    def retrieval_enabled(self) -> bool:
        """Retrieval needs both the vector store and the embedding provider."""
        return bool(self.qdrant_url and self.cohere_api_key)


# Global settings instance
settings = Settings()
