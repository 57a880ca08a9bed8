"""Application configuration using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings are validated at startup. Invalid values cause the
    application to fail fast with clear error messages.
    """

    # API Settings
    api_title: str = Field(default="Hybrid RAG Document QA", description="API title")
    api_version: str = Field(default="1.0.0", description="API version")

    # OpenAI Settings (dense embeddings + chat completions)
    openai_api_key: SecretStr | None = Field(default=None, description="OpenAI API key")
    openai_embedding_model: str = Field(
        default="text-embedding-3-large",
        description="OpenAI model for dense text embeddings",
    )
    openai_chat_model: str = Field(
        default="gpt-4",
        description="OpenAI model for answer generation",
    )
    openai_timeout: float = Field(default=30.0, gt=0.0, description="Request timeout in seconds")
    openai_max_retries: int = Field(default=3, ge=1, le=10, description="Retry attempts")

    # Pinecone Settings (sparse embeddings + vector index)
    pinecone_api_key: SecretStr | None = Field(default=None, description="Pinecone API key")
    pinecone_index_name: str = Field(
        default="law",
        min_length=1,
        description="Name of the hybrid (dotproduct) vector index",
    )
    sparse_embedding_model: str = Field(
        default="pinecone-sparse-english-v0",
        description="Hosted sparse embedding model",
    )

    # Vector Database Settings
    vector_store_provider: Literal["pinecone", "chroma"] = Field(
        default="pinecone",
        description="Vector store backend (pinecone for hosted, chroma for local)",
    )
    chroma_path: str = Field(
        default="./data/vectordb",
        description="Path to the local ChromaDB storage",
    )

    # Chunking Settings
    chunk_size: int = Field(
        default=1000,
        ge=100,
        le=8000,
        description="Maximum chunk size in model tokens",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        le=2000,
        description="Token overlap between consecutive chunks",
    )
    tokenizer_encoding: str = Field(
        default="cl100k_base",
        description="tiktoken encoding used to measure chunk sizes",
    )

    # Embedding Settings
    embedding_batch_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Number of chunks embedded per provider call",
    )
    embedding_batch_delay: float = Field(
        default=0.1,
        ge=0.0,
        description="Pause between embedding batches in seconds",
    )

    # Search Settings
    similarity_threshold: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Jaccard similarity above which chunks are duplicates",
    )

    # Generation Settings
    generation_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    generation_max_tokens: int = Field(default=1000, ge=1, le=8000)

    # Error Reporting
    expose_provider_errors: bool = Field(
        default=False,
        description="Include provider error text in wrapped vector store errors",
    )

    # Upload Settings
    max_file_size: int = Field(
        default=50 * 1024 * 1024,  # 50MB
        ge=1024,
        description="Maximum upload file size in bytes",
    )
    upload_dir: Path = Field(
        default=Path("./data/uploads"),
        description="Directory for uploaded files awaiting processing",
    )

    # Logging Settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got '{v}'")
        return v_upper

    @field_validator("openai_api_key")
    @classmethod
    def validate_openai_api_key(cls, v: SecretStr | None) -> SecretStr | None:
        """Ensure API key is not empty and has reasonable format if provided."""
        if v is None:
            return v
        secret = v.get_secret_value()
        if secret.strip() == "":
            raise ValueError("openai_api_key cannot be empty string")
        if secret == "your-openai-api-key-here":
            raise ValueError(
                "openai_api_key must be set to a valid API key, not the placeholder value"
            )
        if not secret.startswith("sk-"):
            raise ValueError("openai_api_key should start with 'sk-' (OpenAI API key format)")
        return v

    @field_validator("pinecone_api_key")
    @classmethod
    def validate_pinecone_api_key(cls, v: SecretStr | None) -> SecretStr | None:
        """Ensure the Pinecone key is not blank if provided."""
        if v is not None and v.get_secret_value().strip() == "":
            raise ValueError("pinecone_api_key cannot be empty string")
        return v

    @field_validator("upload_dir", mode="before")
    @classmethod
    def validate_upload_dir(cls, v) -> Path:
        """Convert string to Path."""
        if isinstance(v, str):
            return Path(v)
        return v

    def model_post_init(self, __context) -> None:
        """Additional validation after model initialization."""
        # The chunk window must advance on every step
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than "
                f"chunk_size ({self.chunk_size})"
            )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Returns:
        Settings: The application settings

    Raises:
        ValueError: If settings validation fails
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing).

    Returns:
        Settings: The reloaded application settings
    """
    global _settings
    _settings = Settings()
    return _settings
