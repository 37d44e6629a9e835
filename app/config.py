"""Application configuration loaded from the environment."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the inventory chat service.

    Every field is read from the environment variable of the same name in upper
    case (``DATABASE_URL``, ``MAX_RETRIES`` ...), or from a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = "sqlite+aiosqlite:///./inventory.db"

    qdrant_url: str = "http://localhost:6333"
    qdrant_collection: str = "items"

    anthropic_api_key: str | None = None
    llm_model: str = "claude-3-5-sonnet-20241022"
    llm_temperature: float = 0.0

    openai_api_key: str | None = None
    embedding_model: str = "text-embedding-3-small"
    embedding_dimension: int = 1536

    # Empty path keeps conversation checkpoints in memory only
    checkpoint_db_path: str = "checkpoints.sqlite"

    max_message_tokens: int = 1000
    max_retries: int = 3
    recursion_limit: int = 15

    port: int = 8000
    log_level: str = "INFO"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the process-wide settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
