"""Configuration settings for the customer fit scoring core."""

from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Paths
    base_dir: Path = Path(__file__).parent.parent
    data_dir: Path = base_dir / "data"
    db_path: Path = data_dir / "fitscore.db"

    # API Keys
    anthropic_api_key: str = ""

    # HTTP Client Settings
    connect_timeout: float = 10.0
    read_timeout: float = 60.0

    # LLM Settings
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 3000
    llm_temperature: float = 0.3
    llm_request_timeout: float = 120.0  # bounds the whole model phase, retries included
    llm_retry_attempts: int = 3
    llm_retry_delay: float = 2.0

    # Cache Settings
    criteria_cache_ttl_seconds: float = 300.0
    historical_cache_ttl_seconds: float = 900.0

    # Historical corpus
    max_documents_per_source: int = 20
    top_industries_count: int = 5

    # Database URL
    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.db_path}"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

# Ensure data directory exists
settings.data_dir.mkdir(parents=True, exist_ok=True)
