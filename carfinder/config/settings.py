"""Configuration management for carfinder."""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _sanitize_secret(value: str) -> str:
    """Remove BOM characters and whitespace from secrets.

    Secrets mounted from a file or pasted into an env var may carry a BOM,
    which breaks HTTP headers.
    """
    if not value:
        return value
    return value.lstrip("\ufeff").strip()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Google AI API
    google_api_key: str = ""

    # Qdrant settings
    qdrant_url: str = ""
    qdrant_api_key: str = ""
    qdrant_collection: str = "vehicle_chunks"

    @field_validator("google_api_key", "qdrant_api_key", "qdrant_url", mode="after")
    @classmethod
    def sanitize_secrets(cls, value: str) -> str:
        """Remove BOM and whitespace from secret values."""
        return _sanitize_secret(value)

    # Model settings
    embedding_model: str = "gemini-embedding-001"
    embedding_dimension: int = 3072
    embedding_batch_size: int = 50
    llm_model: str = "gemini-2.0-flash"

    # Catalog files
    data_dir: Path = Path("./data")
    vehicle_files: list[str] = ["vehicles-part1.json", "vehicles-part2.json"]
    reviews_file: str = "reviews.json"
    sales_lookup_file: str = "sales-lookup.json"

    # Pipeline settings
    similarity_threshold: float = 0.38
    max_chunk_rows: int = 1000
    analysis_candidate_limit: int = 30
    max_ranked_vehicles: int = 10
    final_result_limit: int = 5
    enforce_brand_filter: bool = True

    # Timeouts (seconds)
    embedding_timeout_seconds: float = 30.0
    vector_store_timeout_seconds: float = 30.0
    llm_timeout_seconds: float = 60.0

    # Retries
    ranking_max_retries: int = 0
    conversation_max_retries: int = 3

    # Outbound rate limits (requests per minute)
    embedding_requests_per_minute: int = 100
    llm_requests_per_minute: int = 15

    # API
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def vehicle_paths(self) -> list[Path]:
        return [self.data_dir / name for name in self.vehicle_files]

    @property
    def reviews_path(self) -> Path:
        return self.data_dir / self.reviews_file

    @property
    def sales_lookup_path(self) -> Path:
        return self.data_dir / self.sales_lookup_file


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
