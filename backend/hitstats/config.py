"""Application configuration using Pydantic settings."""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite:///./hitstats.db"
    create_schema: bool = True  # Create the stats table on startup (no migrations yet)

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 7070
    environment: str = "development"
    log_level: Optional[str] = None  # Overrides the environment default, e.g. "WARNING"

    # Security
    api_token: Optional[str] = None  # Shared secret for /api/*, disabled when unset
    api_key_salt: str = ""

    # CORS
    allowed_origins: str = "http://localhost:3000"

    # Ingestion
    max_batch_events: int = 10000

    # Reporting
    top_limit: int = 10

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
