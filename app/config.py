"""
Application configuration from environment variables.
"""
from functools import lru_cache
from urllib.parse import quote_plus

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Portfolio Projects API"
    debug: bool = False

    # Database
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "portfolio"
    db_username: str = "postgres"
    db_password: str = ""

    # Project persistence: "database" (PostgreSQL) or "file" (single JSON document)
    project_store: str = "database"
    projects_file: str = "data/projects.json"

    # AWS
    aws_region: str = "us-east-1"
    s3_project_images_bucket: str = "project-images"
    s3_content_images_bucket: str = "content-images"
    # Optional CDN/public host; defaults to the virtual-hosted S3 URL
    s3_public_base_url: str = ""

    # Cognito
    cognito_user_pool_id: str = ""
    cognito_client_id: str = ""

    # Static admin bearer token (prototype login). Empty disables it.
    admin_token: str = ""

    # Rate limiting (fixed window, per client IP)
    project_create_limit: int = 10
    project_create_window_s: int = 60 * 60
    contact_limit: int = 5
    contact_window_s: int = 60 * 60
    rate_limit_sweep_interval_s: float = 60.0

    # Project validation
    max_tags: int = 5
    max_tag_length: int = 100  # projects.tags is ARRAY(String(100))
    max_custom_buttons: int = 2

    # Contact form relay (Web3Forms)
    web3forms_url: str = "https://api.web3forms.com/submit"
    web3forms_access_key: str = ""

    # CORS - allowed origins for cross-origin requests
    cors_origins: list[str] = [
        "http://localhost:3000",  # Next.js dev server
        "http://localhost:5173",  # Vite dev server
    ]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("project_store")
    @classmethod
    def validate_project_store(cls, v: str) -> str:
        """Only the two known persistence strategies are accepted."""
        v = v.strip().lower()
        if v not in ("database", "file"):
            raise ValueError(f"project_store must be 'database' or 'file', got {v!r}")
        return v

    @property
    def database_url(self) -> str:
        """Construct async database URL for SQLAlchemy."""
        # URL-encode the password to handle special characters
        encoded_password = quote_plus(self.db_password)
        return (
            f"postgresql+asyncpg://{self.db_username}:{encoded_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def database_url_sync(self) -> str:
        """Construct sync database URL for Alembic migrations."""
        encoded_password = quote_plus(self.db_password)
        return (
            f"postgresql+psycopg://{self.db_username}:{encoded_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
