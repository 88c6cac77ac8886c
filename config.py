"""
Application Configuration
Settings loaded from environment variables (and an optional .env file).
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Marketplace API settings."""

    model_config = SettingsConfigDict(env_file=".env", populate_by_name=True, extra="ignore")

    # API Info
    app_name: str = "Artcraft Marketplace API"
    version: str = "0.1.0"

    # Server settings
    host: str = Field(default="0.0.0.0", alias="API_HOST")
    port: int = Field(default=8000, alias="PORT")
    log_level: str = Field(default="INFO", alias="API_LOG_LEVEL")
    cors_origins: List[str] = Field(default=["*"], alias="API_CORS_ORIGINS")

    # Database
    mongo_url: str = Field(default="mongodb://localhost:27017", alias="MONGO_URL")
    database_name: str = Field(default="artcraft", alias="DATABASE_NAME")
    # Applies to server selection, connect and socket reads
    mongo_timeout_ms: int = Field(default=5000, alias="MONGO_TIMEOUT_MS")

    # Credentials
    secret_key: str = Field(default="change-me-in-production", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    token_expire_minutes: int = Field(default=60 * 24, alias="TOKEN_EXPIRE_MINUTES")
    seller_signup_key: str = Field(default="", alias="SELLER_SIGNUP_KEY")
    bcrypt_rounds: int = Field(default=12, alias="BCRYPT_ROUNDS")

    # Storefront
    top_sellers_limit: int = Field(default=50, alias="TOP_SELLERS_LIMIT")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
