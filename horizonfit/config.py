# horizonfit/config.py - settings read from the environment and .env
from dotenv import load_dotenv

load_dotenv()
from typing import Any, Dict, List, Optional, Union
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator

DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]


class Settings(BaseSettings):
    """HorizonFit service settings. Every field can be set through its upper-case env variable."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="allow",
        case_sensitive=False
    )

    app_name: str = "HorizonFit Normal Plan"
    app_version: str = "1.0.0"
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    # Storage
    database_url: str = Field(default="sqlite:///./horizonfit.db", alias="DATABASE_URL")
    database_pool_size: int = Field(default=10, alias="DATABASE_POOL_SIZE")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    # Tokens
    secret_key: str = Field(..., alias="SECRET_KEY")
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Web clients (patient app, doctor dashboard)
    cors_origins: Union[str, List[str]] = Field(default=DEFAULT_CORS_ORIGINS, alias="CORS_ORIGINS")

    log_json: bool = Field(default=False, alias="LOG_JSON")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Startup seeding
    super_admin_username: str = Field(default="admin", alias="SUPER_ADMIN_USERNAME")
    super_admin_email: str = Field(default="admin@example.com", alias="SUPER_ADMIN_EMAIL")
    super_admin_password: Optional[str] = Field(default=None, alias="SUPER_ADMIN_PASSWORD")
    seed_default_tasks: bool = Field(default=True, alias="SEED_DEFAULT_TASKS")

    @field_validator("cors_origins", mode='before')
    @classmethod
    def split_cors_origins(cls, v):
        if isinstance(v, str):
            origins = [origin.strip() for origin in v.split(',') if origin.strip()]
            return origins or DEFAULT_CORS_ORIGINS
        return v

    @field_validator("database_url")
    @classmethod
    def check_database_url(cls, v):
        if not v.startswith(("postgresql://", "postgresql+psycopg2://", "sqlite://")):
            raise ValueError("DATABASE_URL must be a PostgreSQL or SQLite URL")
        return v

    @field_validator("secret_key")
    @classmethod
    def check_secret_key(cls, v):
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for sqlalchemy.create_engine."""
        if self.is_sqlite:
            # Sessions cross into the threadpool FastAPI runs sync routes in
            return {"echo": self.database_echo, "connect_args": {"check_same_thread": False}}
        return {"echo": self.database_echo, "pool_pre_ping": True, "pool_size": self.database_pool_size}


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
