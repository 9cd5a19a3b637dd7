from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import AnyHttpUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


# Well-known key for local development only; refused in any other environment.
DEVELOPMENT_MESSAGE_KEY = "6f72626974" + "0" * 54


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = Field(default="Orbit API", env="APP_NAME", description="Human readable service name")
    environment: str = Field(default="development", env="ENVIRONMENT", description="Deployment environment name")
    debug: bool = Field(default=False, env="DEBUG", description="Enable debug mode")

    cors_origins: Annotated[List[AnyHttpUrl], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost",
            "http://localhost:3000",
            "http://127.0.0.1",
            "http://127.0.0.1:3000",
        ],
        env="CORS_ORIGINS",
        description="List of allowed CORS origins",
    )

    database_url_override: str | None = Field(
        default=None,
        validation_alias="DATABASE_URL",
        description="Full SQLAlchemy URL; takes precedence over the DB_* parts",
    )
    database_user: str = Field(default="orbit", validation_alias="DB_USER")
    database_password: str = Field(default="orbit", validation_alias="DB_PASSWORD")
    database_host: str = Field(default="db", validation_alias="DB_HOST")
    database_port: int = Field(default=3306, validation_alias="DB_PORT")
    database_name: str = Field(default="orbit", validation_alias="DB_NAME")

    jwt_secret_key: str = Field(default="changeme", env="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", env="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, env="ACCESS_TOKEN_EXPIRE_MINUTES")

    message_encryption_key: str = Field(
        default=DEVELOPMENT_MESSAGE_KEY,
        env="MESSAGE_ENCRYPTION_KEY",
        description="Hex encoded 256-bit key used to encrypt message bodies at rest",
    )
    message_delete_window_hours: int = Field(
        default=24,
        env="MESSAGE_DELETE_WINDOW_HOURS",
        description="Hours after sending during which a message can be deleted for everyone",
    )

    suggestions_default_limit: int = Field(default=10, env="SUGGESTIONS_DEFAULT_LIMIT")
    suggestions_max_limit: int = Field(default=50, env="SUGGESTIONS_MAX_LIMIT")

    websocket_keepalive_timeout_seconds: float = Field(
        default=30, env="WEBSOCKET_KEEPALIVE_TIMEOUT_SECONDS"
    )
    websocket_keepalive_ping_interval_seconds: float = Field(
        default=25, env="WEBSOCKET_KEEPALIVE_PING_INTERVAL_SECONDS"
    )

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"mysql+pymysql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):  # type: ignore[override]
        if v in (None, "", Ellipsis):
            return v
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, (list, tuple, set)):
            return list(v)
        return v

    @field_validator("message_encryption_key")
    @classmethod
    def validate_encryption_key(cls, value: str) -> str:
        value = value.strip()
        try:
            raw = bytes.fromhex(value)
        except ValueError as exc:
            raise ValueError("MESSAGE_ENCRYPTION_KEY must be hex encoded") from exc
        if len(raw) != 32:
            raise ValueError("MESSAGE_ENCRYPTION_KEY must encode exactly 32 bytes")
        return value

    @model_validator(mode="after")
    def require_real_encryption_key(self) -> "Settings":
        if self.environment != "development" and self.message_encryption_key == DEVELOPMENT_MESSAGE_KEY:
            raise ValueError(
                f"MESSAGE_ENCRYPTION_KEY must be set outside development (environment={self.environment!r})"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
