from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, DotEnvSettingsSource, EnvSettingsSource, SettingsConfigDict


COMMA_SEPARATED_FIELDS = frozenset({"allow_origins"})
DEFAULT_ALLOW_ORIGINS = ["http://localhost", "http://localhost:3000", "http://127.0.0.1:3000"]


class _CommaSeparatedMixin:
    """Accept ``ALLOW_ORIGINS=a,b`` as well as a JSON list."""

    def decode_complex_value(self, field_name, field, value):  # type: ignore[override]
        try:
            return super().decode_complex_value(field_name, field, value)
        except json.JSONDecodeError:
            if field_name in COMMA_SEPARATED_FIELDS:
                return value
            raise


class _EnvSource(_CommaSeparatedMixin, EnvSettingsSource):
    pass


class _DotEnvSource(_CommaSeparatedMixin, DotEnvSettingsSource):
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    project_name: str = "OfficeHub API"
    project_version: str = "1.0.0"
    environment: str = Field(
        default="development",
        description="Deployment environment name",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    git_sha: str | None = Field(default=None, description="Git SHA for /version")
    log_level: str = Field(default="INFO", description="Logging level")

    # Database
    database_url: str = Field(
        default="sqlite:///./officehub.db",
        description="SQLAlchemy database URL",
    )
    sqlite_fallback_url: str = Field(
        default="sqlite:///./officehub.db",
        description="SQLite URL used when the configured PostgreSQL server is unreachable at boot",
    )
    sqlite_busy_timeout_seconds: int = Field(default=10, description="SQLite busy timeout in seconds")
    auto_create_schema: bool = Field(
        default=True,
        description="Create missing tables on startup (development convenience)",
    )

    # Auth / JWT
    jwt_secret: str = Field(default="change_me", description="JWT signing secret")
    algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(default=60 * 24, description="Access token expiry in minutes")

    # Provisioned account defaults
    default_user_password: str = Field(default="User@123", description="Password for users created without one")
    default_client_password: str = Field(default="Client@123", description="Password for auto-provisioned clients")
    default_partner_password: str = Field(default="Partner@123", description="Password for provisioned partners")

    # Seeding
    seed_admin_email: str = Field(default="admin@officehub.local", description="Email of the initial admin")
    seed_admin_password: str = Field(default="Admin@123", description="Password of the initial admin")
    seed_admin_name: str = Field(default="System Administrator", description="Display name of the initial admin")

    # CORS
    allow_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOW_ORIGINS))

    # Storage
    uploads_dir: str = Field(
        default="./uploads",
        description="Directory for uploaded attachments",
        validation_alias=AliasChoices("UPLOAD_DIR", "UPLOADS_DIR"),
    )

    # DB pool tuning (Postgres)
    db_pool_size: int = Field(default=5, description="Base DB connection pool size")
    db_max_overflow: int = Field(default=10, description="Additional DB connections beyond pool size")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a DB connection")
    db_pool_recycle: int = Field(default=1800, description="Recycle DB connections after N seconds")

    @field_validator("allow_origins", mode="before")
    @classmethod
    def parse_allow_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, list):
            return value
        if isinstance(value, str) and value.strip():
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return list(DEFAULT_ALLOW_ORIGINS)

    def ensure_uploads_dir(self) -> Path:
        uploads_path = Path(self.uploads_dir).expanduser().resolve()
        uploads_path.mkdir(parents=True, exist_ok=True)
        return uploads_path

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            _EnvSource(settings_cls),
            _DotEnvSource(settings_cls),
            file_secret_settings,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.ensure_uploads_dir()
    return settings


settings = get_settings()
