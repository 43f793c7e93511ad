from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic.aliases import AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


PACKAGE_DIR = Path(__file__).resolve().parents[1]

WEEK_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=PACKAGE_DIR / ".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = Field(validation_alias=AliasChoices("database_url", "DATABASE_URL"))

    # Tokens are issued by the platform's auth service; we only verify them.
    jwt_secret_key: str = Field(
        validation_alias=AliasChoices("jwt_secret_key", "jwt_secret", "JWT_SECRET_KEY", "JWT_SECRET")
    )
    jwt_algorithm: str = Field(default="HS256", validation_alias=AliasChoices("jwt_algorithm", "JWT_ALGORITHM"))
    access_token_expire_minutes: int = Field(
        default=480,
        validation_alias=AliasChoices("access_token_expire_minutes", "ACCESS_TOKEN_EXPIRE_MINUTES"),
    )

    # Runtime
    environment: str = Field(default="development", validation_alias=AliasChoices("environment", "ENVIRONMENT"))
    frontend_origin: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("frontend_origin", "FRONTEND_ORIGIN"),
    )

    # Multi-tenant / data isolation
    # - shared: all admins see the same data (tenant_id IS NULL rows)
    # - per_user: data is scoped to the token's tenant, falling back to the user id
    # - per_tenant: data is scoped to the token's tenant_id (strict isolation)
    tenant_mode: str = Field(
        default="per_tenant",
        validation_alias=AliasChoices("tenant_mode", "TENANT_MODE"),
    )

    # Staff whose designation contains this keyword are offered as assignable teachers.
    teacher_designation_keyword: str = Field(
        default="teacher",
        validation_alias=AliasChoices("teacher_designation_keyword", "TEACHER_DESIGNATION_KEYWORD"),
    )

    # Working days used by the starter structure template.
    default_working_days: list[str] = Field(
        default_factory=lambda: WEEK_DAYS[:5],
        validation_alias=AliasChoices("default_working_days", "DEFAULT_WORKING_DAYS"),
    )

    @field_validator("frontend_origin")
    @classmethod
    def _normalize_frontend_origin(cls, v: str) -> str:
        # Starlette CORS expects the Origin to match exactly (no trailing slash).
        return v.strip().rstrip("/")

    @field_validator("tenant_mode")
    @classmethod
    def _normalize_tenant_mode(cls, v: str) -> str:
        v = (v or "per_tenant").strip().lower()
        if v not in {"shared", "per_user", "per_tenant"}:
            raise ValueError("TENANT_MODE must be 'shared', 'per_user', or 'per_tenant'")
        return v

    @field_validator("teacher_designation_keyword")
    @classmethod
    def _normalize_designation_keyword(cls, v: str) -> str:
        return (v or "teacher").strip().lower()

    @field_validator("default_working_days")
    @classmethod
    def _validate_default_working_days(cls, v: list[str]) -> list[str]:
        days = [str(d).strip().capitalize() for d in v]
        unknown = [d for d in days if d not in WEEK_DAYS]
        if unknown:
            raise ValueError(f"DEFAULT_WORKING_DAYS contains unknown days: {unknown}")
        return days


settings = Settings()
