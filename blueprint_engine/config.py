"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from blueprint_engine.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

DEFAULT_OPENAI_MODEL = "gpt-4.1-mini"
DEFAULT_SCHEMA_VERSION = "2"


@dataclass(frozen=True)
class Settings:
  """Typed settings for the blueprint service."""

  environment: str
  allowed_origins: tuple[str, ...]
  debug: bool
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  log_http_bodies: bool
  log_http_body_bytes: int
  openai_api_key: str | None
  openai_base_url: str | None
  openai_model: str
  openai_temperature: float
  openai_timeout_seconds: float
  repair_enabled: bool
  raw_truncate_chars: int
  prompt_version: str
  schema_version: str
  pg_dsn: str | None
  pg_connect_timeout: int
  firebase_project_id: str | None
  firebase_service_account_json_path: str | None


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    raise ValueError("BLUEPRINT_ALLOWED_ORIGINS must be set to one or more origins.")

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("BLUEPRINT_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("BLUEPRINT_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None or raw.strip() == "":
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("BLUEPRINT_ENV", "development").lower()

  # Toggle verbose error output and diagnostics in non-production environments.
  debug = _parse_bool(os.getenv("BLUEPRINT_DEBUG"))

  log_max_bytes = _positive_int("BLUEPRINT_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("BLUEPRINT_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("BLUEPRINT_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Allow opt-in logging of 4xx HTTPExceptions for diagnostics.
  log_http_4xx = _parse_bool(os.getenv("BLUEPRINT_LOG_HTTP_4XX"))
  # Allow opt-in logging of HTTP request/response bodies with a size cap.
  log_http_bodies = _parse_bool(os.getenv("BLUEPRINT_LOG_HTTP_BODIES"))
  log_http_body_bytes = _positive_int("BLUEPRINT_LOG_HTTP_BODY_BYTES", "2048")

  openai_temperature = float(os.getenv("BLUEPRINT_OPENAI_TEMPERATURE", "0.3"))
  if not 0.0 <= openai_temperature <= 1.0:
    raise ValueError("BLUEPRINT_OPENAI_TEMPERATURE must be between 0 and 1.")

  openai_timeout_seconds = float(os.getenv("BLUEPRINT_OPENAI_TIMEOUT_SECONDS", "120"))
  if openai_timeout_seconds <= 0:
    raise ValueError("BLUEPRINT_OPENAI_TIMEOUT_SECONDS must be positive.")

  # Raw model output is echoed in diagnostics; keep the copy bounded.
  raw_truncate_chars = _positive_int("BLUEPRINT_RAW_TRUNCATE_CHARS", "4000")

  pg_connect_timeout = _positive_int("BLUEPRINT_PG_CONNECT_TIMEOUT", "5")

  return Settings(
    environment=environment,
    allowed_origins=_parse_origins(os.getenv("BLUEPRINT_ALLOWED_ORIGINS")),
    debug=debug,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=log_http_4xx,
    log_http_bodies=log_http_bodies,
    log_http_body_bytes=log_http_body_bytes,
    openai_api_key=_optional_str(os.getenv("OPENAI_API_KEY")),
    openai_base_url=_optional_str(os.getenv("BLUEPRINT_OPENAI_BASE_URL")),
    openai_model=_optional_str(os.getenv("BLUEPRINT_OPENAI_MODEL")) or DEFAULT_OPENAI_MODEL,
    openai_temperature=openai_temperature,
    openai_timeout_seconds=openai_timeout_seconds,
    repair_enabled=_parse_bool(os.getenv("BLUEPRINT_REPAIR_ENABLED"), default=True),
    raw_truncate_chars=raw_truncate_chars,
    prompt_version=os.getenv("BLUEPRINT_PROMPT_VERSION", "v1"),
    schema_version=os.getenv("BLUEPRINT_SCHEMA_VERSION", DEFAULT_SCHEMA_VERSION),
    pg_dsn=_optional_str(os.getenv("BLUEPRINT_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL")),
    pg_connect_timeout=pg_connect_timeout,
    firebase_project_id=_optional_str(os.getenv("FIREBASE_PROJECT_ID")),
    firebase_service_account_json_path=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON_PATH")),
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring web-runtime configuration like CORS."""
  # Keep database configuration isolated so migrations don't require unrelated env vars.
  debug = _parse_bool(os.getenv("BLUEPRINT_DEBUG"))
  pg_connect_timeout = _positive_int("BLUEPRINT_PG_CONNECT_TIMEOUT", "5")
  pg_dsn = _optional_str(os.getenv("BLUEPRINT_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL"))

  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)
