"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from app.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

_RESUME_LOG_BACKENDS = {"postgres", "file"}
_PUSH_PROVIDERS = {"fcm", "null"}


@dataclass(frozen=True)
class Settings:
  """Typed settings for the Pushcast service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  pg_dsn: str | None
  pg_connect_timeout: int
  push_batch_size: int
  send_concurrency: int
  resume_log_backend: str
  resume_log_path: str
  push_provider: str
  push_timeout_seconds: int
  firebase_project_id: str | None
  firebase_service_account_json_path: str | None
  cycle_interval_seconds: int | None
  task_secret: str | None


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ()

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if "*" in origins:
    raise ValueError("PUSHCAST_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("PUSHCAST_ENV", "development").lower()
  debug = _parse_bool(os.getenv("PUSHCAST_DEBUG"))

  log_max_bytes = int(os.getenv("PUSHCAST_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("PUSHCAST_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("PUSHCAST_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("PUSHCAST_LOG_BACKUP_COUNT must be zero or a positive integer.")

  pg_dsn = _optional_str(os.getenv("PUSHCAST_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL"))
  pg_connect_timeout = int(os.getenv("PUSHCAST_PG_CONNECT_TIMEOUT", "5"))
  if pg_connect_timeout <= 0:
    raise ValueError("PUSHCAST_PG_CONNECT_TIMEOUT must be a positive integer.")

  # The batch size bounds how many devices one notification reaches per cycle.
  push_batch_size = int(os.getenv("PUSHCAST_PUSH_BATCH_SIZE", "100"))
  if push_batch_size <= 0:
    raise ValueError("PUSHCAST_PUSH_BATCH_SIZE must be a positive integer.")

  send_concurrency = int(os.getenv("PUSHCAST_SEND_CONCURRENCY", "1"))
  if send_concurrency <= 0:
    raise ValueError("PUSHCAST_SEND_CONCURRENCY must be a positive integer.")

  # Claims live next to the notifications when Postgres is available.
  default_backend = "postgres" if pg_dsn else "file"
  resume_log_backend = (os.getenv("PUSHCAST_RESUME_LOG_BACKEND") or default_backend).strip().lower()
  if resume_log_backend not in _RESUME_LOG_BACKENDS:
    raise ValueError("PUSHCAST_RESUME_LOG_BACKEND must be 'postgres' or 'file'.")

  if resume_log_backend == "postgres" and not pg_dsn:
    raise ValueError("PUSHCAST_PG_DSN must be set when PUSHCAST_RESUME_LOG_BACKEND is 'postgres'.")

  push_provider = (os.getenv("PUSHCAST_PUSH_PROVIDER") or "null").strip().lower()
  if push_provider not in _PUSH_PROVIDERS:
    raise ValueError("PUSHCAST_PUSH_PROVIDER must be 'fcm' or 'null'.")

  push_timeout_seconds = int(os.getenv("PUSHCAST_PUSH_TIMEOUT_SECONDS", "10"))
  if push_timeout_seconds <= 0:
    raise ValueError("PUSHCAST_PUSH_TIMEOUT_SECONDS must be a positive integer.")

  firebase_project_id = _optional_str(os.getenv("FIREBASE_PROJECT_ID"))
  if push_provider == "fcm" and not firebase_project_id:
    raise ValueError("FIREBASE_PROJECT_ID must be set when PUSHCAST_PUSH_PROVIDER is 'fcm'.")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("PUSHCAST_ALLOWED_ORIGINS")),
    log_dir=(os.getenv("PUSHCAST_LOG_DIR") or "./logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    pg_dsn=pg_dsn,
    pg_connect_timeout=pg_connect_timeout,
    push_batch_size=push_batch_size,
    send_concurrency=send_concurrency,
    resume_log_backend=resume_log_backend,
    resume_log_path=(os.getenv("PUSHCAST_RESUME_LOG_PATH") or "queue.json").strip(),
    push_provider=push_provider,
    push_timeout_seconds=push_timeout_seconds,
    firebase_project_id=firebase_project_id,
    firebase_service_account_json_path=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON_PATH")),
    cycle_interval_seconds=_parse_optional_int(os.getenv("PUSHCAST_CYCLE_INTERVAL_SECONDS")),
    task_secret=_optional_str(os.getenv("PUSHCAST_TASK_SECRET")),
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring push or web-runtime configuration."""
  # Keep database configuration isolated so migrations and scripts don't require unrelated env vars.
  debug = _parse_bool(os.getenv("PUSHCAST_DEBUG"))
  pg_connect_timeout = int(os.getenv("PUSHCAST_PG_CONNECT_TIMEOUT", "5"))
  if pg_connect_timeout <= 0:
    raise ValueError("PUSHCAST_PG_CONNECT_TIMEOUT must be a positive integer.")

  pg_dsn = _optional_str(os.getenv("PUSHCAST_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL"))

  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _parse_optional_int(raw: str | None) -> int | None:
  if raw is None or raw.strip() == "":
    return None

  value = int(raw)

  if value <= 0:
    raise ValueError("Optional interval seconds must be positive when provided.")

  return value
