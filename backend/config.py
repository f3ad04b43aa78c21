"""
Application configuration with Docker secrets support.

The database password is read using the _read_secret() pattern:
  1. Direct env var (DB_PASSWORD)
  2. File-based env var (DB_PASSWORD_FILE → reads file path)
  3. Falls back to the development default, unless DB_PASSWORD_FILE is set

Every other value comes straight from the environment with a hardcoded
fallback. Malformed values raise ConfigurationError so the process fails at
startup instead of on the first request.
"""

import os
import logging

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from errors import ConfigurationError

logger = logging.getLogger(__name__)

HOST = "0.0.0.0"
PORT = 9999

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB


def _read_secret(env_var: str, file_env_var: str | None = None) -> str:
    """Read a secret from env var or Docker secrets file.

    Args:
        env_var: Direct environment variable name (e.g., DB_PASSWORD)
        file_env_var: File path env var name (e.g., DB_PASSWORD_FILE).
                      If None, defaults to env_var + '_FILE'.

    Returns:
        The secret value.

    Raises:
        ValueError: If neither source provides a value.
    """
    if file_env_var is None:
        file_env_var = f"{env_var}_FILE"

    # Priority 1: Direct env var
    value = os.environ.get(env_var)
    if value:
        return value

    # Priority 2: File-based (Docker secrets pattern)
    file_path = os.environ.get(file_env_var)
    if file_path:
        try:
            with open(file_path, "r") as f:
                value = f.read().strip()
            if value:
                return value
        except FileNotFoundError:
            logger.error(f"Secret file not found: {file_path} (from {file_env_var})")
        except PermissionError:
            logger.error(f"Permission denied reading: {file_path} (from {file_env_var})")

    raise ValueError(
        f"Secret not configured. Set {env_var} env var or {file_env_var} pointing to a file."
    )


def _int_env(name: str, default: int, minimum: int = 1, maximum: int | None = None) -> int:
    """Parse an integer env var, raising ConfigurationError when out of range."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f">= {minimum}" if maximum is None else f"between {minimum} and {maximum}"
        raise ConfigurationError(f"{name} must be {bounds}, got {value}")
    return value


class Settings:
    """Application settings loaded from environment and Docker secrets."""

    def __init__(self):
        # Database
        self.db_host = os.environ.get("DB_HOST", "localhost")
        self.db_port = _int_env("DB_PORT", 5432, maximum=65535)
        self.db_user = os.environ.get("DB_USER", "postgres")
        self.db_name = os.environ.get("DB_NAME", "pdfdb")
        try:
            self.db_password = _read_secret("DB_PASSWORD")
        except ValueError:
            if os.environ.get("DB_PASSWORD_FILE"):
                raise ConfigurationError(
                    f"DB_PASSWORD_FILE is set but {os.environ['DB_PASSWORD_FILE']} gave no password"
                )
            logger.warning("DB_PASSWORD not set, using the development default")
            self.db_password = "password"
        self.database_url = self._build_database_url()

        # Connection pool
        self.db_pool_size = _int_env("DB_POOL_SIZE", 10)
        self.db_max_overflow = _int_env("DB_MAX_OVERFLOW", 0, minimum=0)
        self.db_pool_timeout = _int_env("DB_POOL_TIMEOUT", 30)

        # HTTP
        self.max_upload_bytes = _int_env("MAX_UPLOAD_BYTES", MAX_UPLOAD_BYTES)
        self.cors_origins = [
            origin.strip()
            for origin in os.environ.get("CORS_ORIGINS", "").split(",")
            if origin.strip()
        ]

        self.log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigurationError(f"LOG_LEVEL must be a logging level name, got {self.log_level!r}")

    def _build_database_url(self) -> str:
        """Build the async database URL, unless DATABASE_URL overrides it."""
        override = os.environ.get("DATABASE_URL")
        if override:
            try:
                make_url(override)
            except ArgumentError as e:
                raise ConfigurationError(f"DATABASE_URL is not a valid database URL: {e}")
            return override

        url = URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )
        return url.render_as_string(hide_password=False)

    @property
    def safe_database_url(self) -> str:
        """The database URL with the password masked, for logging."""
        return make_url(self.database_url).render_as_string(hide_password=True)


settings = Settings()
