"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for AuthGate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. cognito_client_id -> COGNITO_CLIENT_ID). Type coercion and
      validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Used to reject blank Cognito values, which
      pydantic would otherwise accept as valid strings.

Cognito settings have no defaults. The gateway cannot do anything useful
without a user pool, so a missing value is a hard startup failure rather than
a runtime surprise on the first signup.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("authgate.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'authgate.db'}"

_COGNITO_FIELDS = (
    "cognito_access_key_id",
    "cognito_secret_access_key",
    "cognito_region",
    "cognito_client_id",
    "cognito_domain",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `cognito_region` reads from COGNITO_REGION, `debug` reads from DEBUG.
    List fields (allowed_hosts, cors_origins) are read as JSON arrays.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Identity provider (AWS Cognito) -- all required
    # ------------------------------------------------------------------

    cognito_access_key_id: str
    cognito_secret_access_key: str
    cognito_region: str
    cognito_client_id: str
    # Hosted UI domain, e.g. "auth.example.com" or "<prefix>.auth.<region>.amazoncognito.com"
    cognito_domain: str

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_cognito(self) -> "Settings":
        """Refuse to start with blank Cognito settings.

        An empty COGNITO_CLIENT_ID passes type validation but makes every
        provider call fail with a confusing InvalidParameterException. Catch
        it at startup and name every missing variable in one message.
        """
        missing = [name.upper() for name in _COGNITO_FIELDS if not getattr(self, name).strip()]
        if missing:
            raise ValueError(
                f"Missing identity provider configuration: {', '.join(missing)}. "
                "Set them in your environment or .env file."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings()
    directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    settings = Settings()
    logger.debug("Settings loaded (region=%s, database=%s)", settings.cognito_region, settings.database_url)
    return settings
