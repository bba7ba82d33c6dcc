"""Configuration loaded from TABKEEPER_* environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class TabkeeperSettings(BaseSettings):
    """tabkeeper settings.

    All fields are read from environment variables with the ``TABKEEPER_``
    prefix.  For example, ``TABKEEPER_LOG_LEVEL=DEBUG`` maps to ``log_level``.
    """

    model_config = SettingsConfigDict(
        env_prefix="TABKEEPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "WARNING"

    # -- Data storage ----------------------------------------------------------
    data_root: str = "~/.tabkeeper"
    """Root directory for the local store."""

    data_prefix: str | None = None
    """Optional namespace prefix, giving ``{data_root}/{data_prefix}/store/...``.

    Useful for keeping separate workspace collections (e.g. per browser profile).
    """

    store: Literal["local", "s3", "memory"] = "local"

    storage_key: str = "contexts"
    """Key under which the whole Context collection is stored."""

    # S3 (only when store = "s3")
    s3_endpoint: str | None = None
    s3_bucket: str | None = None
    s3_region: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: SecretStr | None = None
    s3_path_style: bool = False
    """Use path-style addressing (required by MinIO and some S3-compatible services)."""

    # -- Browser ---------------------------------------------------------------
    tabs_file: str | None = None
    """JSON export of the currently open tabs, read on capture."""


@lru_cache(maxsize=1)
def get_settings() -> TabkeeperSettings:
    """Return a cached settings instance.

    Call ``get_settings.cache_clear()`` in tests to force a re-read after
    overriding env vars.
    """
    return TabkeeperSettings()
