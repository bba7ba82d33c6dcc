"""Wiring: build the configured store and repository from settings."""

from __future__ import annotations

from loguru import logger

from tabkeeper.core.gateway import TabGateway
from tabkeeper.core.managers.contexts import ContextRepository
from tabkeeper.core.settings import TabkeeperSettings
from tabkeeper.core.store.base import KeyValueStore
from tabkeeper.core.store.collection import ContextStorage
from tabkeeper.core.store.local import LocalKeyValueStore
from tabkeeper.core.store.memory import MemoryKeyValueStore


class StoreConfigurationError(ValueError):
    """Raised when the selected store backend is missing required settings."""


def create_store(settings: TabkeeperSettings) -> KeyValueStore:
    """Create the key-value store backend based on configuration."""
    if settings.store == "memory":
        return MemoryKeyValueStore()

    if settings.store == "s3":
        missing = [
            name
            for name in ("s3_endpoint", "s3_bucket", "s3_access_key", "s3_secret_key")
            if getattr(settings, name) is None
        ]
        if missing:
            env_names = ", ".join(f"TABKEEPER_{name.upper()}" for name in missing)
            msg = f"S3 store requires {env_names}"
            raise StoreConfigurationError(msg)

        from tabkeeper.core.store.s3 import S3KeyValueStore

        assert settings.s3_secret_key is not None
        return S3KeyValueStore(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key.get_secret_value(),
            prefix=settings.data_prefix,
            region=settings.s3_region,
            path_style=settings.s3_path_style,
        )

    return LocalKeyValueStore(settings.data_root, prefix=settings.data_prefix)


def create_repository(settings: TabkeeperSettings, gateway: TabGateway | None = None) -> ContextRepository:
    store = create_store(settings)
    prefix_info = f", prefix={settings.data_prefix}" if settings.data_prefix else ""
    logger.debug("Context store: {} (key={}{})", settings.store, settings.storage_key, prefix_info)
    return ContextRepository(ContextStorage(store, key=settings.storage_key), gateway)
