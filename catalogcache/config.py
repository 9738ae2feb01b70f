"""
Catalog cache configuration.

Settings come from environment variables, optionally loaded from a .env file:

    CATALOG_BACKEND       memory (default) | file | postgres
    CATALOG_NAMESPACE     key prefix for every stored collection
    CATALOG_STORAGE_PATH  directory used by the file backend
    CATALOG_DB_URL        postgres URL (or CATALOG_DB_HOST/PORT/NAME/USER/PASSWORD)
    CATALOG_QUOTA_BYTES   optional size limit for the memory backend
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from .schema import DEFAULT_NAMESPACE
from .storage import FileMedium, MemoryMedium, PersistentStore, StorageMedium

logger = logging.getLogger(__name__)

BACKENDS = ("memory", "file", "postgres")


@dataclass
class CatalogSettings:
    backend: str = "memory"
    namespace: str = DEFAULT_NAMESPACE
    storage_path: Optional[str] = None
    db_url: Optional[str] = None
    quota_bytes: Optional[int] = None

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "CatalogSettings":
        """
        Build settings from the environment.

        Args:
            env_file: Optional .env file to load first. Variables already set
                     in the environment take precedence over the file.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        if env_file is not None:
            env_path = Path(env_file)
            if env_path.exists():
                load_dotenv(env_path)
            else:
                logger.warning(f"No .env file found at {env_path}")

        quota = os.getenv("CATALOG_QUOTA_BYTES")
        try:
            quota_bytes = int(quota) if quota else None
        except ValueError:
            raise ValueError(f"CATALOG_QUOTA_BYTES must be an integer, got {quota!r}")

        settings = cls(
            backend=os.getenv("CATALOG_BACKEND", "memory").strip().lower(),
            namespace=os.getenv("CATALOG_NAMESPACE", DEFAULT_NAMESPACE),
            storage_path=os.getenv("CATALOG_STORAGE_PATH") or None,
            db_url=os.getenv("CATALOG_DB_URL") or None,
            quota_bytes=quota_bytes,
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.backend not in BACKENDS:
            raise ValueError(
                f"Unknown catalog backend {self.backend!r}. "
                f"Use one of: {', '.join(BACKENDS)}"
            )
        if self.backend == "file" and not self.storage_path:
            raise ValueError("The file backend requires CATALOG_STORAGE_PATH")


def build_medium(settings: CatalogSettings) -> StorageMedium:
    settings.validate()

    if settings.backend == "file":
        return FileMedium(settings.storage_path)

    if settings.backend == "postgres":
        # Imported here so memory/file setups never touch the database driver
        from .storage.postgres_medium import PostgresMedium
        return PostgresMedium(db_url=settings.db_url)

    return MemoryMedium(quota_bytes=settings.quota_bytes)


def open_store(settings: Optional[CatalogSettings] = None) -> PersistentStore:
    """Open the persistent store described by settings (environment by default)."""
    settings = settings or CatalogSettings.from_env()
    store = PersistentStore(build_medium(settings), namespace=settings.namespace)
    logger.debug(f"Catalog store opened: backend={settings.backend}, namespace={settings.namespace}")
    return store
