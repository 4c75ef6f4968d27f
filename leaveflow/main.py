"""LeaveFlow application factory: logging, backend selection and cache start-up."""

from __future__ import annotations

import logging
from typing import Optional

from leaveflow.cache import BackgroundRefresher, SynchronizedCache
from leaveflow.common.exceptions import StorageError
from leaveflow.config import Settings, settings as default_settings
from leaveflow.storage import EmbeddedBackend, RemoteBackend, StorageBackend

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s — %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the standard log format at ``level`` (defaults to ``LOG_LEVEL``)."""
    logging.basicConfig(
        level=(level or default_settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_backend(settings: Optional[Settings] = None) -> StorageBackend:
    """Remote backend when ``API_URL`` is set, otherwise the embedded SQLite store."""
    settings = settings or default_settings
    if settings.is_remote:
        logger.info("Using remote backend at %s", settings.api_base_url)
        return RemoteBackend(
            settings.api_base_url,
            email=settings.API_EMAIL,
            password=settings.API_PASSWORD,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    logger.info("Using embedded backend at %s", settings.DATABASE_URL)
    return EmbeddedBackend(
        settings.DATABASE_URL,
        echo=settings.ENVIRONMENT == "development" and settings.LOG_LEVEL.lower() == "debug",
    )


async def create_cache(
    settings: Optional[Settings] = None,
    backend: Optional[StorageBackend] = None,
) -> SynchronizedCache:
    """Initialise the backend and return a cache holding a first full load.

    A backend that fails to start yields a cache flagged
    ``backend_unreachable`` that still holds the default leave types.
    """
    backend = backend or create_backend(settings)
    cache = SynchronizedCache(backend)
    try:
        await backend.init()
    except StorageError as exc:
        logger.error("Backend %s failed to start: %s", backend.name, exc)
        cache.backend_unreachable = True
        return cache
    report = await cache.load_all()
    if not report.ok:
        logger.warning("Initial load incomplete; failed: %s", ", ".join(report.failed))
    return cache


def create_refresher(
    cache: SynchronizedCache, settings: Optional[Settings] = None
) -> BackgroundRefresher:
    settings = settings or default_settings
    return BackgroundRefresher(cache, settings.REFRESH_INTERVAL_SECONDS)
