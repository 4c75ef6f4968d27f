"""In-memory snapshots over a storage backend, plus the background refresher."""

from leaveflow.cache.refresher import BackgroundRefresher
from leaveflow.cache.sync import SyncReport, SynchronizedCache

__all__ = ["BackgroundRefresher", "SyncReport", "SynchronizedCache"]
