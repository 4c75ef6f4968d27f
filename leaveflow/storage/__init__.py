"""Storage backends: the abstract contract plus embedded and remote implementations."""

from leaveflow.storage.base import BackendStatus, StorageBackend
from leaveflow.storage.embedded import EmbeddedBackend
from leaveflow.storage.remote import RemoteBackend

__all__ = [
    "BackendStatus",
    "EmbeddedBackend",
    "RemoteBackend",
    "StorageBackend",
]
