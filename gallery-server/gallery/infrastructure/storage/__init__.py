"""Object store adapters."""

from .base import ObjectStore, StorageObject
from .local import LocalObjectStore

__all__ = ["LocalObjectStore", "ObjectStore", "StorageObject"]
