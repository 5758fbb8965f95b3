"""
Multi-provider object storage client for Bucket Console.

One async client addresses every supported provider through a table-driven
registry; a reactive store mirrors the saved connections of all providers.
"""

from utils.storage.base import (
    Provider,
    Connection,
    BucketEntry,
    BrowsePage,
    ObjectMetadata,
    BucketStats,
    ObjectListing,
)
from utils.storage.errors import StorageRequestError, UnknownProviderError
from utils.storage.client import StorageClient
from utils.storage.connections import ConnectionStore, connection_store

__all__ = [
    "Provider",
    "Connection",
    "BucketEntry",
    "BrowsePage",
    "ObjectMetadata",
    "BucketStats",
    "ObjectListing",
    "StorageRequestError",
    "UnknownProviderError",
    "StorageClient",
    "ConnectionStore",
    "connection_store",
]
