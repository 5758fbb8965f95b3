"""
Core value types for the storage client.

Defines the closed set of supported providers along with frozen dataclass
value types for connections, browse listings, metadata and bucket statistics.
All wire payloads are snake_case JSON; each type knows how to build itself
from one.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class Provider(Enum):
    """Supported object-storage providers, in registry order."""
    GCP = "gcp"
    AWS = "aws"
    HUAWEI = "huawei"
    ALIBABA = "alibaba"
    AZURE = "azure"


@dataclass(frozen=True)
class Connection:
    """
    A saved bucket + credential pairing for one provider.

    ``provider`` is always injected client-side; whatever the server payload
    says about it is discarded. The remaining fields are kept as an opaque
    record so provider-specific columns survive untouched.
    """
    provider: Provider
    record: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, provider: Provider, payload: Mapping[str, Any]) -> "Connection":
        record = {k: v for k, v in (payload or {}).items() if k != "provider"}
        return cls(provider=provider, record=record)

    @property
    def id(self) -> Optional[Any]:
        return self.record.get("id")

    @property
    def name(self) -> Optional[str]:
        return self.record.get("name")

    @property
    def bucket(self) -> Optional[str]:
        return self.record.get("bucket")

    @property
    def credentials(self) -> Any:
        return self.record.get("credentials")

    def get(self, key: str, default: Any = None) -> Any:
        if key == "provider":
            return self.provider.value
        return self.record.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten back to the merged ``{...record, provider}`` shape."""
        data = dict(self.record)
        data["provider"] = self.provider.value
        return data


@dataclass(frozen=True)
class BucketEntry:
    """One row of a browse listing: an object or a common prefix."""
    type: str  # "dir" | "file"
    name: str
    display: str = ""
    size: int = 0
    updated: Optional[str] = None  # ISO 8601 timestamp
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "BucketEntry":
        known = {"type", "name", "display", "size", "updated"}
        return cls(
            type=payload.get("type", "file"),
            name=payload.get("name", ""),
            display=payload.get("display", ""),
            size=payload.get("size") or 0,
            updated=payload.get("updated"),
            extra={k: v for k, v in payload.items() if k not in known},
        )

    @property
    def is_prefix(self) -> bool:
        return self.type == "dir"


@dataclass(frozen=True)
class BrowsePage:
    """One page of a delimiter-based listing."""
    prefix: str
    entries: List[BucketEntry] = field(default_factory=list)
    next_page_token: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], prefix: str = "") -> "BrowsePage":
        return cls(
            prefix=payload.get("prefix", prefix),
            entries=[BucketEntry.from_payload(e) for e in payload.get("entries") or []],
            next_page_token=payload.get("next_page_token") or None,
        )

    @property
    def has_more(self) -> bool:
        return bool(self.next_page_token)


@dataclass(frozen=True)
class ObjectMetadata:
    """Metadata for a single object. Always re-fetched, never cached."""
    content_type: str = ""
    cache_control: str = ""
    metadata: Mapping[str, str] = field(default_factory=dict)
    size: int = 0
    updated: Optional[str] = None
    etag: str = ""
    md5: Optional[str] = None  # absent for some providers / multipart objects

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ObjectMetadata":
        return cls(
            content_type=payload.get("content_type") or "",
            cache_control=payload.get("cache_control") or "",
            metadata=dict(payload.get("metadata") or {}),
            size=payload.get("size") or 0,
            updated=payload.get("updated"),
            etag=payload.get("etag") or "",
            md5=payload.get("md5") or None,
        )


@dataclass(frozen=True)
class BucketStats:
    """Aggregate bucket statistics. A lower bound when ``truncated`` is set."""
    object_count: int = 0
    total_size: int = 0
    truncated: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "BucketStats":
        return cls(
            object_count=payload.get("object_count") or 0,
            total_size=payload.get("total_size") or 0,
            truncated=bool(payload.get("truncated", False)),
        )

    def summary(self) -> str:
        """Human-readable summary of the stats."""
        size_mb = self.total_size / (1024 * 1024)
        count = f"{self.object_count}+" if self.truncated else str(self.object_count)
        return f"{count} objects, {size_mb:.2f} MB"


@dataclass(frozen=True)
class ObjectListing:
    """Flat, single-page, possibly truncated object listing."""
    objects: List[Dict[str, Any]] = field(default_factory=list)
    truncated: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ObjectListing":
        objects = payload.get("objects")
        truncated = payload.get("truncated")
        return cls(
            objects=list(objects) if objects is not None else [],
            truncated=bool(truncated) if truncated is not None else False,
        )
