"""
HTTP storage client shared by every provider.

Every operation addresses ``registry.endpoint(provider, suffix)`` on the
configured API origin, so nothing here branches on the provider. Responses are
normalized into the value types from ``utils.storage.base``; failures of any
kind surface as ``StorageRequestError``:

- non-2xx reply: the response body text, verbatim
- request failure (DNS, refused connection, reset, undecodable body, redirect loop):
  the httpx error's message

No timeouts are applied. A stalled request stays pending until the server or
the network gives up.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import httpx

from utils.constants import (
    BROWSE_PATH, CONNECTION_PATH, CONNECTIONS_PATH, COPY_PATH, DEFAULT_API_BASE_URL,
    DEFAULT_USER_AGENT, DELETE_PATH, DOWNLOAD_PATH, METADATA_PATH, METADATA_UPDATE_PATH,
    OBJECTS_PATH, STATS_PATH, TEST_PATH, UPLOAD_PATH,
)
from utils.storage.base import (
    BrowsePage, BucketStats, Connection, ObjectListing, ObjectMetadata,
)
from utils.storage.errors import StorageRequestError
from utils.storage.registry import ProviderLike, endpoint, resolve_provider

Credentials = Union[str, Mapping[str, Any]]
UploadFile = Union[str, os.PathLike, Tuple[str, Any], Tuple[str, Any, str]]


def encode_credentials(credentials: Credentials) -> str:
    """Credentials travel as a JSON string; mappings are serialized first."""
    if credentials is None:
        return ""
    if isinstance(credentials, (str, bytes)):
        return credentials.decode("utf-8") if isinstance(credentials, bytes) else credentials
    return json.dumps(dict(credentials))


def _file_part(file: UploadFile) -> Tuple[str, Any, Optional[str]]:
    """Normalize an upload item into an httpx ``(filename, content, content_type)`` part."""
    if isinstance(file, (str, os.PathLike)):
        path = Path(file)
        return path.name, path.read_bytes(), None
    if isinstance(file, tuple) and len(file) in (2, 3):
        filename, content = file[0], file[1]
        content_type = file[2] if len(file) == 3 else None
        return filename, content, content_type
    raise TypeError(
        f"Unsupported upload item {file!r}: expected a path or a (filename, content[, content_type]) tuple"
    )


class StorageClient:
    """Stateless async client for the per-provider storage API."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        verify: bool = True,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._verify = verify
        self._headers = {"User-Agent": DEFAULT_USER_AGENT}
        self._headers.update(headers or {})
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @classmethod
    def from_config(cls, config=None, transport: Optional[httpx.AsyncBaseTransport] = None) -> "StorageClient":
        """Build a client from ``settings.ini`` / environment configuration."""
        if config is None:
            from utils.env_config import load_console_config
            config = load_console_config()
        return cls(
            base_url=config.api_base_url,
            transport=transport,
            verify=not config.ignore_tls_errors,
        )

    # ------------------------------------------------------------------
    # Transport plumbing
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            transport=self._transport,
            verify=self._verify,
            headers=self._headers,
            timeout=None,
        )

    @staticmethod
    def _check(response: httpx.Response) -> httpx.Response:
        if not response.is_success:
            raise StorageRequestError(response.text, status_code=response.status_code)
        return response

    async def _send(self, client: httpx.AsyncClient, method: str, path: str, **kwargs) -> httpx.Response:
        self._logger.debug(f"{method} {path}")
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            raise StorageRequestError(str(e) or e.__class__.__name__) from e
        return self._check(response)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        async with self._client() as client:
            return await self._send(client, method, path, **kwargs)

    @staticmethod
    def _json(response: httpx.Response, default: Any = None) -> Any:
        if not response.content:
            return default
        try:
            return response.json()
        except ValueError as e:
            raise StorageRequestError(f"Invalid JSON in response: {e}", status_code=response.status_code) from e

    def _bucket_body(self, bucket: str, credentials: Credentials, **fields) -> Dict[str, Any]:
        body = {"bucket": bucket, "credentials": encode_credentials(credentials)}
        body.update(fields)
        return body

    # ------------------------------------------------------------------
    # Connection endpoints
    # ------------------------------------------------------------------

    async def list_connections(self, provider: ProviderLike) -> List[Connection]:
        """Fetch one provider's saved connections, each tagged with that provider."""
        resolved = resolve_provider(provider)
        response = await self._request("GET", endpoint(resolved, CONNECTIONS_PATH))
        records = self._json(response, default=[]) or []
        return [Connection.from_payload(resolved, record) for record in records]

    async def test_connection(self, provider: ProviderLike, bucket: str, credentials: Credentials) -> None:
        """Ask the server to verify bucket access. Nothing is persisted."""
        await self._request(
            "POST", endpoint(provider, TEST_PATH),
            json=self._bucket_body(bucket, credentials),
        )

    async def create_connection(self, provider: ProviderLike, form: Mapping[str, Any]) -> None:
        """Persist a new connection. Any 2xx counts as saved; the reply body is not read."""
        await self._request("POST", endpoint(provider, CONNECTION_PATH), json=dict(form))

    async def update_connection(self, provider: ProviderLike, connection_id: Any,
                                form: Mapping[str, Any]) -> None:
        await self._request(
            "PUT", endpoint(provider, f"{CONNECTION_PATH}/{connection_id}"), json=dict(form),
        )

    async def delete_connection(self, provider: ProviderLike, connection_id: Any) -> None:
        await self._request("DELETE", endpoint(provider, f"{CONNECTION_PATH}/{connection_id}"))

    # ------------------------------------------------------------------
    # Object operations
    # ------------------------------------------------------------------

    async def browse_objects(
        self,
        provider: ProviderLike,
        bucket: str,
        credentials: Credentials,
        prefix: str = "",
        page_token: str = "",
    ) -> BrowsePage:
        """
        List one page of entries directly under ``prefix``.

        An empty ``page_token`` requests the first page. The returned page's
        ``next_page_token`` feeds the next call; ``None`` means end of listing.
        Ordering is only guaranteed within a page.
        """
        response = await self._request(
            "POST", endpoint(provider, BROWSE_PATH),
            json=self._bucket_body(bucket, credentials, prefix=prefix, page_token=page_token or ""),
        )
        return BrowsePage.from_payload(self._json(response, default={}) or {}, prefix=prefix)

    async def iter_browse(
        self,
        provider: ProviderLike,
        bucket: str,
        credentials: Credentials,
        prefix: str = "",
    ) -> AsyncIterator[BrowsePage]:
        """Yield every page under ``prefix``, following continuation tokens."""
        page_token = ""
        while True:
            page = await self.browse_objects(provider, bucket, credentials, prefix, page_token)
            yield page
            if not page.has_more:
                return
            page_token = page.next_page_token

    async def get_download_url(self, provider: ProviderLike, bucket: str, credentials: Credentials,
                               obj: str) -> str:
        """Return a time-limited direct URL for ``obj``."""
        response = await self._request(
            "POST", endpoint(provider, DOWNLOAD_PATH),
            json=self._bucket_body(bucket, credentials, object=obj),
        )
        data = self._json(response, default={}) or {}
        return data.get("url", "")

    async def delete_object(self, provider: ProviderLike, bucket: str, credentials: Credentials,
                            obj: str) -> None:
        await self._request(
            "POST", endpoint(provider, DELETE_PATH),
            json=self._bucket_body(bucket, credentials, object=obj),
        )

    async def copy_object(
        self,
        provider: ProviderLike,
        bucket: str,
        credentials: Credentials,
        source: str,
        destination: str,
        delete_source: bool = True,
    ) -> None:
        """
        Copy ``source`` to ``destination`` inside the bucket.

        With ``delete_source`` (the default) this is a move: the server copies,
        then deletes. A failure does not say which step failed, so the copy may
        or may not exist afterwards.
        """
        await self._request(
            "POST", endpoint(provider, COPY_PATH),
            json=self._bucket_body(
                bucket, credentials,
                source=source, destination=destination, delete_source=delete_source,
            ),
        )

    async def move_object(self, provider: ProviderLike, bucket: str, credentials: Credentials,
                          source: str, destination: str) -> None:
        await self.copy_object(provider, bucket, credentials, source, destination, delete_source=True)

    async def upload_objects(
        self,
        provider: ProviderLike,
        bucket: str,
        credentials: Credentials,
        prefix: str,
        files: Iterable[UploadFile],
    ) -> None:
        """
        Upload each file as its own multipart request, all at once.

        If any upload is rejected the whole call raises the first failure, after
        every request has settled. Files that did land stay in the bucket;
        re-list to find out which.
        """
        path = endpoint(provider, UPLOAD_PATH)
        fields = {
            "bucket": bucket,
            "credentials": encode_credentials(credentials),
            "prefix": prefix or "",
        }
        parts = [_file_part(f) for f in files]
        if not parts:
            return

        async with self._client() as client:
            results = await asyncio.gather(
                *(self._send(client, "POST", path, data=fields, files={"file": part}) for part in parts),
                return_exceptions=True,
            )

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            self._logger.warning(f"{len(failures)} of {len(parts)} upload(s) to {bucket} failed")
            raise failures[0]

    async def get_bucket_stats(self, provider: ProviderLike, bucket: str,
                               credentials: Credentials) -> BucketStats:
        response = await self._request(
            "POST", endpoint(provider, STATS_PATH),
            json=self._bucket_body(bucket, credentials),
        )
        return BucketStats.from_payload(self._json(response, default={}) or {})

    async def get_object_metadata(self, provider: ProviderLike, bucket: str, credentials: Credentials,
                                  obj: str) -> ObjectMetadata:
        response = await self._request(
            "POST", endpoint(provider, METADATA_PATH),
            json=self._bucket_body(bucket, credentials, object=obj),
        )
        return ObjectMetadata.from_payload(self._json(response, default={}) or {})

    async def update_object_metadata(self, provider: ProviderLike, bucket: str, credentials: Credentials,
                                     obj: str, patch: Mapping[str, Any]) -> None:
        """Merge-patch: fields absent from ``patch`` are left as they are."""
        body = self._bucket_body(bucket, credentials, object=obj)
        body.update({k: v for k, v in patch.items() if k not in body})
        await self._request("POST", endpoint(provider, METADATA_UPDATE_PATH), json=body)

    async def list_objects(self, provider: ProviderLike, bucket: str,
                           credentials: Credentials) -> ObjectListing:
        """Flat, bounded listing without cursors; prefer ``browse_objects``."""
        response = await self._request(
            "POST", endpoint(provider, OBJECTS_PATH),
            json=self._bucket_body(bucket, credentials),
        )
        return ObjectListing.from_payload(self._json(response, default={}) or {})
