"""
Reactive store of configured connections across all providers.

Holds the unioned connection list plus request-lifecycle flags and the
transient ``error`` / ``notice`` messages a UI shows. Connection operations
never raise transport or server failures; they land in ``error`` instead.
Unknown provider identifiers are programming errors and do propagate.

There is no locking. ``loading``, ``testing`` and ``saving`` are independent,
and two overlapping calls of the same operation race: whichever response
settles last decides the final state.
"""

import asyncio
import logging
from typing import Any, List, Mapping, Optional

from utils.constants import (
    MSG_LOAD_FAILED, MSG_SAVED, MSG_TEST_OK, MSG_UPDATED,
    PREFIX_DELETE_FAILED, PREFIX_SAVE_FAILED, PREFIX_TEST_FAILED,
    PREFIX_TRANSPORT_ERROR, PREFIX_UPDATE_FAILED,
)
from utils.reactive import ReactiveState
from utils.storage.base import Connection, Provider
from utils.storage.client import Credentials, StorageClient
from utils.storage.errors import StorageRequestError
from utils.storage.registry import PROVIDERS, ProviderLike, resolve_provider


def _failure_message(prefix: str, error: StorageRequestError) -> str:
    """Server rejections keep their operation prefix; transport failures get the generic one."""
    if error.status_code is None:
        return PREFIX_TRANSPORT_ERROR + error.message
    return prefix + error.message


class ConnectionStore(ReactiveState):
    """Observable connection list with request flags and messages."""

    _reactive_fields = ("connections", "loading", "testing", "saving", "error", "notice")

    def __init__(self, client: Optional[StorageClient] = None):
        super().__init__()
        self._client = client
        self.connections: List[Connection] = []
        self.loading = False
        self.testing = False
        self.saving = False
        self.error = ""
        self.notice = ""
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def client(self) -> StorageClient:
        if self._client is None:
            self._client = StorageClient.from_config()
        return self._client

    @client.setter
    def client(self, value: StorageClient) -> None:
        self._client = value

    def clear_messages(self) -> None:
        self.error = ""
        self.notice = ""

    def for_provider(self, provider: ProviderLike) -> List[Connection]:
        resolved = resolve_provider(provider)
        return [c for c in self.connections if c.provider is resolved]

    # ------------------------------------------------------------------
    # Connection list
    # ------------------------------------------------------------------

    async def _fetch_one(self, provider: Provider) -> List[Connection]:
        try:
            return await self.client.list_connections(provider)
        except StorageRequestError as e:
            self._logger.warning(f"Dropping {provider.value} connections from listing: {e}")
            return []

    async def fetch_connections(self) -> None:
        """
        Reload every provider's connections concurrently.

        A provider that fails contributes nothing; the rest still load. The
        list is replaced wholesale in registry order, whatever order the
        responses arrive in.
        """
        self.loading = True
        self.clear_messages()
        try:
            results = await asyncio.gather(*(self._fetch_one(p) for p in PROVIDERS))
            merged: List[Connection] = []
            for connections in results:
                merged.extend(connections)
            self.connections = merged
            self._logger.debug(f"Loaded {len(merged)} connection(s)")
        except Exception:
            self._logger.exception("Failed to assemble connection list")
            self.error = MSG_LOAD_FAILED
        finally:
            self.loading = False

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def test_connection(self, provider: ProviderLike, bucket: str, credentials: Credentials) -> None:
        """Check credentials against the bucket without saving anything."""
        resolve_provider(provider)
        self.testing = True
        self.clear_messages()
        try:
            await self.client.test_connection(provider, bucket, credentials)
            self.notice = MSG_TEST_OK
        except StorageRequestError as e:
            self._logger.warning(f"Connection test for {bucket} failed: {e}")
            self.error = _failure_message(PREFIX_TEST_FAILED, e)
        finally:
            self.testing = False

    async def save_connection(self, provider: ProviderLike, form: Mapping[str, Any]) -> bool:
        """
        Create a connection, then refresh the list.

        Returns:
            True once the store reflects the new connection, False on failure
            (``error`` holds the reason and ``connections`` is untouched).
        """
        resolve_provider(provider)
        self.saving = True
        self.clear_messages()
        try:
            await self.client.create_connection(provider, form)
            await self.fetch_connections()
            self.notice = MSG_SAVED
            self._logger.info(f"Saved {resolve_provider(provider).value} connection")
            return True
        except StorageRequestError as e:
            self._logger.warning(f"Saving connection failed: {e}")
            self.error = _failure_message(PREFIX_SAVE_FAILED, e)
            return False
        finally:
            self.saving = False

    async def update_connection(self, provider: ProviderLike, connection_id: Any,
                                form: Mapping[str, Any]) -> bool:
        """Same contract as ``save_connection``, against an existing id."""
        resolve_provider(provider)
        self.saving = True
        self.clear_messages()
        try:
            await self.client.update_connection(provider, connection_id, form)
            await self.fetch_connections()
            self.notice = MSG_UPDATED
            self._logger.info(f"Updated {resolve_provider(provider).value} connection {connection_id}")
            return True
        except StorageRequestError as e:
            self._logger.warning(f"Updating connection {connection_id} failed: {e}")
            self.error = _failure_message(PREFIX_UPDATE_FAILED, e)
            return False
        finally:
            self.saving = False

    async def remove_connection(self, provider: ProviderLike, connection_id: Any) -> None:
        """Delete a connection and refresh. Outcome is only visible via ``error``."""
        resolve_provider(provider)
        self.clear_messages()
        try:
            await self.client.delete_connection(provider, connection_id)
        except StorageRequestError as e:
            self._logger.warning(f"Deleting connection {connection_id} failed: {e}")
            self.error = PREFIX_DELETE_FAILED + e.message
            return
        self._logger.info(f"Removed {resolve_provider(provider).value} connection {connection_id}")
        await self.fetch_connections()


# Process-wide store shared by every caller
connection_store = ConnectionStore()
