"""Tests for utils/storage/connections.py: ConnectionStore flags, messages and refresh rules."""

import asyncio
import unittest
from unittest.mock import AsyncMock, patch

import httpx

from tests.fake_api import FakeStorageAPI
from utils.storage.base import Connection, Provider
from utils.storage.client import StorageClient
from utils.storage.connections import ConnectionStore, connection_store
from utils.storage.errors import UnknownProviderError

CREDS = {"access_key_id": "AK", "secret_access_key": "SK"}


class StoreTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.api = FakeStorageAPI()
        self.store = ConnectionStore(client=self.api.client())
        self.changes = []
        self.store.subscribe(lambda name, old, new: self.changes.append((name, old, new)))

    def flag_history(self, name):
        return [new for field, _, new in self.changes if field == name]


class TestFetchConnections(StoreTestCase):

    async def test_records_are_tagged_with_source_provider(self):
        self.api.add_connection("gcp", name="g", bucket="gb", provider="aws")
        self.api.add_connection("azure", name="z", bucket="zb")

        await self.store.fetch_connections()

        self.assertEqual([c.provider for c in self.store.connections], [Provider.GCP, Provider.AZURE])
        self.assertEqual(self.store.connections[0].get("provider"), "gcp")
        self.assertEqual(self.store.connections[0].to_dict()["provider"], "gcp")
        self.assertEqual(self.store.connections[1].bucket, "zb")

    async def test_failed_providers_degrade_to_empty(self):
        for code in ("gcp", "aws", "huawei", "alibaba", "azure"):
            self.api.add_connection(code, name=code, bucket=f"{code}-bucket")
        self.api.down.add("aws")
        self.api.unreachable.add("alibaba")

        await self.store.fetch_connections()

        self.assertFalse(self.store.loading)
        self.assertEqual(self.store.error, "")
        self.assertEqual([c.name for c in self.store.connections], ["gcp", "huawei", "azure"])

    async def test_stale_entries_from_failed_provider_are_dropped(self):
        self.api.add_connection("aws", name="a", bucket="ab")
        await self.store.fetch_connections()
        self.assertEqual(len(self.store.connections), 1)

        self.api.down.add("aws")
        await self.store.fetch_connections()
        self.assertEqual(self.store.connections, [])

    async def test_result_order_follows_registry_not_arrival(self):
        self.api.add_connection("gcp", name="first")
        self.api.add_connection("azure", name="last")
        self.api.delays = {"gcp": 0.05, "azure": 0.0}

        await self.store.fetch_connections()

        self.assertEqual([c.name for c in self.store.connections], ["first", "last"])

    async def test_requests_run_concurrently(self):
        self.api.delays = {code: 0.1 for code in ("gcp", "aws", "huawei", "alibaba", "azure")}
        loop = asyncio.get_running_loop()
        started = loop.time()
        await self.store.fetch_connections()
        self.assertLess(loop.time() - started, 0.4)
        self.assertEqual(len(self.api.paths("GET")), 5)

    async def test_loading_flag_transitions(self):
        await self.store.fetch_connections()
        self.assertEqual(self.flag_history("loading"), [True, False])

    async def test_aggregation_failure_sets_error(self):
        with patch.object(self.store, "_fetch_one", AsyncMock(side_effect=RuntimeError("boom"))):
            await self.store.fetch_connections()
        self.assertEqual(self.store.error, "Failed to load connections.")
        self.assertFalse(self.store.loading)


class TestTestConnection(StoreTestCase):

    async def test_success_sets_notice(self):
        await self.store.test_connection("aws", "b1", CREDS)
        self.assertEqual(self.store.notice, "Connection test succeeded ✓")
        self.assertEqual(self.store.error, "")
        self.assertEqual(self.flag_history("testing"), [True, False])

    async def test_rejection_appends_server_detail(self):
        self.api.reject("POST", "/api/aws/test", 400, "AccessDenied")
        await self.store.test_connection("aws", "b1", CREDS)
        self.assertEqual(self.store.error, "Test failed: AccessDenied")
        self.assertFalse(self.store.testing)

    async def test_transport_failure_uses_exception_message(self):
        self.api.unreachable.add("aws")
        await self.store.test_connection("aws", "b1", CREDS)
        self.assertEqual(self.store.error, "Error: [Errno 111] Connection refused")

    async def test_does_not_touch_connections(self):
        self.api.add_connection("aws", name="a")
        await self.store.fetch_connections()
        before = self.store.connections
        await self.store.test_connection("aws", "b1", CREDS)
        self.assertIs(self.store.connections, before)


class TestSaveConnection(StoreTestCase):

    async def test_save_refreshes_and_reports_success(self):
        ok = await self.store.save_connection("aws", {"name": "media", "bucket": "b1", "credentials": CREDS})

        self.assertTrue(ok)
        self.assertEqual(self.flag_history("saving"), [True, False])
        self.assertEqual(self.store.notice, "Connection saved ✓")
        self.assertEqual(len(self.store.connections), 1)
        self.assertEqual(self.store.connections[0].provider, Provider.AWS)
        self.assertEqual(self.store.connections[0].bucket, "b1")

    async def test_rejected_save_leaves_connections_untouched(self):
        self.api.add_connection("aws", name="existing")
        await self.store.fetch_connections()
        before = self.store.connections
        self.api.reject("POST", "/api/aws/connection", 400, "bucket name invalid")

        ok = await self.store.save_connection("aws", {"bucket": "BAD"})

        self.assertFalse(ok)
        self.assertEqual(self.store.error, "Save failed: bucket name invalid")
        self.assertIs(self.store.connections, before)
        self.assertFalse(self.store.saving)

    async def test_transport_failure_returns_false(self):
        self.api.unreachable.add("gcp")
        ok = await self.store.save_connection("gcp", {"bucket": "b"})
        self.assertFalse(ok)
        self.assertTrue(self.store.error.startswith("Error: "))

    async def test_store_matches_fresh_fetch_after_save(self):
        await self.store.save_connection("huawei", {"name": "obs", "bucket": "b"})
        fresh = ConnectionStore(client=self.api.client())
        await fresh.fetch_connections()
        self.assertEqual(self.store.connections, fresh.connections)

    async def test_clears_previous_messages(self):
        self.store.error = "stale"
        await self.store.save_connection("aws", {"bucket": "b1"})
        self.assertEqual(self.store.error, "")

    async def test_unknown_provider_propagates(self):
        with self.assertRaises(UnknownProviderError):
            await self.store.save_connection("dropbox", {"bucket": "b1"})
        self.assertFalse(self.store.saving)

    async def test_plain_text_success_reply_counts_as_saved(self):
        self.api.plain_replies.add(("POST", "/api/aws/connection"))

        ok = await self.store.save_connection("aws", {"name": "media", "bucket": "b1"})

        self.assertTrue(ok)
        self.assertEqual(self.store.error, "")
        self.assertEqual(self.store.notice, "Connection saved ✓")
        self.assertEqual([c.name for c in self.store.connections], ["media"])

    async def test_form_provider_field_does_not_retag(self):
        ok = await self.store.save_connection("gcp", {"name": "g", "bucket": "gb", "provider": "aws"})

        self.assertTrue(ok)
        self.assertEqual([c.provider for c in self.store.connections], [Provider.GCP])
        self.assertEqual(self.api.connections["gcp"][0]["provider"], "aws")


class TestUpdateConnection(StoreTestCase):

    async def test_update_refreshes(self):
        record = self.api.add_connection("alibaba", name="old", bucket="b")
        ok = await self.store.update_connection("alibaba", record["id"], {"name": "new", "bucket": "b"})

        self.assertTrue(ok)
        self.assertEqual(self.store.notice, "Connection updated ✓")
        self.assertEqual([c.name for c in self.store.connections], ["new"])
        self.assertIn(f"/api/alibaba/connection/{record['id']}", self.api.paths("PUT"))

    async def test_update_missing_id_fails(self):
        ok = await self.store.update_connection("alibaba", 999, {"name": "x"})
        self.assertFalse(ok)
        self.assertEqual(self.store.error, "Update failed: connection not found")

    async def test_plain_text_success_reply_counts_as_updated(self):
        record = self.api.add_connection("alibaba", name="old", bucket="b")
        self.api.plain_replies.add(("PUT", f"/api/alibaba/connection/{record['id']}"))

        ok = await self.store.update_connection("alibaba", record["id"], {"name": "new"})

        self.assertTrue(ok)
        self.assertEqual(self.store.notice, "Connection updated ✓")
        self.assertEqual([c.name for c in self.store.connections], ["new"])


class TestRemoveConnection(StoreTestCase):

    async def test_remove_refreshes_and_returns_nothing(self):
        record = self.api.add_connection("azure", name="z")
        await self.store.fetch_connections()

        result = await self.store.remove_connection("azure", record["id"])

        self.assertIsNone(result)
        self.assertEqual(self.store.connections, [])
        self.assertIn(f"/api/azure/connection/{record['id']}", self.api.paths("DELETE"))

    async def test_remove_failure_sets_error_without_refresh(self):
        await self.store.remove_connection("azure", 42)
        self.assertEqual(self.store.error, "Delete failed: connection not found")
        self.assertEqual(self.api.paths("GET"), [])


class TestOverlappingOperations(StoreTestCase):

    async def test_test_and_save_keep_independent_flags(self):
        self.api.delays = {"aws": 0.05}

        testing = asyncio.create_task(self.store.test_connection("aws", "b1", CREDS))
        saving = asyncio.create_task(self.store.save_connection("gcp", {"name": "g", "bucket": "gb"}))
        await asyncio.sleep(0.01)

        self.assertTrue(self.store.testing)
        self.assertTrue(self.store.saving)

        await asyncio.gather(testing, saving)

        self.assertFalse(self.store.testing)
        self.assertFalse(self.store.saving)
        self.assertEqual(self.flag_history("testing"), [True, False])
        self.assertEqual(self.flag_history("saving"), [True, False])

    async def test_stalled_request_holds_flag(self):
        self.api.stalled.add("huawei")
        task = asyncio.create_task(self.store.fetch_connections())

        with self.assertRaises(asyncio.TimeoutError):
            await asyncio.wait_for(asyncio.shield(task), 0.1)
        self.assertTrue(self.store.loading)

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

    async def test_decoding_failure_is_reported_not_raised(self):
        def handler(request):
            raise httpx.DecodingError("Error decoding response body", request=request)

        self.store.client = StorageClient(base_url="http://storage.test", transport=httpx.MockTransport(handler))

        await self.store.test_connection("aws", "b1", CREDS)

        self.assertEqual(self.store.error, "Error: Error decoding response body")
        self.assertFalse(self.store.testing)


class TestClearMessages(unittest.TestCase):

    def test_idempotent(self):
        store = ConnectionStore(client=FakeStorageAPI().client())
        store.error = "e"
        store.notice = "n"
        store.clear_messages()
        store.clear_messages()
        self.assertEqual((store.error, store.notice), ("", ""))

    def test_for_provider_filters(self):
        store = ConnectionStore(client=FakeStorageAPI().client())
        store.connections = [
            Connection.from_payload(Provider.GCP, {"id": 1}),
            Connection.from_payload(Provider.AWS, {"id": 2}),
        ]
        self.assertEqual([c.id for c in store.for_provider("aws")], [2])

    def test_module_store_is_shared(self):
        from utils.storage import connection_store as exported
        self.assertIs(exported, connection_store)


if __name__ == "__main__":
    unittest.main()
