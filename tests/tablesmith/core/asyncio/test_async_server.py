# Tests for the async_server module.
#
# Environment variables:
#  TABLESMITH_TEST_VERBOSE: set for verbose logging output

import copy
import logging
import os
import unittest
from unittest.mock import MagicMock, patch

import httpx

from tablesmith.core import DEFAULT_CONFIG
from tablesmith.core.asyncio import (
    AsyncHttpDatasourceGateway,
    AsyncHttpDocumentStore,
    AsyncTableResolver,
    AsyncTablesmithServer,
)
from tablesmith.core.capabilities import CapabilityProvider

logger = logging.getLogger(__name__)
if os.getenv("TABLESMITH_TEST_VERBOSE"):
    logger.setLevel(logging.DEBUG)
    logger.addHandler(logging.StreamHandler())


class _AllEnabled(CapabilityProvider):

    def is_sql_search_enabled(self, tenant_id):
        return True

    def is_sql_search_feature_flagged(self):
        return True


class TestAsyncTablesmithServer(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.config = copy.deepcopy(DEFAULT_CONFIG)
        self.config["document_store"]["database"] = "app_tenant1"
        self.config["datasource_gateway"]["base_path"] = "/v2/datasources"
        self.config["capabilities"]["sql_search_tenants"] = ["t1"]
        self.config["capabilities"]["sql_search_feature_flag"] = True

    async def test_connect_document_store_uses_config(self):
        async with AsyncTablesmithServer("https", "example.org", config=self.config) as server:
            store = server.connect_document_store()

            self.assertIsInstance(store, AsyncHttpDocumentStore)
            self.assertEqual(store.database, "app_tenant1")
            self.assertIs(store.binding, server.binding)
            self.assertEqual(server.connect_document_store("other").database, "other")

    async def test_connect_gateway_uses_config(self):
        async with AsyncTablesmithServer("https", "example.org", config=self.config) as server:
            gateway = server.connect_gateway()

            self.assertIsInstance(gateway, AsyncHttpDatasourceGateway)
            self.assertEqual(gateway.base_path, "/v2/datasources")

    async def test_connect_resolver_snapshots_capabilities(self):
        async with AsyncTablesmithServer("https", "example.org", config=self.config) as server:
            resolver = server.connect_resolver(tenant_id="t1", validate_documents=True)
            other = server.connect_resolver(tenant_id="t2")

            self.assertIsInstance(resolver, AsyncTableResolver)
            self.assertTrue(resolver.validate_documents)
            self.assertEqual(resolver.context.tenant_id, "t1")
            self.assertTrue(resolver.context.sql_search_enabled)
            self.assertFalse(other.context.sql_search_enabled)

    async def test_connect_resolver_with_provider(self):
        async with AsyncTablesmithServer("https", "example.org") as server:
            resolver = server.connect_resolver(capabilities=_AllEnabled())

            self.assertTrue(resolver.context.sql_search_enabled)
            self.assertTrue(resolver.context.sql_search_feature_flag)
            self.assertEqual(resolver.store.database, "app")

    async def test_session_config(self):
        self.config["session"] = {"max_connections": 7}
        server = AsyncTablesmithServer("https", "example.org", config=self.config)
        self.assertEqual(server.binding._session_config["max_connections"], 7)

        server = AsyncTablesmithServer("https", "example.org", session_config={"max_connections": 3},
                                       config=self.config)
        self.assertEqual(server.binding._session_config["max_connections"], 3)

    @patch.object(httpx.AsyncClient, "get")
    async def test_binding_keeps_no_responses(self, mock_get):
        """Responses should not outlive the request that fetched them."""
        def respond(path, headers=None):
            response = MagicMock(spec=httpx.Response)
            response.status_code = 200
            response.headers = {"etag": '"1"'}
            return response
        mock_get.side_effect = respond

        async with AsyncTablesmithServer("https", "example.org", config=self.config) as server:
            for i in range(50):
                await server.binding.get_async(f"/app_tenant1/ta_{i}")
            await server.binding.get_async("/app_tenant1/ta_0")

            self.assertEqual(server.binding._cache, {})
            self.assertNotIn("if-none-match", mock_get.call_args[1]["headers"])

    async def test_close_closes_binding(self):
        server = AsyncTablesmithServer("https", "example.org", {"bearer-token": "abc"})
        await server.binding._get_client()

        await server.close()

        self.assertIsNone(server.binding._client)
        self.assertEqual(server.binding.credentials, {"bearer-token": "abc"})


if __name__ == "__main__":
    unittest.main()
