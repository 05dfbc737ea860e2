"""Async table resolution for tablesmith using asyncio.

The resolver consumes two collaborators through abstract interfaces:

- `AsyncDocumentStore`, holding one document per internal table;
- `AsyncDatasourceGateway`, serving datasources and their introspected
  external tables.

HTTP implementations of both are provided on top of httpx.AsyncClient.

Usage:
    from tablesmith.core.asyncio import AsyncTablesmithServer

    async def main():
        async with AsyncTablesmithServer("https", "example.org", credentials) as server:
            resolver = server.connect_resolver(tenant_id="t1")

            table = await resolver.get_table("ta_0123")
            table.schema = await resolver.enrich_relationship_schema(table.schema)
            response = resolver.enrich_view_schemas(table)

Any other `AsyncDocumentStore` / `AsyncDatasourceGateway` implementation can
be handed to `AsyncTableResolver` directly:

    resolver = AsyncTableResolver(store, gateway, CapabilityContext(tenant_id="t1"))
    tables = await resolver.get_tables(["ta_0123", "datasource_ds1__orders"])
"""

from tablesmith.core.asyncio.async_binding import AsyncBinding, AsyncHTTPError
from tablesmith.core.asyncio.document_store import AsyncDocumentStore, AsyncHttpDocumentStore
from tablesmith.core.asyncio.gateway import AsyncDatasourceGateway, AsyncHttpDatasourceGateway
from tablesmith.core.asyncio.resolver import AsyncTableResolver
from tablesmith.core.asyncio.async_server import AsyncTablesmithServer

__all__ = [
    "AsyncBinding",
    "AsyncHTTPError",
    "AsyncDocumentStore",
    "AsyncHttpDocumentStore",
    "AsyncDatasourceGateway",
    "AsyncHttpDatasourceGateway",
    "AsyncTableResolver",
    "AsyncTablesmithServer",
]
