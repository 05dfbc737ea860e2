"""Async connection to a tablesmith service host."""

from __future__ import annotations

import logging

from tablesmith.core.asyncio.async_binding import AsyncBinding
from tablesmith.core.asyncio.document_store import AsyncHttpDocumentStore
from tablesmith.core.asyncio.gateway import AsyncHttpDatasourceGateway
from tablesmith.core.asyncio.resolver import AsyncTableResolver
from tablesmith.core.capabilities import CapabilityContext, CapabilityProvider, ConfigCapabilityProvider
from tablesmith.core.utils.core_utils import DEFAULT_CONFIG

logger = logging.getLogger(__name__)


class AsyncTablesmithServer:
    """Wires an HTTP binding, document store and datasource gateway into resolvers.

    Example:
        async with AsyncTablesmithServer("https", "example.org", credentials) as server:
            resolver = server.connect_resolver(tenant_id="t1")
            tables = await resolver.get_all_tables()
    """

    def __init__(
        self,
        scheme: str,
        server: str,
        credentials: dict | None = None,
        session_config: dict | None = None,
        config: dict | None = None,
    ):
        """Initialize async server connection.

        Args:
            scheme: HTTP scheme ("http" or "https")
            server: Server hostname
            credentials: Authentication credentials
            session_config: Session configuration overrides
            config: Configuration mapping, see DEFAULT_CONFIG
        """
        self.scheme = scheme
        self.server = server
        self.credentials = credentials
        self.config = config or DEFAULT_CONFIG
        # resolvers read fresh state on every call
        self.binding = AsyncBinding(scheme, server, credentials, caching=False,
                                    session_config=session_config or self.config.get("session"))

    def connect_document_store(self, database: str | None = None) -> AsyncHttpDocumentStore:
        database = database or self.config.get("document_store", {}).get("database", "app")
        return AsyncHttpDocumentStore(self.binding, database)

    def connect_gateway(self) -> AsyncHttpDatasourceGateway:
        base_path = self.config.get("datasource_gateway", {}).get("base_path", "/api/datasources")
        return AsyncHttpDatasourceGateway(self.binding, base_path)

    def connect_resolver(
        self,
        tenant_id: str | None = None,
        capabilities: CapabilityProvider | None = None,
        database: str | None = None,
        validate_documents: bool = False,
    ) -> AsyncTableResolver:
        """Create a resolver for one tenant.

        Args:
            tenant_id: Tenant whose capabilities apply to normalization
            capabilities: Capability provider; defaults to the configuration's
            database: Document store database holding internal tables
            validate_documents: Validate fetched documents against their schemas
        """
        provider = capabilities or ConfigCapabilityProvider(self.config)
        context = CapabilityContext.from_provider(provider, tenant_id)
        logger.debug(f"Connecting resolver for tenant {tenant_id} on {self.server}")
        return AsyncTableResolver(
            self.connect_document_store(database),
            self.connect_gateway(),
            context,
            validate_documents=validate_documents,
        )

    async def close(self) -> None:
        await self.binding.close()

    async def __aenter__(self) -> "AsyncTablesmithServer":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
