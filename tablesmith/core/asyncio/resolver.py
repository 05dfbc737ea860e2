"""Async table resolution over internal and external tables.

`AsyncTableResolver` presents one table abstraction over two stores:

- internal tables, one document each in an `AsyncDocumentStore`;
- external tables, introspected entities of the datasources served by an
  `AsyncDatasourceGateway`.

Which store a table id belongs to is decided by its shape alone (see
:mod:`tablesmith.core.table_id`). Every table returned has been through
:func:`tablesmith.core.normalize.normalize_table`.

Usage:
    resolver = AsyncTableResolver(store, gateway, CapabilityContext(tenant_id="t1"))
    table = await resolver.get_table(table_id)
    schema = await resolver.enrich_relationship_schema(table.schema)
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Iterable

from tablesmith.core.asyncio.document_store import AsyncDocumentStore
from tablesmith.core.asyncio.gateway import AsyncDatasourceGateway
from tablesmith.core.capabilities import CapabilityContext
from tablesmith.core.enrichment import TableResponse, enrich_relationship_schema, enrich_view_schemas
from tablesmith.core.exceptions import DatasourceNotConfiguredError, DatasourceNotFoundError, TableNotFoundError
from tablesmith.core.model import Datasource, FieldMetadata, Table
from tablesmith.core.normalize import normalize_entities, normalize_table, normalize_tables
from tablesmith.core.table_id import (
    INTERNAL_TABLE_PREFIX,
    break_external_table_id,
    build_external_table_id,
    is_external_table_id,
)
from tablesmith.core.validation import validate_document

logger = logging.getLogger(__name__)


class AsyncTableResolver:
    """Resolve tables by id, by id list, or all at once.

    The resolver holds no mutable state of its own: every call reads the
    store and gateway afresh, and errors from either propagate unchanged.

    Attributes:
        store: Document store holding internal table documents
        gateway: Datasource gateway serving external tables
        context: Capabilities of the tenant the resolver works for
        validate_documents: Validate fetched documents against their JSON schema
    """

    def __init__(
        self,
        store: AsyncDocumentStore,
        gateway: AsyncDatasourceGateway,
        context: CapabilityContext | None = None,
        validate_documents: bool = False,
        table_prefix: str = INTERNAL_TABLE_PREFIX,
    ):
        self.store = store
        self.gateway = gateway
        self.context = context or CapabilityContext()
        self.validate_documents = validate_documents
        self.table_prefix = table_prefix

    def _table_from_document(self, doc: dict[str, Any]) -> Table:
        if self.validate_documents:
            validate_document(doc, "table")
        return Table.from_dict(doc)

    def _check_datasource(self, datasource: Datasource) -> Datasource:
        if self.validate_documents:
            validate_document(datasource.to_dict(), "datasource")
        return datasource

    @staticmethod
    def _entity_tables(datasource: Datasource) -> dict[str, Table]:
        """Return the datasource's entities, with ids and source ids filled in."""
        tables = {}
        for name, table in (datasource.entities or {}).items():
            tables[name] = dataclasses.replace(
                table,
                id=table.id or build_external_table_id(datasource.id, name),
                source_id=table.source_id or datasource.id,
            )
        return tables

    def normalize(self, table: Table | None) -> Table | None:
        return normalize_table(table, self.context)

    async def get_table(self, table_id: str) -> Table:
        """Return one table.

        Raises:
            DatasourceNotFoundError: the external table's datasource is gone
            DatasourceNotConfiguredError: the datasource has no entities
            TableNotFoundError: the datasource lacks the named table
            NotFoundError: no internal table document has this id
        """
        if is_external_table_id(table_id):
            datasource_id, table_name = break_external_table_id(table_id)
            logger.debug(f"Resolving external table {table_name!r} of datasource {datasource_id}")
            datasource = await self._get_enriched_datasource(datasource_id)
            table = self._find_entity(datasource, table_name)
            output = dataclasses.replace(table, sql=datasource.supports_sql())
        else:
            logger.debug(f"Resolving internal table {table_id}")
            output = self._table_from_document(await self.store.get(table_id))
        return self.normalize(output)

    async def _get_enriched_datasource(self, datasource_id: str) -> Datasource:
        datasource = await self.gateway.get(datasource_id, enriched=True)
        if datasource is None:
            raise DatasourceNotFoundError(datasource_id)
        self._check_datasource(datasource)
        if datasource.entities is None:
            raise DatasourceNotConfiguredError(datasource_id)
        return datasource

    def _find_entity(self, datasource: Datasource, table_name: str) -> Table:
        entities = self._entity_tables(datasource)
        if table_name not in entities:
            raise TableNotFoundError(datasource.id, table_name)
        return entities[table_name]

    async def get_external_tables_in_datasource(self, datasource_id: str) -> dict[str, Table]:
        """Return the normalized entity map of one datasource, keyed by table name."""
        datasource = await self._get_enriched_datasource(datasource_id)
        return normalize_entities(self._entity_tables(datasource), self.context)

    async def get_external_table(self, datasource_id: str, table_name: str) -> Table:
        datasource = await self._get_enriched_datasource(datasource_id)
        return self.normalize(self._find_entity(datasource, table_name))

    async def get_all_internal_tables(self) -> list[Table]:
        docs = await self.store.get_range(self.table_prefix, include_docs=True)
        return normalize_tables([self._table_from_document(doc) for doc in docs], self.context)

    async def get_all_external_tables(self) -> list[Table]:
        datasources = await self.gateway.list(enriched=True)
        tables: list[Table] = []
        for datasource in datasources:
            self._check_datasource(datasource)
            if not datasource.entities:
                logger.debug(f"Datasource {datasource.id} has no entities, skipping")
                continue
            tables.extend(self._entity_tables(datasource).values())
        return normalize_tables(tables, self.context)

    async def get_all_tables(self) -> list[Table]:
        """Return every internal and external table.

        Both sides are fetched concurrently; if either fails the other is
        cancelled and the error propagates.
        """
        internal_task = asyncio.create_task(self.get_all_internal_tables())
        external_task = asyncio.create_task(self.get_all_external_tables())
        try:
            internal, external = await asyncio.gather(internal_task, external_task)
        except BaseException:
            for task in (internal_task, external_task):
                task.cancel()
            # retrieve the sibling's outcome so its error is not reported as unhandled
            await asyncio.gather(internal_task, external_task, return_exceptions=True)
            raise
        return normalize_tables([*internal, *external], self.context)

    async def get_tables(self, table_ids: Iterable[str]) -> list[Table]:
        """Return the tables among `table_ids` that exist.

        Ids of tables that do not exist are silently omitted. Internal tables
        come first, then external ones, each without duplicates.
        """
        table_ids = list(dict.fromkeys(table_ids))
        external_ids = [t for t in table_ids if is_external_table_id(t)]
        internal_ids = [t for t in table_ids if not is_external_table_id(t)]

        tables: list[Table] = []
        if internal_ids:
            docs = await self.store.get_multiple(internal_ids, allow_missing=True)
            tables.extend(self._table_from_document(doc) for doc in docs)
        if external_ids:
            wanted = set(external_ids)
            external_tables = await self.get_all_external_tables()
            tables.extend(t for t in external_tables if t.id in wanted)
        return normalize_tables(tables, self.context)

    async def enrich_relationship_schema(self, schema: dict[str, FieldMetadata]) -> dict[str, FieldMetadata]:
        """Borrow related-table columns into every link field of `schema`.

        Related tables are fetched with :meth:`get_table`, at most once per
        table id within this call.
        """
        return await enrich_relationship_schema(schema, self.get_table)

    @staticmethod
    def enrich_view_schemas(table: Table) -> TableResponse:
        return enrich_view_schemas(table)
