"""Canonical stamping of resolved tables.

Every table handed to a caller passes through :func:`normalize_table`, which
derives ``source_type`` from the id shape and fills origin-specific defaults.
Normalization returns new objects and is idempotent.
"""

from __future__ import annotations

import dataclasses
from typing import Iterable, Mapping

from tablesmith.core.capabilities import CapabilityContext
from tablesmith.core.model import INTERNAL_TABLE_SOURCE_ID, TABLE_TYPE, Table, TableSourceType
from tablesmith.core.table_id import is_external_table_id


def normalize_table(table: Table | None, context: CapabilityContext | None = None) -> Table | None:
    if not table:
        return table
    if is_external_table_id(table.id):
        return dataclasses.replace(table, type=TABLE_TYPE, source_type=TableSourceType.EXTERNAL)

    processed = dataclasses.replace(
        table,
        type=TABLE_TYPE,
        source_id=table.source_id or INTERNAL_TABLE_SOURCE_ID,
        source_type=TableSourceType.INTERNAL,
    )
    if context is not None and context.sql_search_enabled:
        processed.sql = bool(context.sql_search_feature_flag)
    return processed


def normalize_tables(tables: Iterable[Table], context: CapabilityContext | None = None) -> list[Table]:
    return [normalize_table(table, context) for table in tables]


def normalize_entities(entities: Mapping[str, Table], context: CapabilityContext | None = None) -> dict[str, Table]:
    """Normalize the values of a name -> table mapping, keeping its keys."""
    return {name: normalize_table(table, context) for name, table in entities.items()}
