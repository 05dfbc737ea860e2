"""Schema enrichment for relationship fields and v2 views.

Both enrichers decorate a base schema with derived, non-persisted metadata.
Neither ever mutates its input.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Awaitable, Callable, Mapping

from tablesmith.core.model import FieldMetadata, RelatedColumn, Table, View

logger = logging.getLogger(__name__)

TableResponse = Table
TableFetcher = Callable[[str], Awaitable[Table]]


def project_related_schema(link_field: FieldMetadata, related_table: Table) -> FieldMetadata:
    """Return a copy of `link_field` whose nested schema borrows `related_table`'s columns.

    Link columns of the related table are never borrowed, so the projection
    is a single hop. Hidden columns are skipped. A borrowed column is
    visible and readonly together when it is the related table's primary
    display column or was already readonly in the link field; otherwise it
    is neither.
    """
    result = link_field.copy()
    nested = dict(result.schema or {})
    for column_name, column in related_table.schema.items():
        if column.is_link:
            continue
        if column.visible is False:
            continue
        previous = nested.get(column_name)
        is_readonly = column_name == related_table.primary_display or bool(previous and previous.readonly)
        nested[column_name] = RelatedColumn(visible=is_readonly, readonly=is_readonly)
    result.schema = nested
    return result


async def enrich_relationship_schema(schema: Mapping[str, FieldMetadata],
                                     fetch_table: TableFetcher) -> dict[str, FieldMetadata]:
    """Project related-table columns into every link field of `schema`.

    `fetch_table` is awaited at most once per distinct related table id; the
    lookup cache lives only for the duration of this call.
    """
    table_cache: dict[str, Table] = {}
    result: dict[str, FieldMetadata] = {}
    for field_name, field in schema.items():
        if not field.is_link:
            result[field_name] = field.copy()
            continue
        if field.table_id not in table_cache:
            logger.debug("Fetching related table %s for link field %s" % (field.table_id, field_name))
            table_cache[field.table_id] = await fetch_table(field.table_id)
        result[field_name] = project_related_schema(field, table_cache[field.table_id])
    return result


def enrich_view_schema(view: View, table_schema: Mapping[str, FieldMetadata]) -> View:
    """Layer a v2 view's field overrides onto the owning table's schema.

    Fields hidden at the table level are left out. Fields the view does not
    mention are not visible in the view. When any override sets an
    ``order``, the table's own ordering is discarded in favour of the view's.
    """
    overrides: Mapping[str, Any] = view.schema or {}
    any_view_order = any(_override_get(ui, "order") is not None for ui in overrides.values())
    schema: dict[str, FieldMetadata] = {}
    for key, base in table_schema.items():
        if base.visible is False:
            continue
        ui = _override_dict(overrides.get(key))
        if ui is None:
            ui = {"visible": False}
        merged = base.merged(ui)
        merged.order = ui.get("order") if any_view_order else base.order
        schema[key] = merged
    return dataclasses.replace(view, schema=schema)


def enrich_view_schemas(table: Table) -> TableResponse:
    """Return a copy of `table` whose v2 views carry enriched schemas."""
    views: dict[str, View] = {}
    for view in (table.views or {}).values():
        enriched = enrich_view_schema(view, table.schema) if view.is_v2 else view
        views[enriched.name] = enriched
    return dataclasses.replace(table, views=views)


def _override_dict(ui: Any) -> dict[str, Any] | None:
    if ui is None:
        return None
    if isinstance(ui, FieldMetadata):
        return ui.to_dict()
    return dict(ui)


def _override_get(ui: Any, key: str) -> Any:
    if isinstance(ui, FieldMetadata):
        return getattr(ui, key)
    return (ui or {}).get(key)
