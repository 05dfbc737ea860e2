"""Typed table, field, view and datasource definitions.

These dataclasses mirror the JSON documents held by the document store and
returned by datasource gateways. Every class converts losslessly to and from
its document form: keys the class does not model are kept in ``extra`` and
written back unchanged by ``to_dict()``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from tablesmith.core.table_id import is_external_table_id

INTERNAL_TABLE_SOURCE_ID = "internal"
TABLE_TYPE = "table"


class TableSourceType(str, Enum):
    """Where the records of a table live."""

    INTERNAL = "internal"
    EXTERNAL = "external"


class FieldType(str, Enum):
    """Kinds of table fields.

    Only ``LINK`` carries behaviour in this package; the rest are kept so
    documents round-trip with a typed value.
    """

    STRING = "string"
    LONGFORM = "longform"
    OPTIONS = "options"
    ARRAY = "array"
    NUMBER = "number"
    BIGINT = "bigint"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    ATTACHMENTS = "attachment"
    ATTACHMENT_SINGLE = "attachment_single"
    LINK = "link"
    FORMULA = "formula"
    AUTO = "auto"
    JSON = "json"
    INTERNAL = "internal"
    BARCODEQR = "barcodeqr"
    SIGNATURE_SINGLE = "signature_single"
    BB_REFERENCE = "bb_reference"
    BB_REFERENCE_SINGLE = "bb_reference_single"

    @classmethod
    def parse(cls, value: Any) -> FieldType | str | None:
        """Return the enum member for `value`, or `value` itself when unknown."""
        if value is None or isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return value


class SourceName(str, Enum):
    """Integrations a datasource can be backed by."""

    POSTGRES = "POSTGRES"
    MYSQL = "MYSQL"
    SQL_SERVER = "SQL_SERVER"
    ORACLE = "ORACLE"
    MARIADB = "MARIADB"
    SNOWFLAKE = "SNOWFLAKE"
    REDSHIFT = "REDSHIFT"
    MONGODB = "MONGODB"
    COUCHDB = "COUCHDB"
    DYNAMODB = "DYNAMODB"
    ELASTICSEARCH = "ELASTICSEARCH"
    REST = "REST"
    GOOGLE_SHEETS = "GOOGLE_SHEETS"
    AIRTABLE = "AIRTABLE"
    S3 = "S3"


SQL_SOURCES = frozenset({
    SourceName.POSTGRES,
    SourceName.MYSQL,
    SourceName.SQL_SERVER,
    SourceName.ORACLE,
    SourceName.MARIADB,
    SourceName.SNOWFLAKE,
    SourceName.REDSHIFT,
})


def _pop_extra(d: dict[str, Any], known: tuple[str, ...]) -> dict[str, Any]:
    return {k: copy.deepcopy(v) for k, v in d.items() if k not in known}


def _put(d: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        d[key] = value


@dataclass
class RelatedColumn:
    """Visibility of one borrowed column inside a link field's nested schema."""

    visible: bool | None = None
    readonly: bool | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    _keys = ("visible", "readonly")

    def to_dict(self) -> dict[str, Any]:
        d = copy.deepcopy(self.extra)
        _put(d, "visible", self.visible)
        _put(d, "readonly", self.readonly)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> RelatedColumn:
        return cls(
            visible=d.get("visible"),
            readonly=d.get("readonly"),
            extra=_pop_extra(d, cls._keys),
        )


@dataclass
class FieldMetadata:
    """Metadata of a single table field.

    Attributes:
        type: Field kind; a FieldType member or the raw string for kinds this
            package does not know.
        name: Field name, normally equal to its key in the table schema.
        visible: False hides the field; None means "not specified".
        readonly: True forbids writes through views.
        order: Display position.
        width: Display width.
        constraints: Opaque validation constraints.
        table_id: For LINK fields, the id of the related table.
        schema: For LINK fields, the borrowed columns of the related table.
        extra: Any other document keys, preserved verbatim.
    """

    type: FieldType | str | None = None
    name: str | None = None
    visible: bool | None = None
    readonly: bool | None = None
    order: int | None = None
    width: int | None = None
    constraints: dict[str, Any] | None = None
    table_id: str | None = None
    schema: dict[str, RelatedColumn] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    _keys = ("type", "name", "visible", "readonly", "order", "width", "constraints", "tableId", "schema")

    @property
    def is_link(self) -> bool:
        return self.type == FieldType.LINK

    def copy(self) -> FieldMetadata:
        """Return a copy that shares no mutable state with this field."""
        return copy.deepcopy(self)

    def merged(self, overrides: dict[str, Any]) -> FieldMetadata:
        """Return a new field whose document form is this one updated with `overrides`."""
        d = self.to_dict()
        d.update(copy.deepcopy(dict(overrides)))
        return FieldMetadata.from_dict(d)

    def to_dict(self) -> dict[str, Any]:
        d = copy.deepcopy(self.extra)
        _put(d, "type", self.type.value if isinstance(self.type, FieldType) else self.type)
        _put(d, "name", self.name)
        _put(d, "visible", self.visible)
        _put(d, "readonly", self.readonly)
        _put(d, "order", self.order)
        _put(d, "width", self.width)
        _put(d, "constraints", copy.deepcopy(self.constraints))
        _put(d, "tableId", self.table_id)
        if self.schema is not None:
            d["schema"] = {k: v.to_dict() for k, v in self.schema.items()}
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FieldMetadata:
        schema = d.get("schema")
        return cls(
            type=FieldType.parse(d.get("type")),
            name=d.get("name"),
            visible=d.get("visible"),
            readonly=d.get("readonly"),
            order=d.get("order"),
            width=d.get("width"),
            constraints=copy.deepcopy(d.get("constraints")),
            table_id=d.get("tableId"),
            schema={k: RelatedColumn.from_dict(v) for k, v in schema.items()} if schema is not None else None,
            extra=_pop_extra(d, cls._keys),
        )


@dataclass
class View:
    """A named view over a table.

    Legacy views carry whatever their document holds. Views with
    ``version == 2`` carry a ``schema`` of per-field override mappings which
    can be layered onto the owning table's schema.
    """

    name: str | None = None
    id: str | None = None
    version: int | None = None
    table_id: str | None = None
    schema: dict[str, Any] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    _keys = ("name", "id", "version", "tableId", "schema")

    @property
    def is_v2(self) -> bool:
        return self.version == 2

    def to_dict(self) -> dict[str, Any]:
        d = copy.deepcopy(self.extra)
        _put(d, "name", self.name)
        _put(d, "id", self.id)
        _put(d, "version", self.version)
        _put(d, "tableId", self.table_id)
        if self.schema is not None:
            d["schema"] = {
                k: v.to_dict() if isinstance(v, FieldMetadata) else copy.deepcopy(v)
                for k, v in self.schema.items()
            }
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> View:
        schema = d.get("schema")
        return cls(
            name=d.get("name"),
            id=d.get("id"),
            version=d.get("version"),
            table_id=d.get("tableId"),
            schema=copy.deepcopy(schema) if schema is not None else None,
            extra=_pop_extra(d, cls._keys),
        )


@dataclass
class Table:
    """A table, internal or external.

    The origin of a table is never stored independently: `is_external` and
    `origin` are derived from the shape of `id` alone. `source_type` is the
    stamped copy written by the normalizer for document consumers.
    """

    id: str | None = None
    name: str | None = None
    schema: dict[str, FieldMetadata] = field(default_factory=dict)
    source_id: str | None = None
    source_type: TableSourceType | None = None
    type: str | None = None
    primary_display: str | None = None
    views: dict[str, View] = field(default_factory=dict)
    sql: bool | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    _keys = ("_id", "name", "schema", "sourceId", "sourceType", "type", "primaryDisplay", "views", "sql")

    @property
    def is_external(self) -> bool:
        return is_external_table_id(self.id)

    @property
    def origin(self) -> TableSourceType:
        return TableSourceType.EXTERNAL if self.is_external else TableSourceType.INTERNAL

    def to_dict(self) -> dict[str, Any]:
        d = copy.deepcopy(self.extra)
        _put(d, "_id", self.id)
        _put(d, "name", self.name)
        d["schema"] = {k: v.to_dict() for k, v in self.schema.items()}
        _put(d, "sourceId", self.source_id)
        _put(d, "sourceType", self.source_type.value if self.source_type is not None else None)
        _put(d, "type", self.type)
        _put(d, "primaryDisplay", self.primary_display)
        if self.views:
            d["views"] = {k: v.to_dict() for k, v in self.views.items()}
        _put(d, "sql", self.sql)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Table:
        source_type = d.get("sourceType")
        return cls(
            id=d.get("_id"),
            name=d.get("name"),
            schema={k: FieldMetadata.from_dict(v) for k, v in (d.get("schema") or {}).items()},
            source_id=d.get("sourceId"),
            source_type=TableSourceType(source_type) if source_type is not None else None,
            type=d.get("type"),
            primary_display=d.get("primaryDisplay"),
            views={k: View.from_dict(v) for k, v in (d.get("views") or {}).items()},
            sql=d.get("sql"),
            extra=_pop_extra(d, cls._keys),
        )


@dataclass
class Datasource:
    """A configured external datasource.

    `entities` is only populated when the datasource was fetched enriched,
    i.e. with its introspected tables. Nothing in this package mutates a
    datasource or its entities.
    """

    id: str
    name: str | None = None
    source: SourceName | str | None = None
    is_sql: bool | None = None
    entities: dict[str, Table] | None = None
    config: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    _keys = ("_id", "name", "source", "isSQL", "entities", "config")

    def supports_sql(self) -> bool:
        """True when the datasource is flagged as SQL or backed by a SQL integration."""
        if self.is_sql is True:
            return True
        return self.source in {s.value for s in SQL_SOURCES}

    def to_dict(self) -> dict[str, Any]:
        d = copy.deepcopy(self.extra)
        d["_id"] = self.id
        _put(d, "name", self.name)
        _put(d, "source", self.source.value if isinstance(self.source, SourceName) else self.source)
        _put(d, "isSQL", self.is_sql)
        if self.entities is not None:
            d["entities"] = {k: v.to_dict() for k, v in self.entities.items()}
        d["config"] = copy.deepcopy(self.config)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Datasource:
        entities = d.get("entities")
        return cls(
            id=d["_id"],
            name=d.get("name"),
            source=d.get("source"),
            is_sql=d.get("isSQL"),
            entities={k: Table.from_dict(v) for k, v in entities.items()} if entities is not None else None,
            config=copy.deepcopy(d.get("config") or {}),
            extra=_pop_extra(d, cls._keys),
        )
