import unittest

from tablesmith.core import \
    Table, FieldMetadata, RelatedColumn, View, Datasource, \
    FieldType, TableSourceType, SourceName, build_external_table_id

TABLE_DOC = {
    "_id": "ta_users",
    "_rev": "7-f00",
    "name": "users",
    "type": "table",
    "sourceId": "internal",
    "sourceType": "internal",
    "primaryDisplay": "name",
    "createdAt": "2024-01-01T00:00:00.000Z",
    "schema": {
        "name": {"type": "string", "name": "name", "constraints": {"presence": True}},
        "score": {"type": "number", "name": "score", "order": 2, "width": 120},
        "orders": {
            "type": "link",
            "name": "orders",
            "tableId": "datasource_ds1__orders",
            "fieldName": "customer",
            "relationshipType": "one-to-many",
            "schema": {"title": {"visible": True, "readonly": True}},
        },
        "sig": {"type": "some_future_kind", "name": "sig"},
    },
    "views": {
        "grid": {"name": "grid", "id": "view_1", "version": 2, "tableId": "ta_users",
                 "schema": {"name": {"visible": True, "order": 0}}, "query": []},
    },
    "sql": True,
}


class FieldMetadataTests(unittest.TestCase):

    def test_from_dict_parses_type(self):
        field = FieldMetadata.from_dict({"type": "link", "tableId": "ta_x"})
        self.assertEqual(field.type, FieldType.LINK)
        self.assertTrue(field.is_link)
        self.assertEqual(field.table_id, "ta_x")

    def test_unknown_type_kept_raw(self):
        field = FieldMetadata.from_dict({"type": "some_future_kind"})
        self.assertEqual(field.type, "some_future_kind")
        self.assertFalse(field.is_link)
        self.assertEqual(field.to_dict(), {"type": "some_future_kind"})

    def test_nested_schema(self):
        field = FieldMetadata.from_dict(TABLE_DOC["schema"]["orders"])
        self.assertEqual(field.schema, {"title": RelatedColumn(visible=True, readonly=True)})
        self.assertEqual(field.extra, {"fieldName": "customer", "relationshipType": "one-to-many"})

    def test_copy_is_deep(self):
        field = FieldMetadata.from_dict(TABLE_DOC["schema"]["orders"])
        copied = field.copy()
        copied.schema["title"].readonly = False
        copied.extra["fieldName"] = "other"
        self.assertTrue(field.schema["title"].readonly)
        self.assertEqual(field.extra["fieldName"], "customer")

    def test_merged(self):
        field = FieldMetadata(type=FieldType.STRING, name="status", visible=True, order=3)
        merged = field.merged({"visible": False, "width": 50, "icon": "ri-eye"})
        self.assertFalse(merged.visible)
        self.assertEqual(merged.order, 3)
        self.assertEqual(merged.width, 50)
        self.assertEqual(merged.extra, {"icon": "ri-eye"})
        self.assertTrue(field.visible)


class TableTests(unittest.TestCase):

    def test_round_trip(self):
        self.assertEqual(Table.from_dict(TABLE_DOC).to_dict(), TABLE_DOC)

    def test_from_dict(self):
        table = Table.from_dict(TABLE_DOC)
        self.assertEqual(table.id, "ta_users")
        self.assertEqual(table.source_type, TableSourceType.INTERNAL)
        self.assertEqual(table.primary_display, "name")
        self.assertEqual(table.extra, {"_rev": "7-f00", "createdAt": "2024-01-01T00:00:00.000Z"})
        self.assertTrue(table.views["grid"].is_v2)
        self.assertEqual(table.views["grid"].extra, {"query": []})

    def test_origin_follows_id(self):
        self.assertEqual(Table(id="ta_users").origin, TableSourceType.INTERNAL)
        external = Table(id=build_external_table_id("ds1", "orders"), source_type=TableSourceType.INTERNAL)
        self.assertTrue(external.is_external)
        self.assertEqual(external.origin, TableSourceType.EXTERNAL)
        self.assertFalse(Table().is_external)

    def test_minimal_document(self):
        table = Table.from_dict({"_id": "ta_1"})
        self.assertEqual(table.schema, {})
        self.assertEqual(table.views, {})
        self.assertIsNone(table.source_type)
        self.assertEqual(table.to_dict(), {"_id": "ta_1", "schema": {}})


class ViewTests(unittest.TestCase):

    def test_legacy_view(self):
        view = View.from_dict({"name": "legacy", "filters": [], "calculation": "sum"})
        self.assertFalse(view.is_v2)
        self.assertEqual(view.to_dict(), {"name": "legacy", "filters": [], "calculation": "sum"})

    def test_schema_with_field_metadata(self):
        view = View(name="v", version=2, schema={"a": FieldMetadata(type=FieldType.NUMBER, name="a")})
        self.assertEqual(view.to_dict()["schema"], {"a": {"type": "number", "name": "a"}})


class DatasourceTests(unittest.TestCase):

    def test_supports_sql(self):
        self.assertTrue(Datasource(id="a", is_sql=True, source="REST").supports_sql())
        self.assertTrue(Datasource(id="b", source="POSTGRES").supports_sql())
        self.assertTrue(Datasource(id="c", source=SourceName.SNOWFLAKE).supports_sql())
        self.assertFalse(Datasource(id="d", source="MONGODB").supports_sql())
        self.assertFalse(Datasource(id="e", source="REST", is_sql=False).supports_sql())
        self.assertFalse(Datasource(id="f").supports_sql())

    def test_round_trip(self):
        doc = {
            "_id": "ds1",
            "_rev": "1-a",
            "name": "Orders",
            "source": "MYSQL",
            "isSQL": True,
            "config": {"host": "db"},
            "entities": {"orders": {"_id": "datasource_ds1__orders", "name": "orders", "schema": {}}},
        }
        datasource = Datasource.from_dict(doc)
        self.assertEqual(datasource.entities["orders"].name, "orders")
        self.assertEqual(datasource.extra, {"_rev": "1-a"})
        self.assertEqual(datasource.to_dict(), doc)

    def test_plain_datasource(self):
        datasource = Datasource.from_dict({"_id": "ds2"})
        self.assertIsNone(datasource.entities)
        self.assertEqual(datasource.config, {})


if __name__ == '__main__':
    unittest.main()
