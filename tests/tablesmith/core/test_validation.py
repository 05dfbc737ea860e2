import unittest

from tablesmith.core import validate_document, InvalidDocumentError
from tablesmith.core.validation import validation_errors, DOCUMENT_KINDS


class ValidationTests(unittest.TestCase):

    def test_valid_table(self):
        doc = {
            "_id": "ta_1",
            "_rev": "1-a",
            "name": "users",
            "schema": {
                "name": {"type": "string", "name": "name"},
                "orders": {"type": "link", "tableId": "ta_2", "schema": {"title": {"visible": True}}},
            },
            "views": {"v": {"name": "v", "version": 2, "schema": {}}},
        }
        self.assertIs(validate_document(doc, "table"), doc)
        self.assertEqual(validation_errors(doc, "table"), [])

    def test_field_without_type(self):
        with self.assertRaises(InvalidDocumentError) as ctx:
            validate_document({"_id": "ta_1", "schema": {"x": {"name": "x"}}}, "table")
        self.assertEqual(ctx.exception.kind, "table")
        self.assertEqual(ctx.exception.doc_id, "ta_1")
        self.assertIn("type", ctx.exception.cause)

    def test_link_without_table_id(self):
        errors = validation_errors({"_id": "ta_1", "schema": {"x": {"type": "link"}}}, "table")
        self.assertEqual(len(errors), 1)

    def test_bad_source_type(self):
        errors = validation_errors({"_id": "ta_1", "sourceType": "remote"}, "table")
        self.assertEqual(len(errors), 1)

    def test_missing_id(self):
        with self.assertRaises(InvalidDocumentError) as ctx:
            validate_document({"name": "users"}, "table")
        self.assertIsNone(ctx.exception.doc_id)

    def test_datasource(self):
        validate_document({"_id": "ds1", "source": "POSTGRES", "isSQL": True,
                           "entities": {"orders": {"name": "orders"}}}, "datasource")
        with self.assertRaises(InvalidDocumentError):
            validate_document({"_id": "ds1", "isSQL": "yes"}, "datasource")

    def test_unknown_kind(self):
        self.assertEqual(DOCUMENT_KINDS, ("table", "datasource"))
        with self.assertRaises(KeyError):
            validation_errors({"_id": "x"}, "automation")

    def test_invalid_document_is_value_error(self):
        with self.assertRaises(ValueError):
            validate_document([], "table")


if __name__ == '__main__':
    unittest.main()
