import unittest

from tablesmith.core import \
    is_external_table_id, is_internal_table_id, \
    build_external_table_id, break_external_table_id, \
    generate_table_id, MalformedIdError


class ExternalTableIdTests(unittest.TestCase):

    _pairs = [
        ("ds1", "orders"),
        ("datasource_plus_1", "my_table"),
        ("ds", "a__b"),
        ("ds/with/slashes", "name with spaces"),
        ("ünïcode", "表"),
        ("_", "__"),
        ("%5F", "100%"),
    ]

    def test_build_simple(self):
        self.assertEqual(build_external_table_id("ds1", "orders"), "datasource_ds1__orders")

    def test_round_trip(self):
        for datasource_id, table_name in self._pairs:
            table_id = build_external_table_id(datasource_id, table_name)
            self.assertTrue(is_external_table_id(table_id), table_id)
            self.assertEqual(break_external_table_id(table_id), (datasource_id, table_name))

    def test_injective(self):
        ids = {build_external_table_id(d, t) for d, t in self._pairs}
        self.assertEqual(len(ids), len(self._pairs))
        self.assertNotEqual(build_external_table_id("a_b", "c"), build_external_table_id("a", "b_c"))

    def test_underscores_are_escaped(self):
        table_id = build_external_table_id("my_ds", "my_table")
        self.assertEqual(table_id, "datasource_my%5Fds__my%5Ftable")

    def test_empty_parts_rejected(self):
        with self.assertRaises(MalformedIdError):
            build_external_table_id("", "orders")
        with self.assertRaises(MalformedIdError):
            build_external_table_id("ds1", "")
        with self.assertRaises(MalformedIdError):
            build_external_table_id(None, "orders")

    def test_is_external_is_total(self):
        for value in [None, 5, b"datasource_a__b", [], {}, "", "ta_123", "datasource_", "datasource__b",
                      "datasource_a__", "datasource_a_b__c", "datasource_a__b__c", "xdatasource_a__b"]:
            self.assertFalse(is_external_table_id(value), repr(value))

    def test_break_agrees_with_is_external(self):
        for value in ["ta_123", "datasource_a__b", "datasource_a__b_c", "datasource_a", "users"]:
            if is_external_table_id(value):
                break_external_table_id(value)
            else:
                with self.assertRaises(MalformedIdError) as ctx:
                    break_external_table_id(value)
                self.assertEqual(ctx.exception.table_id, value)

    def test_alternative_encodings_rejected(self):
        """Only the encoding produced by build_external_table_id is external."""
        for value in ["datasource_ds1__ord%65rs", "datasource_my%5fds__orders",
                      "datasource_a%2fb__c", "datasource_%__orders", "datasource_ds%31__orders"]:
            self.assertFalse(is_external_table_id(value), value)
            with self.assertRaises(MalformedIdError):
                break_external_table_id(value)
        self.assertTrue(is_external_table_id("datasource_my%5Fds__orders"))
        self.assertTrue(is_external_table_id("datasource_a%2Fb__c"))

    def test_one_id_per_table(self):
        for datasource_id, table_name in self._pairs:
            table_id = build_external_table_id(datasource_id, table_name)
            self.assertEqual(build_external_table_id(*break_external_table_id(table_id)), table_id)

    def test_break_non_string(self):
        with self.assertRaises(MalformedIdError):
            break_external_table_id(None)

    def test_malformed_is_value_error(self):
        with self.assertRaises(ValueError):
            break_external_table_id("ta_1")


class InternalTableIdTests(unittest.TestCase):

    def test_generate(self):
        first = generate_table_id()
        second = generate_table_id()
        self.assertTrue(first.startswith("ta_"))
        self.assertNotEqual(first, second)
        self.assertTrue(is_internal_table_id(first))
        self.assertFalse(is_external_table_id(first))

    def test_is_internal(self):
        self.assertTrue(is_internal_table_id("ta_users"))
        self.assertFalse(is_internal_table_id("users"))
        self.assertFalse(is_internal_table_id(build_external_table_id("ds1", "orders")))
        self.assertFalse(is_internal_table_id(None))


if __name__ == '__main__':
    unittest.main()
