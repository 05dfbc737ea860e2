"""Table identifier codec.

Table ids come in two shapes and the shape alone decides the origin of a
table:

- external: ``datasource_<datasource id>__<table name>``, where both parts
  are percent-encoded with ``_`` escaped as well, so the first ``__`` after
  the prefix always separates them. Each table has exactly one external
  id: other percent-encodings of the same parts are not external ids;
- internal: any other string, usually ``ta_<hex>`` as produced by
  :func:`generate_table_id`.

Nothing in this module performs I/O.
"""

import re
import uuid

from .exceptions import MalformedIdError
from .utils.core_utils import urlquote, urlunquote

EXTERNAL_TABLE_PREFIX = "datasource_"
INTERNAL_TABLE_PREFIX = "ta_"
SEPARATOR = "__"

_external_pattern = re.compile(r"^%s([^_]+)%s([^_]+)$" % (EXTERNAL_TABLE_PREFIX, SEPARATOR))


def _escape(part):
    return urlquote(part).replace("_", "%5F")


def _decode(table_id):
    """Return the decoded parts of a canonical external id, else None."""
    if not isinstance(table_id, str):
        return None
    match = _external_pattern.match(table_id)
    if match is None:
        return None
    datasource_id, table_name = (urlunquote(part) for part in match.groups())
    # one table, one id: alternative percent-encodings are not external ids
    if build_external_table_id(datasource_id, table_name) != table_id:
        return None
    return datasource_id, table_name


def is_external_table_id(table_id):
    """Return True when `table_id` is a canonically encoded external id. Never raises."""
    return _decode(table_id) is not None


def is_internal_table_id(table_id):
    return isinstance(table_id, str) and table_id.startswith(INTERNAL_TABLE_PREFIX) \
        and not is_external_table_id(table_id)


def build_external_table_id(datasource_id, table_name):
    """Encode a (datasource id, table name) pair as an external table id."""
    if not datasource_id:
        raise MalformedIdError(datasource_id, "datasource id must not be empty")
    if not table_name:
        raise MalformedIdError(table_name, "table name must not be empty")
    return "".join((EXTERNAL_TABLE_PREFIX, _escape(datasource_id), SEPARATOR, _escape(table_name)))


def break_external_table_id(table_id):
    """Decode an external table id into ``(datasource_id, table_name)``.

    Raises MalformedIdError if `table_id` is not external, including ids
    whose parts are not encoded exactly as :func:`build_external_table_id`
    encodes them; gate with :func:`is_external_table_id` when the shape is
    not already known.
    """
    parts = _decode(table_id)
    if parts is None:
        raise MalformedIdError(table_id, "not an external table id")
    return parts


def generate_table_id():
    return INTERNAL_TABLE_PREFIX + uuid.uuid4().hex
