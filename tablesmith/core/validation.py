"""JSON-schema validation of stored table and datasource documents."""

import json
import logging
import pkgutil
import jsonschema

from .. import core
from .exceptions import InvalidDocumentError

logger = logging.getLogger(__name__)

DOCUMENT_KINDS = ("table", "datasource")


class _DocumentSchemas (object):
    """Lazily loaded document schemas, keyed by document kind."""

    def __init__(self):
        super(_DocumentSchemas, self).__init__()
        self._schemas = {}

    def __getitem__(self, kind):
        try:
            return self._schemas[kind]
        except KeyError:
            if kind not in DOCUMENT_KINDS:
                raise
            s = pkgutil.get_data(core.__name__, 'schemas/%s.schema.json' % kind).decode()
            v = json.loads(s)
            self._schemas[kind] = v
            return v


_schemas = _DocumentSchemas()


def validation_errors(document, kind):
    """Return the list of validation errors of `document` against the schema for `kind`.

    :param document: the document (a dict) to validate
    :param kind: one of DOCUMENT_KINDS
    :return: a list of `jsonschema.ValidationError`, empty when the document is valid
    """
    validator = jsonschema.Draft7Validator(_schemas[kind])
    return sorted(validator.iter_errors(document), key=lambda e: list(e.path))


def validate_document(document, kind):
    """Raise InvalidDocumentError unless `document` conforms to the schema for `kind`."""
    errors = validation_errors(document, kind)
    if errors:
        doc_id = document.get("_id") if isinstance(document, dict) else None
        logger.error("Failed to validate %s document '%s'" % (kind, doc_id))
        for e in errors:
            logger.debug(e)
        raise InvalidDocumentError(kind, doc_id, errors[0].message)
    return document
