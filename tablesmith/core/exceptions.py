"""Error taxonomy for table resolution.

Callers at an API boundary map `NotFoundError` and its subclasses to
"not found" responses and `MalformedIdError` to "bad request". None of these
conditions are transient, so nothing in this package retries them.
"""


class TablesmithError (Exception):
    """Base class for all tablesmith errors."""


class NotFoundError (TablesmithError, LookupError):
    """A requested document does not exist in the document store."""

    def __init__(self, message, doc_id=None):
        super(NotFoundError, self).__init__(message)
        self.doc_id = doc_id


class DatasourceNotFoundError (NotFoundError):
    """An external table id references a datasource that no longer exists."""

    def __init__(self, datasource_id):
        super(DatasourceNotFoundError, self).__init__(
            'Datasource "%s" does not exist' % datasource_id, doc_id=datasource_id)
        self.datasource_id = datasource_id


class TableNotFoundError (NotFoundError):
    """The datasource exists but has no table with the requested name."""

    def __init__(self, datasource_id, table_name):
        super(TableNotFoundError, self).__init__(
            'Unable to find table named "%s" in datasource "%s"' % (table_name, datasource_id),
            doc_id=table_name)
        self.datasource_id = datasource_id
        self.table_name = table_name


class DatasourceNotConfiguredError (TablesmithError):
    """The datasource has no introspected entities."""

    def __init__(self, datasource_id):
        super(DatasourceNotConfiguredError, self).__init__(
            'Datasource "%s" is not configured fully' % datasource_id)
        self.datasource_id = datasource_id


class MalformedIdError (TablesmithError, ValueError):
    """A table id does not parse under the requested scheme."""

    def __init__(self, table_id, reason=None):
        msg = 'Malformed table id "%s"' % (table_id,)
        if reason:
            msg = "%s: %s" % (msg, reason)
        super(MalformedIdError, self).__init__(msg)
        self.table_id = table_id


class InvalidDocumentError (TablesmithError, ValueError):
    """A stored document does not conform to its JSON schema."""

    def __init__(self, kind, doc_id, cause):
        super(InvalidDocumentError, self).__init__(
            'Invalid %s document "%s": %s' % (kind, doc_id, cause))
        self.kind = kind
        self.doc_id = doc_id
        self.cause = cause
