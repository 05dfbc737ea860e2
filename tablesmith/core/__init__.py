__version__ = "0.9.0"

from tablesmith.core.utils.core_utils import *
from tablesmith.core.exceptions import TablesmithError, NotFoundError, DatasourceNotFoundError, TableNotFoundError, \
    DatasourceNotConfiguredError, MalformedIdError, InvalidDocumentError
from tablesmith.core.table_id import is_external_table_id, is_internal_table_id, build_external_table_id, \
    break_external_table_id, generate_table_id
from tablesmith.core.model import Table, FieldMetadata, RelatedColumn, View, Datasource, FieldType, \
    TableSourceType, SourceName, INTERNAL_TABLE_SOURCE_ID
from tablesmith.core.capabilities import CapabilityContext, CapabilityProvider, ConfigCapabilityProvider
from tablesmith.core.normalize import normalize_table, normalize_tables, normalize_entities
from tablesmith.core.enrichment import enrich_relationship_schema, enrich_view_schema, enrich_view_schemas, \
    project_related_schema
from tablesmith.core.validation import validate_document
from tablesmith.core.base_cli import BaseCLI
