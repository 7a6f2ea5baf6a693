"""Badge cache database.

All mixins compose into the Database class via multiple inheritance.
The MRO ensures ConnectionBase.__init__ runs first, then
SchemaMixin._ensure_schema() creates/migrates the schema.
"""

from __future__ import annotations

from badgeviewer.core.db.catalog_queries import CatalogQueryMixin
from badgeviewer.core.db.connection import ConnectionBase
from badgeviewer.core.db.metadata_queries import MetadataCacheMixin
from badgeviewer.core.db.models import CachedMetadataEntry, CacheStats
from badgeviewer.core.db.schema import SchemaMixin

__all__ = [
    "CacheStats",
    "CachedMetadataEntry",
    "Database",
]


class Database(
    SchemaMixin,
    CatalogQueryMixin,
    MetadataCacheMixin,
    ConnectionBase,
):
    """Badge cache composing the catalog and metadata query mixins.

    Inherits connection management from ConnectionBase, schema handling
    from SchemaMixin, and the query methods from the remaining mixins.
    """

    pass
