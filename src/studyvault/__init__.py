"""StudyVault - embedded object store for the study hub.

Named collections of structured records on a local, versioned SQLite
database, with lazy initialization and asynchronous upsert/read/delete.
"""

__version__ = "0.1.0"

from studyvault.core.exceptions import (
    ReadError,
    StoreConnectionError,
    StoreError,
    WriteError,
)
from studyvault.domain.entities import DEFAULT_SCHEMA, CollectionSpec, StoreSchema
from studyvault.domain.services import IdPolicy
from studyvault.infrastructure.persistence.database import EmbeddedStore, create_store

__all__ = [
    "CollectionSpec",
    "DEFAULT_SCHEMA",
    "EmbeddedStore",
    "IdPolicy",
    "ReadError",
    "StoreConnectionError",
    "StoreError",
    "StoreSchema",
    "WriteError",
    "__version__",
    "create_store",
]
