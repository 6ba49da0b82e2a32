"""Infrastructure layer - External dependencies and implementations.

This layer contains the embedded store: SQLAlchemy async engine over
aiosqlite, collection tables, and the record codec.
"""

from studyvault.infrastructure.persistence.database import (
    EmbeddedStore,
    StoreState,
    create_store,
)

__all__ = [
    "EmbeddedStore",
    "StoreState",
    "create_store",
]
