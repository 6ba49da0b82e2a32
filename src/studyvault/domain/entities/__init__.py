"""Domain entities for StudyVault.

Entities are pure Python dataclasses that represent core concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from studyvault.domain.entities.schema import (
    COLLECTION_NAME_PATTERN,
    DEFAULT_SCHEMA,
    CollectionSpec,
    StoreSchema,
)

__all__ = [
    "COLLECTION_NAME_PATTERN",
    "CollectionSpec",
    "DEFAULT_SCHEMA",
    "StoreSchema",
]
