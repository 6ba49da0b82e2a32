"""Store schema entities.

A store schema names the database, its version, and the collections it
declares. It is the single authoritative definition of which collections
exist and which attribute keys each of them.
"""

import re
from dataclasses import dataclass, field

COLLECTION_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


@dataclass(frozen=True)
class CollectionSpec:
    """A named, independently keyed partition of the store.

    Attributes:
        name: Collection name (e.g. "vault").
        key_path: Record attribute used as the unique key. Fixed for the
            lifetime of the collection.
    """

    name: str
    key_path: str = "id"

    def __post_init__(self) -> None:
        """Validate collection data after initialization."""
        if not COLLECTION_NAME_PATTERN.match(self.name or ""):
            raise ValueError(
                f"Invalid collection name {self.name!r}: use lowercase letters, "
                "digits and underscores, starting with a letter"
            )
        if not self.key_path:
            raise ValueError("Collection key_path is required")


@dataclass(frozen=True)
class StoreSchema:
    """Versioned schema of an embedded store.

    Attributes:
        name: Logical store name, recorded in the metadata table.
        version: Schema version. Collections are only added when this
            increases past the version found on disk.
        collections: Declared collections.
    """

    name: str
    version: int
    collections: tuple[CollectionSpec, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Store name is required")
        if not isinstance(self.version, int) or self.version < 1:
            raise ValueError("Store version must be a positive integer")
        names = [c.name for c in self.collections]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate collections in schema: {duplicates}")

    @property
    def collection_names(self) -> frozenset[str]:
        return frozenset(c.name for c in self.collections)

    def get_collection(self, name: str) -> CollectionSpec | None:
        """Look up a declared collection by name."""
        for spec in self.collections:
            if spec.name == name:
                return spec
        return None

    def with_version(self, version: int) -> "StoreSchema":
        """Return a copy of this schema at a different version."""
        return StoreSchema(name=self.name, version=version, collections=self.collections)


DEFAULT_SCHEMA = StoreSchema(
    name="ForraNovaVault",
    version=2,
    collections=(
        CollectionSpec("vault"),
        CollectionSpec("gallery"),
        CollectionSpec("exam_results"),
        CollectionSpec("user_state"),
        CollectionSpec("team"),
    ),
)
