"""Table builder for collection tables and store metadata.

Each declared collection maps to one physical table. A small metadata
table records the store name and the schema version found on disk.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from studyvault.core.logging import get_logger
from studyvault.domain.entities import CollectionSpec, StoreSchema

logger = get_logger(__name__)

TABLE_PREFIX = "col_"
META_TABLE = "_studyvault_meta"

# Columns of every collection table
COLLECTION_COLUMNS = [
    ("key", "TEXT PRIMARY KEY"),
    ("record_type", "TEXT"),
    ("document", "TEXT NOT NULL"),
    ("updated_at", "TEXT NOT NULL"),
]


class TableBuilder:
    """Builds and creates collection tables and the metadata table."""

    @classmethod
    def generate_table_name(cls, collection_name: str) -> str:
        """Generate the physical table name for a collection.

        Prefixes with 'col_' to distinguish collections from the metadata table.

        Args:
            collection_name: The collection name.

        Returns:
            The generated table name.
        """
        return f"{TABLE_PREFIX}{collection_name.lower()}"

    @classmethod
    def build_create_table_ddl(cls, spec: CollectionSpec) -> str:
        """Build the CREATE TABLE statement for a collection."""
        table_name = cls.generate_table_name(spec.name)
        columns_sql = ",\n  ".join(f'"{col}" {col_type}' for col, col_type in COLLECTION_COLUMNS)
        return f'CREATE TABLE IF NOT EXISTS "{table_name}" (\n  {columns_sql}\n);'

    @classmethod
    def build_index_ddl(cls, spec: CollectionSpec) -> list[str]:
        """Build CREATE INDEX statements for a collection table.

        The record_type column is indexed for type-filtered reads.
        """
        table_name = cls.generate_table_name(spec.name)
        return [
            f'CREATE INDEX IF NOT EXISTS "idx_{table_name}_record_type" '
            f'ON "{table_name}"("record_type");'
        ]

    @classmethod
    def build_meta_table_ddl(cls) -> str:
        return (
            f'CREATE TABLE IF NOT EXISTS "{META_TABLE}" (\n'
            '  "name" TEXT PRIMARY KEY,\n'
            '  "value" TEXT NOT NULL\n'
            ");"
        )

    @classmethod
    async def create_collection(cls, conn: AsyncConnection, spec: CollectionSpec) -> None:
        """Create the physical table and indexes for a collection.

        Args:
            conn: Connection inside the upgrade transaction.
            spec: The collection to create.
        """
        table_name = cls.generate_table_name(spec.name)
        logger.info("Creating collection table", table_name=table_name, collection=spec.name)

        await conn.execute(text(cls.build_create_table_ddl(spec)))
        for index_ddl in cls.build_index_ddl(spec):
            await conn.execute(text(index_ddl))
            logger.debug("Index created", ddl=index_ddl)

    @classmethod
    async def existing_collections(cls, conn: AsyncConnection) -> set[str]:
        """Names of the collections that have a table on disk."""
        result = await conn.execute(
            text("SELECT name FROM sqlite_master WHERE type='table'")
        )
        return {
            name[len(TABLE_PREFIX):]
            for name in result.scalars().all()
            if name.startswith(TABLE_PREFIX)
        }

    @classmethod
    async def read_version(cls, conn: AsyncConnection) -> int:
        """Schema version recorded on disk, or 0 for a fresh database."""
        result = await conn.execute(
            text("SELECT name FROM sqlite_master WHERE type='table' AND name=:name"),
            {"name": META_TABLE},
        )
        if result.scalar_one_or_none() is None:
            return 0

        result = await conn.execute(
            text(f'SELECT "value" FROM "{META_TABLE}" WHERE "name" = \'version\'')
        )
        value = result.scalar_one_or_none()
        return int(value) if value is not None else 0

    @classmethod
    async def write_metadata(cls, conn: AsyncConnection, schema: StoreSchema) -> None:
        """Record the store name and schema version."""
        await conn.execute(text(cls.build_meta_table_ddl()))
        upsert_sql = (
            f'INSERT INTO "{META_TABLE}" ("name", "value") VALUES (:name, :value) '
            'ON CONFLICT("name") DO UPDATE SET "value" = excluded."value"'
        )
        await conn.execute(text(upsert_sql), {"name": "store_name", "value": schema.name})
        await conn.execute(text(upsert_sql), {"name": "version", "value": str(schema.version)})
