"""Repository for collection record operations.

Provides raw-SQL CRUD over collection tables. Tables are created from the
store schema at runtime and are not mapped to ORM models. Keys and
documents arrive already encoded; see record_codec.
"""

from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from studyvault.core.logging import get_logger
from studyvault.infrastructure.persistence.table_builder import TableBuilder

logger = get_logger(__name__)


class RecordRepository:
    """Repository for collection record database operations.

    Every method runs on the connection it was given, so the caller
    controls the transaction boundary.
    """

    def __init__(self, conn: AsyncConnection) -> None:
        """Initialize the repository with a database connection.

        Args:
            conn: SQLAlchemy async connection.
        """
        self.conn = conn

    async def put(
        self,
        collection_name: str,
        key: str,
        record_type: str | None,
        document: str,
    ) -> None:
        """Insert a record, or fully replace the record with the same key.

        Args:
            collection_name: The collection name.
            key: The encoded record key.
            record_type: Value of the record's ``type`` attribute, if a string.
            document: The encoded record.
        """
        table_name = TableBuilder.generate_table_name(collection_name)
        upsert_sql = f'''
            INSERT INTO "{table_name}" ("key", "record_type", "document", "updated_at")
            VALUES (:key, :record_type, :document, :updated_at)
            ON CONFLICT("key") DO UPDATE SET
                "record_type" = excluded."record_type",
                "document" = excluded."document",
                "updated_at" = excluded."updated_at"
        '''
        await self.conn.execute(
            text(upsert_sql),
            {
                "key": key,
                "record_type": record_type,
                "document": document,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        logger.debug("Record upserted", table_name=table_name, key=key)

    async def get(self, collection_name: str, key: str) -> str | None:
        """Get the stored document for a key.

        Returns:
            The encoded document if found, None otherwise.
        """
        table_name = TableBuilder.generate_table_name(collection_name)
        result = await self.conn.execute(
            text(f'SELECT "document" FROM "{table_name}" WHERE "key" = :key'),
            {"key": key},
        )
        return result.scalar_one_or_none()

    async def get_all(self, collection_name: str) -> list[str]:
        """Get every stored document in a collection, in no particular order."""
        table_name = TableBuilder.generate_table_name(collection_name)
        result = await self.conn.execute(text(f'SELECT "document" FROM "{table_name}"'))
        return list(result.scalars().all())

    async def find_by_type(self, collection_name: str, record_type: str) -> list[str]:
        """Get the stored documents whose ``type`` attribute matches."""
        table_name = TableBuilder.generate_table_name(collection_name)
        result = await self.conn.execute(
            text(f'SELECT "document" FROM "{table_name}" WHERE "record_type" = :record_type'),
            {"record_type": record_type},
        )
        return list(result.scalars().all())

    async def delete(self, collection_name: str, key: str) -> bool:
        """Delete a record by key.

        Returns:
            True if a record was removed, False if none matched.
        """
        table_name = TableBuilder.generate_table_name(collection_name)
        result = await self.conn.execute(
            text(f'DELETE FROM "{table_name}" WHERE "key" = :key'),
            {"key": key},
        )
        return result.rowcount > 0

    async def count(self, collection_name: str) -> int:
        """Count the records in a collection."""
        table_name = TableBuilder.generate_table_name(collection_name)
        result = await self.conn.execute(text(f'SELECT COUNT(*) FROM "{table_name}"'))
        return result.scalar_one()
