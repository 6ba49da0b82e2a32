"""Embedded object store on SQLAlchemy 2.0 async over aiosqlite.

The store owns a single lazily created engine per instance. The first
operation opens the database, upgrades its schema when the requested
version is newer than the one on disk, and then serves collection-scoped
CRUD. Collaborators receive the store instance by injection and never touch
the engine directly.
"""

import asyncio
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from studyvault.core.config import Settings, get_settings, sqlite_database_path
from studyvault.core.exceptions import (
    ReadError,
    StoreConnectionError,
    StoreError,
    WriteError,
)
from studyvault.core.logging import get_logger
from studyvault.domain.entities import DEFAULT_SCHEMA, CollectionSpec, StoreSchema
from studyvault.domain.services import IdPolicy, RecordIdGenerator
from studyvault.infrastructure.persistence.record_codec import (
    decode_record,
    encode_key,
    encode_record,
)
from studyvault.infrastructure.persistence.repositories import RecordRepository
from studyvault.infrastructure.persistence.table_builder import TableBuilder

logger = get_logger(__name__)

Record = dict[str, Any]

# SQLite messages meaning the handle or the schema under it is gone
_CONNECTION_LOST_MARKERS = (
    "no such table",
    "unable to open database",
    "disk i/o error",
    "file is not a database",
    "malformed",
    "readonly database",
)
_QUOTA_MARKERS = ("database or disk is full", "string or blob too big")


class StoreState(str, Enum):
    """Lifecycle of the store's connection."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class EmbeddedStore:
    """Collection-scoped CRUD over a versioned embedded database.

    ``init()`` is idempotent and coalesces concurrent callers into the one
    in-flight initialization. Every other operation calls it first, so
    collaborators never need to. There is no internal retry: failures are
    raised as ``StoreConnectionError``, ``ReadError`` or ``WriteError``.

    Example:
        store = EmbeddedStore("sqlite+aiosqlite:///./sv_data/studyvault.db")
        saved = await store.save("vault", {"id": "a.txt", "type": "document"})
        records = await store.get_all("vault")
    """

    def __init__(
        self,
        database_url: str,
        schema: StoreSchema = DEFAULT_SCHEMA,
        *,
        echo: bool = False,
        journal_mode: str = "WAL",
        busy_timeout: int = 5000,
        max_record_bytes: int = 50 * 1024 * 1024,
    ) -> None:
        self.database_url = database_url
        self.schema = schema
        self.echo = echo
        self.journal_mode = journal_mode
        self.busy_timeout = busy_timeout
        self.max_record_bytes = max_record_bytes

        self._engine: AsyncEngine | None = None
        self._state = StoreState.UNINITIALIZED
        self._init_future: asyncio.Future[AsyncEngine] | None = None
        self._available: dict[str, CollectionSpec] = {}
        # (path, st_dev, st_ino) of the database file opened by init()
        self._file_identity: tuple[str, int, int] | None = None

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def collections(self) -> list[str]:
        """Collections usable on the open database, sorted by name."""
        return sorted(self._available)

    @property
    def _database_path(self) -> str | None:
        return sqlite_database_path(self.database_url)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def init(self) -> AsyncEngine:
        """Open the database and bring its schema up to date.

        Returns:
            AsyncEngine: The connection handle shared by all operations.

        Raises:
            StoreConnectionError: If the database cannot be opened, or the
                on-disk schema version is newer than the requested one.
        """
        if self._state is StoreState.READY and self._engine is not None:
            return self._engine

        if self._init_future is None:
            self._state = StoreState.INITIALIZING
            self._init_future = asyncio.ensure_future(self._initialize())
        # Shielded so that one cancelled caller does not abort the others
        return await asyncio.shield(self._init_future)

    async def _initialize(self) -> AsyncEngine:
        this_init = asyncio.current_task()
        engine: AsyncEngine | None = None
        file_identity: tuple[str, int, int] | None = None
        try:
            db_path = self._database_path
            if db_path is not None:
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)

            engine = self._create_engine()
            async with engine.begin() as conn:
                on_disk = await TableBuilder.read_version(conn)
                if on_disk > self.schema.version:
                    raise StoreConnectionError(
                        f"Database {self.schema.name!r} is at version {on_disk}, "
                        f"newer than requested version {self.schema.version}"
                    )
                if on_disk < self.schema.version:
                    await self._upgrade(conn, on_disk)
                on_disk_collections = await TableBuilder.existing_collections(conn)

            if db_path is not None:
                resolved = str(Path(db_path).resolve())
                st = os.stat(resolved)
                file_identity = (resolved, st.st_dev, st.st_ino)

        except BaseException as e:
            if self._init_future is this_init:
                self._state = StoreState.UNINITIALIZED
                self._init_future = None
            if engine is not None:
                await engine.dispose()
            if isinstance(e, StoreError):
                logger.error("Store initialization failed", error=e.message)
                raise
            if isinstance(e, (SQLAlchemyError, OSError)):
                logger.error("Store initialization failed", error=str(e))
                raise StoreConnectionError(f"Failed to open embedded store: {e}") from e
            raise

        if self._init_future is not this_init:
            # close() ran while this initialization was in flight
            await engine.dispose()
            logger.warning("Store closed during initialization", store=self.schema.name)
            raise StoreConnectionError("Store was closed while initializing")

        self._engine = engine
        self._file_identity = file_identity
        self._available = {
            spec.name: spec
            for spec in self.schema.collections
            if spec.name in on_disk_collections
        }
        self._state = StoreState.READY
        logger.info(
            "Embedded store ready",
            store=self.schema.name,
            version=self.schema.version,
            collections=self.collections,
        )
        return engine

    def _create_engine(self) -> AsyncEngine:
        in_memory = self._database_path is None
        engine = create_async_engine(
            self.database_url,
            echo=self.echo,
            connect_args={"check_same_thread": False},
            # A private in-memory database only lives as long as its connection
            **({"poolclass": StaticPool} if in_memory else {}),
        )

        busy_timeout = int(self.busy_timeout)
        journal_mode = self.journal_mode

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute(f"PRAGMA busy_timeout={busy_timeout}")
            if not in_memory:
                cursor.execute(f"PRAGMA journal_mode={journal_mode}")
            cursor.close()

        logger.debug(
            "Database engine created",
            database_url=engine.url.render_as_string(hide_password=True),
        )
        return engine

    async def _upgrade(self, conn: Any, from_version: int) -> None:
        """Create declared collections missing on disk, then record the version.

        Existing collections are never dropped or renamed. The version is
        written last, so an interrupted upgrade runs again on the next init.
        """
        existing = await TableBuilder.existing_collections(conn)
        created = []
        for spec in self.schema.collections:
            if spec.name not in existing:
                await TableBuilder.create_collection(conn, spec)
                created.append(spec.name)
        await TableBuilder.write_metadata(conn, self.schema)
        logger.info(
            "Store schema upgraded",
            store=self.schema.name,
            from_version=from_version,
            to_version=self.schema.version,
            created=created,
        )

    async def close(self) -> None:
        """Dispose the engine and return to the uninitialized state.

        A later operation opens the database again.
        """
        engine = self._engine
        self._engine = None
        self._available = {}
        self._file_identity = None
        self._init_future = None
        self._state = StoreState.UNINITIALIZED
        if engine is not None:
            await engine.dispose()
            logger.info("Database engine disposed", store=self.schema.name)

    async def check_connection(self) -> bool:
        """Check if the database answers a trivial query."""
        try:
            engine = await self.init()
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (StoreError, SQLAlchemyError) as e:
            logger.error("Database connection check failed", error=str(e))
            return False

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def save(
        self,
        collection: str,
        record: Record,
        id_policy: IdPolicy = IdPolicy.GENERATE,
    ) -> Record:
        """Insert a record, or fully replace the record sharing its key.

        Args:
            collection: Name of a declared collection.
            record: The document to store. It is not modified.
            id_policy: What to do when the record has no key. GENERATE
                assigns a fresh one; REQUIRE rejects the record.

        Returns:
            The stored record as a subsequent read returns it, key included.

        Raises:
            WriteError: Undeclared collection, invalid record or key, record
                over the size quota, or aborted transaction.
        """
        spec = await self._resolve(collection, WriteError)
        if not isinstance(record, dict):
            raise WriteError(
                f"Record must be a dict, got {type(record).__name__}", collection=collection
            )

        document = dict(record)
        key = document.get(spec.key_path)
        if RecordIdGenerator.is_missing(key):
            if IdPolicy(id_policy) is IdPolicy.REQUIRE:
                raise WriteError(
                    f"Record has no {spec.key_path!r} and the id policy requires one",
                    collection=collection,
                )
            key = RecordIdGenerator.generate()
            document[spec.key_path] = key

        valid, error = RecordIdGenerator.validate_with_error(key)
        if not valid:
            raise WriteError(error, collection=collection)

        try:
            encoded = encode_record(document)
            stored = decode_record(encoded)
        except (TypeError, ValueError) as e:
            raise WriteError(f"Record cannot be stored: {e}", collection=collection) from e

        size = len(encoded.encode("utf-8"))
        if size > self.max_record_bytes:
            raise WriteError(
                f"Record is {size} bytes, over the {self.max_record_bytes} byte quota",
                collection=collection,
            )

        record_type = document.get("type")
        async with self._operation(collection, WriteError, write=True) as repo:
            await repo.put(
                collection,
                encode_key(key),
                record_type if isinstance(record_type, str) else None,
                encoded,
            )

        logger.debug("Record saved", collection=collection, record_id=key, size=size)
        return stored

    async def get_all(self, collection: str) -> list[Record]:
        """Return every record in a collection, unordered.

        Raises:
            ReadError: Undeclared collection or transport failure.
        """
        await self._resolve(collection, ReadError)
        async with self._operation(collection, ReadError) as repo:
            documents = await repo.get_all(collection)
        return self._decode_all(collection, documents)

    async def get(self, collection: str, record_id: str | int | float) -> Record | None:
        """Return the record with the given key, or None if there is none.

        Raises:
            ReadError: Undeclared collection, invalid key, or transport failure.
        """
        await self._resolve(collection, ReadError)
        valid, error = RecordIdGenerator.validate_with_error(record_id)
        if not valid:
            raise ReadError(error, collection=collection)

        async with self._operation(collection, ReadError) as repo:
            document = await repo.get(collection, encode_key(record_id))
        if document is None:
            logger.debug("Record not found", collection=collection, record_id=record_id)
            return None
        return self._decode_all(collection, [document])[0]

    async def delete(self, collection: str, record_id: str | int | float) -> None:
        """Delete the record with the given key. Missing keys are a no-op.

        Raises:
            WriteError: Undeclared collection, invalid key, or aborted transaction.
        """
        await self._resolve(collection, WriteError)
        valid, error = RecordIdGenerator.validate_with_error(record_id)
        if not valid:
            raise WriteError(error, collection=collection)

        async with self._operation(collection, WriteError, write=True) as repo:
            removed = await repo.delete(collection, encode_key(record_id))
        logger.debug(
            "Record deleted", collection=collection, record_id=record_id, removed=removed
        )

    async def find_by_type(self, collection: str, record_type: str) -> list[Record]:
        """Return the records whose ``type`` attribute equals ``record_type``."""
        await self._resolve(collection, ReadError)
        async with self._operation(collection, ReadError) as repo:
            documents = await repo.find_by_type(collection, record_type)
        return self._decode_all(collection, documents)

    async def count(self, collection: str) -> int:
        """Return the number of records in a collection."""
        await self._resolve(collection, ReadError)
        async with self._operation(collection, ReadError) as repo:
            return await repo.count(collection)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _resolve(self, collection: str, error_cls: type[StoreError]) -> CollectionSpec:
        await self.init()
        spec = self._available.get(collection)
        if spec is None:
            raise error_cls(f"Collection {collection!r} is not declared", collection=collection)
        return spec

    @asynccontextmanager
    async def _operation(
        self,
        collection: str,
        error_cls: type[StoreError],
        write: bool = False,
    ) -> AsyncIterator[RecordRepository]:
        """Run one operation in its own transaction and translate failures."""
        engine = await self.init()
        if not self._database_file_intact():
            logger.error("Store database file removed or replaced", collection=collection)
            await self._invalidate(engine)
            raise StoreConnectionError(
                f"Store database file is gone; cannot operate on {collection!r}",
                collection=collection,
            )
        try:
            if write:
                async with engine.begin() as conn:
                    yield RecordRepository(conn)
            else:
                async with engine.connect() as conn:
                    yield RecordRepository(conn)
        except StoreError:
            raise
        except SQLAlchemyError as e:
            message = str(getattr(e, "orig", None) or e).lower()
            invalidated = isinstance(e, DBAPIError) and e.connection_invalidated
            if invalidated or any(marker in message for marker in _CONNECTION_LOST_MARKERS):
                logger.error("Store connection lost", collection=collection, error=str(e))
                await self._invalidate(engine)
                raise StoreConnectionError(
                    f"Store connection lost during operation on {collection!r}: {e}",
                    collection=collection,
                ) from e
            if write and any(marker in message for marker in _QUOTA_MARKERS):
                logger.error("Store quota exceeded", collection=collection, error=str(e))
                raise WriteError(
                    f"Storage quota exceeded writing to {collection!r}", collection=collection
                ) from e
            logger.error(
                "Store operation failed", collection=collection, write=write, error=str(e)
            )
            raise error_cls(
                f"Operation on {collection!r} failed: {e}", collection=collection
            ) from e

    def _database_file_intact(self) -> bool:
        """Check the opened database file still exists as the same inode.

        A pooled connection keeps writing to an unlinked file, so removal
        is otherwise invisible to SQLite.
        """
        if self._file_identity is None:
            return True
        path, st_dev, st_ino = self._file_identity
        try:
            st = os.stat(path)
        except FileNotFoundError:
            return False
        return (st.st_dev, st.st_ino) == (st_dev, st_ino)

    async def _invalidate(self, engine: AsyncEngine) -> None:
        # Another operation may already have reset the store
        if self._engine is engine:
            await self.close()

    def _decode_all(self, collection: str, documents: list[str]) -> list[Record]:
        try:
            return [decode_record(document) for document in documents]
        except ValueError as e:
            logger.error("Corrupt document in collection", collection=collection, error=str(e))
            raise ReadError(
                f"Corrupt document in collection {collection!r}", collection=collection
            ) from e


def create_store(settings: Settings | None = None, schema: StoreSchema | None = None) -> EmbeddedStore:
    """Build the application's store from settings.

    Construct it once at startup and pass it to every collaborator that
    needs persistence.

    Args:
        settings: Optional settings instance. Loaded from the environment if omitted.
        schema: Optional schema. Defaults to the declared collections at the
            configured store name and version.
    """
    if settings is None:
        settings = get_settings()
    if schema is None:
        schema = StoreSchema(
            name=settings.store_name,
            version=settings.schema_version,
            collections=DEFAULT_SCHEMA.collections,
        )
    return EmbeddedStore(
        settings.database_url,
        schema,
        echo=settings.db_echo,
        journal_mode=settings.db_journal_mode,
        busy_timeout=settings.db_busy_timeout,
        max_record_bytes=settings.max_record_bytes,
    )
