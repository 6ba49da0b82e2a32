"""Tests for versioned schema initialization and upgrade."""

import pytest

from studyvault.core.exceptions import StoreConnectionError, WriteError
from studyvault.domain.entities import CollectionSpec, StoreSchema
from studyvault.infrastructure.persistence.database import EmbeddedStore, StoreState
from studyvault.infrastructure.persistence.table_builder import TableBuilder

VAULT = CollectionSpec("vault")
GALLERY = CollectionSpec("gallery")


async def _open(database_url: str, version: int, *collections: CollectionSpec) -> EmbeddedStore:
    store = EmbeddedStore(database_url, StoreSchema("TestVault", version, collections))
    await store.init()
    return store


async def _tables_on_disk(store: EmbeddedStore) -> set[str]:
    engine = await store.init()
    async with engine.connect() as conn:
        return await TableBuilder.existing_collections(conn)


@pytest.mark.asyncio
async def test_fresh_database_gets_all_declared_collections(database_url):
    store = await _open(database_url, 1, VAULT, GALLERY)
    try:
        assert store.collections == ["gallery", "vault"]
        assert await _tables_on_disk(store) == {"gallery", "vault"}
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_version_bump_adds_collections_and_keeps_data(database_url):
    v1 = await _open(database_url, 1, VAULT)
    await v1.save("vault", {"id": "old.txt", "content": "from v1"})
    await v1.close()

    v2 = await _open(database_url, 2, VAULT, GALLERY)
    try:
        assert v2.collections == ["gallery", "vault"]
        assert await v2.get("vault", "old.txt") == {"id": "old.txt", "content": "from v1"}
        await v2.save("gallery", {"id": "sketch", "type": "drawing"})
        assert await v2.count("gallery") == 1
    finally:
        await v2.close()


@pytest.mark.asyncio
async def test_same_version_does_not_create_collections(database_url):
    """New collections only appear when the version increases."""
    v1 = await _open(database_url, 1, VAULT)
    await v1.close()

    same = await _open(database_url, 1, VAULT, GALLERY)
    try:
        assert same.collections == ["vault"]
        with pytest.raises(WriteError):
            await same.save("gallery", {"id": "sketch"})
    finally:
        await same.close()


@pytest.mark.asyncio
async def test_upgrade_never_drops_collections(database_url):
    v1 = await _open(database_url, 1, VAULT, GALLERY)
    await v1.save("gallery", {"id": "kept"})
    await v1.close()

    v2 = await _open(database_url, 2, VAULT)
    try:
        assert v2.collections == ["vault"]
        assert await _tables_on_disk(v2) == {"gallery", "vault"}
    finally:
        await v2.close()

    # Still readable by a schema that declares it
    v3 = await _open(database_url, 3, VAULT, GALLERY)
    try:
        assert await v3.get("gallery", "kept") == {"id": "kept"}
    finally:
        await v3.close()


@pytest.mark.asyncio
async def test_newer_version_on_disk_is_rejected(database_url):
    v2 = await _open(database_url, 2, VAULT)
    await v2.close()

    older = EmbeddedStore(database_url, StoreSchema("TestVault", 1, (VAULT,)))
    with pytest.raises(StoreConnectionError) as exc_info:
        await older.init()

    assert "newer" in exc_info.value.message
    assert older.state is StoreState.UNINITIALIZED


@pytest.mark.asyncio
async def test_version_is_recorded(database_url):
    store = await _open(database_url, 4, VAULT)
    try:
        engine = await store.init()
        async with engine.connect() as conn:
            assert await TableBuilder.read_version(conn) == 4
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_custom_key_path(database_url):
    store = await _open(database_url, 1, CollectionSpec("team", key_path="slug"))
    try:
        saved = await store.save("team", {"name": "Alpha"})
        assert "slug" in saved
        assert "id" not in saved

        await store.save("team", {"slug": "alpha", "name": "Alpha"})
        await store.save("team", {"slug": "alpha", "name": "Alpha v2"})
        assert await store.get("team", "alpha") == {"slug": "alpha", "name": "Alpha v2"}
        assert await store.count("team") == 2
    finally:
        await store.close()
