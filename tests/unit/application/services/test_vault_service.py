"""Tests for VaultService."""

import pytest

from studyvault.application.services import VaultService, VaultStats
from studyvault.core.exceptions import ReadError, WriteError


@pytest.fixture
def vault(store):
    return VaultService(store)


@pytest.mark.asyncio
async def test_store_file_keys_by_name(vault, store):
    saved = await vault.store_file("Health_Benefits", "Eat greens.")

    assert saved["id"] == "Health_Benefits.txt"
    assert saved["type"] == "document"
    assert saved["size"] == len("Eat greens.")
    assert await store.get("vault", "Health_Benefits.txt") == saved


@pytest.mark.asyncio
async def test_store_file_keeps_existing_extension(vault):
    saved = await vault.store_file("diagram.png", b"\x89PNG", record_type="image", mime="image/png")

    assert saved["id"] == "diagram.png"
    assert saved["data"] == b"\x89PNG"
    assert saved["mime"] == "image/png"
    assert saved["size"] == 4


@pytest.mark.asyncio
async def test_store_file_same_name_replaces(vault, store):
    await vault.store_file("notes.txt", "draft")
    await vault.store_file("notes.txt", "final")

    assert await store.count("vault") == 1
    assert (await vault.open("notes.txt"))["data"] == "final"


@pytest.mark.asyncio
async def test_store_file_blank_name_rejected(vault):
    with pytest.raises(ValueError):
        await vault.store_file("   ", "content")


@pytest.mark.asyncio
async def test_list_entries_filters_and_sorts(vault, store):
    await store.save("vault", {"id": "b.txt", "type": "document", "timestamp": "2024-01-01T00:00:00+00:00"})
    await store.save("vault", {"id": "a.png", "type": "image", "timestamp": "2024-03-01T00:00:00+00:00"})
    await store.save("vault", {"id": "c.txt", "type": "document", "timestamp": "2024-02-01T00:00:00+00:00"})

    by_date = await vault.list_entries()
    assert [item["id"] for item in by_date] == ["a.png", "c.txt", "b.txt"]

    by_name = await vault.list_entries(sort_by="name")
    assert [item["id"] for item in by_name] == ["a.png", "b.txt", "c.txt"]

    documents = await vault.list_entries(record_type="document")
    assert [item["id"] for item in documents] == ["c.txt", "b.txt"]


@pytest.mark.asyncio
async def test_open_missing_returns_none(vault):
    assert await vault.open("ghost.txt") is None


@pytest.mark.asyncio
async def test_remove_is_idempotent(vault):
    await vault.store_file("temp.txt", "x")

    await vault.remove("temp.txt")
    await vault.remove("temp.txt")

    assert await vault.open("temp.txt") is None


@pytest.mark.asyncio
async def test_stats(vault):
    assert await vault.stats() == VaultStats(count=0, total_bytes=0)

    await vault.store_file("a.txt", "12345")
    await vault.store_file("b.bin", b"\x00" * 10)
    await vault.store_note("Biology", "Cells divide.")

    stats = await vault.stats()
    assert stats.count == 3
    assert stats.total_bytes == 15


@pytest.mark.asyncio
async def test_lesson_context_by_subject(vault):
    await vault.store_note("Tailoring", "Use a seam ripper to undo stitches.")
    await vault.store_note("Biology", "Mitochondria produce energy.")
    await vault.store_note("tailoring", "Press seams flat.")
    await vault.store_file("tailoring.txt", "not a lesson note")

    context = await vault.lesson_context("Tailoring")

    assert "seam ripper" in context
    assert "Press seams flat." in context
    assert "Mitochondria" not in context
    assert "not a lesson note" not in context

    everything = await vault.lesson_context()
    assert "Mitochondria" in everything


@pytest.mark.asyncio
async def test_notes_get_distinct_ids(vault):
    first = await vault.store_note("Math", "a")
    second = await vault.store_note("Math", "b")

    assert first["id"] != second["id"]
    assert first["id"].startswith("NOTE-")
    assert first["type"] == "lesson_note"


@pytest.mark.asyncio
async def test_store_errors_propagate(database_url):
    from studyvault.domain.entities import CollectionSpec, StoreSchema
    from studyvault.infrastructure.persistence.database import EmbeddedStore

    no_vault = EmbeddedStore(database_url, StoreSchema("Other", 1, (CollectionSpec("gallery"),)))
    try:
        service = VaultService(no_vault)
        with pytest.raises(WriteError):
            await service.store_file("a.txt", "x")
        with pytest.raises(ReadError):
            await service.list_entries()
    finally:
        await no_vault.close()


@pytest.mark.asyncio
async def test_lesson_context_general_ignores_case(vault):
    await vault.store_note("Biology", "Mitochondria produce energy.")
    await vault.store_note("Tailoring", "Press seams flat.")

    context = await vault.lesson_context("general")

    assert "Mitochondria" in context
    assert "Press seams flat." in context
