"""Vault service for files, media and lesson notes.

Files are keyed by their filename so that saving the same name again
replaces the earlier version. Lesson notes get generated keys.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

from studyvault.core.logging import get_logger
from studyvault.domain.services import IdPolicy, RecordIdGenerator
from studyvault.infrastructure.persistence.database import EmbeddedStore

logger = get_logger(__name__)

VAULT = "vault"
LESSON_NOTE = "lesson_note"


@dataclass(frozen=True)
class VaultStats:
    """Item count and total payload size of the vault."""

    count: int
    total_bytes: int


def _payload_size(payload: Any) -> int:
    if isinstance(payload, (bytes, bytearray)):
        return len(payload)
    if isinstance(payload, str):
        return len(payload.encode("utf-8"))
    return 0


class VaultService:
    """Stores and lists vault entries through the embedded store."""

    def __init__(self, store: EmbeddedStore) -> None:
        self.store = store

    async def store_file(
        self,
        name: str,
        payload: bytes | str,
        *,
        record_type: str = "document",
        file_format: str = "txt",
        mime: str | None = None,
    ) -> dict[str, Any]:
        """Save a file under its name, replacing any file of the same name.

        Args:
            name: File name. The format is appended as extension when the
                name has none.
            payload: File content.
            record_type: Entry type (document, image, audio, video, canvas, ...).
            file_format: Extension used when ``name`` has none.
            mime: Optional MIME type.

        Returns:
            The stored entry.
        """
        name = name.strip()
        if not name:
            raise ValueError("File name cannot be empty")

        file_id = name if "." in name else f"{name}.{file_format}"
        entry = {
            "id": file_id,
            "type": record_type,
            "mime": mime or file_format,
            "data": payload,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "size": _payload_size(payload),
        }
        saved = await self.store.save(VAULT, entry, id_policy=IdPolicy.REQUIRE)
        logger.info("File synchronized to vault", file_id=file_id, size=entry["size"])
        return saved

    async def store_note(self, subject: str, content: str) -> dict[str, Any]:
        """Save a lesson note for later exam generation."""
        note = {
            "id": f"NOTE-{RecordIdGenerator.generate()}",
            "type": LESSON_NOTE,
            "subject": subject,
            "content": content,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        return await self.store.save(VAULT, note, id_policy=IdPolicy.REQUIRE)

    async def list_entries(
        self,
        record_type: str | None = None,
        sort_by: Literal["date", "name"] = "date",
    ) -> list[dict[str, Any]]:
        """List vault entries, optionally filtered by type.

        Args:
            record_type: Only return entries of this type.
            sort_by: "date" for newest first, "name" for key order.
        """
        if record_type is None:
            items = await self.store.get_all(VAULT)
        else:
            items = await self.store.find_by_type(VAULT, record_type)

        if sort_by == "name":
            return sorted(items, key=lambda item: str(item.get("id", "")))
        return sorted(items, key=lambda item: str(item.get("timestamp") or ""), reverse=True)

    async def open(self, file_id: str) -> dict[str, Any] | None:
        return await self.store.get(VAULT, file_id)

    async def remove(self, file_id: str) -> None:
        await self.store.delete(VAULT, file_id)
        logger.info("Vault entry removed", file_id=file_id)

    async def stats(self) -> VaultStats:
        """Count entries and sum their recorded sizes."""
        items = await self.store.get_all(VAULT)
        total = sum(item["size"] for item in items if isinstance(item.get("size"), int))
        return VaultStats(count=len(items), total_bytes=total)

    async def lesson_context(self, subject: str = "General") -> str:
        """Join the content of lesson notes for a subject.

        The subject "General" (any case) matches every note.
        """
        notes = await self.store.find_by_type(VAULT, LESSON_NOTE)
        wanted = subject.lower()
        return " ".join(
            str(note.get("content", ""))
            for note in sorted(notes, key=lambda n: str(n.get("timestamp") or ""))
            if wanted == "general" or str(note.get("subject", "")).lower() == wanted
        )
