"""Persistence repositories for database operations."""

from studyvault.infrastructure.persistence.repositories.record_repository import (
    RecordRepository,
)

__all__ = ["RecordRepository"]
