"""Domain services for StudyVault.

Services contain logic that doesn't naturally fit within a single entity.
They have no dependencies on infrastructure or external frameworks.
"""

from studyvault.domain.services.record_id_generator import (
    MAX_KEY_LENGTH,
    IdPolicy,
    RecordIdGenerator,
)

__all__ = [
    "IdPolicy",
    "MAX_KEY_LENGTH",
    "RecordIdGenerator",
]
