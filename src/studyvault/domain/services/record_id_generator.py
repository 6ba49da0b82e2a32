"""Record key generation and validation.

Keys are strings or finite numbers. Generated keys are UUID4 hex strings, which
stay unique under rapid concurrent saves where wall-clock milliseconds
would collide.
"""

import math
import uuid
from enum import Enum
from typing import Any

MAX_KEY_LENGTH = 1024


class IdPolicy(str, Enum):
    """How save() treats a record that arrives without a key.

    GENERATE assigns a fresh key. REQUIRE rejects the record; use it for
    anything that needs stable identity, such as filenames.
    """

    GENERATE = "generate"
    REQUIRE = "require"


class RecordIdGenerator:
    """Generator and validator for record keys."""

    @classmethod
    def generate(cls) -> str:
        """Generate a new collision-resistant record key.

        Returns:
            A 32-character lowercase hex string.
        """
        return uuid.uuid4().hex

    @classmethod
    def is_missing(cls, key: Any) -> bool:
        """Check whether a key value counts as absent."""
        return key is None or key == ""

    @classmethod
    def validate_with_error(cls, key: Any) -> tuple[bool, str | None]:
        """Validate a record key and describe the failure if invalid.

        Args:
            key: The candidate key.

        Returns:
            A tuple of (is_valid, error_message).

        Examples:
            >>> RecordIdGenerator.validate_with_error("a.txt")
            (True, None)
            >>> RecordIdGenerator.validate_with_error(42)
            (True, None)
            >>> RecordIdGenerator.validate_with_error(1.5)
            (True, None)
            >>> RecordIdGenerator.validate_with_error(True)
            (False, 'Record key must be a string or a number, got bool')
        """
        # bool is a subclass of int but is not a usable key
        if isinstance(key, bool) or not isinstance(key, (str, int, float)):
            return False, f"Record key must be a string or a number, got {type(key).__name__}"

        if isinstance(key, float) and not math.isfinite(key):
            return False, "Record key must be a finite number"

        if isinstance(key, str):
            if not key:
                return False, "Record key cannot be empty"
            if len(key) > MAX_KEY_LENGTH:
                return False, f"Record key is longer than {MAX_KEY_LENGTH} characters"

        return True, None

    @classmethod
    def validate(cls, key: Any) -> bool:
        """Validate a record key."""
        return cls.validate_with_error(key)[0]
