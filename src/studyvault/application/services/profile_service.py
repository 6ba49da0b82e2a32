"""Student profile persistence."""

from datetime import datetime, timezone
from typing import Any

from studyvault.core.logging import get_logger
from studyvault.domain.services import IdPolicy
from studyvault.infrastructure.persistence.database import EmbeddedStore

logger = get_logger(__name__)

USER_STATE = "user_state"
PROFILE_ID = "user_profile"


class ProfileService:
    """Loads, creates and updates the single student profile."""

    def __init__(self, store: EmbeddedStore) -> None:
        self.store = store

    async def load(self) -> dict[str, Any] | None:
        return await self.store.get(USER_STATE, PROFILE_ID)

    async def create(self, name: str) -> dict[str, Any]:
        """Create the profile, replacing any existing one.

        Raises:
            ValueError: If the name is blank.
        """
        name = name.strip()
        if not name:
            raise ValueError("Profile name cannot be empty")

        profile = {
            "id": PROFILE_ID,
            "name": name,
            "level": 1,
            "subjects": {},
            "date_created": datetime.now(timezone.utc).isoformat(),
        }
        saved = await self.store.save(USER_STATE, profile, id_policy=IdPolicy.REQUIRE)
        logger.info("Profile created", name=name)
        return saved

    async def update(self, **fields: Any) -> dict[str, Any]:
        """Merge fields into the stored profile and save it.

        Raises:
            LookupError: If no profile has been created yet.
        """
        profile = await self.load()
        if profile is None:
            raise LookupError("No profile exists; create one first")

        fields.pop("id", None)
        profile.update(fields)
        return await self.store.save(USER_STATE, profile, id_policy=IdPolicy.REQUIRE)
