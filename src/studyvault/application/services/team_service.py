"""Team preferences persistence."""

from datetime import datetime, timezone
from typing import Any

from studyvault.core.logging import get_logger
from studyvault.domain.services import IdPolicy
from studyvault.infrastructure.persistence.database import EmbeddedStore

logger = get_logger(__name__)

TEAM = "team"
TEAM_ID = "forranova_team"


class TeamService:
    def __init__(self, store: EmbeddedStore) -> None:
        self.store = store

    async def save(self, preferences: dict[str, Any]) -> dict[str, Any]:
        """Replace the stored team preferences."""
        data = {
            **preferences,
            "id": TEAM_ID,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        saved = await self.store.save(TEAM, data, id_policy=IdPolicy.REQUIRE)
        logger.info("Team preferences saved", keys=sorted(preferences))
        return saved

    async def load(self) -> dict[str, Any] | None:
        return await self.store.get(TEAM, TEAM_ID)
