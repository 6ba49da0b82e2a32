"""Application services that persist study-hub state through the store."""

from studyvault.application.services.exam_service import PASS_MARK, ExamService
from studyvault.application.services.profile_service import ProfileService
from studyvault.application.services.team_service import TeamService
from studyvault.application.services.vault_service import VaultService, VaultStats

__all__ = [
    "ExamService",
    "PASS_MARK",
    "ProfileService",
    "TeamService",
    "VaultService",
    "VaultStats",
]
