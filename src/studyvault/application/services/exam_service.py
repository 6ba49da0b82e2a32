"""Exam results and certification eligibility."""

from datetime import datetime, timezone
from typing import Any

from studyvault.core.logging import get_logger
from studyvault.domain.services import IdPolicy, RecordIdGenerator
from studyvault.infrastructure.persistence.database import EmbeddedStore

logger = get_logger(__name__)

EXAM_RESULTS = "exam_results"
EXAM_RECORD = "exam_record"
PASS_MARK = 70


class ExamService:
    """Records exam results and finds the latest one for certification."""

    def __init__(self, store: EmbeddedStore) -> None:
        self.store = store

    async def record_result(
        self,
        student_name: str,
        subject: str,
        score: float,
        details: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Save a finished exam with its full question log.

        Args:
            student_name: Name of the examined student.
            subject: Exam subject.
            score: Final grade, 0-100.
            details: Every question with the student's answer.

        Returns:
            The stored exam record.
        """
        if not 0 <= score <= 100:
            raise ValueError(f"Score must be between 0 and 100, got {score}")

        result = {
            "id": f"EXAM-{RecordIdGenerator.generate()}",
            "type": EXAM_RECORD,
            "student_name": student_name,
            "subject": subject or "General",
            "score": round(float(score), 2),
            "details": details or [],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        saved = await self.store.save(EXAM_RESULTS, result, id_policy=IdPolicy.REQUIRE)
        logger.info(
            "Exam result recorded",
            exam_id=saved["id"],
            subject=saved["subject"],
            score=saved["score"],
        )
        return saved

    async def latest(self) -> dict[str, Any] | None:
        """Return the most recent exam result, or None if there is none."""
        results = await self.store.get_all(EXAM_RESULTS)
        if not results:
            return None
        return max(results, key=lambda r: str(r.get("timestamp") or ""))

    @staticmethod
    def is_certifiable(result: dict[str, Any] | None) -> bool:
        """Check whether a result meets the certification pass mark."""
        if result is None:
            return False
        try:
            return float(result.get("score", 0)) >= PASS_MARK
        except (TypeError, ValueError):
            return False
