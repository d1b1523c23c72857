"""Service for per-day learning statistics."""
import logging
from datetime import UTC, date, datetime
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session

from vocabsrs.models.models import VocabDayStats
from vocabsrs.models.session_models import StatsDelta
from vocabsrs.monitoring import db_operations

logger = logging.getLogger(__name__)


def today() -> date:
    return datetime.now(UTC).date()


class StatsService:
    """Service for reading and accumulating day statistics."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def _get_row(self, user_id: str, day: date) -> Optional[VocabDayStats]:
        return (
            self.db.query(VocabDayStats)
            .filter(and_(VocabDayStats.user_id == user_id, VocabDayStats.date == day))
            .first()
        )

    def get_day_stats(self, user_id: str, day: Optional[date] = None) -> VocabDayStats:
        """Get the stats of a day; an unsaved zero row when there are none."""
        day = day or today()
        row = self._get_row(user_id, day)
        if row:
            return row
        return VocabDayStats(user_id=user_id, date=day, today_time=0, today_learned=0, today_reviewed=0)

    def apply_delta(self, user_id: str, delta: StatsDelta, day: Optional[date] = None) -> VocabDayStats:
        """Add a session's increments to the day's stats."""
        day = day or today()
        row = self._get_row(user_id, day)
        if not row:
            row = VocabDayStats(user_id=user_id, date=day, today_time=0, today_learned=0, today_reviewed=0)
            self.db.add(row)

        row.today_time = max(0, row.today_time + delta.time_seconds)
        row.today_learned = max(0, row.today_learned + delta.learned)
        row.today_reviewed = max(0, row.today_reviewed + delta.reviewed)
        self.db.commit()
        self.db.refresh(row)
        db_operations.labels(operation_type="upsert").inc()
        logger.info(
            f"Stats for user {user_id} on {day}: {row.today_time}s, "
            f"{row.today_learned} learned, {row.today_reviewed} reviewed"
        )
        return row
