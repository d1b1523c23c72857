"""Tests for stats service."""
from datetime import date

import pytest
from sqlalchemy.orm import Session

from vocabsrs.models.models import VocabDayStats
from vocabsrs.models.session_models import StatsDelta
from vocabsrs.services.stats_service import StatsService

DAY = date(2024, 1, 15)


@pytest.fixture
def stats_service(db: Session) -> StatsService:
    return StatsService(db)


def test_missing_day_reads_as_zero(stats_service: StatsService, db: Session) -> None:
    stats = stats_service.get_day_stats("user-1", DAY)

    assert (stats.today_time, stats.today_learned, stats.today_reviewed) == (0, 0, 0)
    assert db.query(VocabDayStats).count() == 0


def test_apply_delta_accumulates(stats_service: StatsService) -> None:
    stats_service.apply_delta("user-1", StatsDelta(time_seconds=90, learned=3, reviewed=1), DAY)
    stats_service.apply_delta("user-1", StatsDelta(time_seconds=30, learned=0, reviewed=4), DAY)

    stats = stats_service.get_day_stats("user-1", DAY)
    assert (stats.today_time, stats.today_learned, stats.today_reviewed) == (120, 3, 5)


def test_apply_delta_is_per_day_and_user(stats_service: StatsService, db: Session) -> None:
    stats_service.apply_delta("user-1", StatsDelta(learned=1), DAY)
    stats_service.apply_delta("user-1", StatsDelta(learned=2), date(2024, 1, 16))
    stats_service.apply_delta("user-2", StatsDelta(learned=5), DAY)

    assert db.query(VocabDayStats).count() == 3
    assert stats_service.get_day_stats("user-1", DAY).today_learned == 1


def test_apply_delta_never_goes_negative(stats_service: StatsService) -> None:
    stats_service.apply_delta("user-1", StatsDelta(reviewed=1), DAY)
    stats = stats_service.apply_delta("user-1", StatsDelta(reviewed=-3), DAY)

    assert stats.today_reviewed == 0
