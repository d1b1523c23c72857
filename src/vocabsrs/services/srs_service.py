"""Spaced-repetition scheduling of vocabulary words.

A word climbs an interval ladder one rung per successful review cycle and
falls back to the bottom on any mistake. The scheduler is a pure function of
the word state, the answer and the clock reading, so it never touches the
database; callers persist the returned ``WordUpdate`` themselves.
"""
import logging
import time
from datetime import UTC, date, datetime
from typing import Callable, Iterable, List, Optional

from vocabsrs.config import settings
from vocabsrs.models.srs_models import Word, WordStatus, WordUpdate

logger = logging.getLogger(__name__)

Clock = Callable[[], int]

MS_PER_MINUTE = 60 * 1000


def system_clock() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def date_for(now: int) -> date:
    """UTC calendar date of a millisecond timestamp."""
    return datetime.fromtimestamp(now / 1000, UTC).date()


class SrsScheduler:
    """Maps (word state, correctness) to the next word state."""

    def __init__(
        self,
        intervals: Optional[List[int]] = None,
        review_stage: Optional[int] = None,
        mastered_stage: Optional[int] = None,
        clock: Optional[Clock] = None,
    ):
        self.intervals = list(settings.learning.srs_intervals if intervals is None else intervals)
        if not self.intervals:
            raise ValueError("Interval ladder must not be empty")
        self.review_stage = review_stage if review_stage is not None else settings.learning.review_stage
        self.mastered_stage = mastered_stage if mastered_stage is not None else settings.learning.mastered_stage
        self.clock = clock or system_clock

    def interval_for(self, stage: int) -> int:
        """Interval in minutes for a stage, clamped to the last rung."""
        return self.intervals[min(stage, len(self.intervals) - 1)]

    def status_for(self, stage: int) -> WordStatus:
        """Status a word has after reaching the given stage."""
        if stage >= self.mastered_stage:
            return WordStatus.MASTERED
        if stage >= self.review_stage:
            return WordStatus.REVIEW
        return WordStatus.LEARNING

    def advance(self, word: Word, correct: bool, now: Optional[int] = None) -> WordUpdate:
        """Compute the word's SRS state after an answer."""
        if now is None:
            now = self.clock()

        if not correct:
            logger.debug(f"Word {word.id} answered wrong, resetting from stage {word.stage}")
            return WordUpdate(
                status=WordStatus.LEARNING,
                stage=0,
                next_review_at=now,
                interval_minutes=0,
                learned_date=word.learned_date,
            )

        new_stage = word.stage + 1
        interval = self.interval_for(new_stage)
        update = WordUpdate(
            status=self.status_for(new_stage),
            stage=new_stage,
            next_review_at=now + interval * MS_PER_MINUTE,
            interval_minutes=interval,
            learned_date=word.learned_date or date_for(now),
        )
        logger.debug(f"Word {word.id} advanced to stage {new_stage}, next review in {interval} min")
        return update

    def due_words(self, words: Iterable[Word], now: Optional[int] = None) -> List[Word]:
        """Words whose next review time has passed, in input order."""
        if now is None:
            now = self.clock()
        return [word for word in words if word.is_due(now)]
