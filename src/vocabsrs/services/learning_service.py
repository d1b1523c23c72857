"""Learning service connecting sessions to the word and stats stores."""
import logging
import random
from collections import Counter
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vocabsrs.models.session_models import Phase, SessionMode
from vocabsrs.models.srs_models import WordStatus, WordUpdate
from vocabsrs.models.training_models import AnswerOutcome
from vocabsrs.monitoring import (
    db_errors,
    session_duration,
    sessions_completed,
    sessions_started,
    undos,
    words_learned,
    words_reviewed,
    wrong_answers,
)
from vocabsrs.services.session_service import LearningSession, select_session_words
from vocabsrs.services.srs_service import Clock, SrsScheduler, date_for, system_clock
from vocabsrs.services.stats_service import StatsService
from vocabsrs.services.word_service import WordNotFoundError, WordService

logger = logging.getLogger(__name__)


class LearningService:
    """Service for running learning sessions against the stores."""

    def __init__(
        self,
        db: Session,
        scheduler: Optional[SrsScheduler] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize the service with a database session."""
        self.db = db
        self.clock = clock or system_clock
        self.scheduler = scheduler or SrsScheduler(clock=self.clock)
        self.rng = rng or random.Random()
        self.word_service = WordService(db)
        self.stats_service = StatsService(db)

    def start_session(
        self,
        user_id: str,
        mode: SessionMode,
        learned_date: Optional[date] = None,
        batch_size: Optional[int] = None,
    ) -> Optional[LearningSession]:
        """Start a session, or return None when there is nothing to study."""
        mode = SessionMode(mode)
        words = self.word_service.get_all_words(user_id)
        selected = select_session_words(
            mode, words, self.clock(), batch_size=batch_size, learned_date=learned_date
        )
        logger.info(f"Selected {len(selected)} of {len(words)} words for {mode.value} session of user {user_id}")
        if not selected:
            return None

        session = LearningSession(
            mode,
            selected,
            pool=words,
            scheduler=self.scheduler,
            rng=self.rng,
            clock=self.clock,
        )
        sessions_started.labels(mode=mode.value).inc()
        return session

    def _persist(self, user_id: str, word_id: Any, update: WordUpdate) -> None:
        try:
            self.word_service.apply_update(user_id, word_id, update)
        except WordNotFoundError:
            db_errors.labels(error_type="word_not_found").inc()
            logger.error(f"Word {word_id} of user {user_id} vanished before write-back")
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            db_errors.labels(error_type=type(e).__name__).inc()
            logger.error(f"Failed to write back word {word_id} of user {user_id}: {e}")
            raise

    def _record(
        self,
        user_id: str,
        session: LearningSession,
        outcome: Optional[AnswerOutcome],
        learned_before: int,
        phase: Optional[Phase],
    ) -> Optional[AnswerOutcome]:
        if outcome is None:
            return None
        if not outcome.correct:
            wrong_answers.labels(phase=phase.value if phase else "none").inc()
        if outcome.update is not None:
            self._persist(user_id, outcome.word_id, outcome.update)
        if outcome.word_completed:
            if session.learned_count > learned_before:
                words_learned.inc()
            else:
                words_reviewed.inc()
        if outcome.session_complete:
            sessions_completed.labels(mode=session.mode.value).inc()
        return outcome

    def submit(self, user_id: str, session: LearningSession, correct: bool) -> Optional[AnswerOutcome]:
        """Submit an answer and persist the resulting word state."""
        learned_before, phase = session.learned_count, session.phase
        return self._record(user_id, session, session.submit(correct), learned_before, phase)

    def answer(self, user_id: str, session: LearningSession, raw_answer: Any) -> Optional[AnswerOutcome]:
        """Judge a raw answer for the current phase and persist the result."""
        learned_before, phase = session.learned_count, session.phase
        return self._record(user_id, session, session.answer(raw_answer), learned_before, phase)

    def undo(self, user_id: str, session: LearningSession) -> Optional[WordUpdate]:
        """Undo the last completion and persist the reverted word."""
        word_id = session.last_completed.word.id if session.last_completed else None
        update = session.undo()
        if update is None:
            return None
        undos.inc()
        self._persist(user_id, word_id, update)
        return update

    def finish_session(self, user_id: str, session: LearningSession, day: Optional[date] = None):
        """Persist the session's contribution to the day's stats.

        Only the first call writes; later calls return the day's stats as stored.
        """
        day = day or date_for(self.clock())
        if session.stats_saved:
            logger.warning(f"Stats of {session.mode.value} session of user {user_id} already saved")
            return self.stats_service.get_day_stats(user_id, day)

        summary = session.summary()
        session_duration.labels(mode=session.mode.value).observe(summary.elapsed_seconds)
        try:
            stats = self.stats_service.apply_delta(user_id, session.stats_delta(), day)
        except SQLAlchemyError as e:
            self.db.rollback()
            db_errors.labels(error_type=type(e).__name__).inc()
            logger.error(f"Failed to save stats of user {user_id}: {e}")
            raise
        session.stats_saved = True
        logger.info(
            f"Finished {session.mode.value} session of user {user_id}: "
            f"{summary.completed_count} completed, {summary.remaining} left"
        )
        return stats

    def get_overview(self, user_id: str, now: Optional[int] = None) -> Dict[str, Any]:
        """Dashboard numbers for a user."""
        if now is None:
            now = self.clock()
        words = self.word_service.get_all_words(user_id)
        stats = self.stats_service.get_day_stats(user_id, date_for(now))
        mastered = sum(1 for w in words if w.status == WordStatus.MASTERED)
        categories = Counter(w.category for w in words if w.category)
        return {
            "today_time": stats.today_time,
            "today_learned": stats.today_learned,
            "today_reviewed": stats.today_reviewed,
            "mastered": mastered,
            # Rounded half up
            "mastery_percent": int(mastered * 100 / len(words) + 0.5) if words else 0,
            "due": len(self.scheduler.due_words(words, now)),
            "new": sum(1 for w in words if w.status == WordStatus.NEW),
            "total": len(words),
            "categories": dict(categories),
        }
