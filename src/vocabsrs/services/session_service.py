"""Learning session engine: queue, phases, mistakes and undo."""
import logging
import random
from collections import deque
from datetime import date
from typing import Any, Deque, Dict, Iterable, List, Optional

from vocabsrs.config import settings
from vocabsrs.models.session_models import (
    CompletionSnapshot,
    Phase,
    SessionMode,
    SessionSummary,
    SessionWord,
    StatsDelta,
)
from vocabsrs.models.srs_models import Word, WordStatus, WordUpdate
from vocabsrs.models.training_models import AnswerOutcome, PhasePrompt
from vocabsrs.services.srs_service import Clock, SrsScheduler, system_clock
from vocabsrs.services.training_methods import (
    handler_for,
    needs_all_stages,
    phase_for,
    total_stages,
)

logger = logging.getLogger(__name__)

NEW_WORD_MODES = (SessionMode.LEARN, SessionMode.IMMERSIVE, SessionMode.SPELL)


class SessionStateError(RuntimeError):
    """A session operation was called when it is not valid."""


def select_session_words(
    mode: SessionMode,
    words: Iterable[Word],
    now: int,
    batch_size: Optional[int] = None,
    learned_date: Optional[date] = None,
) -> List[Word]:
    """Choose the words a session of the given mode starts with."""
    if batch_size is None:
        batch_size = settings.learning.session_batch_size

    if mode in NEW_WORD_MODES:
        return [word for word in words if word.status == WordStatus.NEW][:batch_size]
    elif mode in (SessionMode.REVIEW, SessionMode.REVIEW_ALL):
        if learned_date is not None:
            return [
                word for word in words
                if word.learned_date == learned_date and word.next_review_at <= now
            ]
        return [word for word in words if word.is_due(now)]
    raise ValueError(f"Unknown session mode: {mode}")


class LearningSession:
    """One learning or review run over a queue of words.

    The session owns working copies of the words. Every answer that changes
    a word's SRS state returns the ``WordUpdate`` to persist; the session
    itself never writes anywhere.
    """

    def __init__(
        self,
        mode: SessionMode,
        words: Iterable[Word],
        pool: Optional[Iterable[Word]] = None,
        scheduler: Optional[SrsScheduler] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
        undo_window_ms: Optional[int] = None,
        choice_options: Optional[int] = None,
        strict: Optional[bool] = None,
    ):
        self.mode = SessionMode(mode)
        self.clock = clock or system_clock
        self.scheduler = scheduler or SrsScheduler(clock=self.clock)
        self.rng = rng or random.Random()
        if undo_window_ms is None:
            undo_window_ms = int(settings.learning.undo_window_seconds * 1000)
        self.undo_window_ms = undo_window_ms
        self.choice_options = choice_options or settings.learning.choice_options
        self.strict = settings.learning.strict_sessions if strict is None else strict

        queue = [SessionWord(word) for word in words]
        if not queue:
            raise ValueError("Cannot start a session without words")

        # Full word set for multiple-choice distractors, kept in sync with answers
        self.pool: Dict[Any, Word] = {word.id: word for word in (pool if pool is not None else [])}
        for session_word in queue:
            self.pool.setdefault(session_word.id, session_word.word)

        if self.mode == SessionMode.LEARN and any(needs_all_stages(sw.word, self.mode) for sw in queue):
            if len(self.pool) < self.choice_options:
                raise ValueError(
                    f"Learn sessions need at least {self.choice_options} words in the pool, "
                    f"got {len(self.pool)}"
                )

        self.current: Optional[SessionWord] = queue[0]
        self.queue: Deque[SessionWord] = deque(queue[1:])
        self.awaiting_ack = False
        self.completed_count = 0
        self.learned_count = 0
        self.reviewed_count = 0
        self.elapsed_ms = 0
        self.last_completed: Optional[CompletionSnapshot] = None
        self.stats_saved = False
        self._prompt: Optional[PhasePrompt] = None
        logger.info(f"Started {self.mode.value} session with {len(queue)} words")

    # State

    @property
    def is_complete(self) -> bool:
        return self.current is None

    @property
    def phase(self) -> Optional[Phase]:
        """Phase of the current word, None once the session is complete."""
        if self.current is None:
            return None
        if self.awaiting_ack:
            return Phase.FEEDBACK
        return phase_for(self.current, self.mode)

    @property
    def elapsed_seconds(self) -> int:
        return self.elapsed_ms // 1000

    @property
    def remaining(self) -> int:
        """Words still to go; a word in feedback is already requeued."""
        on_screen = 0 if self.current is None or self.awaiting_ack else 1
        return len(self.queue) + on_screen

    @property
    def total(self) -> int:
        """Words completed plus words still to go."""
        return self.completed_count + self.remaining

    def words(self) -> List[Word]:
        """Working copies of all words known to the session."""
        return list(self.pool.values())

    def prompt(self) -> Optional[PhasePrompt]:
        """What to render for the current word.

        The prompt is cached until the word or phase changes so that the
        multiple-choice options stay stable across repeated calls.
        """
        if self.current is None:
            return None
        phase = self.phase
        word = self.current.word
        if self._prompt is None or self._prompt.phase != phase or self._prompt.word != word:
            self._prompt = handler_for(phase).create_prompt(
                word, self.words(), self.rng, self.choice_options
            )
        return self._prompt

    def summary(self) -> SessionSummary:
        return SessionSummary(
            mode=self.mode,
            completed_count=self.completed_count,
            learned_count=self.learned_count,
            reviewed_count=self.reviewed_count,
            elapsed_seconds=self.elapsed_seconds,
            remaining=self.remaining,
            is_complete=self.is_complete,
        )

    def stats_delta(self) -> StatsDelta:
        """Increments this session contributes to the day's stats."""
        return StatsDelta(
            time_seconds=self.elapsed_seconds,
            learned=self.learned_count,
            reviewed=self.reviewed_count,
        )

    # Transitions

    def _violation(self, message: str) -> None:
        if self.strict:
            raise SessionStateError(message)
        logger.warning(f"Ignored invalid session call: {message}")

    def _set_word(self, word: Word) -> None:
        self.pool[word.id] = word

    def _next(self) -> None:
        self.current = self.queue.popleft() if self.queue else None
        self.awaiting_ack = False
        self._prompt = None
        if self.current is None:
            logger.info(
                f"Session complete: {self.completed_count} words in {self.elapsed_seconds}s"
            )

    def answer(self, raw_answer: Any, now: Optional[int] = None) -> Optional[AnswerOutcome]:
        """Judge a raw answer with the current phase and submit it."""
        if self.current is None or self.awaiting_ack:
            self._violation("answer without a word awaiting an answer")
            return None
        correct = handler_for(self.phase).is_correct(self.current.word, raw_answer)
        return self.submit(correct, now)

    def submit(self, correct: bool, now: Optional[int] = None) -> Optional[AnswerOutcome]:
        """Record whether the current word was answered correctly."""
        if self.current is None:
            self._violation("submit on a complete session")
            return None
        if self.awaiting_ack:
            self._violation("submit while feedback awaits acknowledgement")
            return None
        if now is None:
            now = self.clock()

        session_word = self.current
        word = session_word.word

        if not correct:
            update = self.scheduler.advance(word, False, now)
            updated = word.with_update(update)
            self._set_word(updated)
            session_word.word = updated
            self.queue.append(SessionWord(updated))
            self.awaiting_ack = True
            self._prompt = None
            logger.debug(f"Word {word.id} wrong, requeued at position {len(self.queue)}")
            return AnswerOutcome(word_id=word.id, correct=False, update=update)

        if session_word.session_stage + 1 < total_stages(word, self.mode):
            session_word.session_stage += 1
            self._prompt = None
            logger.debug(f"Word {word.id} moved to session stage {session_word.session_stage}")
            return AnswerOutcome(word_id=word.id, correct=True)

        update = self.scheduler.advance(word, True, now)
        self._set_word(word.with_update(update))
        counted_as_learned = word.status == WordStatus.NEW
        self.completed_count += 1
        if counted_as_learned:
            self.learned_count += 1
        else:
            self.reviewed_count += 1

        self._next()
        if self.current is None:
            self.last_completed = None
        else:
            self.last_completed = CompletionSnapshot(
                word=word,
                counted_as_learned=counted_as_learned,
                deadline=now + self.undo_window_ms,
            )
        logger.debug(f"Word {word.id} completed, {len(self.queue)} left in queue")
        return AnswerOutcome(
            word_id=word.id,
            correct=True,
            update=update,
            word_completed=True,
            session_complete=self.current is None,
        )

    def acknowledge(self) -> None:
        """Move on after the feedback shown for a wrong answer."""
        if self.current is None or not self.awaiting_ack:
            self._violation("acknowledge without pending feedback")
            return
        self._next()

    def can_undo(self, now: Optional[int] = None) -> bool:
        if self.last_completed is None or self.current is None:
            return False
        if now is None:
            now = self.clock()
        return now <= self.last_completed.deadline

    @property
    def undo_deadline(self) -> Optional[int]:
        return self.last_completed.deadline if self.last_completed else None

    def expire_undo(self) -> None:
        self.last_completed = None

    def undo(self, now: Optional[int] = None) -> Optional[WordUpdate]:
        """Revert the last completion; returns the revert to persist, or None."""
        if not self.can_undo(now):
            logger.debug("Nothing to undo")
            return None

        snapshot = self.last_completed
        self.last_completed = None
        reverted = snapshot.word
        self._set_word(reverted)

        self.completed_count = max(0, self.completed_count - 1)
        if snapshot.counted_as_learned:
            self.learned_count = max(0, self.learned_count - 1)
        else:
            self.reviewed_count = max(0, self.reviewed_count - 1)

        # A word in feedback is already requeued at the back
        if not self.awaiting_ack:
            self.current.session_stage = 0
            self.queue.appendleft(self.current)
        self.current = SessionWord(reverted)
        self.awaiting_ack = False
        self._prompt = None
        logger.debug(f"Undid completion of word {reverted.id}")
        return WordUpdate.from_word(reverted)

    def tick(self, duration_ms: int) -> None:
        """Add time spent in the session."""
        if duration_ms < 0:
            self._violation(f"negative tick of {duration_ms} ms")
            return
        if self.current is None:
            return
        self.elapsed_ms += duration_ms
