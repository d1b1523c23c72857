"""Tests for learning service."""
from datetime import date

import pytest
from faker import Faker
from sqlalchemy.orm import Session

from vocabsrs.models.session_models import Phase, SessionMode
from vocabsrs.models.srs_models import WordStatus, WordUpdate
from vocabsrs.services.learning_service import LearningService
from vocabsrs.services.srs_service import SrsScheduler, date_for
from vocabsrs.services.word_service import WordNotFoundError

fake = Faker()

LADDER = [1, 10, 60, 720, 1440, 2880, 5760, 10080]


@pytest.fixture
def learning_service(db: Session, clock, rng) -> LearningService:
    """Create a learning service instance."""
    scheduler = SrsScheduler(intervals=LADDER, review_stage=3, mastered_stage=7, clock=clock)
    return LearningService(db, scheduler=scheduler, rng=rng, clock=clock)


@pytest.fixture
def user_id() -> str:
    return fake.uuid4()


@pytest.fixture
def words(learning_service: LearningService, user_id: str):
    lines = "\n".join(f"{fake.word()}{i}|{fake.word()}" for i in range(5))
    return learning_service.word_service.import_words(user_id, lines)


def stored(learning_service, user_id, word_id):
    return learning_service.word_service.get_word(user_id, word_id)


def test_start_learn_session(learning_service: LearningService, user_id: str, words) -> None:
    session = learning_service.start_session(user_id, SessionMode.LEARN)

    assert session is not None
    assert session.mode == SessionMode.LEARN
    assert session.remaining == len(words)
    assert session.phase == Phase.RECALL


def test_start_session_accepts_mode_name(learning_service: LearningService, user_id: str, words) -> None:
    session = learning_service.start_session(user_id, "spell", batch_size=2)
    assert session.mode == SessionMode.SPELL
    assert session.remaining == 2


def test_nothing_to_review(learning_service: LearningService, user_id: str, words) -> None:
    assert learning_service.start_session(user_id, SessionMode.REVIEW) is None


def test_learn_flow_persists_completed_word(learning_service: LearningService, user_id: str, words, clock) -> None:
    session = learning_service.start_session(user_id, SessionMode.LEARN)
    word = session.current.word

    assert learning_service.answer(user_id, session, True).update is None
    assert stored(learning_service, user_id, word.id).status == WordStatus.NEW

    assert learning_service.answer(user_id, session, word.id).correct is True
    outcome = learning_service.answer(user_id, session, word.word.upper())

    assert outcome.word_completed is True
    saved = stored(learning_service, user_id, word.id)
    assert saved.status == WordStatus.LEARNING
    assert saved.stage == 1
    assert saved.interval_minutes == 10
    assert saved.next_review_at == clock.now + 10 * 60_000
    assert saved.learned_date == date_for(clock.now)


def test_wrong_answer_is_persisted_immediately(learning_service: LearningService, user_id: str, words, clock) -> None:
    session = learning_service.start_session(user_id, SessionMode.LEARN)
    word = session.current.word

    learning_service.submit(user_id, session, True)
    learning_service.submit(user_id, session, False)

    saved = stored(learning_service, user_id, word.id)
    assert saved.status == WordStatus.LEARNING
    assert saved.stage == 0
    assert saved.next_review_at == clock.now
    assert session.phase == Phase.FEEDBACK


def test_undo_persists_reverted_word(learning_service: LearningService, user_id: str, words) -> None:
    session = learning_service.start_session(user_id, SessionMode.SPELL)
    word = session.current.word

    learning_service.submit(user_id, session, True)
    assert stored(learning_service, user_id, word.id).stage == 1

    update = learning_service.undo(user_id, session)

    assert update == WordUpdate.from_word(word)
    assert stored(learning_service, user_id, word.id) == word
    assert learning_service.undo(user_id, session) is None


def test_finish_session_saves_stats(learning_service: LearningService, user_id: str, words, clock) -> None:
    session = learning_service.start_session(user_id, SessionMode.IMMERSIVE, batch_size=2)
    session.tick(75_000)
    learning_service.submit(user_id, session, True)
    learning_service.submit(user_id, session, True)
    assert session.is_complete

    stats = learning_service.finish_session(user_id, session)

    assert stats.date == date_for(clock.now)
    assert (stats.today_time, stats.today_learned, stats.today_reviewed) == (75, 2, 0)


def test_finish_session_saves_stats_once(learning_service: LearningService, user_id: str, words) -> None:
    session = learning_service.start_session(user_id, SessionMode.SPELL, batch_size=4)
    session.tick(5000)
    learning_service.submit(user_id, session, True)

    first = learning_service.finish_session(user_id, session)
    second = learning_service.finish_session(user_id, session)

    assert session.stats_saved is True
    assert (first.today_time, first.today_learned) == (5, 1)
    assert (second.today_time, second.today_learned, second.today_reviewed) == (5, 1, 0)


def test_review_session_uses_due_words(learning_service: LearningService, user_id: str, words, clock) -> None:
    word_service = learning_service.word_service
    cohort = date(2024, 1, 10)
    for word in words[:3]:
        word_service.apply_update(
            user_id,
            word.id,
            WordUpdate(status=WordStatus.REVIEW, stage=3, next_review_at=clock.now - 1,
                       interval_minutes=720, learned_date=cohort if word is not words[2] else None),
        )

    session = learning_service.start_session(user_id, SessionMode.REVIEW)
    assert session.remaining == 3

    cohort_session = learning_service.start_session(user_id, SessionMode.REVIEW_ALL, learned_date=cohort)
    assert cohort_session.remaining == 2

    outcome = learning_service.submit(user_id, cohort_session, True)
    assert stored(learning_service, user_id, outcome.word_id).stage == 4
    assert cohort_session.reviewed_count == 1


def test_missing_word_surfaces_write_failure(learning_service: LearningService, user_id: str, words) -> None:
    session = learning_service.start_session(user_id, SessionMode.SPELL)
    word = session.current.word
    learning_service.word_service.delete_word(user_id, word.id)

    with pytest.raises(WordNotFoundError):
        learning_service.submit(user_id, session, True)

    # The session keeps its in-memory progress
    assert session.completed_count == 1
    assert session.current.id != word.id


def test_get_overview(learning_service: LearningService, user_id: str, words, clock) -> None:
    word_service = learning_service.word_service
    word_service.apply_update(
        user_id, words[0].id,
        WordUpdate(status=WordStatus.MASTERED, stage=7, next_review_at=clock.now + 1, interval_minutes=10080),
    )
    word_service.apply_update(
        user_id, words[1].id,
        WordUpdate(status=WordStatus.LEARNING, stage=0, next_review_at=clock.now, interval_minutes=0),
    )

    overview = learning_service.get_overview(user_id)

    assert overview["total"] == 5
    assert overview["mastered"] == 1
    assert overview["due"] == 1
    assert overview["new"] == 3
    assert overview["today_time"] == 0
    assert overview["mastery_percent"] == 20
    assert overview["categories"] == {}


def test_overview_counts_categories(learning_service: LearningService, user_id: str, clock) -> None:
    word_service = learning_service.word_service
    word_service.import_words(user_id, "apple|苹果\npear|梨", category="fruit")
    mastered = word_service.add_word(user_id, "run", "跑", category="verbs")
    word_service.add_word(user_id, "blue", "蓝")
    word_service.apply_update(
        user_id, mastered.id,
        WordUpdate(status=WordStatus.MASTERED, stage=7, next_review_at=clock.now + 1, interval_minutes=10080),
    )

    overview = learning_service.get_overview(user_id)

    assert overview["categories"] == {"fruit": 2, "verbs": 1}
    assert overview["mastery_percent"] == 25


def test_overview_of_empty_library(learning_service: LearningService, user_id: str) -> None:
    overview = learning_service.get_overview(user_id)
    assert overview["total"] == 0
    assert overview["mastery_percent"] == 0
