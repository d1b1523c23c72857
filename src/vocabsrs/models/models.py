"""Database models for the word store and the stats store."""
from sqlalchemy import (
    BigInteger,
    Column,
    Date,
    Integer,
    String,
    UniqueConstraint,
)

from vocabsrs.models.base import Base, TimestampMixin
from vocabsrs.models.srs_models import Word, WordStatus, WordUpdate


class VocabWord(Base, TimestampMixin):
    """Vocabulary word together with its SRS state."""

    __tablename__ = "vocab_words"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    word = Column(String, nullable=False)
    meaning = Column(String, nullable=False)
    example = Column(String)
    example_translation = Column(String)
    category = Column(String)
    status = Column(String, nullable=False, default=WordStatus.NEW.value)
    stage = Column(Integer, nullable=False, default=0)
    next_review_at = Column(BigInteger, nullable=False, default=0)  # ms since epoch
    interval_minutes = Column(Integer, nullable=False, default=0)
    learned_date = Column(Date, nullable=True)

    def to_word(self) -> Word:
        """Build the engine's working copy of this row."""
        return Word(
            id=self.id,
            word=self.word,
            meaning=self.meaning,
            example=self.example,
            example_translation=self.example_translation,
            category=self.category,
            status=WordStatus(self.status),
            stage=self.stage,
            next_review_at=self.next_review_at,
            interval_minutes=self.interval_minutes,
            learned_date=self.learned_date,
        )

    def apply_update(self, update: WordUpdate) -> None:
        """Overwrite the SRS fields with the given update."""
        self.status = update.status.value
        self.stage = update.stage
        self.next_review_at = update.next_review_at
        self.interval_minutes = update.interval_minutes
        self.learned_date = update.learned_date

    def __repr__(self) -> str:
        return f"<VocabWord {self.id} {self.word!r} {self.status} stage={self.stage}>"


class VocabDayStats(Base, TimestampMixin):
    """Per-day learning statistics of a user."""

    __tablename__ = "vocab_day_stats"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_vocab_day_stats_user_date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False)
    today_time = Column(Integer, nullable=False, default=0)  # in seconds
    today_learned = Column(Integer, nullable=False, default=0)
    today_reviewed = Column(Integer, nullable=False, default=0)
