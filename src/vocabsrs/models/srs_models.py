"""Plain data structures for word state used by the SRS engine."""
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Any, Optional


class WordStatus(Enum):
    """Mastery status of a word."""
    NEW = "new"  # Never completed in a learn session
    LEARNING = "learning"
    REVIEW = "review"
    MASTERED = "mastered"


@dataclass
class WordUpdate:
    """SRS fields written back to the word store after an answer."""
    status: WordStatus
    stage: int
    next_review_at: int  # ms since epoch
    interval_minutes: int
    learned_date: Optional[date] = None

    @classmethod
    def from_word(cls, word: "Word") -> "WordUpdate":
        """Capture the current SRS fields of a word."""
        return cls(
            status=word.status,
            stage=word.stage,
            next_review_at=word.next_review_at,
            interval_minutes=word.interval_minutes,
            learned_date=word.learned_date,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "stage": self.stage,
            "next_review_at": self.next_review_at,
            "interval_minutes": self.interval_minutes,
            "learned_date": self.learned_date.isoformat() if self.learned_date else None,
        }


@dataclass
class Word:
    """Working copy of a vocabulary word."""
    id: Any
    word: str
    meaning: str
    example: Optional[str] = None
    example_translation: Optional[str] = None
    category: Optional[str] = None
    status: WordStatus = WordStatus.NEW
    stage: int = 0
    next_review_at: int = 0
    interval_minutes: int = 0
    learned_date: Optional[date] = None

    def is_due(self, now: int) -> bool:
        """A word is due once it left "new" and its review time has passed."""
        return self.status != WordStatus.NEW and self.next_review_at <= now

    def with_update(self, update: WordUpdate) -> "Word":
        """Return a copy of the word with the update merged in."""
        return replace(
            self,
            status=update.status,
            stage=update.stage,
            next_review_at=update.next_review_at,
            interval_minutes=update.interval_minutes,
            learned_date=update.learned_date,
        )
