"""Models for learning-session data."""
from dataclasses import dataclass
from enum import Enum

from vocabsrs.models.srs_models import Word


class SessionMode(Enum):
    """Kinds of learning sessions."""
    LEARN = "learn"  # New words, recall -> select -> spell
    REVIEW = "review"  # Due words
    REVIEW_ALL = "review_all"  # Due words, started from the review overview
    IMMERSIVE = "immersive"  # New words, single read-through card
    SPELL = "spell"  # New words, spelling only


class Phase(Enum):
    """What the learner is shown for the current word."""
    RECALL = "recall"
    SELECT = "select"
    SPELL = "spell"
    FEEDBACK = "feedback"
    IMMERSIVE = "immersive"


@dataclass
class SessionWord:
    """A word in the session queue with its in-session progress."""
    word: Word
    session_stage: int = 0

    @property
    def id(self):
        return self.word.id


@dataclass
class CompletionSnapshot:
    """Pre-advance copy of the last completed word, kept for one undo."""
    word: Word
    counted_as_learned: bool
    deadline: int  # ms since epoch


@dataclass
class StatsDelta:
    """Increments for the per-day stats store."""
    time_seconds: int = 0
    learned: int = 0
    reviewed: int = 0


@dataclass
class SessionSummary:
    """Aggregates of a session run."""
    mode: SessionMode
    completed_count: int
    learned_count: int
    reviewed_count: int
    elapsed_seconds: int
    remaining: int
    is_complete: bool
