"""Models for training-related data structures."""
from dataclasses import dataclass, field
from typing import Any, List, Optional

from vocabsrs.models.session_models import Phase
from vocabsrs.models.srs_models import Word, WordUpdate


@dataclass
class PhasePrompt:
    """Represents what the UI should render for the current word."""
    phase: Phase
    word: Word
    correct_answer: str
    options: List[Word] = field(default_factory=list)  # only filled for SELECT
    expects_text: bool = False


@dataclass
class AnswerOutcome:
    """Result of submitting an answer to a session."""
    word_id: Any
    correct: bool
    update: Optional[WordUpdate] = None  # None when only the session stage moved
    word_completed: bool = False
    session_complete: bool = False
