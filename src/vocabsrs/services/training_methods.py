"""Training phases a word goes through inside a session."""
import logging
import random
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Type, final

from vocabsrs.config import settings
from vocabsrs.models.session_models import Phase, SessionMode, SessionWord
from vocabsrs.models.srs_models import Word, WordStatus
from vocabsrs.models.training_models import PhasePrompt


logger = logging.getLogger(__name__)

# Sub-stages of a new or learning word in a learn session, in order
LEARN_PHASES = (Phase.RECALL, Phase.SELECT, Phase.SPELL)


def needs_all_stages(word: Word, mode: SessionMode) -> bool:
    """Whether a word must pass every learn sub-stage in this mode."""
    return mode == SessionMode.LEARN and word.status in (WordStatus.NEW, WordStatus.LEARNING)


def total_stages(word: Word, mode: SessionMode) -> int:
    """Number of correct answers needed before the word completes."""
    return len(LEARN_PHASES) if needs_all_stages(word, mode) else 1


def phase_for(session_word: SessionWord, mode: SessionMode) -> Phase:
    """Phase to present for a session word."""
    if mode == SessionMode.IMMERSIVE:
        return Phase.IMMERSIVE
    elif mode == SessionMode.SPELL:
        return Phase.SPELL
    elif mode == SessionMode.LEARN:
        if needs_all_stages(session_word.word, mode):
            return LEARN_PHASES[session_word.session_stage]
        return Phase.RECALL
    elif mode in (SessionMode.REVIEW, SessionMode.REVIEW_ALL):
        return Phase.RECALL
    raise ValueError(f"Unknown session mode: {mode}")


def build_choices(
    target: Word,
    pool: Sequence[Word],
    rng: random.Random,
    size: Optional[int] = None,
) -> List[Word]:
    """Pick ``size - 1`` distractors from the pool and shuffle in the target.

    ``size`` defaults to the CHOICE_OPTIONS setting.
    """
    if size is None:
        size = settings.learning.choice_options
    others = [word for word in pool if word.id != target.id]
    if len(others) < size - 1:
        raise ValueError(
            f"Need at least {size} words for a multiple choice, got {len(others) + 1}"
        )
    options = rng.sample(others, size - 1)
    options.append(target)
    rng.shuffle(options)
    return options


def normalize_spelling(text: str) -> str:
    return text.strip().lower()


class BasePhase(ABC):
    """Base class for all phase handlers."""

    type: Phase
    expects_text: bool = False

    @abstractmethod
    def is_correct(self, word: Word, answer: Any) -> bool:
        """Judge a raw answer. Must be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement this method")

    def _options(self, word: Word, pool: Sequence[Word], rng: random.Random, size: Optional[int]) -> List[Word]:
        return []

    @final
    def create_prompt(
        self,
        word: Word,
        pool: Sequence[Word],
        rng: random.Random,
        size: Optional[int] = None,
    ) -> PhasePrompt:
        """Create the prompt shown for this phase."""
        logger.debug(f"{self.__class__.__name__}: Creating prompt for word: {word.id}")
        return PhasePrompt(
            phase=self.type,
            word=word,
            correct_answer=self.correct_answer(word),
            options=self._options(word, pool, rng, size),
            expects_text=self.expects_text,
        )

    def correct_answer(self, word: Word) -> str:
        return word.meaning


class RecallPhase(BasePhase):
    """Flash card: the learner says whether they remembered the meaning."""
    type = Phase.RECALL

    def is_correct(self, word: Word, answer: Any) -> bool:
        return bool(answer)


class SelectPhase(BasePhase):
    """Multiple choice: pick the meaning among distractors."""
    type = Phase.SELECT

    def _options(self, word: Word, pool: Sequence[Word], rng: random.Random, size: Optional[int]) -> List[Word]:
        return build_choices(word, pool, rng, size)

    def is_correct(self, word: Word, answer: Any) -> bool:
        """The answer is the id of the chosen option."""
        return answer == word.id


class SpellPhase(BasePhase):
    """The learner types the word for its meaning."""
    type = Phase.SPELL
    expects_text = True

    def correct_answer(self, word: Word) -> str:
        return word.word

    def is_correct(self, word: Word, answer: Any) -> bool:
        if not isinstance(answer, str):
            return False
        return normalize_spelling(answer) == normalize_spelling(word.word)


class ImmersivePhase(BasePhase):
    """Read-through card, confirmed to move on."""
    type = Phase.IMMERSIVE

    def is_correct(self, word: Word, answer: Any) -> bool:
        return bool(answer)


class FeedbackPhase(BasePhase):
    """Shown after a mistake until the learner acknowledges it."""
    type = Phase.FEEDBACK

    def is_correct(self, word: Word, answer: Any) -> bool:
        raise ValueError("Feedback is acknowledged, not answered")


def get_all_subclasses(cls):
    """Get all subclasses of a class."""
    all_subclasses = []
    for subclass in cls.__subclasses__():
        all_subclasses.append(subclass)
        all_subclasses.extend(get_all_subclasses(subclass))
    return all_subclasses


PHASE_HANDLERS: Dict[Phase, Type[BasePhase]] = {
    handler.type: handler for handler in get_all_subclasses(BasePhase)
}


def handler_for(phase: Phase) -> BasePhase:
    """Instantiate the handler of a phase."""
    handler = PHASE_HANDLERS.get(phase)
    if handler is None:
        raise ValueError(f"No handler for phase: {phase}")
    return handler()
