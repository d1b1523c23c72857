"""Service for managing vocabulary words in the database."""
import logging
from collections import defaultdict
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session

from vocabsrs.models.models import VocabWord
from vocabsrs.models.srs_models import Word, WordStatus, WordUpdate
from vocabsrs.monitoring import db_operations

logger = logging.getLogger(__name__)

LIBRARY_FILTERS = ("all", "learning", "mastered", "error")
EDITABLE_FIELDS = ("word", "meaning", "example", "example_translation", "category")


class WordNotFoundError(ValueError):
    """The word to write back no longer exists in the store."""


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_import_text(text: str) -> List[Dict[str, Optional[str]]]:
    """Parse ``word|meaning|example|translation`` lines.

    Lines with fewer than two fields are skipped.
    """
    rows = []
    for line in text.strip().splitlines():
        parts = line.split("|")
        if len(parts) < 2:
            continue
        word, meaning = parts[0].strip(), parts[1].strip()
        if not word or not meaning:
            continue
        rows.append({
            "word": word,
            "meaning": meaning,
            "example": _clean(parts[2]) if len(parts) > 2 else None,
            "example_translation": _clean(parts[3]) if len(parts) > 3 else None,
        })
    return rows


class WordService:
    """Service for managing vocabulary words of a user."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def _get_row(self, user_id: str, word_id: int) -> Optional[VocabWord]:
        return (
            self.db.query(VocabWord)
            .filter(and_(VocabWord.id == word_id, VocabWord.user_id == user_id))
            .first()
        )

    def get_word(self, user_id: str, word_id: int) -> Optional[Word]:
        """Get a word by its ID."""
        row = self._get_row(user_id, word_id)
        return row.to_word() if row else None

    def get_all_words(self, user_id: str) -> List[Word]:
        """Get all words of a user, newest first."""
        db_operations.labels(operation_type="select").inc()
        rows = (
            self.db.query(VocabWord)
            .filter(VocabWord.user_id == user_id)
            .order_by(VocabWord.created_at.desc(), VocabWord.id.desc())
            .all()
        )
        return [row.to_word() for row in rows]

    def add_word(
        self,
        user_id: str,
        word: str,
        meaning: str,
        example: Optional[str] = None,
        example_translation: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Word:
        """Add a single new word."""
        word = (word or "").strip()
        meaning = (meaning or "").strip()
        if not word:
            raise ValueError("Word is required")
        if not meaning:
            raise ValueError("Meaning is required")

        row = VocabWord(
            user_id=user_id,
            word=word,
            meaning=meaning,
            example=_clean(example),
            example_translation=_clean(example_translation),
            category=_clean(category),
            status=WordStatus.NEW.value,
            stage=0,
            next_review_at=0,
            interval_minutes=0,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        db_operations.labels(operation_type="insert").inc()
        logger.info(f"Added word {row.id} for user {user_id}")
        return row.to_word()

    def import_words(self, user_id: str, text: str, category: Optional[str] = None) -> List[Word]:
        """Import words from ``word|meaning|example|translation`` lines."""
        data = parse_import_text(text)
        if not data:
            raise ValueError("Invalid format, at least word|meaning is required")

        rows = [
            VocabWord(
                user_id=user_id,
                category=_clean(category),
                status=WordStatus.NEW.value,
                stage=0,
                next_review_at=0,
                interval_minutes=0,
                **item,
            )
            for item in data
        ]
        self.db.add_all(rows)
        self.db.commit()
        for row in rows:
            self.db.refresh(row)
        db_operations.labels(operation_type="insert").inc(len(rows))
        logger.info(f"Imported {len(rows)} words for user {user_id}")
        return [row.to_word() for row in rows]

    def update_word(self, user_id: str, word_id: int, **kwargs: Any) -> Optional[Word]:
        """Update a word's text fields."""
        row = self._get_row(user_id, word_id)
        if not row:
            return None

        for key, value in kwargs.items():
            if key not in EDITABLE_FIELDS:
                raise ValueError(f"Field {key} cannot be edited")
            if key in ("word", "meaning"):
                value = (value or "").strip()
                if not value:
                    raise ValueError(f"{key.capitalize()} is required")
            else:
                value = _clean(value)
            setattr(row, key, value)

        self.db.commit()
        self.db.refresh(row)
        db_operations.labels(operation_type="update").inc()
        return row.to_word()

    def delete_word(self, user_id: str, word_id: int) -> bool:
        """Delete a word."""
        row = self._get_row(user_id, word_id)
        if not row:
            return False

        self.db.delete(row)
        self.db.commit()
        db_operations.labels(operation_type="delete").inc()
        logger.info(f"Deleted word {word_id} for user {user_id}")
        return True

    def apply_update(self, user_id: str, word_id: int, update: WordUpdate) -> Word:
        """Write the SRS fields of a word after an answer."""
        row = self._get_row(user_id, word_id)
        if not row:
            raise WordNotFoundError(f"Word {word_id} not found for user {user_id}")

        row.apply_update(update)
        self.db.commit()
        self.db.refresh(row)
        db_operations.labels(operation_type="update").inc()
        return row.to_word()

    def filter_library(self, user_id: str, library_filter: str = "all") -> List[Word]:
        """Get words for one of the library tabs."""
        if library_filter not in LIBRARY_FILTERS:
            raise ValueError(f"Unknown library filter: {library_filter}")

        words = self.get_all_words(user_id)
        if library_filter == "learning":
            return [w for w in words if w.status in (WordStatus.NEW, WordStatus.LEARNING)]
        if library_filter == "mastered":
            return [w for w in words if w.status == WordStatus.MASTERED]
        if library_filter == "error":
            return [w for w in words if w.stage == 0 and w.status == WordStatus.LEARNING]
        return words

    def review_groups(self, user_id: str, now: int) -> Dict[Optional[date], Dict[str, Any]]:
        """Group non-new words by the day they were first learned."""
        groups: Dict[Optional[date], Dict[str, Any]] = defaultdict(lambda: {"words": [], "due": 0})
        for word in self.get_all_words(user_id):
            if word.status == WordStatus.NEW:
                continue
            group = groups[word.learned_date]
            group["words"].append(word)
            if word.next_review_at <= now:
                group["due"] += 1
        return dict(groups)
