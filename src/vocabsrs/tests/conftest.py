"""Test configuration."""
import os
import random
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Generator

import pytest
from dotenv import load_dotenv
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from sqlalchemy.orm import Session

from vocabsrs.models.base import Base, SessionLocal, engine, init_db
from vocabsrs.models.srs_models import Word, WordStatus

fake = Faker()

START = int(datetime(2024, 1, 15, 12, 0, tzinfo=UTC).timestamp() * 1000)


class FakeClock:
    """Clock returning a settable millisecond timestamp."""

    def __init__(self, now: int = START):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    Base.metadata.drop_all(bind=engine)
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_word() -> Callable[..., Word]:
    """Factory for engine words with unique ids."""
    counter = iter(range(1, 10_000))

    def _make(**kwargs) -> Word:
        kwargs.setdefault("id", next(counter))
        kwargs.setdefault("word", f"{fake.word()}{kwargs['id']}")
        kwargs.setdefault("meaning", fake.sentence(nb_words=3))
        kwargs.setdefault("status", WordStatus.NEW)
        return Word(**kwargs)

    return _make
