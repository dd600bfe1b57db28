import os
import sys
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Settings are read at import time, so point them at SQLite before anything imports quizdeck.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("APP_ENV", "test")

from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from quizdeck.core.security import create_access_token, hash_password
from quizdeck.db import session as session_module
from quizdeck.db.base import Base
from quizdeck.main import create_app

# Import models so that they are registered in Base.metadata before create_all.
from quizdeck.models.user import User
from quizdeck.models.quiz_set import Option, Question, QuestionType, QuizSet
from quizdeck.models.exam import Exam, ExamAnswer, ExamQuestion  # noqa: F401
from quizdeck.models.wrong_question import WrongQuestionRecord  # noqa: F401
from quizdeck.models.practice import PracticeAttempt  # noqa: F401


class _MemoryRedis:
    def __init__(self):
        self._data: dict[str, tuple[str, float | None]] = {}

    def ping(self):
        return True

    def _now(self) -> float:
        return time.time()

    def _get_entry(self, key: str):
        v = self._data.get(key)
        if not v:
            return None
        value, exp = v
        if exp is not None and exp <= self._now():
            self._data.pop(key, None)
            return None
        return value, exp

    def get(self, key: str):
        entry = self._get_entry(key)
        return entry[0] if entry else None

    def incr(self, key: str):
        entry = self._get_entry(key)
        n = int(entry[0] if entry else 0) + 1
        exp = entry[1] if entry else None
        self._data[key] = (str(n), exp)
        return n

    def expire(self, key: str, seconds: int):
        entry = self._get_entry(key)
        if not entry:
            return False
        self._data[key] = (entry[0], self._now() + int(seconds))
        return True

    def ttl(self, key: str):
        entry = self._get_entry(key)
        if not entry:
            return -2
        _, exp = entry
        if exp is None:
            return -1
        return max(0, int(exp - self._now()))

    def clear(self):
        self._data.clear()


# Configure test DB (SQLite in-memory) at import time so all tests importing
# quizdeck.db.session.SessionLocal will get the patched version.
_engine = session_module.make_engine("sqlite+pysqlite:///:memory:", poolclass=StaticPool)
Base.metadata.create_all(bind=_engine)
session_module.engine = _engine
session_module.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)


# Stub Redis at import time (rate limiting + readiness probe).
_mem_redis = _MemoryRedis()
import quizdeck.core.redis_client as redis_client_module

redis_client_module.get_redis = lambda: _mem_redis

import quizdeck.core.rate_limit as rate_limit_module

rate_limit_module.get_redis = lambda: _mem_redis

import quizdeck.routers.health as health_router_module

health_router_module.get_redis = lambda: _mem_redis


_PASSWORD = "testpass123"
_PASSWORD_HASH = hash_password(_PASSWORD)


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@dataclass
class SeededQuizSet:
    id: int
    owner_id: int
    question_ids: list[int] = field(default_factory=list)
    correct: dict[int, list[int]] = field(default_factory=dict)
    wrong: dict[int, list[int]] = field(default_factory=dict)


def create_user(db, *, prefix: str = "user") -> User:
    name = f"{prefix}_{uuid.uuid4().hex[:8]}"
    user = User(username=name, email=f"{name}@example.com", password_hash=_PASSWORD_HASH)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def seed_quiz_set(db, *, owner_id: int, n_questions: int = 10, multi_every: int = 0) -> SeededQuizSet:
    """Quiz set whose questions have options A/B/C; A is correct (A and B for every ``multi_every``-th)."""
    qs = QuizSet(owner_id=owner_id, title=f"set {uuid.uuid4().hex[:6]}", description="")
    db.add(qs)
    db.flush()

    seeded = SeededQuizSet(id=qs.id, owner_id=owner_id)
    for i in range(1, n_questions + 1):
        multi = bool(multi_every) and i % multi_every == 0
        q = Question(
            quiz_set_id=qs.id,
            text=f"Question {i}",
            type=QuestionType.multi_choice if multi else QuestionType.single_choice,
            explanation=f"Because {i}",
        )
        q.options = [
            Option(text="A", is_correct=True),
            Option(text="B", is_correct=multi),
            Option(text="C", is_correct=False),
        ]
        db.add(q)
        db.flush()
        seeded.question_ids.append(q.id)
        seeded.correct[q.id] = [o.id for o in q.options if o.is_correct]
        seeded.wrong[q.id] = [o.id for o in q.options if not o.is_correct]
    db.commit()
    return seeded


def headers_for(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id=user_id)}"}


@pytest.fixture(scope="session")
def client():
    app = create_app()

    # Ensure app dependencies use our session factory.
    def _get_db_override():
        db = session_module.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[session_module.get_db] = _get_db_override
    return TestClient(app)


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    _mem_redis.clear()
    yield


@pytest.fixture()
def db():
    with session_module.SessionLocal() as session:
        yield session


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def user(db):
    return create_user(db)


@pytest.fixture()
def other_user(db):
    return create_user(db, prefix="other")


@pytest.fixture()
def auth_headers(user):
    return headers_for(user.id)


@pytest.fixture()
def quiz_set(db, user):
    return seed_quiz_set(db, owner_id=user.id, n_questions=10)
