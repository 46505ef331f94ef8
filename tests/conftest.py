import os
import sys
from datetime import datetime, timezone

# Configure before any practicehub import: settings and the engine are built at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EXECUTION_BACKEND"] = "piston"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["REFERENCE_TIMEZONE"] = "UTC"

# Ensure repo root on sys.path for imports like `practicehub...`
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import pytest

from practicehub.core.clock import ReferenceClock
from practicehub.features.execution.schemas import ExecutionCompleted
from practicehub.features.execution.service import PistonClient, normalize_language
from practicehub.common.errors import UnsupportedLanguageError


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db():
    from practicehub.db.base import Base
    from practicehub.db.session import SessionLocal, engine, init_db

    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


class FixedClock(ReferenceClock):
    def __init__(self, moment: datetime, tz=timezone.utc) -> None:
        super().__init__(tz)
        self.moment = moment

    def now(self) -> datetime:
        return self.moment


class FakeExecutionClient(PistonClient):
    """Answers from ``responder(code, stdin)`` instead of the network."""

    name = "fake"

    def __init__(self, responder=None) -> None:
        super().__init__("http://fake.test", timeout_s=1)
        self.responder = responder or (lambda code, stdin: ExecutionCompleted(stdout=stdin))
        self.calls: list[tuple[str, str, str]] = []

    async def execute(self, code, language, stdin=""):
        lang = normalize_language(language)
        if lang not in self.languages:
            raise UnsupportedLanguageError(language)
        self.calls.append((code, lang, stdin))
        return self.responder(code, stdin)


def doubling_program(code: str, stdin: str):
    """``correct`` doubles its input (CRLF line ending); ``wrong`` is off by one for input 2."""
    value = int(stdin.strip() or 0)
    if code == "wrong" and value == 2:
        return ExecutionCompleted(stdout="5\n")
    return ExecutionCompleted(stdout=f"{value * 2}\r\n")


@pytest.fixture
def fixed_now():
    return datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now):
    return FixedClock(fixed_now)


@pytest.fixture
def fake_client():
    return FakeExecutionClient(doubling_program)


@pytest.fixture
def seed(db):
    """Factory helpers for users, companies and problems."""
    from practicehub.auth.service import hash_password
    from practicehub.features.companies.models import Company
    from practicehub.features.problems.models import Problem, TestCase, Visibility
    from practicehub.features.users.models import User

    class _Seed:
        def user(self, username="alice", role="student"):
            u = User(username=username, password_hash=hash_password("secret123"), role=role)
            db.add(u)
            db.commit()
            db.refresh(u)
            return u

        def company(self, name="Acme"):
            c = Company(name=name, description=f"{name} interview set")
            db.add(c)
            db.commit()
            db.refresh(c)
            return c

        def problem(self, title="Double it", difficulty="Easy", hidden=(("1", "2"), ("2", "4"), ("3", "6")),
                    public=(("5", "10"),), company=None):
            p = Problem(title=title, description="Print twice the input.", difficulty=difficulty,
                        company_id=company.id if company else None)
            cases = []
            # stored out of order on purpose; grading must follow order_index
            for idx, (inp, out) in reversed(list(enumerate(hidden))):
                cases.append(TestCase(input=inp, expected_output=out, visibility=Visibility.hidden, order_index=idx))
            for idx, (inp, out) in enumerate(public):
                cases.append(TestCase(input=inp, expected_output=out, visibility=Visibility.public, order_index=idx))
            p.test_cases = cases
            db.add(p)
            db.commit()
            db.refresh(p)
            return p

    return _Seed()
