from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from study_diary import main, models, repositories, services
from study_diary.database import build_engine, create_db_and_tables


class FakeClock:
    """Deterministic clock: starts at `start` and advances one second per call."""

    def __init__(self, start=datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return repositories.InMemoryStudyLogRepository(clock=clock)


@pytest.fixture
def sql_store(clock):
    """SQL-backed store over a private in-memory SQLite database."""
    engine = build_engine("sqlite://")
    create_db_and_tables(engine)
    s = repositories.SqlStudyLogRepository(engine, clock=clock)
    yield s
    s.close()


@pytest.fixture
def service(store, clock):
    return services.StudyLogService(store, clock=clock)


@pytest.fixture
def client(store, clock):
    app = main.create_app(store=store, clock=clock)
    return TestClient(app)


@pytest.fixture
def make_log():
    """Factory for unsaved study logs numbered `i` (study date 2024-01-01 + i - 1)."""
    def _make(i=1, **overrides):
        created = datetime(2025, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=i)
        fields = dict(
            title=f"Study log {i}",
            content=f"Notes {i}",
            category=models.Category.JAVA,
            understanding=models.Understanding.GOOD,
            study_time=60 + i,
            study_date=date(2024, 1, 1) + timedelta(days=i - 1),
            created_at=created,
            updated_at=created,
        )
        fields.update(overrides)
        return models.StudyLog(**fields)
    return _make
