"""Repository classes encapsulating study log storage.

Two stores implement the same contract:

- `InMemoryStudyLogRepository` keeps records in a dict guarded by a
  single lock and draws ids from an `IdentitySequence`. It is the
  default backing and lives only as long as the process.
- `SqlStudyLogRepository` persists records through SQLModel; ids come
  from the table's primary key.

Both return detached `StudyLog` instances: mutating a returned record
never changes the stored one until it is passed back through `update`,
and `patch` rewrites only the named fields under the store's lock.
Listing methods return records in no particular order; callers sort
explicitly through the query engine.
"""

import logging
import threading
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Protocol

from sqlalchemy import func
from sqlmodel import Session, select

from . import models
from .errors import NotFoundError
from .utils.sequence import IdentitySequence

logger = logging.getLogger("study_diary.store")


class StudyLogStore(Protocol):
    """Contract shared by every study log store."""

    def save(self, log: models.StudyLog) -> models.StudyLog: ...
    def find_by_id(self, log_id: int) -> Optional[models.StudyLog]: ...
    def find_all(self) -> List[models.StudyLog]: ...
    def find_by_category(self, category: models.Category) -> List[models.StudyLog]: ...
    def find_by_study_date(self, study_date: date) -> List[models.StudyLog]: ...
    def update(self, log: models.StudyLog) -> models.StudyLog: ...
    def patch(self, log_id: int, changes: Dict[str, Any], updated_at: datetime) -> models.StudyLog: ...
    def delete_by_id(self, log_id: int) -> bool: ...
    def delete_all(self) -> int: ...
    def exists_by_id(self, log_id: int) -> bool: ...
    def count(self) -> int: ...
    def soft_delete_by_id(self, log_id: int) -> bool: ...
    def restore(self, log_id: int) -> bool: ...
    def find_all_active(self) -> List[models.StudyLog]: ...
    def close(self) -> None: ...


def _detach(log: models.StudyLog) -> models.StudyLog:
    return models.StudyLog(**log.model_dump())


class InMemoryStudyLogRepository:
    """Dict-backed store; every public method is atomic under one lock."""
    def __init__(self, sequence: Optional[IdentitySequence] = None, clock: Callable = models.utcnow):
        self._logs: Dict[int, models.StudyLog] = {}
        self._lock = threading.Lock()
        self._sequence = sequence or IdentitySequence()
        self._clock = clock
        logger.info("in-memory study log store ready")

    def save(self, log: models.StudyLog) -> models.StudyLog:
        """Store `log`, assigning the next id when it has none."""
        stored = _detach(log)
        with self._lock:
            if stored.id is None:
                stored.id = self._sequence.next()
            self._logs[stored.id] = stored
            return _detach(stored)

    def find_by_id(self, log_id: int) -> Optional[models.StudyLog]:
        with self._lock:
            log = self._logs.get(log_id)
            return _detach(log) if log else None

    def find_all(self) -> List[models.StudyLog]:
        """Return every record, soft-deleted ones included."""
        with self._lock:
            return [_detach(log) for log in self._logs.values()]

    def find_by_category(self, category: models.Category) -> List[models.StudyLog]:
        with self._lock:
            return [_detach(log) for log in self._logs.values() if log.category == category]

    def find_by_study_date(self, study_date: date) -> List[models.StudyLog]:
        with self._lock:
            return [_detach(log) for log in self._logs.values() if log.study_date == study_date]

    def update(self, log: models.StudyLog) -> models.StudyLog:
        """Replace an existing record.

        Raises `NotFoundError` if `log.id` is unset or unknown.
        """
        with self._lock:
            if log.id is None or log.id not in self._logs:
                raise NotFoundError(log.id)
            self._logs[log.id] = _detach(log)
            return _detach(log)

    def patch(self, log_id: int, changes: Dict[str, Any], updated_at: datetime) -> models.StudyLog:
        """Apply `changes` to the stored record and stamp `updated_at`.

        Fields not named in `changes` keep their current stored values.
        """
        with self._lock:
            log = self._logs.get(log_id)
            if log is None:
                raise NotFoundError(log_id)
            for field, value in changes.items():
                setattr(log, field, value)
            log.updated_at = updated_at
            return _detach(log)

    def delete_by_id(self, log_id: int) -> bool:
        with self._lock:
            return self._logs.pop(log_id, None) is not None

    def delete_all(self) -> int:
        with self._lock:
            removed = len(self._logs)
            self._logs.clear()
        logger.info("deleted all study logs (%d)", removed)
        return removed

    def exists_by_id(self, log_id: int) -> bool:
        with self._lock:
            return log_id in self._logs

    def count(self) -> int:
        with self._lock:
            return len(self._logs)

    def soft_delete_by_id(self, log_id: int) -> bool:
        """Flag a record as deleted; False if absent or already deleted."""
        with self._lock:
            log = self._logs.get(log_id)
            if log is None or log.deleted:
                return False
            log.deleted = True
            log.deleted_at = self._clock()
            return True

    def restore(self, log_id: int) -> bool:
        """Clear the deleted flag; False if absent or not deleted."""
        with self._lock:
            log = self._logs.get(log_id)
            if log is None or not log.deleted:
                return False
            log.deleted = False
            log.deleted_at = None
            return True

    def find_all_active(self) -> List[models.StudyLog]:
        with self._lock:
            return [_detach(log) for log in self._logs.values() if not log.deleted]

    def close(self) -> None:
        """Drop every record, logging what was held."""
        with self._lock:
            held = len(self._logs)
            self._logs.clear()
        logger.info("in-memory study log store closed (records=%d, last_id=%d)", held, self._sequence.last())


class SqlStudyLogRepository:
    """SQLModel-backed store with the same contract as the in-memory one.

    Each operation runs in its own short session. Writes refresh the row
    after commit so returned timestamps match what the database holds.
    """
    def __init__(self, engine, clock: Callable = models.utcnow):
        self.engine = engine
        self._clock = clock
        # one writer at a time; SQLite connections may be shared across threads
        self._lock = threading.Lock()
        logger.info("sql study log store ready (%s)", engine.url)

    def _session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    def save(self, log: models.StudyLog) -> models.StudyLog:
        """Insert or overwrite `log`; the database assigns missing ids."""
        with self._lock, self._session() as session:
            stored = session.merge(_detach(log))
            session.commit()
            session.refresh(stored)
            return stored

    def find_by_id(self, log_id: int) -> Optional[models.StudyLog]:
        with self._lock, self._session() as session:
            return session.get(models.StudyLog, log_id)

    def find_all(self) -> List[models.StudyLog]:
        with self._lock, self._session() as session:
            return list(session.exec(select(models.StudyLog)).all())

    def find_by_category(self, category: models.Category) -> List[models.StudyLog]:
        stmt = select(models.StudyLog).where(models.StudyLog.category == category)
        with self._lock, self._session() as session:
            return list(session.exec(stmt).all())

    def find_by_study_date(self, study_date: date) -> List[models.StudyLog]:
        stmt = select(models.StudyLog).where(models.StudyLog.study_date == study_date)
        with self._lock, self._session() as session:
            return list(session.exec(stmt).all())

    def update(self, log: models.StudyLog) -> models.StudyLog:
        with self._lock, self._session() as session:
            if log.id is None or session.get(models.StudyLog, log.id) is None:
                raise NotFoundError(log.id)
            stored = session.merge(_detach(log))
            session.commit()
            session.refresh(stored)
            return stored

    def patch(self, log_id: int, changes: Dict[str, Any], updated_at: datetime) -> models.StudyLog:
        with self._lock, self._session() as session:
            log = session.get(models.StudyLog, log_id)
            if log is None:
                raise NotFoundError(log_id)
            for field, value in changes.items():
                setattr(log, field, value)
            log.updated_at = updated_at
            session.add(log)
            session.commit()
            session.refresh(log)
            return log

    def delete_by_id(self, log_id: int) -> bool:
        with self._lock, self._session() as session:
            log = session.get(models.StudyLog, log_id)
            if log is None:
                return False
            session.delete(log)
            session.commit()
            return True

    def delete_all(self) -> int:
        with self._lock, self._session() as session:
            logs = session.exec(select(models.StudyLog)).all()
            for log in logs:
                session.delete(log)
            session.commit()
        logger.info("deleted all study logs (%d)", len(logs))
        return len(logs)

    def exists_by_id(self, log_id: int) -> bool:
        with self._lock, self._session() as session:
            return session.get(models.StudyLog, log_id) is not None

    def count(self) -> int:
        stmt = select(func.count(models.StudyLog.id))
        with self._lock, self._session() as session:
            return session.exec(stmt).one()

    def soft_delete_by_id(self, log_id: int) -> bool:
        with self._lock, self._session() as session:
            log = session.get(models.StudyLog, log_id)
            if log is None or log.deleted:
                return False
            log.deleted = True
            log.deleted_at = self._clock()
            session.add(log)
            session.commit()
            return True

    def restore(self, log_id: int) -> bool:
        with self._lock, self._session() as session:
            log = session.get(models.StudyLog, log_id)
            if log is None or not log.deleted:
                return False
            log.deleted = False
            log.deleted_at = None
            session.add(log)
            session.commit()
            return True

    def find_all_active(self) -> List[models.StudyLog]:
        stmt = select(models.StudyLog).where(models.StudyLog.deleted == False)  # noqa: E712
        with self._lock, self._session() as session:
            return list(session.exec(stmt).all())

    def close(self) -> None:
        logger.info("sql study log store closed")
        self.engine.dispose()


def build_store(settings, clock: Callable = models.utcnow) -> StudyLogStore:
    """Create the store selected by `settings.STORE_BACKEND`."""
    if settings.STORE_BACKEND == "sql":
        from .database import build_engine, create_db_and_tables
        engine = build_engine(settings.DATABASE_URL)
        create_db_and_tables(engine)
        return SqlStudyLogRepository(engine, clock=clock)
    return InMemoryStudyLogRepository(clock=clock)
