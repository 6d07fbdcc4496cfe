"""Business logic services used by HTTP controllers.

`StudyLogService` coordinates the validator, a study log store and the
query engine. It is intentionally thin: it validates input, builds or
patches records, persists them via the store and shapes reads through
the query engine. The store is injected, never looked up globally, so
the application factory and the tests decide which backing is used.
"""

import json
import logging
from datetime import date
from typing import Callable, List, Optional

from . import models, query, validators
from .errors import NotFoundError
from .repositories import StudyLogStore
from .schemas import StudyLogCreate, StudyLogUpdate

logger = logging.getLogger("study_diary.service")


class StudyLogService:
    """Create, read, update and delete study logs."""
    def __init__(
        self,
        store: StudyLogStore,
        clock: Callable = models.utcnow,
        default_page_size: int = query.DEFAULT_PAGE_SIZE,
        max_page_size: int = query.MAX_PAGE_SIZE,
    ):
        self.store = store
        self.clock = clock
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def today(self) -> date:
        """Current date in the server's local time zone."""
        return self.clock().astimezone().date()

    def page_request(self, page=None, size=None, sort_by=None, sort_direction=None) -> query.PageRequest:
        """Resolve raw paging parameters with this service's size limits."""
        return query.PageRequest.of(
            page=page,
            size=size,
            sort_by=sort_by,
            sort_direction=sort_direction,
            default_size=self.default_page_size,
            max_size=self.max_page_size,
        )

    # create

    def create_study_log(self, payload: StudyLogCreate) -> models.StudyLog:
        """Validate `payload` and store a new study log.

        Returns the stored record with its assigned id and timestamps.
        """
        fields = validators.validate_create(payload, self.today())
        now = self.clock()
        log = models.StudyLog(**fields, created_at=now, updated_at=now)
        saved = self.store.save(log)
        logger.info("study_log_created %s", json.dumps({"id": saved.id, "category": saved.category.value}, ensure_ascii=True))
        return saved

    # read

    def get_study_log(self, log_id: int) -> models.StudyLog:
        """Return a record by id, soft-deleted or not."""
        log = self.store.find_by_id(log_id)
        if log is None:
            raise NotFoundError(log_id)
        return log

    def _source(self, include_deleted: bool) -> List[models.StudyLog]:
        return self.store.find_all() if include_deleted else self.store.find_all_active()

    def list_study_logs(self, include_deleted: bool = False) -> List[models.StudyLog]:
        """Return study logs newest first."""
        return query.sort_logs(self._source(include_deleted))

    def get_study_logs_by_date(self, study_date: date, include_deleted: bool = False) -> List[models.StudyLog]:
        logs = self.store.find_by_study_date(study_date)
        return query.sort_logs(log for log in logs if include_deleted or not log.deleted)

    def get_study_logs_by_category(self, category_token: str, include_deleted: bool = False) -> List[models.StudyLog]:
        category = validators.parse_category(category_token).unwrap()
        logs = self.store.find_by_category(category)
        return query.sort_logs(log for log in logs if include_deleted or not log.deleted)

    def get_page(self, page_request: query.PageRequest, include_deleted: bool = False) -> query.PageResponse:
        return query.query_page(self._source(include_deleted), page_request)

    def get_category_page(self, category_token: str, page_request: query.PageRequest) -> query.PageResponse:
        category = validators.parse_category(category_token).unwrap()
        logs = [log for log in self.store.find_by_category(category) if not log.deleted]
        return query.query_page(logs, page_request)

    def search_page(
        self,
        page_request: query.PageRequest,
        title_keyword: Optional[str] = None,
        category_token: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> query.PageResponse:
        """Search active logs; every filter is optional and they combine with AND.

        A blank keyword or category is treated as absent.
        """
        category = None
        if category_token is not None and category_token.strip():
            category = validators.parse_category(category_token).unwrap()
        criteria = query.SearchCriteria(
            title_keyword=title_keyword.strip() if title_keyword and title_keyword.strip() else None,
            category=category,
            start_date=start_date,
            end_date=end_date,
        )
        return query.query_page(self.store.find_all_active(), page_request, criteria)

    # update

    def update_study_log(self, log_id: int, payload: StudyLogUpdate) -> models.StudyLog:
        """Apply a partial update.

        Only fields present in `payload` change; `updated_at` is refreshed.
        The record must exist before the payload is checked. The store
        applies the changes to its current copy, so concurrent writes to
        other fields are kept.
        """
        if not self.store.exists_by_id(log_id):
            raise NotFoundError(log_id)
        changes = validators.validate_update(payload, self.today())
        updated = self.store.patch(log_id, changes, self.clock())
        logger.info("study_log_updated %s", json.dumps({"id": log_id, "fields": sorted(changes)}, ensure_ascii=True))
        return updated

    # delete

    def delete_study_log(self, log_id: int) -> int:
        """Hard-delete a record; raises `NotFoundError` when absent."""
        if not self.store.exists_by_id(log_id):
            raise NotFoundError(log_id)
        self.store.delete_by_id(log_id)
        logger.info("study_log_deleted %s", json.dumps({"id": log_id}, ensure_ascii=True))
        return log_id

    def delete_all_study_logs(self) -> int:
        return self.store.delete_all()

    def count_study_logs(self) -> int:
        return self.store.count()

    def soft_delete_study_log(self, log_id: int) -> bool:
        """Mark a record deleted; returns False if it already was."""
        if not self.store.exists_by_id(log_id):
            raise NotFoundError(log_id)
        changed = self.store.soft_delete_by_id(log_id)
        logger.info("study_log_soft_deleted %s", json.dumps({"id": log_id, "changed": changed}, ensure_ascii=True))
        return changed

    def restore_study_log(self, log_id: int) -> bool:
        """Undo a soft delete; returns False if the record was not deleted."""
        if not self.store.exists_by_id(log_id):
            raise NotFoundError(log_id)
        changed = self.store.restore(log_id)
        logger.info("study_log_restored %s", json.dumps({"id": log_id, "changed": changed}, ensure_ascii=True))
        return changed
