"""Query engine: filtering, sorting and pagination of study logs.

The engine works on plain sequences handed over by a store, so the same
semantics apply regardless of the backing:

- filters compose conjunctively (category, exact date, case-insensitive
  title keyword, inclusive date range);
- sorting uses one of four keys with an `id` ascending tie-break, so
  pages are stable across calls even when sort keys collide;
- pagination is strict: a page past the end raises
  `InvalidPageRequestError`, while page 0 of an empty result is an empty
  page.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Callable, Generic, Iterable, List, Optional, Sequence, TypeVar

from . import models
from .errors import InvalidPageRequestError
from .schemas import CamelModel

T = TypeVar("T")
U = TypeVar("U")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_SORT_BY = "createdAt"
DEFAULT_SORT_DIRECTION = "DESC"

SORT_KEYS = {
    "title": lambda log: log.title,
    "studyTime": lambda log: log.study_time,
    "studyDate": lambda log: log.study_date,
    "createdAt": lambda log: log.created_at,
}


@dataclass(frozen=True)
class PageRequest:
    """Resolved pagination parameters.

    Build instances through `PageRequest.of`, which applies defaults and
    clamps values; the constructor takes them as-is.
    """
    page: int = 0
    size: int = DEFAULT_PAGE_SIZE
    sort_by: str = DEFAULT_SORT_BY
    sort_direction: str = DEFAULT_SORT_DIRECTION

    @classmethod
    def of(
        cls,
        page: Optional[int] = None,
        size: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_direction: Optional[str] = None,
        default_size: int = DEFAULT_PAGE_SIZE,
        max_size: int = MAX_PAGE_SIZE,
    ) -> "PageRequest":
        """Resolve raw parameters.

        `page` is clamped to >= 0; a missing or non-positive `size` becomes
        `default_size` and larger sizes are capped at `max_size`. Unknown
        sort keys fall back to `createdAt`; any direction other than ASC
        (case-insensitive) means DESC.
        """
        resolved_size = default_size if size is None or size <= 0 else min(size, max_size)
        direction = "ASC" if sort_direction and sort_direction.strip().upper() == "ASC" else "DESC"
        return cls(
            page=max(page or 0, 0),
            size=resolved_size,
            sort_by=sort_by if sort_by in SORT_KEYS else DEFAULT_SORT_BY,
            sort_direction=direction,
        )

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def ascending(self) -> bool:
        return self.sort_direction == "ASC"


class PageResponse(CamelModel, Generic[T]):
    """One page of results plus navigation metadata."""
    content: List[T]
    page_number: int
    page_size: int
    total_elements: int
    total_pages: int
    first: bool
    last: bool
    has_next: bool
    has_previous: bool

    @classmethod
    def of(cls, content: List[T], page_number: int, page_size: int, total_elements: int) -> "PageResponse[T]":
        total_pages = calculate_total_pages(total_elements, page_size)
        first = page_number == 0
        last = page_number >= total_pages - 1
        return cls(
            content=content,
            page_number=page_number,
            page_size=page_size,
            total_elements=total_elements,
            total_pages=total_pages,
            first=first,
            last=last,
            has_next=not last,
            has_previous=not first,
        )

    def map(self, fn: Callable[[T], U]) -> "PageResponse[U]":
        """Return the same page with `fn` applied to each item."""
        return PageResponse.of([fn(item) for item in self.content], self.page_number, self.page_size, self.total_elements)


@dataclass(frozen=True)
class SearchCriteria:
    """Optional filters combined with AND. `None` means "no constraint"."""
    title_keyword: Optional[str] = None
    category: Optional[models.Category] = None
    study_date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def matches(self, log: models.StudyLog) -> bool:
        if self.category is not None and log.category != self.category:
            return False
        if self.study_date is not None and log.study_date != self.study_date:
            return False
        if self.title_keyword and self.title_keyword.strip():
            if self.title_keyword.casefold() not in log.title.casefold():
                return False
        if self.start_date is not None and log.study_date < self.start_date:
            return False
        if self.end_date is not None and log.study_date > self.end_date:
            return False
        return True


def calculate_total_pages(total_elements: int, page_size: int) -> int:
    return math.ceil(total_elements / page_size) if total_elements > 0 else 0


def filter_logs(logs: Iterable[models.StudyLog], criteria: SearchCriteria) -> List[models.StudyLog]:
    return [log for log in logs if criteria.matches(log)]


def sort_logs(logs: Iterable[models.StudyLog], sort_by: str = DEFAULT_SORT_BY, ascending: bool = False) -> List[models.StudyLog]:
    """Sort by `sort_by`, ties broken by ascending id.

    Python's sort is stable in both directions, so ordering by id first
    and then by the key keeps equal keys in id order even when reversed.
    """
    key = SORT_KEYS.get(sort_by, SORT_KEYS[DEFAULT_SORT_BY])
    ordered = sorted(logs, key=lambda log: log.id)
    ordered.sort(key=key, reverse=not ascending)
    return ordered


def paginate(items: Sequence[T], page_request: PageRequest) -> PageResponse[T]:
    """Slice an already-filtered, already-sorted sequence.

    Raises `InvalidPageRequestError` when the page is negative or past the
    last page of a non-empty result.
    """
    total = len(items)
    total_pages = calculate_total_pages(total, page_request.size)
    if page_request.page < 0 or (total > 0 and page_request.page >= total_pages):
        raise InvalidPageRequestError(page_request.page, total_pages)
    start = page_request.offset
    end = min(start + page_request.size, total)
    return PageResponse.of(list(items[start:end]), page_request.page, page_request.size, total)


def query_page(
    logs: Iterable[models.StudyLog],
    page_request: PageRequest,
    criteria: Optional[SearchCriteria] = None,
) -> PageResponse[models.StudyLog]:
    """Filter, sort and paginate `logs` in one step."""
    filtered = filter_logs(logs, criteria) if criteria is not None else list(logs)
    ordered = sort_logs(filtered, page_request.sort_by, page_request.ascending)
    return paginate(ordered, page_request)
