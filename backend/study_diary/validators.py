"""Field validation for study log create and update payloads.

The validator is pure: it receives already-parsed request schemas and
the current date, and returns normalized field values ready for the
store. Constraint violations raise the typed errors from `errors`.

Enum tokens are resolved with `parse_enum`, which returns a result
object instead of raising, so callers branch on the outcome.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from . import models
from .errors import InvalidEnumError, NoUpdatesSpecifiedError, ValidationError
from .schemas import StudyLogCreate, StudyLogUpdate

TITLE_MAX_LENGTH = 100
CONTENT_MAX_LENGTH = 1000
MIN_STUDY_TIME = 1

E = TypeVar("E", bound=Enum)


@dataclass(frozen=True)
class EnumParseResult(Generic[E]):
    """Outcome of resolving an enum token: either `value` or `error`."""
    value: Optional[E] = None
    error: Optional[InvalidEnumError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> E:
        """Return the parsed member, raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value


def parse_enum(enum_cls: Type[E], field: str, token: str) -> EnumParseResult[E]:
    """Resolve `token` against `enum_cls` by upper-cased member name."""
    member = enum_cls.__members__.get(token.strip().upper()) if isinstance(token, str) else None
    if member is None:
        return EnumParseResult(error=InvalidEnumError(field, str(token)))
    return EnumParseResult(value=member)


def parse_category(token: str) -> EnumParseResult[models.Category]:
    return parse_enum(models.Category, "category", token)


def parse_understanding(token: str) -> EnumParseResult[models.Understanding]:
    return parse_enum(models.Understanding, "understanding", token)


def _check_text(field: str, value: Optional[str], max_length: int) -> str:
    if value is None or not value.strip():
        raise ValidationError(field, f"{field} must not be blank")
    if len(value) > max_length:
        raise ValidationError(field, f"{field} must be at most {max_length} characters")
    return value


def _check_study_time(value: Optional[int]) -> int:
    if value is None or value < MIN_STUDY_TIME:
        raise ValidationError("study_time", f"study_time must be at least {MIN_STUDY_TIME} minute")
    return value


def _check_token(field: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise ValidationError(field, f"{field} is required")
    return value


def validate_create(payload: StudyLogCreate, today: date) -> Dict[str, Any]:
    """Validate a create payload and return store-ready field values.

    A missing `study_date` resolves to `today`. Future dates are accepted
    on create; only the update path rejects them.
    """
    title = _check_text("title", payload.title, TITLE_MAX_LENGTH)
    content = _check_text("content", payload.content, CONTENT_MAX_LENGTH)
    study_time = _check_study_time(payload.study_time)
    category = parse_category(_check_token("category", payload.category))
    if not category.ok:
        raise category.error
    understanding = parse_understanding(_check_token("understanding", payload.understanding))
    if not understanding.ok:
        raise understanding.error
    return {
        "title": title,
        "content": content,
        "category": category.value,
        "understanding": understanding.value,
        "study_time": study_time,
        "study_date": payload.study_date if payload.study_date is not None else today,
    }


def validate_update(payload: StudyLogUpdate, today: date) -> Dict[str, Any]:
    """Validate a partial update and return only the fields to change.

    Raises `NoUpdatesSpecifiedError` when no field was sent. A field sent
    as explicit `null` is rejected: clearing a value is not supported.
    """
    provided = payload.provided()
    if not provided:
        raise NoUpdatesSpecifiedError()
    for field, value in provided.items():
        if value is None:
            raise ValidationError(field, f"{field} cannot be cleared")

    changes: Dict[str, Any] = {}
    if "title" in provided:
        changes["title"] = _check_text("title", provided["title"], TITLE_MAX_LENGTH)
    if "content" in provided:
        changes["content"] = _check_text("content", provided["content"], CONTENT_MAX_LENGTH)
    if "study_time" in provided:
        changes["study_time"] = _check_study_time(provided["study_time"])
    if "study_date" in provided:
        if provided["study_date"] > today:
            raise ValidationError("study_date", "study_date must not be in the future")
        changes["study_date"] = provided["study_date"]
    if "category" in provided:
        changes["category"] = parse_category(provided["category"]).unwrap()
    if "understanding" in provided:
        changes["understanding"] = parse_understanding(provided["understanding"]).unwrap()
    return changes
