"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable. JSON uses camelCase field
names while Python code keeps snake_case; both are accepted on input.
Request schemas are deliberately loose (every field optional) so the
validator, not pydantic, reports missing or malformed study log fields.
"""

from datetime import date, datetime
from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from . import models

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema serialising field names as camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StudyLogCreate(CamelModel):
    """Payload for creating a study log.

    `category` and `understanding` are raw tokens resolved
    case-insensitively by the validator. `study_date` defaults to today.
    """
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    understanding: Optional[str] = None
    study_time: Optional[int] = None
    study_date: Optional[date] = None


class StudyLogUpdate(CamelModel):
    """Partial update payload.

    A field left out of the request is "unchanged"; a field sent with a
    value is "set". Presence is tracked through `model_fields_set`, so an
    explicit `null` is distinguishable from an absent key.
    """
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    understanding: Optional[str] = None
    study_time: Optional[int] = None
    study_date: Optional[date] = None

    def provided(self) -> Dict[str, Any]:
        """Return only the fields present in the request."""
        return {name: getattr(self, name) for name in type(self).model_fields if name in self.model_fields_set}


class StudyLogOut(CamelModel):
    """Response shape for a single study log."""
    id: int
    title: str
    content: str
    category: str
    category_icon: str
    understanding: str
    understanding_emoji: str
    study_time: int
    study_date: date
    created_at: datetime
    updated_at: datetime
    deleted: bool = False
    deleted_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, log: models.StudyLog) -> "StudyLogOut":
        return cls(
            id=log.id,
            title=log.title,
            content=log.content,
            category=log.category.value,
            category_icon=log.category.icon,
            understanding=log.understanding.value,
            understanding_emoji=log.understanding.emoji,
            study_time=log.study_time,
            study_date=log.study_date,
            created_at=log.created_at,
            updated_at=log.updated_at,
            deleted=log.deleted,
            deleted_at=log.deleted_at,
        )


class ErrorInfo(BaseModel):
    code: str
    message: str


class ApiResponse(CamelModel, Generic[T]):
    """Envelope wrapping every response body."""
    success: bool
    data: Optional[T] = None
    error: Optional[ErrorInfo] = None

    @classmethod
    def ok(cls, data: Any) -> "ApiResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: str, message: str) -> "ApiResponse":
        return cls(success=False, error=ErrorInfo(code=code, message=message))
