"""SQLModel data models.

This module defines the study log record and the closed enumerations
used to classify it. `StudyLog` maps to the `study_logs` table for the
SQL-backed store; the in-memory store keeps detached instances of the
same class.
"""

from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, date, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(str, Enum):
    """Subject a study session was about."""
    JAVA = "JAVA"
    SPRING = "SPRING"
    JPA = "JPA"
    DATABASE = "DATABASE"
    ALGORITHM = "ALGORITHM"
    CS = "CS"
    NETWORK = "NETWORK"
    ETC = "ETC"

    @property
    def icon(self) -> str:
        return CATEGORY_ICONS[self]


class Understanding(str, Enum):
    """Self-assessed grasp of the studied material."""
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    NORMAL = "NORMAL"
    BAD = "BAD"
    CONFUSED = "CONFUSED"

    @property
    def emoji(self) -> str:
        return UNDERSTANDING_EMOJIS[self]


CATEGORY_ICONS = {
    Category.JAVA: "☕",
    Category.SPRING: "🌱",
    Category.JPA: "🗂️",
    Category.DATABASE: "💾",
    Category.ALGORITHM: "🧮",
    Category.CS: "💻",
    Category.NETWORK: "🌐",
    Category.ETC: "📝",
}

UNDERSTANDING_EMOJIS = {
    Understanding.EXCELLENT: "😄",
    Understanding.GOOD: "🙂",
    Understanding.NORMAL: "😐",
    Understanding.BAD: "😟",
    Understanding.CONFUSED: "😵",
}


class StudyLog(SQLModel, table=True):
    """A single study session record.

    Fields:
    - `id`: assigned by the store on first save, never changed afterwards
    - `study_time`: minutes spent, at least 1
    - `deleted` / `deleted_at`: soft-delete marker; the row is kept
    """
    __tablename__ = "study_logs"
    # ids are never handed out twice, even after every row is deleted
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=100)
    content: str = Field(max_length=1000)
    category: Category = Field(index=True)
    understanding: Understanding
    study_time: int
    study_date: date = Field(index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted: bool = False
    deleted_at: Optional[datetime] = None
