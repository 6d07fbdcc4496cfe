"""Application settings and validation."""

import os
from pathlib import Path

STORE_BACKENDS = ("memory", "sql")
DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'study_diary.db'}"


class Settings:
    ENV: str
    STORE_BACKEND: str
    DATABASE_URL: str
    ALLOW_DEV_CORS: bool
    LOG_LEVEL: str
    DEFAULT_PAGE_SIZE: int
    MAX_PAGE_SIZE: int

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.STORE_BACKEND = os.getenv("STORE_BACKEND", "memory").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_DB_URL)
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
        self.MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))
        self._validate()

    def _validate(self):
        if self.STORE_BACKEND not in STORE_BACKENDS:
            raise RuntimeError(f"STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}, got {self.STORE_BACKEND!r}")
        if self.MAX_PAGE_SIZE < 1:
            raise RuntimeError("MAX_PAGE_SIZE must be at least 1")
        if not 1 <= self.DEFAULT_PAGE_SIZE <= self.MAX_PAGE_SIZE:
            raise RuntimeError("DEFAULT_PAGE_SIZE must be between 1 and MAX_PAGE_SIZE")


settings = Settings()
