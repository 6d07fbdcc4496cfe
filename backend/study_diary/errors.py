"""Typed errors raised by the store, validator and query engine.

Every error derives from `StudyLogError` and carries a stable `code` so
the HTTP layer can map each kind to a response without inspecting
messages. Field-level problems also subclass `ValueError`, matching how
the services report bad input.
"""


class StudyLogError(Exception):
    """Base class for all study diary errors."""
    code = "STUDY_LOG_ERROR"


class ValidationError(StudyLogError, ValueError):
    """A create/update field violates its constraint."""
    code = "INVALID_INPUT"

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class InvalidEnumError(ValidationError):
    """A category/understanding token is outside its closed set."""
    code = "INVALID_ENUM"

    def __init__(self, field: str, value: str):
        super().__init__(field, f"invalid {field}: {value}")
        self.value = value


class NoUpdatesSpecifiedError(StudyLogError, ValueError):
    """An update request did not carry any field."""
    code = "NO_UPDATES"

    def __init__(self):
        super().__init__("no fields to update")


class NotFoundError(StudyLogError, LookupError):
    """No record exists for the referenced id."""
    code = "NOT_FOUND"

    def __init__(self, log_id):
        super().__init__(f"study log not found (id: {log_id})")
        self.id = log_id


class InvalidPageRequestError(StudyLogError, ValueError):
    """Requested page lies outside `[0, total_pages)`."""
    code = "INVALID_PAGE"

    def __init__(self, requested_page: int, total_pages: int):
        super().__init__(
            f"invalid page request: page {requested_page}, total pages {total_pages} "
            f"(valid range 0~{max(total_pages - 1, 0)})"
        )
        self.requested_page = requested_page
        self.total_pages = total_pages
