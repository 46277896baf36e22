"""
Validation-related domain exceptions.
"""

from datetime import datetime
from typing import Any


class ValidationError(Exception):
    """Base exception for validation errors."""

    pass


class RequiredFieldError(ValidationError):
    """Raised when required field is missing."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Required field '{field_name}' is missing")


class FieldLengthError(ValidationError):
    """Raised when a text field is shorter than allowed."""

    def __init__(self, field_name: str, min_length: int, actual_length: int):
        self.field_name = field_name
        self.min_length = min_length
        self.actual_length = actual_length
        super().__init__(
            f"Field '{field_name}' must be at least {min_length} characters "
            f"(got {actual_length})"
        )


class ValueOutOfRangeError(ValidationError):
    """Raised when a numeric field falls outside its allowed range."""

    def __init__(self, field_name: str, value: Any, minimum: Any, maximum: Any):
        self.field_name = field_name
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"Field '{field_name}' must be between {minimum} and {maximum} (got {value})"
        )


class TimelineOrderError(ValidationError):
    """Raised when a timeline event would be older than the previous one."""

    def __init__(self, request_id: int, timestamp: datetime, last_timestamp: datetime):
        self.request_id = request_id
        self.timestamp = timestamp
        self.last_timestamp = last_timestamp
        super().__init__(
            f"Timeline event for request {request_id} at {timestamp.isoformat()} "
            f"precedes last event at {last_timestamp.isoformat()}"
        )
