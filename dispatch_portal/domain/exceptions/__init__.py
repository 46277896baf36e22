"""
Domain exceptions package.
"""

from .dispatch_error import (
    BranchMismatchError,
    ConfirmationRequiredError,
    ConflictError,
    DispatchError,
    DuplicateRequestNumberError,
    InvalidTransitionError,
    NotFoundError,
    SlaExpiredError,
)
from .validation_error import (
    FieldLengthError,
    RequiredFieldError,
    TimelineOrderError,
    ValidationError,
    ValueOutOfRangeError,
)

__all__ = [
    "BranchMismatchError",
    "ConfirmationRequiredError",
    "ConflictError",
    "DispatchError",
    "DuplicateRequestNumberError",
    "FieldLengthError",
    "InvalidTransitionError",
    "NotFoundError",
    "RequiredFieldError",
    "SlaExpiredError",
    "TimelineOrderError",
    "ValidationError",
    "ValueOutOfRangeError",
]
