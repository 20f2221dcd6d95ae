"""
Common Exception Classes

This module defines the typed failures raised by the engine. Every error
carries a stable ``code`` that callers can branch on and an ``ErrorKind``
that the HTTP layer maps to a status code.
"""

import enum
from typing import Any, Dict, Optional


class ErrorKind(enum.Enum):
    """Broad category of a failure."""
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"
    INVALID_INPUT = "invalid_input"
    STORAGE_UNAVAILABLE = "storage_unavailable"


class BaseError(Exception):
    """Base class for all custom exceptions."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT
    code: str = "ERROR"

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            original_exception: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception

    def to_dict(self) -> Dict[str, Any]:
        """Render the error for API responses and structured logs."""
        return {
            "code": self.code,
            "kind": self.kind.value,
            "message": self.message
        }


class NotFoundError(BaseError):
    """Exception raised when a resource is not found."""

    kind = ErrorKind.NOT_FOUND
    code = "NOT_FOUND"
    resource_type = "Resource"

    def __init__(self, resource_id: Any, resource_type: Optional[str] = None):
        """
        Initialize the not found error.

        Args:
            resource_id: ID of the resource that wasn't found
            resource_type: Type of resource that wasn't found
        """
        if resource_type:
            self.resource_type = resource_type
        super().__init__(f"{self.resource_type} with ID {resource_id} not found")
        self.resource_id = resource_id


class AssessmentNotFoundError(NotFoundError):
    """No assessment for the given id or access token."""
    code = "ASSESSMENT_NOT_FOUND"
    resource_type = "Assessment"


class AttemptNotFoundError(NotFoundError):
    code = "ATTEMPT_NOT_FOUND"
    resource_type = "Attempt"


class QuestionNotFoundError(NotFoundError):
    code = "QUESTION_NOT_FOUND"
    resource_type = "Question"


class ConflictError(BaseError):
    """Exception raised when an operation clashes with the current state."""

    kind = ErrorKind.CONFLICT
    code = "CONFLICT"


class AttemptAlreadyCompletedError(ConflictError):
    """The attempt has been finalized and accepts no more answers."""

    code = "ATTEMPT_ALREADY_COMPLETED"

    def __init__(self, attempt_id: str):
        super().__init__(f"Attempt {attempt_id} is already completed")
        self.attempt_id = attempt_id


class AttemptAlreadyAnsweredError(ConflictError):
    """An answer is already recorded for this (attempt, question) pair."""

    code = "ATTEMPT_ALREADY_ANSWERED"

    def __init__(self, attempt_id: str, question_id: str):
        super().__init__(f"Question {question_id} is already answered in attempt {attempt_id}")
        self.attempt_id = attempt_id
        self.question_id = question_id


class QuestionOutOfOrderError(ConflictError):
    """The submitted question is not the one at the attempt's pointer."""

    code = "QUESTION_OUT_OF_ORDER"

    def __init__(self, attempt_id: str, question_id: str, expected_index: int, actual_index: int):
        super().__init__(
            f"Question {question_id} (index {actual_index}) submitted out of order "
            f"in attempt {attempt_id}; expected index {expected_index}"
        )
        self.attempt_id = attempt_id
        self.question_id = question_id
        self.expected_index = expected_index
        self.actual_index = actual_index


class AssessmentLockedError(ConflictError):
    """The question set can no longer change because attempts exist."""

    code = "ASSESSMENT_LOCKED"

    def __init__(self, assessment_id: str):
        super().__init__(f"Assessment {assessment_id} already has attempts; its questions are locked")
        self.assessment_id = assessment_id


class DuplicateError(ConflictError):
    """Exception raised when attempting to create a duplicate resource."""

    code = "DUPLICATE"

    def __init__(self, resource_type: str, identifier: Any):
        """
        Initialize the duplicate error.

        Args:
            resource_type: Type of resource that was duplicated
            identifier: The identifier that caused the duplicate
        """
        super().__init__(f"Duplicate {resource_type} with identifier {identifier}")
        self.resource_type = resource_type
        self.identifier = identifier


class ConcurrentModificationError(ConflictError):
    """A conditional update found the row in an unexpected state."""

    code = "CONCURRENT_MODIFICATION"

    def __init__(self, resource_type: str, identifier: Any):
        super().__init__(f"{resource_type} {identifier} was modified concurrently")
        self.resource_type = resource_type
        self.identifier = identifier


class ForbiddenError(BaseError):
    """Exception raised when the caller does not own the requested resource."""

    kind = ErrorKind.FORBIDDEN
    code = "FORBIDDEN"

    def __init__(self, message: str, resource: Optional[str] = None, action: Optional[str] = None):
        """
        Initialize the authorization error.

        Args:
            message: Error message
            resource: The resource that was being accessed
            action: The action that was being attempted
        """
        super().__init__(message)
        self.resource = resource
        self.action = action


class InvalidInputError(BaseError):
    """Exception raised for malformed submissions and authoring drafts."""

    kind = ErrorKind.INVALID_INPUT
    code = "INVALID_INPUT"

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        """
        Initialize the validation error.

        Args:
            message: Error message
            errors: Dictionary of field errors
        """
        super().__init__(message)
        self.errors = errors or {}

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        if self.errors:
            result["errors"] = self.errors
        return result


class StorageUnavailableError(BaseError):
    """Exception raised when the backing store cannot serve a request."""

    kind = ErrorKind.STORAGE_UNAVAILABLE
    code = "STORAGE_UNAVAILABLE"

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(f"Storage unavailable: {message}", original_exception)
