"""Custom exception hierarchy for the Squad Streaks API."""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    retryable = False

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error in the API standard shape."""
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.retryable:
            payload["retryable"] = True
        return payload


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str) -> None:
        super().__init__(message=f"{resource} not found", code="NOT_FOUND", status_code=404)


class ForbiddenError(AppError):
    """Raised when the user lacks permission for the action."""

    def __init__(self, reason: str = "You don't have permission", code: str = "FORBIDDEN") -> None:
        super().__init__(message=reason, code=code, status_code=403)


class NotOwnerError(ForbiddenError):
    """Raised when a user edits or deletes a workout that is not theirs."""

    def __init__(self, action: str) -> None:
        super().__init__(
            reason=f"Unauthorized: Cannot {action} another user's workout",
            code="UNAUTHORIZED",
        )


class BindingRequiredError(ForbiddenError):
    """Raised when the signed-in account is not bound to an app user yet."""

    def __init__(self) -> None:
        super().__init__(
            reason="Bind your account to a squad member first",
            code="BINDING_REQUIRED",
        )


class ConflictError(AppError):
    """Raised on duplicate/conflicting operations."""

    def __init__(self, reason: str, code: str = "CONFLICT") -> None:
        super().__init__(message=reason, code=code, status_code=409)


class AlreadyCheckedInError(ConflictError):
    """Raised when the user already has a qualifying check-in for the date."""

    def __init__(self, check_in_date: str) -> None:
        super().__init__(
            reason=f"You have already checked in on {check_in_date}",
            code="ALREADY_CHECKED_IN",
        )


class TransactionConflictError(AppError):
    """Raised when an optimistic-concurrency commit keeps losing the race."""

    retryable = True

    def __init__(self, reason: str = "Concurrent update detected, please retry") -> None:
        super().__init__(message=reason, code="TRANSACTION_CONFLICT", status_code=503)


class UploadFailedError(AppError):
    """Raised when the photo proof could not be stored."""

    def __init__(self, reason: str = "Image upload failed") -> None:
        super().__init__(message=reason, code="UPLOAD_FAILED", status_code=502)


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    def __init__(self, reason: str = "Unauthorized") -> None:
        super().__init__(message=reason, code="UNAUTHORIZED", status_code=401)


class InvalidInputError(AppError):
    """Raised for request payload or parameter validation issues."""

    def __init__(self, reason: str, code: str = "INVALID_INPUT") -> None:
        super().__init__(message=reason, code=code, status_code=422)


class InvalidDateError(InvalidInputError):
    """Raised for malformed or future-dated check-ins."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason=reason, code="INVALID_DATE")
