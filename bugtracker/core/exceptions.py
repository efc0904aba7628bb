"""Exception hierarchy mapped to JSON error bodies by the app's handlers.

Each subclass fixes an HTTP status and a default error code; raise sites
only pass what differs, usually the message.
"""

from typing import Any, Optional

from fastapi import HTTPException, status

ErrorDetails = Optional[list[dict[str, Any]]]


class APIException(HTTPException):
    """Error rendered as ``{"error": {"code", "message", "details"?}}``."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: ErrorDetails = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.code = code or type(self).code
        self.error_message = message or self.default_message
        self.details = details

        error = {"code": self.code, "message": self.error_message}
        if details:
            error["details"] = details

        super().__init__(
            status_code=type(self).status_code,
            detail={"error": error},
            headers=headers,
        )


class AuthenticationError(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTHENTICATION_ERROR"
    default_message = "Authentication failed"

    def __init__(self, message: Optional[str] = None, details: ErrorDetails = None):
        super().__init__(message, details=details, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    code = "AUTHORIZATION_ERROR"
    default_message = "You don't have permission to perform this action"


class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", message: Optional[str] = None):
        super().__init__(message or f"{resource} not found")


class ConflictError(APIException):
    """Unique value (such as an email) already taken."""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT_ERROR"
    default_message = "Resource conflict"


class RateLimitError(APIException):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "RATE_LIMIT_EXCEEDED"
    default_message = "Too many requests"

    def __init__(self, message: Optional[str] = None, retry_after: int = 60):
        super().__init__(message, headers={"Retry-After": str(retry_after)})


class AccountLockedError(APIException):
    status_code = status.HTTP_423_LOCKED
    code = "ACCOUNT_LOCKED"
    default_message = "Account is temporarily locked due to too many failed login attempts"

    def __init__(self, unlock_at: Optional[str] = None):
        super().__init__(details=[{"unlock_at": unlock_at}] if unlock_at else None)


class BusinessRuleError(APIException):
    """A well-formed request that the bug tracker's rules refuse."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "BUSINESS_RULE_VIOLATION"
    default_message = "Request violates a business rule"


class InvalidAssigneeError(BusinessRuleError):
    """Assignment target is missing, inactive, or not a developer/admin."""

    code = "INVALID_ASSIGNEE"

    def __init__(self, assignee_id: str):
        super().__init__(
            "Invalid assigned user. Must be an active developer or admin.",
            details=[{"field": "assigned_to_id", "value": assignee_id}],
        )


class UserInUseError(BusinessRuleError):
    """User still referenced by bugs or comments and cannot be deleted."""

    code = "USER_IN_USE"

    def __init__(self, reported: int, assigned: int, comments: int):
        super().__init__(
            f"Cannot delete user. User has {reported} reported bugs, "
            f"{assigned} assigned bugs and {comments} comments. "
            "Please reassign or resolve these bugs first.",
            details=[
                {
                    "reported_bugs": reported,
                    "assigned_bugs": assigned,
                    "comments": comments,
                }
            ],
        )
