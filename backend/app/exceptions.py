"""
Forum Backend — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions, one per failure class the API reports.
How:   Each exception carries a message and an optional context dict, plus
       the HTTP status and machine-readable code it maps to. The global
       handlers in main.py render every one of them with the same JSON shape:

           {"error": <code>, "message": <text>, "details": {...}, "request_id": <id>}

Exception Hierarchy:
    ForumError (base)                       → 500
    ├── ValidationError                     → 400 validation_error
    ├── ConflictError                       → 400 conflict
    ├── AuthenticationError                 → 401 authentication_failed
    ├── AuthorizationError                  → 401 not_authorized
    ├── TokenError                          → 400
    │   ├── TokenExpiredError               → 400 token_expired
    │   └── TokenInvalidError               → 400 invalid_token
    ├── NotFoundError                       → 404 not_found
    ├── RateLimitExceededError              → 429 rate_limit_exceeded
    ├── EmailDeliveryError                  → 500 email_delivery_failed
    └── DatabaseError                       → 500 server_error

Services raise these; they never build HTTP responses themselves.
"""

from typing import Any, Dict, Optional


class ForumError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description
        context:  Extra debug info. Returned as `details` for 4xx errors,
                  logged only for 5xx errors.
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ForumError):
    """Client input is missing or malformed."""

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConflictError(ForumError):
    """
    A unique value (username, email) is already taken.

    Reported as 400, like every other input problem the client can fix.
    """

    status_code = 400
    error_code = "conflict"

    def __init__(
        self,
        message: str = "Username or email already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(ForumError):
    """Bad credentials, or a missing/invalid session token."""

    status_code = 401
    error_code = "authentication_failed"

    def __init__(
        self,
        message: str = "Invalid credentials",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(ForumError):
    """The authenticated user does not own the record being changed."""

    status_code = 401
    error_code = "not_authorized"

    def __init__(
        self,
        message: str = "You are not allowed to modify this resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class TokenError(ForumError):
    """A signed token could not be accepted."""

    status_code = 400
    error_code = "invalid_token"


class TokenExpiredError(TokenError):
    error_code = "token_expired"

    def __init__(
        self,
        message: str = "Token expired. Please request a new one.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class TokenInvalidError(TokenError):
    error_code = "invalid_token"

    def __init__(
        self,
        message: str = "Invalid token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(ForumError):
    """
    A requested record does not exist.

    SQLAlchemy returns None for missing rows; services convert that None
    into this exception so the handler can answer 404.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class RateLimitExceededError(ForumError):
    """Client exceeded the per-IP request budget."""

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class EmailDeliveryError(ForumError):
    """The SMTP server refused or could not be reached."""

    status_code = 500
    error_code = "email_delivery_failed"

    def __init__(
        self,
        message: str = "Could not send the email. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(ForumError):
    """
    A database operation failed unexpectedly.

    The client always gets a generic message; the SQL error is logged
    server-side only.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
