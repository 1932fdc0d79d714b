"""Error taxonomy for auth and API failures.

Every error carries the HTTP status and the user-facing message. Messages for
credential and token failures are deliberately uniform so callers cannot tell
an unknown email from a wrong password, or an expired token from a forged one.
"""

from typing import Any


class AppError(Exception):
    """Base class for errors rendered into the `{error, details, data}` envelope."""

    status_code: int = 500
    default_message: str = "Internal server error."

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details
        self.headers = headers
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = 400
    default_message = "Missing or invalid fields."


class AuthenticationError(AppError):
    """Credentials or identity could not be established."""

    status_code = 401
    default_message = "Invalid credentials."


class InvalidCredentialsError(AuthenticationError):
    """Unknown email, wrong password or unusable stored hash (indistinguishable on purpose)."""


class MissingTokenError(AuthenticationError):
    default_message = "Missing token."


class UserNotFoundError(AuthenticationError):
    """Token subject no longer exists in the credential store."""

    default_message = "User not found."


class InvalidTokenError(AuthenticationError):
    """Bad signature, corrupted structure or missing claims."""

    status_code = 403
    default_message = "Invalid or expired token."


class ExpiredTokenError(InvalidTokenError):
    """Signature is valid but `exp` has elapsed. Same external message as InvalidTokenError."""


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Access denied."


class ResourceNotFoundError(AppError):
    status_code = 404
    default_message = "Not found."


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource already exists."


class RateLimitedError(AppError):
    """Login attempts blocked by an active lockout on the IP or account key."""

    status_code = 429
    default_message = "Too many attempts. Try again later."

    def __init__(self, retry_after_seconds: int, message: str | None = None) -> None:
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            message,
            details={"retry_after_seconds": retry_after_seconds},
            headers={"Retry-After": str(retry_after_seconds)},
        )


class ConfigurationError(AppError):
    """Required configuration is missing (e.g. JWT_SECRET). Fatal at startup."""

    status_code = 500
    default_message = "Server is not configured."


class StoreError(AppError):
    """The credential store failed while serving a request."""

    status_code = 500
    default_message = "Internal error while accessing the user store."
