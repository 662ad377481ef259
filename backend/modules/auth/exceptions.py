"""
Authentication module exceptions.

These exceptions are raised by the auth module and caught by the API
error handler, which turns them into ``{success: false, message}`` bodies.
Messages are user-facing; keep diagnostic detail in ``details``.
"""

from shared.exceptions import AuthenticationError, AuthorizationError, ConflictError


class InvalidTokenError(AuthenticationError):
    """Raised when a token has a bad signature or structure."""

    def __init__(self, message: str = "Invalid token", reason: str = ""):
        super().__init__(
            message,
            code="INVALID_TOKEN",
            details={"reason": reason} if reason else None,
        )


class MalformedTokenError(InvalidTokenError):
    """Raised when a token decodes but its claims cannot be used."""

    def __init__(self, reason: str = ""):
        super().__init__(reason=reason)
        self.code = "MALFORMED_TOKEN"


class ExpiredTokenError(AuthenticationError):
    """Raised when a token has expired."""

    def __init__(self, message: str = "Token expired"):
        super().__init__(message, code="TOKEN_EXPIRED")


class MissingTokenError(AuthenticationError):
    """Raised when no authentication token is provided."""

    def __init__(self, message: str = "Access token required"):
        super().__init__(message, code="MISSING_TOKEN")


class InvalidCredentialsError(AuthenticationError):
    """Raised when an email/password pair does not match."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class InvalidAssertionError(AuthenticationError):
    """Raised when a federated identity assertion fails verification."""

    def __init__(self, message: str = "Invalid Google token", reason: str = ""):
        super().__init__(
            message,
            code="INVALID_ASSERTION",
            details={"reason": reason} if reason else None,
        )


class UserNotFoundError(AuthenticationError):
    """Raised when the authenticated user doesn't exist or is deactivated."""

    def __init__(self, user_id: str):
        super().__init__(
            "User not found or account deactivated",
            code="USER_NOT_FOUND",
            details={"user_id": user_id},
        )


class AccountDeactivatedError(AuthenticationError):
    """Raised when a deactivated account tries to sign in."""

    def __init__(self, email: str = ""):
        super().__init__(
            "Account is deactivated",
            code="ACCOUNT_DEACTIVATED",
            details={"email": email} if email else None,
        )


class InsufficientPermissionsError(AuthorizationError):
    """Raised when user lacks required permissions."""

    def __init__(self, required_roles: list[str], user_role: str):
        super().__init__(
            "Insufficient permissions",
            code="INSUFFICIENT_PERMISSIONS",
            details={"required_roles": required_roles, "user_role": user_role},
        )


class AdminRequiredError(AuthorizationError):
    """Raised when an admin-only surface is used by a non-admin account."""

    def __init__(self, user_role: str):
        super().__init__(
            "Access denied. Admin privileges required.",
            code="ADMIN_REQUIRED",
            details={"user_role": user_role},
        )


class AccountExistsError(ConflictError):
    """Raised when registering an email that is already taken."""

    def __init__(self, email: str, message: str = "User with this email already exists"):
        super().__init__(
            message,
            code="ACCOUNT_EXISTS",
            details={"email": email},
        )
