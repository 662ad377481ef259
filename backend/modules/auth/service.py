"""
Authentication service implementation.

Resolves bearer tokens to active users and implements the password-based
account flows (register, login, refresh, profile, admin sign-in) on top of
the token service and the user repository.

The repository and bcrypt are synchronous; every call to either runs in a
worker thread so a slow store lookup only delays the request awaiting it.
"""

import asyncio
import logging
from typing import Any, Callable, Optional, TypeVar

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from shared.exceptions import ExternalServiceError, ForgeError, NotFoundError, ValidationError
from shared.models import AuthenticatedUser, UserRole

from .exceptions import (
    AccountDeactivatedError,
    AccountExistsError,
    AdminRequiredError,
    ExpiredTokenError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
    UserNotFoundError,
)
from .interfaces import IAuthService
from .models import AuthResult, RegisterRequest, TokenKind, TokenPair, UserRecord
from .passwords import hash_password, verify_password
from .repository import UserRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)

T = TypeVar("T")

_email_adapter = TypeAdapter(EmailStr)


def normalize_email(email: str) -> str:
    """Lowercase and validate an email address."""
    candidate = email.strip().lower()
    try:
        _email_adapter.validate_python(candidate)
    except PydanticValidationError:
        raise ValidationError("A valid email address is required", code="INVALID_EMAIL")
    return candidate


async def run_blocking(operation: Callable[..., T], *args: Any) -> T:
    """Run a synchronous store or hashing call off the event loop."""
    return await asyncio.to_thread(operation, *args)


class AuthService(IAuthService):
    """
    Implementation of the authentication service.

    Tokens are stateless; the only persisted side effect of authenticating
    a request is the user's ``last_seen`` timestamp.
    """

    def __init__(
        self,
        tokens: TokenService,
        users: UserRepository,
        min_password_length: int = 6,
    ):
        self._tokens = tokens
        self._users = users
        self._min_password_length = min_password_length

    # -------------------------------------------------------------------------
    # Request authentication
    # -------------------------------------------------------------------------

    async def resolve_user(
        self,
        token: Optional[str],
        kind: TokenKind = TokenKind.ACCESS,
    ) -> AuthenticatedUser:
        if not token:
            raise MissingTokenError()

        payload = self._tokens.verify(token, kind)

        user = await self._call_store(self._users.get_by_id, payload.user_id)
        if user is None or not user.is_active:
            raise UserNotFoundError(payload.user_id)

        touched = await self._call_store(self._users.touch_last_seen, user.id)
        return (touched or user).sanitized()

    async def resolve_admin(self, token: Optional[str]) -> AuthenticatedUser:
        user = await self.resolve_user(token, TokenKind.ADMIN)
        if user.role != UserRole.ADMIN:
            raise AdminRequiredError(user.role.value)
        return user

    async def _call_store(self, operation: Callable[..., T], *args: Any) -> T:
        try:
            return await run_blocking(operation, *args)
        except ForgeError:
            raise
        except Exception as e:
            logger.exception("Credential store call failed during token verification")
            raise ExternalServiceError(
                "Token verification failed",
                service="database",
                details={"error": str(e)},
            ) from e

    # -------------------------------------------------------------------------
    # Account flows
    # -------------------------------------------------------------------------

    def _check_password_length(self, password: str, label: str = "Password") -> None:
        if len(password) < self._min_password_length:
            raise ValidationError(
                f"{label} must be at least {self._min_password_length} characters long",
                code="PASSWORD_TOO_SHORT",
            )

    async def _sign_in(self, user: UserRecord) -> AuthResult:
        touched = await run_blocking(self._users.touch_last_seen, user.id)
        return AuthResult(
            user=(touched or user).sanitized(),
            tokens=self._tokens.issue_token_pair(user.id),
        )

    async def register(self, request: RegisterRequest) -> AuthResult:
        if not request.name or not request.email or not request.password:
            raise ValidationError(
                "Name, email, and password are required",
                code="MISSING_FIELDS",
            )
        self._check_password_length(request.password)
        email = normalize_email(request.email)

        if await run_blocking(self._users.get_by_email, email) is not None:
            raise AccountExistsError(email)

        user = await run_blocking(
            self._users.create,
            {
                "name": request.name.strip(),
                "email": email,
                "password_hash": await run_blocking(hash_password, request.password),
                "phone_number": request.phone.strip() if request.phone else None,
                "role": UserRole.MEMBER.value,
                "is_active": True,
            },
        )
        logger.info("User registered: %s", user.id)
        return AuthResult(
            user=user.sanitized(),
            tokens=self._tokens.issue_token_pair(user.id),
        )

    async def login(self, email: Optional[str], password: Optional[str]) -> AuthResult:
        if not email or not password:
            raise ValidationError("Email and password are required", code="MISSING_FIELDS")

        user = await run_blocking(self._users.get_by_email, email)
        if user is None:
            raise InvalidCredentialsError()
        if not user.is_active:
            raise AccountDeactivatedError(user.email)
        if not await run_blocking(verify_password, password, user.password_hash):
            raise InvalidCredentialsError()

        return await self._sign_in(user)

    async def refresh_tokens(self, refresh_token: Optional[str]) -> TokenPair:
        if not refresh_token:
            raise ValidationError("Refresh token required", code="MISSING_REFRESH_TOKEN")

        try:
            payload = self._tokens.verify(refresh_token, TokenKind.REFRESH)
        except (InvalidTokenError, ExpiredTokenError) as e:
            logger.info("Refresh token rejected: %s", e.code)
            raise InvalidTokenError("Invalid or expired refresh token")

        user = await run_blocking(self._users.get_by_id, payload.user_id)
        if user is None or not user.is_active:
            raise UserNotFoundError(payload.user_id)

        return self._tokens.issue_token_pair(user.id)

    async def get_user(self, user_id: str) -> AuthenticatedUser:
        user = await run_blocking(self._users.get_by_id, user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}", code="USER_NOT_FOUND")
        return user.sanitized()

    async def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> AuthenticatedUser:
        changes: dict[str, Any] = {}
        if name:
            changes["name"] = name.strip()
        if phone_number is not None:
            changes["phone_number"] = phone_number.strip() or None

        if not changes:
            return await self.get_user(user_id)

        user = await run_blocking(self._users.update, user_id, changes)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}", code="USER_NOT_FOUND")
        return user.sanitized()

    async def change_password(
        self,
        user_id: str,
        current_password: Optional[str],
        new_password: Optional[str],
    ) -> None:
        if not current_password or not new_password:
            raise ValidationError(
                "Current password and new password are required",
                code="MISSING_FIELDS",
            )
        self._check_password_length(new_password, label="New password")

        user = await run_blocking(self._users.get_by_id, user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}", code="USER_NOT_FOUND")
        if not await run_blocking(verify_password, current_password, user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")

        new_hash = await run_blocking(hash_password, new_password)
        await run_blocking(self._users.update, user_id, {"password_hash": new_hash})
        logger.info("Password changed for user %s", user_id)

    # -------------------------------------------------------------------------
    # Admin surface
    # -------------------------------------------------------------------------

    async def admin_login(
        self,
        username: Optional[str],
        password: Optional[str],
    ) -> tuple[str, AuthenticatedUser]:
        if not username or not password:
            raise ValidationError("Username and password are required", code="MISSING_FIELDS")

        user = await run_blocking(self._users.get_by_email, username)
        if user is None or not await run_blocking(verify_password, password, user.password_hash):
            raise InvalidCredentialsError("Invalid credentials")
        if user.role != UserRole.ADMIN:
            logger.warning("Admin login refused for non-admin user %s", user.id)
            raise AdminRequiredError(user.role.value)
        if not user.is_active:
            raise AccountDeactivatedError(user.email)

        touched = await run_blocking(self._users.touch_last_seen, user.id)
        sanitized = (touched or user).sanitized()
        return self._tokens.issue_admin_token(sanitized), sanitized

    async def admin_register(
        self,
        username: Optional[str],
        password: Optional[str],
        admin_token: Optional[str] = None,
    ) -> tuple[str, AuthenticatedUser]:
        """
        Create an admin account.

        The first admin may register without credentials; once any admin
        exists, the caller must present a valid admin-scoped token.
        """
        if await run_blocking(self._users.has_role, UserRole.ADMIN.value):
            creator = await self.resolve_admin(admin_token)
            logger.info("Admin %s is creating an admin account", creator.id)
        else:
            logger.warning("No admin account exists; bootstrapping the first admin")

        if not username or not password:
            raise ValidationError("Username and password are required", code="MISSING_FIELDS")

        email = normalize_email(username)
        if await run_blocking(self._users.get_by_email, email) is not None:
            raise AccountExistsError(email, message="Username already registered")
        self._check_password_length(password)

        user = await run_blocking(
            self._users.create,
            {
                "name": username.strip(),
                "email": email,
                "password_hash": await run_blocking(hash_password, password),
                "role": UserRole.ADMIN.value,
                "is_active": True,
            },
        )
        logger.info("Admin account created: %s", user.id)
        sanitized = user.sanitized()
        return self._tokens.issue_admin_token(sanitized), sanitized
