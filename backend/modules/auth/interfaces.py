"""
Authentication module interfaces.

Other modules should depend on these protocols, not the concrete
implementations. This enables testing with mocks.
"""

from typing import Protocol, Optional, runtime_checkable

from shared.models import AuthenticatedUser

from .models import (
    AuthResult,
    FederatedIdentity,
    FederatedLoginResult,
    RegisterRequest,
    TokenKind,
    TokenPair,
)


@runtime_checkable
class IAuthService(Protocol):
    """
    Interface for authentication operations.

    This protocol defines the contract that the auth module exposes
    to the API layer and other modules.
    """

    async def resolve_user(
        self,
        token: Optional[str],
        kind: TokenKind = TokenKind.ACCESS,
    ) -> AuthenticatedUser:
        """
        Turn a bearer token into an active user.

        Verifies the token, loads the user it names, rejects missing or
        deactivated accounts and records the user's last-seen time.

        Args:
            token: Raw token from the Authorization header, or None
            kind: Which secret the token must be signed with

        Returns:
            The sanitized user record

        Raises:
            MissingTokenError: No token supplied
            InvalidTokenError: Bad signature, structure or claims
            ExpiredTokenError: Token past its expiry
            UserNotFoundError: User absent or deactivated
            ExternalServiceError: The credential store failed
        """
        ...

    async def resolve_admin(self, token: Optional[str]) -> AuthenticatedUser:
        """
        Like resolve_user, for admin-scoped tokens.

        Raises:
            AdminRequiredError: The resolved user's role is not exactly "admin"
        """
        ...

    async def register(self, request: RegisterRequest) -> AuthResult:
        """Create a member account and sign it in."""
        ...

    async def login(self, email: Optional[str], password: Optional[str]) -> AuthResult:
        """Sign in with email and password."""
        ...

    async def refresh_tokens(self, refresh_token: Optional[str]) -> TokenPair:
        """Mint a new access/refresh pair from a refresh token."""
        ...

    async def get_user(self, user_id: str) -> AuthenticatedUser:
        """Get a sanitized user by ID."""
        ...

    async def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> AuthenticatedUser:
        """Update the mutable profile fields of a user."""
        ...

    async def change_password(
        self,
        user_id: str,
        current_password: Optional[str],
        new_password: Optional[str],
    ) -> None:
        """Replace a user's password after checking the current one."""
        ...

    async def admin_login(
        self,
        username: Optional[str],
        password: Optional[str],
    ) -> tuple[str, AuthenticatedUser]:
        """Sign in to the admin surface; returns an admin-scoped token."""
        ...

    async def admin_register(
        self,
        username: Optional[str],
        password: Optional[str],
        admin_token: Optional[str] = None,
    ) -> tuple[str, AuthenticatedUser]:
        """
        Create an admin account; returns an admin-scoped token.

        Only the first admin may register anonymously. After that the
        caller must hold an admin-scoped token.
        """
        ...


@runtime_checkable
class IIdentityVerifier(Protocol):
    """Verifies assertions issued by an external identity provider."""

    async def verify(self, assertion: str) -> FederatedIdentity:
        """
        Verify an assertion and extract its identity claims.

        Raises:
            InvalidAssertionError: Verification failed or required claims are missing
            ExternalServiceError: The provider's signing keys could not be fetched
        """
        ...


@runtime_checkable
class IFederatedAuthService(Protocol):
    """Signs users in with a third-party identity."""

    async def authenticate(self, assertion: Optional[str]) -> FederatedLoginResult:
        """
        Verify the assertion and map it to a local account, creating one if absent.

        Raises:
            InvalidAssertionError: The assertion did not verify
            AccountDeactivatedError: The matching local account is deactivated
        """
        ...
