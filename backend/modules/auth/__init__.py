"""
Authentication module.

Handles token issuance and verification, password and federated sign-in,
and the account flows behind the auth routes.

Public API:
- IAuthService / IFederatedAuthService / IIdentityVerifier: Interfaces
- TokenService, TokenConfig: Signed token handling
- TokenKind, TokenPayload, TokenPair: Token models
- Auth exceptions: InvalidTokenError, ExpiredTokenError, etc.
"""

from .interfaces import IAuthService, IFederatedAuthService, IIdentityVerifier
from .models import TokenKind, TokenPayload, TokenPair, UserRecord, FederatedIdentity
from .tokens import TokenConfig, TokenService
from .exceptions import (
    InvalidTokenError,
    MalformedTokenError,
    ExpiredTokenError,
    MissingTokenError,
    InvalidCredentialsError,
    InvalidAssertionError,
    UserNotFoundError,
    AccountDeactivatedError,
    InsufficientPermissionsError,
    AdminRequiredError,
    AccountExistsError,
)

__all__ = [
    # Interfaces
    "IAuthService",
    "IFederatedAuthService",
    "IIdentityVerifier",
    # Tokens
    "TokenConfig",
    "TokenService",
    # Models
    "TokenKind",
    "TokenPayload",
    "TokenPair",
    "UserRecord",
    "FederatedIdentity",
    # Exceptions
    "InvalidTokenError",
    "MalformedTokenError",
    "ExpiredTokenError",
    "MissingTokenError",
    "InvalidCredentialsError",
    "InvalidAssertionError",
    "UserNotFoundError",
    "AccountDeactivatedError",
    "InsufficientPermissionsError",
    "AdminRequiredError",
    "AccountExistsError",
]
