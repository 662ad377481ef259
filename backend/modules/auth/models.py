"""
Authentication module data models.

These models define the data structures used by the auth module
and exposed to other modules through the interface.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from shared.models import AuthenticatedUser, CamelModel, UserRole


class TokenKind(str, Enum):
    """Which secret and lifetime a token is signed with."""

    ACCESS = "access"
    REFRESH = "refresh"
    ADMIN = "admin"


class TokenPayload(BaseModel):
    """
    Decoded token claims.

    Access and refresh tokens carry only ``userId``; admin-scoped tokens
    also carry ``email`` and ``role``. ``kind`` names the token kind.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(..., alias="userId", min_length=1, description="Subject user ID")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    email: Optional[str] = Field(None, description="Admin tokens only")
    role: Optional[str] = Field(None, description="Admin tokens only")
    kind: Optional[str] = Field(None, description="access, refresh or admin")


class TokenPair(CamelModel):
    """Access token plus the refresh token that can renew it."""

    token: str
    refresh_token: str


class UserRecord(BaseModel):
    """
    User row as stored in the credential store.

    Contains the password hash, so it must never be returned to clients;
    use ``sanitized()`` instead.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    email: str
    password_hash: str
    role: UserRole = UserRole.MEMBER
    is_active: bool = True
    last_seen: Optional[datetime] = None
    google_id: Optional[str] = None
    profile_picture: Optional[str] = None
    phone_number: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def sanitized(self) -> AuthenticatedUser:
        """Return the record without its password hash."""
        return AuthenticatedUser.model_validate(self.model_dump(exclude={"password_hash"}))


class FederatedIdentity(BaseModel):
    """Verified claims taken from a third-party identity assertion."""

    subject: str
    email: str
    name: str
    picture: Optional[str] = None
    email_verified: Optional[bool] = None


class AuthResult(BaseModel):
    """Outcome of a successful sign-in."""

    user: AuthenticatedUser
    tokens: TokenPair


class FederatedLoginResult(AuthResult):
    """Outcome of a federated sign-in."""

    is_new_account: bool = False
    linked: bool = False


# -----------------------------------------------------------------------------
# Request bodies
# -----------------------------------------------------------------------------
# Required fields are Optional here so missing values produce the
# service-level 400 messages rather than a schema error.


class RegisterRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class GoogleAuthRequest(CamelModel):
    id_token: Optional[str] = None


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class UpdateProfileRequest(CamelModel):
    name: Optional[str] = None
    phone_number: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class AdminCredentialsRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None


# -----------------------------------------------------------------------------
# Response bodies
# -----------------------------------------------------------------------------


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class UserResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    user: AuthenticatedUser


class AuthResponse(CamelModel):
    success: bool = True
    message: str
    user: AuthenticatedUser
    token: str
    refresh_token: str


class TokenRefreshResponse(CamelModel):
    success: bool = True
    message: str = "Token refreshed successfully"
    token: str
    refresh_token: str


class AdminUserView(CamelModel):
    """Reduced user shape returned by the admin surface."""

    id: str
    name: str
    email: str
    role: UserRole
    profile_picture: Optional[str] = None

    @classmethod
    def from_user(cls, user: AuthenticatedUser) -> "AdminUserView":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            profile_picture=user.profile_picture,
        )


class AdminAuthData(CamelModel):
    token: str
    user: AdminUserView


class AdminAuthResponse(CamelModel):
    success: bool = True
    message: str
    data: AdminAuthData


class AdminVerifyResponse(CamelModel):
    success: bool = True
    user: AdminUserView
