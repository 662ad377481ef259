"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class UserRole(str, Enum):
    """Fixed set of account roles. Role checks are exact-match, not hierarchical."""

    MEMBER = "member"
    LEADER = "leader"
    PASTOR = "pastor"
    ADMIN = "admin"


class CamelModel(BaseModel):
    """Base for models serialized to clients with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class AuthenticatedUser(CamelModel):
    """
    Sanitized user record.

    This is the identity attached to a request after successful
    authentication. It never carries the password hash.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,  # Make immutable for safety
        extra="ignore",  # Drop store-only columns such as password_hash
    )

    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: EmailStr = Field(..., description="Lowercase login email")
    role: UserRole = Field(default=UserRole.MEMBER, description="Account role")
    is_active: bool = Field(default=True, description="Whether the account may sign in")
    last_seen: Optional[datetime] = Field(None, description="Last successful authentication")
    google_id: Optional[str] = Field(None, description="Linked Google subject id")
    profile_picture: Optional[str] = Field(None, description="Profile image reference")
    phone_number: Optional[str] = Field(None, description="Contact phone number")
    created_at: Optional[datetime] = Field(None, description="Account creation time")
    updated_at: Optional[datetime] = Field(None, description="Last update time")


class RequestContext(BaseModel):
    """
    Per-request identity context.

    Produced by the optional auth dependency: ``user`` is None for
    anonymous requests.
    """

    model_config = ConfigDict(frozen=True)

    user: Optional[AuthenticatedUser] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None
