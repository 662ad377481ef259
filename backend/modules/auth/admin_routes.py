"""
Admin auth API endpoints.

The admin surface signs its own tokens (admin secret, 24h lifetime, role
and email claims) and accepts only accounts whose role is exactly
``admin``. Registration is open only until the first admin exists.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_auth_service
from api.middleware.auth import get_bearer_token, get_current_admin
from shared.models import AuthenticatedUser

from .interfaces import IAuthService
from .models import (
    AdminAuthData,
    AdminAuthResponse,
    AdminCredentialsRequest,
    AdminUserView,
    AdminVerifyResponse,
    MessageResponse,
)

router = APIRouter()


@router.post("/login", response_model=AdminAuthResponse)
async def admin_login(
    request: AdminCredentialsRequest,
    service: IAuthService = Depends(get_auth_service),
) -> AdminAuthResponse:
    token, user = await service.admin_login(request.username, request.password)
    return AdminAuthResponse(
        message="Login successful",
        data=AdminAuthData(token=token, user=AdminUserView.from_user(user)),
    )


@router.post("/register", response_model=AdminAuthResponse, status_code=201)
async def admin_register(
    request: AdminCredentialsRequest,
    admin_token: Optional[str] = Depends(get_bearer_token),
    service: IAuthService = Depends(get_auth_service),
) -> AdminAuthResponse:
    token, user = await service.admin_register(
        request.username, request.password, admin_token=admin_token
    )
    return AdminAuthResponse(
        message="Admin account created successfully",
        data=AdminAuthData(token=token, user=AdminUserView.from_user(user)),
    )


@router.get("/verify", response_model=AdminVerifyResponse)
async def admin_verify(
    admin: AuthenticatedUser = Depends(get_current_admin),
) -> AdminVerifyResponse:
    return AdminVerifyResponse(user=AdminUserView.from_user(admin))


@router.post("/logout", response_model=MessageResponse)
async def admin_logout() -> MessageResponse:
    return MessageResponse(message="Logged out successfully")
