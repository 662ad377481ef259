"""
Auth API endpoints.

Registration, password and Google sign-in, token refresh and profile
management for community members.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_auth_service, get_federated_auth_service
from api.middleware.auth import get_current_user
from shared.models import AuthenticatedUser

from .interfaces import IAuthService, IFederatedAuthService
from .models import (
    AuthResponse,
    ChangePasswordRequest,
    GoogleAuthRequest,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    TokenRefreshResponse,
    UpdateProfileRequest,
    UserResponse,
)

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    request: RegisterRequest,
    service: IAuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Create a member account and return it with a token pair."""
    result = await service.register(request)
    return AuthResponse(
        message="User registered successfully",
        user=result.user,
        token=result.tokens.token,
        refresh_token=result.tokens.refresh_token,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    service: IAuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await service.login(request.email, request.password)
    return AuthResponse(
        message="Login successful",
        user=result.user,
        token=result.tokens.token,
        refresh_token=result.tokens.refresh_token,
    )


@router.post("/google", response_model=AuthResponse)
async def google_login(
    request: GoogleAuthRequest,
    service: IFederatedAuthService = Depends(get_federated_auth_service),
) -> AuthResponse:
    """
    Sign in with a Google ID token.

    Creates an account for unknown emails and links the Google identity to
    an existing account that has none.
    """
    result = await service.authenticate(request.id_token)
    if result.is_new_account:
        message = "Account created and login successful"
    elif result.linked:
        message = "Account linked and login successful"
    else:
        message = "Login successful"

    return AuthResponse(
        message=message,
        user=result.user,
        token=result.tokens.token,
        refresh_token=result.tokens.refresh_token,
    )


@router.post("/refresh", response_model=TokenRefreshResponse)
async def refresh(
    request: RefreshRequest,
    service: IAuthService = Depends(get_auth_service),
) -> TokenRefreshResponse:
    tokens = await service.refresh_tokens(request.refresh_token)
    return TokenRefreshResponse(token=tokens.token, refresh_token=tokens.refresh_token)


@router.get("/me", response_model=UserResponse)
async def get_profile(
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAuthService = Depends(get_auth_service),
) -> UserResponse:
    return UserResponse(user=await service.get_user(user.id))


@router.put("/me", response_model=UserResponse)
async def update_profile(
    request: UpdateProfileRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAuthService = Depends(get_auth_service),
) -> UserResponse:
    updated = await service.update_profile(
        user.id,
        name=request.name,
        phone_number=request.phone_number,
    )
    return UserResponse(message="Profile updated successfully", user=updated)


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IAuthService = Depends(get_auth_service),
) -> MessageResponse:
    await service.change_password(user.id, request.current_password, request.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/logout", response_model=MessageResponse)
async def logout(
    user: AuthenticatedUser = Depends(get_current_user),
) -> MessageResponse:
    """
    Log out.

    Tokens are stateless, so this only confirms the token was valid; the
    client discards its tokens.
    """
    return MessageResponse(message="Logged out successfully")


@router.get("/verify", response_model=UserResponse)
async def verify(
    user: AuthenticatedUser = Depends(get_current_user),
) -> UserResponse:
    return UserResponse(message="Token is valid", user=user)
