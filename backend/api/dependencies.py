"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations from one Settings
instance, so secrets and lifetimes are passed explicitly rather than read
from the environment at call time.
"""

from typing import TYPE_CHECKING, Optional

from shared.config import Settings, get_settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.auth.interfaces import IAuthService, IFederatedAuthService
    from modules.auth.repository import UserRepository
    from modules.auth.tokens import TokenService
    from modules.chat.interfaces import IChatManager
    from modules.chat.repository import ChatMessageRepository


class ServiceContainer:
    """
    Container for all service instances.

    This class manages the lifecycle of service instances and their
    dependencies. Services are created lazily on first access.

    All services are cached as singletons within the container.
    Use reset() to clear all cached services for testing.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings
        self._token_service: "TokenService | None" = None
        self._user_repository: "UserRepository | None" = None
        self._chat_repository: "ChatMessageRepository | None" = None
        self._auth_service: "IAuthService | None" = None
        self._federated_service: "IFederatedAuthService | None" = None
        self._chat_manager: "IChatManager | None" = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def tokens(self) -> "TokenService":
        """Get the token service instance."""
        if self._token_service is None:
            from modules.auth.tokens import TokenConfig, TokenService
            self._token_service = TokenService(TokenConfig.from_settings(self.settings))
        return self._token_service

    @property
    def user_repository(self) -> "UserRepository":
        """Get the user repository instance."""
        if self._user_repository is None:
            from modules.auth.repository import UserRepository
            from shared.database import get_supabase_client
            self._user_repository = UserRepository(get_supabase_client())
        return self._user_repository

    @property
    def chat_repository(self) -> "ChatMessageRepository":
        """Get the chat message repository instance."""
        if self._chat_repository is None:
            from modules.chat.repository import ChatMessageRepository
            from shared.database import get_supabase_client
            self._chat_repository = ChatMessageRepository(get_supabase_client())
        return self._chat_repository

    @property
    def auth(self) -> "IAuthService":
        """Get the auth service instance."""
        if self._auth_service is None:
            from modules.auth.service import AuthService
            self._auth_service = AuthService(
                tokens=self.tokens,
                users=self.user_repository,
                min_password_length=self.settings.min_password_length,
            )
        return self._auth_service

    @property
    def federated(self) -> "IFederatedAuthService":
        """Get the federated sign-in service instance."""
        if self._federated_service is None:
            from modules.auth.federated import FederatedAuthService, GoogleIdentityVerifier
            self._federated_service = FederatedAuthService(
                verifier=GoogleIdentityVerifier(self.settings.google_client_id),
                tokens=self.tokens,
                users=self.user_repository,
            )
        return self._federated_service

    @property
    def chat(self) -> "IChatManager":
        """Get the realtime chat manager instance."""
        if self._chat_manager is None:
            from modules.chat.manager import ChatManager
            self._chat_manager = ChatManager(repository=self.chat_repository)
        return self._chat_manager

    @property
    def has_chat(self) -> bool:
        """Whether the chat manager has been created yet."""
        return self._chat_manager is not None

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._settings = None
        self._token_service = None
        self._user_repository = None
        self._chat_repository = None
        self._auth_service = None
        self._federated_service = None
        self._chat_manager = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_token_service() -> "TokenService":
    """FastAPI dependency for the token service."""
    return get_container().tokens


def get_auth_service() -> "IAuthService":
    """FastAPI dependency for auth service."""
    return get_container().auth


def get_federated_auth_service() -> "IFederatedAuthService":
    """FastAPI dependency for federated sign-in."""
    return get_container().federated


def get_chat_repository() -> "ChatMessageRepository":
    """FastAPI dependency for chat message history."""
    return get_container().chat_repository


def get_chat_manager() -> "IChatManager":
    """FastAPI dependency for the realtime chat manager."""
    return get_container().chat
