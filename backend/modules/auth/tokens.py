"""
Token service.

Issues and verifies the signed, time-limited credentials used by the API:

- access tokens: ``{userId}``, primary secret, default 7 days
- refresh tokens: ``{userId}``, separate secret, default 30 days
- admin tokens: ``{userId, email, role}``, admin secret, default 24 hours

Every token also carries a ``kind`` claim, checked on verify, so one kind
never passes as another when deployments share a secret.

Tokens are stateless; nothing here touches the credential store.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from pydantic import ValidationError as PydanticValidationError

from shared.config import Settings
from shared.models import AuthenticatedUser

from .exceptions import ExpiredTokenError, InvalidTokenError, MalformedTokenError
from .models import TokenKind, TokenPair, TokenPayload

ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenConfig:
    """Secrets and lifetimes for each token kind."""

    access_secret: str
    access_ttl: timedelta
    refresh_secret: str
    refresh_ttl: timedelta
    admin_secret: str
    admin_ttl: timedelta

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenConfig":
        return cls(
            access_secret=settings.jwt_secret,
            access_ttl=settings.jwt_expires_in,
            refresh_secret=settings.jwt_refresh_secret,
            refresh_ttl=settings.jwt_refresh_expires_in,
            admin_secret=settings.effective_admin_jwt_secret,
            admin_ttl=settings.admin_jwt_expires_in,
        )

    def secret_for(self, kind: TokenKind) -> str:
        return {
            TokenKind.ACCESS: self.access_secret,
            TokenKind.REFRESH: self.refresh_secret,
            TokenKind.ADMIN: self.admin_secret,
        }[kind]

    def ttl_for(self, kind: TokenKind) -> timedelta:
        return {
            TokenKind.ACCESS: self.access_ttl,
            TokenKind.REFRESH: self.refresh_ttl,
            TokenKind.ADMIN: self.admin_ttl,
        }[kind]


class TokenService:
    """Signs and verifies tokens with a fixed configuration."""

    def __init__(self, config: TokenConfig):
        self._config = config

    def _encode(self, kind: TokenKind, claims: dict[str, Any]) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "kind": kind.value,
            "iat": int(now.timestamp()),
            "exp": int((now + self._config.ttl_for(kind)).timestamp()),
        }
        return jwt.encode(payload, self._config.secret_for(kind), algorithm=ALGORITHM)

    def issue_access_token(self, user_id: str) -> str:
        return self._encode(TokenKind.ACCESS, {"userId": str(user_id)})

    def issue_refresh_token(self, user_id: str) -> str:
        return self._encode(TokenKind.REFRESH, {"userId": str(user_id)})

    def issue_admin_token(self, user: AuthenticatedUser) -> str:
        return self._encode(
            TokenKind.ADMIN,
            {"userId": user.id, "email": user.email, "role": user.role.value},
        )

    def issue_token_pair(self, user_id: str) -> TokenPair:
        return TokenPair(
            token=self.issue_access_token(user_id),
            refresh_token=self.issue_refresh_token(user_id),
        )

    def verify(self, token: str, kind: TokenKind = TokenKind.ACCESS) -> TokenPayload:
        """
        Verify a token and return its claims.

        Args:
            token: Encoded token string
            kind: Which kind of token is expected; selects the secret

        Returns:
            TokenPayload with the decoded claims

        Raises:
            ExpiredTokenError: The signature is valid but ``exp`` has passed
            InvalidTokenError: Bad signature, not a token at all, or the wrong kind
            MalformedTokenError: Decoded, but required claims are missing or unusable
        """
        try:
            claims = jwt.decode(
                token,
                self._config.secret_for(kind),
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError()
        except jwt.DecodeError as e:
            # Covers InvalidSignatureError as well as undecodable input.
            raise InvalidTokenError(reason=str(e))
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(reason=str(e))

        try:
            payload = TokenPayload.model_validate(claims)
        except PydanticValidationError as e:
            raise MalformedTokenError(reason=str(e))

        if payload.kind != kind.value:
            raise InvalidTokenError(reason=f"expected {kind.value} token, got {payload.kind}")
        return payload
