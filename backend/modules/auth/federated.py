"""
Federated identity sign-in.

Verifies Google ID tokens against Google's published signing keys and maps
the verified identity onto a local account, creating one when the email is
new. Accounts created here get an unusable local password: they can only
ever sign in through the provider.
"""

import asyncio
import logging
from typing import Optional

import jwt

from shared.exceptions import ExternalServiceError, ValidationError
from shared.models import UserRole

from .exceptions import AccountDeactivatedError, InvalidAssertionError
from .interfaces import IFederatedAuthService, IIdentityVerifier
from .models import FederatedIdentity, FederatedLoginResult
from .passwords import unusable_password_hash
from .repository import UserRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)

GOOGLE_JWKS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


class GoogleIdentityVerifier(IIdentityVerifier):
    """Verifies Google-issued ID tokens (RS256, audience = our client id)."""

    def __init__(
        self,
        client_id: str,
        jwks_client: Optional[jwt.PyJWKClient] = None,
    ):
        self._client_id = client_id
        self._jwks = jwks_client or jwt.PyJWKClient(GOOGLE_JWKS_URL, cache_keys=True)

    async def verify(self, assertion: str) -> FederatedIdentity:
        if not self._client_id:
            raise ExternalServiceError(
                "Google authentication failed",
                service="google",
                details={"error": "GOOGLE_CLIENT_ID is not configured"},
            )

        try:
            # Key lookup may hit the network; keep it off the event loop.
            signing_key = await asyncio.to_thread(
                self._jwks.get_signing_key_from_jwt, assertion
            )
        except jwt.PyJWKClientConnectionError as e:
            raise ExternalServiceError(
                "Google authentication failed",
                service="google",
                details={"error": str(e)},
            ) from e
        except (jwt.PyJWKClientError, jwt.DecodeError) as e:
            raise InvalidAssertionError(reason=str(e))

        try:
            claims = jwt.decode(
                assertion,
                signing_key.key,
                algorithms=["RS256"],
                audience=self._client_id,
                options={"require": ["exp", "iat", "iss", "sub"]},
            )
        except jwt.InvalidTokenError as e:
            raise InvalidAssertionError(reason=str(e))

        if claims.get("iss") not in GOOGLE_ISSUERS:
            raise InvalidAssertionError(reason=f"unexpected issuer {claims.get('iss')!r}")

        subject = claims.get("sub")
        email = claims.get("email")
        name = claims.get("name")
        if not subject or not email or not name:
            raise InvalidAssertionError(
                "Required user information not available from Google",
                reason="missing sub, email or name claim",
            )

        return FederatedIdentity(
            subject=subject,
            email=email,
            name=name,
            picture=claims.get("picture"),
            email_verified=claims.get("email_verified"),
        )


class FederatedAuthService(IFederatedAuthService):
    """Maps verified third-party identities to local accounts."""

    def __init__(
        self,
        verifier: IIdentityVerifier,
        tokens: TokenService,
        users: UserRepository,
    ):
        self._verifier = verifier
        self._tokens = tokens
        self._users = users

    async def authenticate(self, assertion: Optional[str]) -> FederatedLoginResult:
        if not assertion:
            raise ValidationError("Google ID token is required", code="MISSING_ID_TOKEN")

        identity = await self._verifier.verify(assertion)
        email = identity.email.strip().lower()

        is_new_account = False
        linked = False

        user = await asyncio.to_thread(self._users.get_by_email, email)
        if user is not None:
            if not user.is_active:
                raise AccountDeactivatedError(email)

            changes: dict[str, str] = {}
            if not user.google_id:
                # Only a provider-verified address may claim an existing account.
                if identity.email_verified is False:
                    logger.warning("Refused to link user %s to an unverified Google email", user.id)
                    raise InvalidAssertionError(
                        "Google email address is not verified",
                        reason="email_verified claim is false",
                    )
                changes["google_id"] = identity.subject
                linked = True
            elif user.google_id != identity.subject:
                logger.warning(
                    "User %s is linked to a different Google subject; keeping existing link",
                    user.id,
                )
            if not user.profile_picture and identity.picture:
                changes["profile_picture"] = identity.picture

            if changes:
                user = await asyncio.to_thread(self._users.update, user.id, changes) or user
        else:
            password_hash = await asyncio.to_thread(unusable_password_hash)
            user = await asyncio.to_thread(
                self._users.create,
                {
                    "name": identity.name.strip(),
                    "email": email,
                    "google_id": identity.subject,
                    "profile_picture": identity.picture,
                    "password_hash": password_hash,
                    "role": UserRole.MEMBER.value,
                    "is_active": True,
                },
            )
            is_new_account = True
            logger.info("Created account %s from Google sign-in", user.id)

        touched = await asyncio.to_thread(self._users.touch_last_seen, user.id)
        return FederatedLoginResult(
            user=(touched or user).sanitized(),
            tokens=self._tokens.issue_token_pair(user.id),
            is_new_account=is_new_account,
            linked=linked,
        )
