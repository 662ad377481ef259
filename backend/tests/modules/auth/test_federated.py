"""Tests for Google sign-in."""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa

from modules.auth.exceptions import AccountDeactivatedError, InvalidAssertionError
from modules.auth.federated import FederatedAuthService, GoogleIdentityVerifier
from modules.auth.models import FederatedIdentity
from modules.auth.passwords import verify_password
from shared.exceptions import ExternalServiceError, ValidationError
from shared.models import UserRole

CLIENT_ID = "client-123.apps.googleusercontent.com"


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def jwks_client(signing_key):
    client = MagicMock()
    client.get_signing_key_from_jwt.return_value = MagicMock(key=signing_key.public_key())
    return client


@pytest.fixture
def verifier(jwks_client):
    return GoogleIdentityVerifier(CLIENT_ID, jwks_client=jwks_client)


@pytest.fixture
def google_token(signing_key):
    def _google_token(**overrides) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "iss": "https://accounts.google.com",
            "aud": CLIENT_ID,
            "sub": "google-sub-1",
            "email": "ruth@example.com",
            "name": "Ruth",
            "picture": "https://example.com/ruth.png",
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(hours=1)).timestamp()),
        }
        claims.update(overrides)
        claims = {key: value for key, value in claims.items() if value is not None}
        return jwt.encode(claims, signing_key, algorithm="RS256")

    return _google_token


class TestGoogleIdentityVerifier:
    @pytest.mark.asyncio
    async def test_valid_token(self, verifier, google_token):
        identity = await verifier.verify(google_token())

        assert identity == FederatedIdentity(
            subject="google-sub-1",
            email="ruth@example.com",
            name="Ruth",
            picture="https://example.com/ruth.png",
        )

    @pytest.mark.asyncio
    async def test_email_verified_claim(self, verifier, google_token):
        assert (await verifier.verify(google_token(email_verified=True))).email_verified is True
        assert (await verifier.verify(google_token(email_verified=False))).email_verified is False
        assert (await verifier.verify(google_token())).email_verified is None

    @pytest.mark.asyncio
    async def test_bare_issuer_accepted(self, verifier, google_token):
        identity = await verifier.verify(google_token(iss="accounts.google.com"))
        assert identity.subject == "google-sub-1"

    @pytest.mark.asyncio
    async def test_wrong_audience(self, verifier, google_token):
        with pytest.raises(InvalidAssertionError):
            await verifier.verify(google_token(aud="someone-else"))

    @pytest.mark.asyncio
    async def test_wrong_issuer(self, verifier, google_token):
        with pytest.raises(InvalidAssertionError):
            await verifier.verify(google_token(iss="https://evil.example.com"))

    @pytest.mark.asyncio
    async def test_expired(self, verifier, google_token):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        with pytest.raises(InvalidAssertionError):
            await verifier.verify(
                google_token(
                    iat=int(past.timestamp()),
                    exp=int((past + timedelta(hours=1)).timestamp()),
                )
            )

    @pytest.mark.asyncio
    async def test_missing_email(self, verifier, google_token):
        with pytest.raises(InvalidAssertionError) as exc_info:
            await verifier.verify(google_token(email=None))
        assert exc_info.value.message == "Required user information not available from Google"

    @pytest.mark.asyncio
    async def test_signed_by_other_key(self, verifier, google_token, jwks_client):
        other = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        jwks_client.get_signing_key_from_jwt.return_value = MagicMock(key=other.public_key())

        with pytest.raises(InvalidAssertionError):
            await verifier.verify(google_token())

    @pytest.mark.asyncio
    async def test_unknown_key(self, verifier, google_token, jwks_client):
        jwks_client.get_signing_key_from_jwt.side_effect = jwt.PyJWKClientError("no kid")
        with pytest.raises(InvalidAssertionError):
            await verifier.verify(google_token())

    @pytest.mark.asyncio
    async def test_key_fetch_failure(self, verifier, google_token, jwks_client):
        jwks_client.get_signing_key_from_jwt.side_effect = jwt.PyJWKClientConnectionError(
            "timed out"
        )
        with pytest.raises(ExternalServiceError) as exc_info:
            await verifier.verify(google_token())
        assert exc_info.value.service == "google"

    @pytest.mark.asyncio
    async def test_not_configured(self, jwks_client, google_token):
        verifier = GoogleIdentityVerifier("", jwks_client=jwks_client)
        with pytest.raises(ExternalServiceError):
            await verifier.verify(google_token())
        jwks_client.get_signing_key_from_jwt.assert_not_called()


@pytest.fixture
def identity():
    return FederatedIdentity(
        subject="google-sub-1",
        email="Ruth@Example.com",
        name="Ruth",
        picture="https://example.com/ruth.png",
    )


@pytest.fixture
def stub_verifier(identity):
    stub = MagicMock()
    stub.verify = AsyncMock(return_value=identity)
    return stub


@pytest.fixture
def federated(stub_verifier, token_service, user_repo):
    return FederatedAuthService(stub_verifier, token_service, user_repo)


class TestFederatedAuthService:
    @pytest.mark.asyncio
    async def test_creates_account(self, federated, user_repo, token_service):
        result = await federated.authenticate("assertion")

        assert result.is_new_account is True
        assert result.linked is False
        assert result.user.email == "ruth@example.com"
        assert result.user.role == UserRole.MEMBER
        assert result.user.google_id == "google-sub-1"
        assert result.user.profile_picture == "https://example.com/ruth.png"
        assert token_service.verify(result.tokens.token).user_id == result.user.id

        stored = user_repo.rows[result.user.id]
        assert not verify_password("", stored["password_hash"])

    @pytest.mark.asyncio
    async def test_second_sign_in_reuses_account(self, federated, user_repo):
        first = await federated.authenticate("assertion")
        second = await federated.authenticate("assertion")

        assert first.is_new_account is True
        assert second.is_new_account is False
        assert second.linked is False
        assert second.user.id == first.user.id
        assert len(user_repo.rows) == 1

    @pytest.mark.asyncio
    async def test_links_existing_password_account(self, federated, make_user):
        user = make_user(email="ruth@example.com", name="Ruth", role=UserRole.PASTOR)

        result = await federated.authenticate("assertion")

        assert result.is_new_account is False
        assert result.linked is True
        assert result.user.id == user.id
        assert result.user.role == UserRole.PASTOR
        assert result.user.google_id == "google-sub-1"
        assert result.user.profile_picture == "https://example.com/ruth.png"

    @pytest.mark.asyncio
    async def test_unverified_email_not_linked(
        self, federated, stub_verifier, identity, make_user, user_repo
    ):
        user = make_user(email="ruth@example.com", role=UserRole.PASTOR)
        stub_verifier.verify.return_value = identity.model_copy(update={"email_verified": False})

        with pytest.raises(InvalidAssertionError, match="Google email address is not verified"):
            await federated.authenticate("assertion")

        assert user_repo.rows[user.id].get("google_id") is None
        assert user_repo.rows[user.id].get("profile_picture") is None

    @pytest.mark.asyncio
    async def test_verified_email_linked(self, federated, stub_verifier, identity, make_user):
        make_user(email="ruth@example.com")
        stub_verifier.verify.return_value = identity.model_copy(update={"email_verified": True})

        result = await federated.authenticate("assertion")

        assert result.linked is True

    @pytest.mark.asyncio
    async def test_unverified_email_still_signs_in_linked_account(
        self, federated, stub_verifier, identity, make_user
    ):
        make_user(email="ruth@example.com", google_id="google-sub-1")
        stub_verifier.verify.return_value = identity.model_copy(update={"email_verified": False})

        result = await federated.authenticate("assertion")

        assert result.linked is False
        assert result.user.google_id == "google-sub-1"

    @pytest.mark.asyncio
    async def test_keeps_existing_picture(self, federated, make_user):
        make_user(email="ruth@example.com", profile_picture="https://example.com/mine.png")

        result = await federated.authenticate("assertion")

        assert result.user.profile_picture == "https://example.com/mine.png"

    @pytest.mark.asyncio
    async def test_keeps_existing_link(self, federated, make_user):
        make_user(email="ruth@example.com", google_id="google-sub-old")

        result = await federated.authenticate("assertion")

        assert result.linked is False
        assert result.user.google_id == "google-sub-old"

    @pytest.mark.asyncio
    async def test_deactivated_account(self, federated, make_user, user_repo):
        user = make_user(email="ruth@example.com", is_active=False)

        with pytest.raises(AccountDeactivatedError):
            await federated.authenticate("assertion")

        assert len(user_repo.rows) == 1
        assert user_repo.rows[user.id].get("google_id") is None

    @pytest.mark.asyncio
    async def test_missing_assertion(self, federated, stub_verifier):
        with pytest.raises(ValidationError, match="Google ID token is required"):
            await federated.authenticate(None)
        stub_verifier.verify.assert_not_called()

    @pytest.mark.asyncio
    async def test_verification_failure_propagates(self, federated, stub_verifier, user_repo):
        stub_verifier.verify.side_effect = InvalidAssertionError()

        with pytest.raises(InvalidAssertionError):
            await federated.authenticate("assertion")
        assert user_repo.rows == {}
