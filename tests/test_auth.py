"""Tests for identity token verification and user resolution."""

import uuid
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException
from jose import jwt
from sqlalchemy.exc import IntegrityError

from a1c_estimator.config import settings
from a1c_estimator.core.auth import RoleChecker, resolve_user
from a1c_estimator.core.glucose.enums import UserRole
from a1c_estimator.core.security import (
    IdentityClaims,
    decode_identity_token,
    normalize_role,
)
from a1c_estimator.database import get_db
from a1c_estimator.main import app

from factories import make_user, mock_session


def _token(claims: dict, *, key: str | None = None) -> str:
    payload = {"exp": datetime.now(UTC) + timedelta(minutes=5), **claims}
    return jwt.encode(
        payload, key or settings.auth_jwt_key, algorithm=settings.auth_jwt_algorithm
    )


def _result(value) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar_one.return_value = value
    return result


class TestNormalizeRole:
    @pytest.mark.parametrize("raw", ["caregiver", "Care_Giver", " care-giver "])
    def test_caregiver_spellings(self, raw):
        assert normalize_role(raw) is UserRole.caregiver

    @pytest.mark.parametrize("raw", [None, "", "admin", "patient", 3])
    def test_everything_else_is_standard(self, raw):
        assert normalize_role(raw) is UserRole.standard


class TestDecodeIdentityToken:
    def test_valid_token(self):
        payload = decode_identity_token(_token({"sub": "auth|123"}))
        assert payload["sub"] == "auth|123"

    def test_wrong_key_rejected(self):
        token = _token({"sub": "auth|123"}, key="some-other-secret-that-is-long-enough")
        assert decode_identity_token(token) is None

    def test_expired_token_rejected(self):
        token = _token(
            {"sub": "auth|123", "exp": datetime.now(UTC) - timedelta(minutes=1)}
        )
        assert decode_identity_token(token) is None

    def test_missing_subject_rejected(self):
        assert decode_identity_token(_token({"email": "a@example.com"})) is None

    def test_garbage_rejected(self):
        assert decode_identity_token("not-a-jwt") is None

    def test_audience_checked_when_configured(self):
        with patch.object(settings, "auth_jwt_audience", "a1c-api"):
            assert decode_identity_token(_token({"sub": "x", "aud": "other"})) is None
            assert decode_identity_token(_token({"sub": "x", "aud": "a1c-api"}))


class TestIdentityClaims:
    def test_reads_claims(self):
        claims = IdentityClaims(
            {"sub": "auth|1", "email": "c@example.com", "name": "Cam", "role": "caregiver"}
        )

        assert claims.subject == "auth|1"
        assert claims.email == "c@example.com"
        assert claims.name == "Cam"
        assert claims.role is UserRole.caregiver

    def test_missing_role_is_none(self):
        assert IdentityClaims({"sub": "auth|1"}).role is None


class TestResolveUser:
    @pytest.mark.asyncio
    async def test_creates_user_on_first_access(self):
        db = mock_session()
        db.execute = AsyncMock(return_value=_result(None))

        user = await resolve_user(db, IdentityClaims({"sub": "auth|new"}))

        db.add.assert_called_once()
        db.commit.assert_awaited_once()
        assert user.external_auth_id == "auth|new"
        assert user.role is UserRole.standard

    @pytest.mark.asyncio
    async def test_returns_existing_user(self):
        existing = make_user()
        db = mock_session()
        db.execute = AsyncMock(return_value=_result(existing))

        user = await resolve_user(db, IdentityClaims({"sub": existing.external_auth_id}))

        assert user is existing
        db.add.assert_not_called()
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_role_claim_updates_stored_role(self):
        existing = make_user()
        db = mock_session()
        db.execute = AsyncMock(return_value=_result(existing))

        await resolve_user(
            db, IdentityClaims({"sub": existing.external_auth_id, "role": "caregiver"})
        )

        assert existing.role is UserRole.caregiver
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_creation_reselects(self):
        winner = make_user()
        db = mock_session()
        db.execute = AsyncMock(side_effect=[_result(None), _result(winner)])
        db.commit = AsyncMock(side_effect=IntegrityError("insert", {}, Exception()))

        user = await resolve_user(db, IdentityClaims({"sub": winner.external_auth_id}))

        assert user is winner
        db.rollback.assert_awaited_once()


class TestGetCurrentUser:
    @pytest.fixture(autouse=True)
    def _mock_db(self):
        app.dependency_overrides[get_db] = lambda: mock_session()
        yield
        app.dependency_overrides.clear()

    @pytest.mark.asyncio
    async def test_missing_header_is_401(self, client):
        response = await client.get("/api/users/me")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_non_bearer_scheme_is_401(self, client):
        response = await client.get(
            "/api/users/me", headers={"Authorization": "Basic dXNlcjpwYXNz"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token_is_401(self, client):
        response = await client.get(
            "/api/users/me", headers={"Authorization": "Bearer nope"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_valid_token_resolves_user(self, client):
        resolved = make_user()
        with (
            patch(
                "a1c_estimator.core.auth.resolve_user",
                new_callable=AsyncMock,
                return_value=resolved,
            ),
            patch(
                "a1c_estimator.routers.users.get_medical_profile",
                new_callable=AsyncMock,
                return_value=None,
            ),
        ):
            response = await client.get(
                "/api/users/me",
                headers={"Authorization": f"Bearer {_token({'sub': 'auth|1'})}"},
            )

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == str(resolved.id)
        assert body["medical_profile"] is None


class TestRoleChecker:
    def _request(self) -> SimpleNamespace:
        return SimpleNamespace(
            client=SimpleNamespace(host="127.0.0.1"),
            url=SimpleNamespace(path="/api/caregivers/users"),
            method="GET",
        )

    @pytest.mark.asyncio
    async def test_caregiver_allowed(self):
        checker = RoleChecker([UserRole.caregiver])
        assert await checker(self._request(), make_user(UserRole.caregiver)) is True

    @pytest.mark.asyncio
    async def test_standard_user_forbidden(self):
        checker = RoleChecker([UserRole.caregiver])

        with pytest.raises(HTTPException) as exc_info:
            await checker(self._request(), make_user())

        assert exc_info.value.status_code == 403
