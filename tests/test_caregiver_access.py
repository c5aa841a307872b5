"""Tests for caregiver links and read-access resolution."""

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from a1c_estimator.core.glucose.enums import UserRole
from a1c_estimator.core.glucose.errors import (
    AuthorizationError,
    ConflictError,
    ValidationError,
)
from a1c_estimator.services import caregiver as caregiver_service
from a1c_estimator.services import store
from factories import make_user, mock_session


class TestResolveReadTarget:
    @pytest.mark.asyncio
    async def test_defaults_to_viewer(self):
        viewer = make_user()
        assert await caregiver_service.resolve_read_target(mock_session(), viewer) == viewer.id

    @pytest.mark.asyncio
    async def test_linked_caregiver_reads_user(self):
        caregiver, patient = make_user(UserRole.caregiver), make_user()

        with patch.object(
            store, "list_linked_user_ids", new_callable=AsyncMock, return_value={patient.id}
        ):
            target = await caregiver_service.resolve_read_target(
                mock_session(), caregiver, patient.id
            )

        assert target == patient.id

    @pytest.mark.asyncio
    async def test_unlinked_caregiver_denied(self):
        caregiver = make_user(UserRole.caregiver)

        with patch.object(
            store, "list_linked_user_ids", new_callable=AsyncMock, return_value=set()
        ):
            with pytest.raises(AuthorizationError):
                await caregiver_service.resolve_read_target(
                    mock_session(), caregiver, uuid.uuid4()
                )

    @pytest.mark.asyncio
    async def test_standard_user_denied_without_link_lookup(self):
        with patch.object(
            store, "list_linked_user_ids", new_callable=AsyncMock
        ) as list_linked:
            with pytest.raises(AuthorizationError):
                await caregiver_service.resolve_read_target(
                    mock_session(), make_user(), uuid.uuid4()
                )

        list_linked.assert_not_awaited()


class TestCreateLink:
    @pytest.mark.asyncio
    async def test_creates_link(self):
        user, caregiver, db = make_user(), make_user(UserRole.caregiver), mock_session()

        with patch.object(store, "get_user", new_callable=AsyncMock, return_value=caregiver):
            link = await caregiver_service.create_link(db, user, caregiver.id)

        assert (link.caregiver_id, link.user_id) == (caregiver.id, user.id)
        db.add.assert_called_once_with(link)

    @pytest.mark.asyncio
    async def test_self_link_rejected(self):
        user = make_user(UserRole.caregiver)

        with pytest.raises(ValidationError):
            await caregiver_service.create_link(mock_session(), user, user.id)

    @pytest.mark.asyncio
    async def test_target_must_be_caregiver(self):
        other = make_user()

        with patch.object(store, "get_user", new_callable=AsyncMock, return_value=other):
            with pytest.raises(ValidationError):
                await caregiver_service.create_link(mock_session(), make_user(), other.id)

    @pytest.mark.asyncio
    async def test_duplicate_link_conflicts(self):
        caregiver, db = make_user(UserRole.caregiver), mock_session()
        db.commit = AsyncMock(side_effect=IntegrityError("insert", {}, Exception()))

        with patch.object(store, "get_user", new_callable=AsyncMock, return_value=caregiver):
            with pytest.raises(ConflictError):
                await caregiver_service.create_link(db, make_user(), caregiver.id)

        db.rollback.assert_awaited_once()


class TestDeleteLink:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("party", ["caregiver", "user"])
    async def test_either_party_may_delete(self, party):
        caregiver, user, db = make_user(UserRole.caregiver), make_user(), mock_session()
        link = SimpleNamespace(id=uuid.uuid4(), caregiver_id=caregiver.id, user_id=user.id)
        actor = caregiver if party == "caregiver" else user

        with patch.object(store, "get_caregiver_link", new_callable=AsyncMock, return_value=link):
            await caregiver_service.delete_link(db, actor, link.id)

        db.delete.assert_awaited_once_with(link)

    @pytest.mark.asyncio
    async def test_stranger_may_not_delete(self):
        link = SimpleNamespace(id=uuid.uuid4(), caregiver_id=uuid.uuid4(), user_id=uuid.uuid4())

        with patch.object(store, "get_caregiver_link", new_callable=AsyncMock, return_value=link):
            with pytest.raises(AuthorizationError):
                await caregiver_service.delete_link(mock_session(), make_user(), link.id)
