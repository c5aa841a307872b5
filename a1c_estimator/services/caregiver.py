"""Caregiver link service.

A user grants a caregiver read access by creating a link. Either party
may remove it. Read endpoints resolve whose data to return through
``resolve_read_target``.
"""

import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from a1c_estimator.core.auth import to_identity
from a1c_estimator.core.glucose.association import assert_can_read
from a1c_estimator.core.glucose.enums import UserRole
from a1c_estimator.core.glucose.errors import (
    AuthorizationError,
    ConflictError,
    ValidationError,
)
from a1c_estimator.logging_config import get_logger
from a1c_estimator.models.caregiver_link import CaregiverLink
from a1c_estimator.models.user import User
from a1c_estimator.services import store

logger = get_logger(__name__)


async def resolve_read_target(
    db: AsyncSession,
    viewer: User,
    requested_user_id: uuid.UUID | None = None,
) -> uuid.UUID:
    """Return the id of the user whose data ``viewer`` asked to read.

    No ``requested_user_id`` (or the viewer's own id) means the viewer.
    Anyone else requires the viewer to be a caregiver linked to them.

    Raises:
        AuthorizationError: If the viewer may not read that user's data.
    """
    if requested_user_id is None or requested_user_id == viewer.id:
        return viewer.id

    linked = (
        await store.list_linked_user_ids(db, viewer.id)
        if viewer.role == UserRole.caregiver
        else set()
    )
    try:
        assert_can_read(to_identity(viewer), requested_user_id, linked)
    except AuthorizationError:
        logger.warning(
            "Read access denied",
            viewer_id=str(viewer.id),
            viewer_role=viewer.role.value,
            requested_user_id=str(requested_user_id),
        )
        raise
    return requested_user_id


async def assert_readable(db: AsyncSession, viewer: User, owner_id: uuid.UUID) -> None:
    """Raise AuthorizationError unless ``viewer`` may read ``owner_id``'s data."""
    await resolve_read_target(db, viewer, owner_id)


async def create_link(
    db: AsyncSession,
    user: User,
    caregiver_id: uuid.UUID,
) -> CaregiverLink:
    """Grant ``caregiver_id`` read access to ``user``'s data.

    Raises:
        ValidationError: Self links, or the target is not a caregiver.
        NotFoundError: The caregiver does not exist.
        ConflictError: The link already exists.
    """
    if caregiver_id == user.id:
        raise ValidationError("caregiver_id", "You cannot link yourself as a caregiver")

    caregiver = await store.get_user(db, caregiver_id)
    if caregiver.role != UserRole.caregiver:
        raise ValidationError("caregiver_id", "That user is not a caregiver")

    link = CaregiverLink(caregiver_id=caregiver.id, user_id=user.id)
    db.add(link)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("This caregiver is already linked") from None
    await db.refresh(link)

    logger.info(
        "Caregiver link created",
        link_id=str(link.id),
        caregiver_id=str(caregiver.id),
        user_id=str(user.id),
    )
    return link


async def list_links(db: AsyncSession, user: User) -> list[CaregiverLink]:
    return await store.list_caregiver_links(db, user.id)


async def delete_link(db: AsyncSession, user: User, link_id: uuid.UUID) -> None:
    """Remove a link. Either the caregiver or the linked user may do so."""
    link = await store.get_caregiver_link(db, link_id)
    if user.id not in (link.caregiver_id, link.user_id):
        raise AuthorizationError("Not allowed to remove this caregiver link")

    await db.delete(link)
    await db.commit()

    logger.info(
        "Caregiver link removed",
        link_id=str(link_id),
        removed_by=str(user.id),
    )


async def list_linked_users(db: AsyncSession, caregiver: User) -> list[User]:
    """Users whose data the caregiver may read."""
    user_ids = await store.list_linked_user_ids(db, caregiver.id)
    return [await store.get_user(db, user_id) for user_id in sorted(user_ids)]
