"""Caregiver link endpoints."""

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from a1c_estimator.core.auth import CaregiverUser, CurrentUser
from a1c_estimator.database import get_db
from a1c_estimator.schemas.caregiver import (
    CaregiverLinkCreate,
    CaregiverLinkListResponse,
    CaregiverLinkResponse,
    LinkedUserListResponse,
    LinkedUserResponse,
)
from a1c_estimator.schemas.common import ERROR_RESPONSES
from a1c_estimator.services import caregiver as caregiver_service

router = APIRouter(
    prefix="/api/caregivers",
    tags=["caregivers"],
    responses=ERROR_RESPONSES,
)


@router.get("/links", response_model=CaregiverLinkListResponse)
async def list_links(
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> CaregiverLinkListResponse:
    """Links where the current user is the caregiver or the linked user."""
    links = await caregiver_service.list_links(db, user)
    return CaregiverLinkListResponse(
        links=[CaregiverLinkResponse.model_validate(link) for link in links]
    )


@router.post(
    "/links",
    response_model=CaregiverLinkResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_link(
    body: CaregiverLinkCreate,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> CaregiverLinkResponse:
    """Grant a caregiver read-only access to the current user's data."""
    link = await caregiver_service.create_link(db, user, body.caregiver_id)
    return CaregiverLinkResponse.model_validate(link)


@router.delete("/links/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link(
    link_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> Response:
    await caregiver_service.delete_link(db, user, link_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/users", response_model=LinkedUserListResponse)
async def list_linked_users(
    caregiver: CaregiverUser,
    db: AsyncSession = Depends(get_db),
) -> LinkedUserListResponse:
    """Users whose data the current caregiver may read."""
    users = await caregiver_service.list_linked_users(db, caregiver)
    return LinkedUserListResponse(
        users=[LinkedUserResponse.model_validate(u) for u in users]
    )
