"""Current user endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from a1c_estimator.core.auth import CurrentUser
from a1c_estimator.database import get_db
from a1c_estimator.schemas.user import (
    MedicalProfileResponse,
    UserProfileResponse,
    UserResponse,
)
from a1c_estimator.services.estimates import get_medical_profile

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserProfileResponse)
async def get_me(
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> UserProfileResponse:
    """The authenticated user, with the rolling A1C estimate if computed."""
    profile = await get_medical_profile(db, user.id)
    return UserProfileResponse(
        user=UserResponse.model_validate(user),
        medical_profile=(
            MedicalProfileResponse.model_validate(profile) if profile else None
        ),
    )
