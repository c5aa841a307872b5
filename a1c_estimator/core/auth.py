"""Authentication and authorization dependencies.

The caller presents an identity provider JWT as ``Authorization: Bearer``.
The token subject resolves to an internal User, created on first access.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from a1c_estimator.core.glucose.enums import UserRole
from a1c_estimator.core.glucose.models import UserIdentity
from a1c_estimator.core.security import IdentityClaims, decode_identity_token
from a1c_estimator.database import get_db
from a1c_estimator.logging_config import acting_user_ctx, get_logger
from a1c_estimator.models.user import User

logger = get_logger(__name__)


async def resolve_user(db: AsyncSession, claims: IdentityClaims) -> User:
    """Return the User for the token subject, creating it on first access.

    A role claim that differs from the stored role updates it.
    """
    result = await db.execute(
        select(User).where(User.external_auth_id == claims.subject)
    )
    user = result.scalar_one_or_none()

    if user is None:
        user = User(
            external_auth_id=claims.subject,
            role=claims.role or UserRole.standard,
            email=claims.email,
            display_name=claims.name,
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Concurrent first request for the same subject created it
            await db.rollback()
            result = await db.execute(
                select(User).where(User.external_auth_id == claims.subject)
            )
            return result.scalar_one()
        await db.refresh(user)
        logger.info(
            "User created on first access",
            user_id=str(user.id),
            role=user.role.value,
        )
        return user

    if claims.role is not None and claims.role != user.role:
        logger.info(
            "User role updated from identity claims",
            user_id=str(user.id),
            old_role=user.role.value,
            new_role=claims.role.value,
        )
        user.role = claims.role
        await db.commit()
        await db.refresh(user)

    return user


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract the bearer token and resolve the current user.

    Returns:
        The authenticated User object

    Raises:
        HTTPException 401: If no valid credentials are found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise credentials_exception

    payload = decode_identity_token(auth_header[7:])
    if payload is None:
        raise credentials_exception

    user = await resolve_user(db, IdentityClaims(payload))
    acting_user_ctx.set(str(user.id))
    return user


def to_identity(user: User) -> UserIdentity:
    """Convert the ORM user into the domain identity record."""
    return UserIdentity.model_validate(user)


# Type aliases for cleaner route signatures
CurrentUser = Annotated[User, Depends(get_current_user)]


# ============================================================================
# Role-Based Access Control
# ============================================================================


class RoleChecker:
    """Dependency class for checking user roles.

    Usage:
        @router.get("/caregiver-only")
        async def endpoint(
            user: CurrentUser,
            _: bool = Depends(RoleChecker([UserRole.caregiver])),
        ):
            ...
    """

    def __init__(self, allowed_roles: list[UserRole]):
        self.allowed_roles = allowed_roles

    async def __call__(
        self,
        request: Request,
        current_user: CurrentUser,
    ) -> bool:
        """Check if the current user has one of the allowed roles.

        Raises:
            HTTPException 403: If the user doesn't have an allowed role
        """
        if current_user.role not in self.allowed_roles:
            client_ip = request.client.host if request.client else "unknown"
            logger.warning(
                "Unauthorized access attempt",
                user_id=str(current_user.id),
                user_role=current_user.role.value,
                required_roles=[r.value for r in self.allowed_roles],
                path=request.url.path,
                method=request.method,
                client_ip=client_ip,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You don't have permission to access this resource",
            )
        return True


require_caregiver = RoleChecker([UserRole.caregiver])


async def get_caregiver_user(
    current_user: CurrentUser,
    request: Request,
) -> User:
    """Get the current user and verify they are a caregiver.

    Raises:
        HTTPException 403: If the user is not a caregiver
    """
    await require_caregiver(request, current_user)
    return current_user


CaregiverUser = Annotated[User, Depends(get_caregiver_user)]
