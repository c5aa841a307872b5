"""Identity provider token verification.

Tokens are issued by the external identity provider; the API only
verifies them and reads the subject and role claims.
"""

from jose import JWTError, jwt

from a1c_estimator.config import settings
from a1c_estimator.core.glucose.enums import UserRole

_CAREGIVER_ROLE_ALIASES = frozenset({"caregiver", "care_giver", "care-giver"})


def decode_identity_token(token: str) -> dict | None:
    """Decode and verify an identity provider JWT.

    Audience and issuer are verified only when configured.

    Args:
        token: The JWT token string to decode

    Returns:
        Token payload dict if valid, None if invalid or expired
    """
    options = {"verify_aud": bool(settings.auth_jwt_audience)}
    try:
        payload = jwt.decode(
            token,
            settings.auth_jwt_key,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience or None,
            issuer=settings.auth_jwt_issuer or None,
            options=options,
        )
    except JWTError:
        return None

    if not payload.get("sub"):
        return None
    return payload


def normalize_role(raw: object) -> UserRole:
    """Map an identity provider role claim onto a UserRole.

    Only the caregiver spellings are recognized; anything else, including a
    missing claim, is a standard user.
    """
    if isinstance(raw, str) and raw.strip().lower() in _CAREGIVER_ROLE_ALIASES:
        return UserRole.caregiver
    return UserRole.standard


class IdentityClaims:
    """Parsed token claims for type safety."""

    def __init__(self, payload: dict):
        self.subject: str = str(payload["sub"])
        self.email: str | None = payload.get("email")
        self.name: str | None = payload.get("name")
        raw_role = payload.get(settings.auth_role_claim)
        self.role: UserRole | None = (
            normalize_role(raw_role) if raw_role is not None else None
        )
