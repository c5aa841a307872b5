"""User model.

Users are created on first authenticated access from the identity
provider's subject and are never deleted by the API.
"""

import uuid

from sqlalchemy import Enum, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from a1c_estimator.core.glucose.enums import UserRole
from a1c_estimator.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """User account model.

    Attributes:
        id: Internal user identifier (UUID)
        external_auth_id: Subject claim from the identity provider (unique)
        role: User role (standard, caregiver)
        display_name: Optional name shown to linked caregivers
        email: Optional contact email from the identity token
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    external_auth_id: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            name="userrole",
            create_type=False,  # Already created in migration
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=UserRole.standard,
    )
    display_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    # Relationships
    glucose_readings = relationship(
        "GlucoseReading",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    runs = relationship(
        "Run",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    months = relationship(
        "Month",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    medical_profile = relationship(
        "MedicalProfile",
        back_populates="user",
        cascade="all, delete-orphan",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<User {self.external_auth_id} ({self.role.value})>"
