"""Medical profile model.

Holds the user's A1C target and the rolling estimate maintained by the
background recalculation job.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from a1c_estimator.models.base import Base, TimestampMixin


class MedicalProfile(Base, TimestampMixin):
    """Per-user medical profile (one row per user)."""

    __tablename__ = "user_medical_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    target_a1c: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Rolling estimate over the configured window
    estimated_average_glucose: Mapped[float | None] = mapped_column(
        Float, nullable=True
    )
    estimated_a1c: Mapped[float | None] = mapped_column(Float, nullable=True)
    estimate_reading_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    estimated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    user = relationship("User", back_populates="medical_profile")

    def __repr__(self) -> str:
        return f"<MedicalProfile(user_id={self.user_id}, a1c={self.estimated_a1c})>"
