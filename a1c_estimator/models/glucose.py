"""Glucose reading model.

Readings are entered by the user and optionally grouped into a run.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Index, Integer, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from a1c_estimator.core.glucose.enums import MealContext
from a1c_estimator.models.base import Base, TimestampMixin


class GlucoseReading(Base, TimestampMixin):
    """Stores a single glucose reading.

    ``version`` is bumped on every update; flushing an update from a stale
    copy raises ``StaleDataError``.
    """

    __tablename__ = "glucose_readings"

    __table_args__ = (
        # Index for querying recent readings for a user
        Index("ix_glucose_readings_user_timestamp", "user_id", "timestamp"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Glucose value in mg/dL
    value: Mapped[float] = mapped_column(
        Float,
        nullable=False,
    )

    # When the reading was taken (never later than when it was stored)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    meal_context: Mapped[MealContext] = mapped_column(
        Enum(
            MealContext,
            name="mealcontext",
            create_type=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    run_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("runs.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    user = relationship("User", back_populates="glucose_readings")
    run = relationship("Run", back_populates="readings")

    def __repr__(self) -> str:
        return f"<GlucoseReading(user_id={self.user_id}, value={self.value}, context={self.meal_context.value}, timestamp={self.timestamp})>"
