"""Run model.

A run is a named date interval grouping readings. The average and A1C
columns are caches recomputed from the member readings.
"""

import uuid
from datetime import date

from sqlalchemy import (
    CheckConstraint,
    Date,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from a1c_estimator.models.base import Base, TimestampMixin


class Run(Base, TimestampMixin):
    """A user-defined run of readings."""

    __tablename__ = "runs"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_run_date_order"),
        Index("ix_runs_user_start", "user_id", "start_date"),
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

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    month_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("months.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Cached statistics, NULL until first calculated or when empty
    average_glucose: Mapped[float | None] = mapped_column(Float, nullable=True)
    calculated_a1c: Mapped[float | None] = mapped_column(Float, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    user = relationship("User", back_populates="runs")
    month = relationship("Month", back_populates="runs")
    readings = relationship("GlucoseReading", back_populates="run")

    def __repr__(self) -> str:
        return f"<Run(name={self.name!r}, {self.start_date}..{self.end_date})>"
