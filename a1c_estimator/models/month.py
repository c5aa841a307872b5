"""Month model.

A month is a named date interval grouping runs, with cached statistics
computed over those runs.
"""

import uuid
from datetime import date

from sqlalchemy import CheckConstraint, Date, Float, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from a1c_estimator.models.base import Base, TimestampMixin


class Month(Base, TimestampMixin):
    """A user-defined month of runs."""

    __tablename__ = "months"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_month_date_order"),
        Index("ix_months_user_start", "user_id", "start_date"),
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

    average_glucose: Mapped[float | None] = mapped_column(Float, nullable=True)
    calculated_a1c: Mapped[float | None] = mapped_column(Float, nullable=True)

    user = relationship("User", back_populates="months")
    runs = relationship("Run", back_populates="month")

    def __repr__(self) -> str:
        return f"<Month(name={self.name!r}, {self.start_date}..{self.end_date})>"
