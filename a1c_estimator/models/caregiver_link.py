"""Caregiver-to-user link model.

A caregiver can be linked to multiple users; a user can have multiple
caregivers. A link grants read access only.
"""

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from a1c_estimator.models.base import Base, TimestampMixin


class CaregiverLink(Base, TimestampMixin):
    """Links a caregiver user to the user whose data they may read.

    Unique constraint on (caregiver_id, user_id) prevents duplicates.
    """

    __tablename__ = "caregiver_links"
    __table_args__ = (
        UniqueConstraint("caregiver_id", "user_id", name="uq_caregiver_user"),
        CheckConstraint("caregiver_id != user_id", name="ck_no_self_link"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    caregiver_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    caregiver = relationship("User", foreign_keys=[caregiver_id])
    user = relationship("User", foreign_keys=[user_id])

    def __repr__(self) -> str:
        return f"<CaregiverLink(caregiver={self.caregiver_id}, user={self.user_id})>"
