# Database Models
from a1c_estimator.models.base import Base, TimestampMixin
from a1c_estimator.models.caregiver_link import CaregiverLink
from a1c_estimator.models.glucose import GlucoseReading
from a1c_estimator.models.medical_profile import MedicalProfile
from a1c_estimator.models.month import Month
from a1c_estimator.models.run import Run
from a1c_estimator.models.user import User

__all__ = [
    "Base",
    "CaregiverLink",
    "GlucoseReading",
    "MedicalProfile",
    "Month",
    "Run",
    "TimestampMixin",
    "User",
]
