"""Association and access rules.

Attaching a reading to a run, or a run to a month, requires both records
to belong to the same user. The functions return updated copies; the
caller persists them and triggers recalculation of the affected caches as
a separate step.
"""

import uuid
from collections.abc import Collection

from a1c_estimator.core.glucose.errors import AuthorizationError, ValidationError
from a1c_estimator.core.glucose.models import Month, Reading, Run, UserIdentity


def assert_owner(acting_user_id: uuid.UUID, owner_id: uuid.UUID, *, entity: str) -> None:
    """Raise AuthorizationError unless the acting user owns the entity."""
    if acting_user_id != owner_id:
        raise AuthorizationError(f"Not allowed to modify this {entity}")


def associate_reading(
    reading: Reading,
    run: Run,
    *,
    enforce_date_range: bool = False,
) -> Reading:
    """Attach ``reading`` to ``run``.

    Re-attaching to the same run returns the reading unchanged. A reading
    already in another run is moved (last write wins).

    Raises:
        AuthorizationError: If the reading and run have different owners.
        ValidationError: If ``enforce_date_range`` is set and the reading
            falls outside the run's dates.
    """
    if reading.user_id != run.user_id:
        raise AuthorizationError("Reading and run belong to different users")

    if enforce_date_range and not run.contains(reading.timestamp.date()):
        raise ValidationError(
            "timestamp",
            f"Reading date {reading.timestamp.date()} is outside run "
            f"{run.start_date} to {run.end_date}",
        )

    if reading.run_id == run.id:
        return reading
    return reading.model_copy(update={"run_id": run.id})


def detach_reading(reading: Reading) -> Reading:
    if reading.run_id is None:
        return reading
    return reading.model_copy(update={"run_id": None})


def associate_run(run: Run, month: Month) -> Run:
    """Attach ``run`` to ``month``.

    The run's dates must lie within the month's dates.

    Raises:
        AuthorizationError: If the run and month have different owners.
        ValidationError: If the run extends outside the month.
    """
    if run.user_id != month.user_id:
        raise AuthorizationError("Run and month belong to different users")

    if run.start_date < month.start_date or run.end_date > month.end_date:
        raise ValidationError(
            "run_id",
            f"Run dates {run.start_date} to {run.end_date} must be within "
            f"month {month.start_date} to {month.end_date}",
        )

    if run.month_id == month.id:
        return run
    return run.model_copy(update={"month_id": month.id})


def detach_run(run: Run) -> Run:
    if run.month_id is None:
        return run
    return run.model_copy(update={"month_id": None})


def can_read(
    viewer: UserIdentity,
    owner_id: uuid.UUID,
    linked_user_ids: Collection[uuid.UUID],
) -> bool:
    """Owners can always read; caregivers only the users linked to them."""
    if viewer.id == owner_id:
        return True
    return viewer.is_caregiver and owner_id in linked_user_ids


def assert_can_read(
    viewer: UserIdentity,
    owner_id: uuid.UUID,
    linked_user_ids: Collection[uuid.UUID],
) -> None:
    if not can_read(viewer, owner_id, linked_user_ids):
        raise AuthorizationError("Not allowed to view this user's data")
