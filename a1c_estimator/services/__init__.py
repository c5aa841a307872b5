# Business Logic Services
from a1c_estimator.services.scheduler import (
    get_scheduler,
    recalculate_all_user_estimates,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    "get_scheduler",
    "recalculate_all_user_estimates",
    "start_scheduler",
    "stop_scheduler",
]
