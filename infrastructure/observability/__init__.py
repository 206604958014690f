from infrastructure.observability.logging_utils import configure_logging, log_event
from infrastructure.observability.workflow_observer import (
    classify_change_scope,
    observe_change_set,
    observe_cycle_step,
)

__all__ = [
    "configure_logging",
    "log_event",
    "classify_change_scope",
    "observe_change_set",
    "observe_cycle_step",
]
