from application.release_flow.contracts import (
    ReleaseCycleResult,
    ReleaseFlowConfig,
    ReleaseFlowDependencies,
)
from application.release_flow.poll_loop import run_poll_loop, run_poll_tick
from application.release_flow.use_case import run_once, run_release_cycle

__all__ = [
    "ReleaseCycleResult",
    "ReleaseFlowConfig",
    "ReleaseFlowDependencies",
    "run_once",
    "run_poll_loop",
    "run_poll_tick",
    "run_release_cycle",
]
