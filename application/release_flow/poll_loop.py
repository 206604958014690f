import logging
import time
from typing import Callable

from domain.models import RepositoryReference

from application.release_flow.contracts import (
    ReleaseCycleResult,
    ReleaseFlowConfig,
    ReleaseFlowDependencies,
)
from application.release_flow.steps import build_error_result
from application.release_flow.use_case import run_release_cycle
from application.tag_watch import TagWatcher


logger = logging.getLogger(__name__)


def next_tick_after(previous_tick: float, now: float, interval_seconds: float) -> tuple[float, int]:
    """Return the next tick strictly after ``now`` and how many ticks were missed."""
    next_tick = previous_tick + interval_seconds
    if next_tick > now:
        return next_tick, 0
    missed = int((now - previous_tick) // interval_seconds)
    return previous_tick + (missed + 1) * interval_seconds, missed


def run_poll_tick(
    config: ReleaseFlowConfig,
    dependencies: ReleaseFlowDependencies,
    watcher: TagWatcher,
) -> ReleaseCycleResult | None:
    if not watcher.poll():
        return None

    tag = watcher.current_tag_name()
    try:
        result = run_release_cycle(tag, config, dependencies, raise_on_error=False)
    except Exception as error:
        logger.exception("Release cycle for %s crashed", tag)
        return build_error_result(tag, error)

    if result.succeeded:
        logger.info("Release cycle for %s finished: %s", tag, result.message)
    else:
        logger.error("Release cycle for %s failed: %s", tag, result.error)
    return result


def run_poll_loop(
    config: ReleaseFlowConfig,
    dependencies: ReleaseFlowDependencies,
    *,
    watcher: TagWatcher,
    monitored_repository: RepositoryReference,
    interval_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    max_ticks: int | None = None,
) -> None:
    """Poll forever (or ``max_ticks`` times); a failed cycle never stops the loop."""
    watcher.initialize(monitored_repository)
    next_tick = clock() + interval_seconds
    ticks = 0
    while max_ticks is None or ticks < max_ticks:
        delay = next_tick - clock()
        if delay > 0:
            sleep(delay)
        ticks += 1
        run_poll_tick(config, dependencies, watcher)

        next_tick, missed = next_tick_after(next_tick, clock(), interval_seconds)
        if missed:
            logger.warning("Skipped %d poll tick(s) while the previous cycle was running", missed)
