from domain.errors import ReleaseBotError, TransientAPIError
from domain.models import RepositoryReference

from application.release_flow.contracts import (
    ReleaseCycleResult,
    ReleaseFlowConfig,
    ReleaseFlowDependencies,
)
from application.release_flow.steps import (
    apply_change,
    build_error_result,
    build_no_tags_result,
    build_success_result,
    open_pull_request,
)
from application.tag_watch import TagWatcher


def run_release_cycle(
    tag: str,
    config: ReleaseFlowConfig,
    dependencies: ReleaseFlowDependencies,
    *,
    raise_on_error: bool = True,
) -> ReleaseCycleResult:
    dependencies.begin_cycle(tag)
    result: ReleaseCycleResult | None = None
    try:
        dependencies.observe_step("sync", "start")
        dependencies.sync()
        dependencies.observe_step("sync", "success")

        dependencies.observe_step("apply_change", "start", tag)
        change_set = apply_change(tag, dependencies)
        dependencies.observe_step(
            "apply_change",
            "success",
            f"files_count={len(change_set.modified_files)}",
        )

        dependencies.observe_step("publish_branch", "start")
        dependencies.publish_branch()
        dependencies.observe_step("publish_branch", "success", change_set.branch_name)

        dependencies.observe_step("open_pull_request", "start")
        pull_request = open_pull_request(tag, change_set, config, dependencies)
        result = build_success_result(tag, change_set, pull_request)
        dependencies.observe_step("open_pull_request", "success", result.pr_url)
        return result
    except ReleaseBotError as error:
        dependencies.observe_step("finalize", "error", str(error))
        result = build_error_result(tag, error)
        if raise_on_error:
            raise
        return result
    finally:
        dependencies.end_cycle(result)


def run_once(
    config: ReleaseFlowConfig,
    dependencies: ReleaseFlowDependencies,
    *,
    watcher: TagWatcher,
    monitored_repository: RepositoryReference,
    tag: str | None = None,
) -> ReleaseCycleResult:
    """Run exactly one cycle, for ``tag`` or for the monitored repository's latest tag."""
    if not tag:
        if not watcher.initialize(monitored_repository):
            return build_error_result(
                None,
                TransientAPIError(f"Could not list tags for {monitored_repository.full_name}"),
            )
        tag = watcher.current_tag_name()
    if not tag:
        return build_no_tags_result()
    return run_release_cycle(tag, config, dependencies, raise_on_error=False)
