from domain.models import ChangeSet, PullRequestRecord

from application.release_flow.contracts import (
    ReleaseCycleResult,
    ReleaseFlowConfig,
    ReleaseFlowDependencies,
)


def pull_request_title(tag: str) -> str:
    return f"Update to {tag}"


def pull_request_body(tag: str, config: ReleaseFlowConfig) -> str:
    return f"Update to {tag}\n\n{config.signature}"


def apply_change(tag: str, dependencies: ReleaseFlowDependencies) -> ChangeSet:
    change_set = dependencies.apply_change(tag)
    dependencies.observe_change_set(change_set)
    return change_set


def open_pull_request(
    tag: str,
    change_set: ChangeSet,
    config: ReleaseFlowConfig,
    dependencies: ReleaseFlowDependencies,
) -> PullRequestRecord:
    return dependencies.create_pull_request(
        config.target_repository,
        change_set.branch_name,
        config.base_branch,
        pull_request_title(tag),
        pull_request_body(tag, config),
    )


def build_success_result(
    tag: str,
    change_set: ChangeSet,
    pull_request: PullRequestRecord,
) -> ReleaseCycleResult:
    return ReleaseCycleResult(
        status="success",
        message=f"Pull request #{pull_request.number} created",
        tag=tag,
        branch=change_set.branch_name,
        commit=change_set.commit_sha,
        pr_number=pull_request.number,
        pr_url=pull_request.url,
    )


def build_no_tags_result() -> ReleaseCycleResult:
    return ReleaseCycleResult(
        status="no_tags",
        message="Monitored repository has no tags; nothing to do",
    )


def build_error_result(tag: str | None, error: Exception) -> ReleaseCycleResult:
    return ReleaseCycleResult(
        status="error",
        message="Release cycle failed",
        tag=tag,
        error=str(error),
    )
