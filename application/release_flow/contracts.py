from dataclasses import dataclass
from typing import Callable

from domain.models import ChangeSet, PullRequestRecord, RepositoryReference


def _noop_observe_change_set(_: ChangeSet) -> None:
    return None


def _noop_observe_step(_: str, __: str, ___: str | None = None) -> None:
    return None


def _noop_begin_cycle(_: str) -> None:
    return None


def _noop_end_cycle(_: "ReleaseCycleResult | None") -> None:
    return None


@dataclass(frozen=True)
class ReleaseFlowConfig:
    target_repository: RepositoryReference
    base_branch: str = "master"
    signature: str = "-- Your loyal release bot"


@dataclass(frozen=True)
class ReleaseFlowDependencies:
    sync: Callable[[], None]
    apply_change: Callable[[str], ChangeSet]
    publish_branch: Callable[[], None]
    create_pull_request: Callable[[RepositoryReference, str, str, str, str], PullRequestRecord]
    begin_cycle: Callable[[str], None] = _noop_begin_cycle
    end_cycle: Callable[["ReleaseCycleResult | None"], None] = _noop_end_cycle
    observe_change_set: Callable[[ChangeSet], None] = _noop_observe_change_set
    observe_step: Callable[[str, str, str | None], None] = _noop_observe_step


@dataclass(frozen=True)
class ReleaseCycleResult:
    status: str
    message: str
    tag: str | None = None
    branch: str | None = None
    commit: str | None = None
    pr_number: int | None = None
    pr_url: str | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status in {"success", "no_tags"}
