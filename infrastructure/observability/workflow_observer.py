import logging

from domain.models import ChangeSet
from infrastructure.observability.logging_utils import log_event


logger = logging.getLogger(__name__)


def classify_change_scope(modified_files: tuple[str, ...] | list[str]) -> str:
    if not modified_files:
        return "empty"
    if len(modified_files) == 1:
        return "single_file"
    return "multi_file"


def observe_change_set(change_set: ChangeSet) -> None:
    file_names = [str(path) for path in change_set.modified_files]
    log_event(
        logger,
        logging.INFO,
        "release.change_set.committed",
        branch=change_set.branch_name,
        tag_ref=change_set.tag_ref,
        commit=change_set.commit_sha,
        change_scope=classify_change_scope(file_names),
        files_count=len(file_names),
        files=",".join(file_names),
    )


def observe_cycle_step(step: str, status: str, detail: str | None = None) -> None:
    level = logging.ERROR if status == "error" else logging.INFO
    log_event(
        logger,
        level,
        "release.step",
        step=step,
        status=status,
        detail=detail,
    )
