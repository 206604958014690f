"""Local clone of the target repository and the git side of a release cycle.

A cycle walks ``Idle -> Synced -> Changed -> Committed -> Pushed -> Done`` and
drops to ``Failed`` on the first error. Nothing is rolled back: refs created
before a failure stay on disk until a later cycle for the same tag overwrites
them.
"""

import base64
import logging
from enum import Enum
from pathlib import Path
from typing import Sequence

from application.ports import ContentMutator
from domain.errors import (
    CloneError,
    CommitError,
    FetchError,
    NoChangesError,
    OpenError,
    PushError,
    ReleaseBotError,
    WorkspaceError,
)
from domain.models import BotIdentity, ChangeSet, GitCredentials, RewriteRule
from infrastructure.observability.logging_utils import log_event, register_basic_auth
from infrastructure.repo.content_rewriter import PatternRewriter
from infrastructure.repo.operations import CommandError, run, run_capture


logger = logging.getLogger(__name__)

BRANCH_PREFIX = "tt-"
COMMIT_MESSAGE_PREFIX = "Update to tag "
DEFAULT_BASE_BRANCH = "master"
_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


class CycleState(str, Enum):
    IDLE = "idle"
    SYNCED = "synced"
    CHANGED = "changed"
    COMMITTED = "committed"
    PUSHED = "pushed"
    DONE = "done"
    FAILED = "failed"


def branch_name_for(tag: str) -> str:
    return f"{BRANCH_PREFIX}{tag}"


def tag_ref_for(tag: str) -> str:
    return f"refs/tags/{tag}"


def _auth_options(credentials: GitCredentials | None) -> list[str]:
    if credentials is None or not credentials.token:
        return []
    register_basic_auth(credentials.username, credentials.token)
    encoded = base64.b64encode(
        f"{credentials.username}:{credentials.token}".encode("utf-8")
    ).decode("ascii")
    return ["-c", f"http.extraHeader=Authorization: Basic {encoded}"]


class Workspace:
    def __init__(
        self,
        *,
        local_path: Path,
        remote_url: str,
        identity: BotIdentity,
        base_branch: str = DEFAULT_BASE_BRANCH,
        credentials: GitCredentials | None = None,
    ) -> None:
        self.local_path = local_path
        self.remote_url = remote_url
        self.identity = identity
        self.base_branch = base_branch
        self.credentials = credentials
        self.state = CycleState.IDLE
        self.change_set: ChangeSet | None = None

    @classmethod
    def open(
        cls,
        url: str,
        local_path: Path,
        *,
        identity: BotIdentity,
        base_branch: str = DEFAULT_BASE_BRANCH,
        credentials: GitCredentials | None = None,
    ) -> "Workspace":
        workspace = cls(
            local_path=local_path,
            remote_url=url,
            identity=identity,
            base_branch=base_branch,
            credentials=credentials,
        )
        if (local_path / ".git").exists():
            workspace._open_existing()
        else:
            workspace._clone()
        return workspace

    def _git(self, args: Sequence[str], *, credentials: GitCredentials | None = None) -> str:
        command = ["git", *_auth_options(credentials), *args]
        return run(command, cwd=self.local_path, env=_GIT_ENV)

    def _clone(self) -> None:
        log_event(logger, logging.INFO, "workspace.clone.start", url=self.remote_url, path=str(self.local_path))
        try:
            self.local_path.mkdir(mode=0o700, parents=True, exist_ok=True)
            command = ["git", *_auth_options(self.credentials), "clone", self.remote_url, str(self.local_path)]
            run(command, env=_GIT_ENV)
        except (OSError, CommandError) as error:
            raise CloneError(f"Failed to clone {self.remote_url} into {self.local_path}: {error}") from error

    def _open_existing(self) -> None:
        log_event(logger, logging.INFO, "workspace.open", path=str(self.local_path))
        try:
            self._git(["rev-parse", "--git-dir"])
        except CommandError as error:
            raise OpenError(f"Failed to open repository in {self.local_path}: {error}") from error

    def begin_cycle(self) -> None:
        self.state = CycleState.IDLE
        self.change_set = None

    def _fail(self, error: ReleaseBotError) -> ReleaseBotError:
        self.state = CycleState.FAILED
        return error

    def sync(self) -> None:
        try:
            self._git(["fetch", "origin"], credentials=self.credentials)
        except CommandError as error:
            raise self._fail(FetchError(f"Failed to fetch origin: {error}")) from error

        # Start every cycle from the remote base so a failed cycle's edits never leak.
        self._checkout_detached(f"origin/{self.base_branch}")
        self.state = CycleState.SYNCED
        log_event(logger, logging.INFO, "workspace.sync.done", base_branch=self.base_branch)

    def _checkout_detached(self, revision: str) -> None:
        try:
            self._git(["checkout", "--force", "--detach", revision])
            self._git(["clean", "-fd"])
        except CommandError as error:
            raise self._fail(FetchError(f"Failed to reset working tree to {revision}: {error}")) from error

    def _remote_branch_exists(self, branch_name: str) -> bool:
        result = run_capture(
            ["git", "rev-parse", "--verify", "--quiet", f"refs/remotes/origin/{branch_name}"],
            cwd=self.local_path,
        )
        return result.returncode == 0

    def _stage(self, files: list[Path]) -> list[Path]:
        relative_paths = sorted({path.resolve().relative_to(self.local_path.resolve()) for path in files})
        try:
            self._git(["add", "--", *[str(path) for path in relative_paths]])
            staged_output = self._git(["diff", "--cached", "--name-only", "-z"])
        except CommandError as error:
            raise self._fail(CommitError(f"Failed to stage files: {error}")) from error
        staged = {name for name in staged_output.split("\0") if name}
        return [path for path in relative_paths if path.as_posix() in staged]

    def _commit(self, message: str) -> str:
        identity_env = {
            **_GIT_ENV,
            "GIT_AUTHOR_NAME": self.identity.name,
            "GIT_AUTHOR_EMAIL": self.identity.email,
            "GIT_COMMITTER_NAME": self.identity.name,
            "GIT_COMMITTER_EMAIL": self.identity.email,
        }
        try:
            run(
                ["git", "-c", "commit.gpgsign=false", "commit", "--no-verify", "-m", message],
                cwd=self.local_path,
                env=identity_env,
            )
            return self._git(["rev-parse", "HEAD"]).strip()
        except CommandError as error:
            raise self._fail(CommitError(f"Failed to commit: {error}")) from error

    def _set_reference(self, ref_name: str, commit_sha: str) -> None:
        try:
            self._git(["update-ref", ref_name, commit_sha])
        except CommandError as error:
            raise self._fail(CommitError(f"Failed to create {ref_name} on {commit_sha}: {error}")) from error

    def create_and_apply_change(self, tag: str, mutator: ContentMutator | RewriteRule) -> ChangeSet:
        if isinstance(mutator, RewriteRule):
            mutator = PatternRewriter(rule=mutator)
        branch_name = branch_name_for(tag)

        # A branch already published for this tag is the baseline, so a retry finds nothing to change.
        if self.state == CycleState.SYNCED and self._remote_branch_exists(branch_name):
            log_event(logger, logging.INFO, "workspace.branch.already_published", branch=branch_name)
            self._checkout_detached(f"origin/{branch_name}")

        try:
            reported_files = mutator.mutate(self.local_path, tag)
        except WorkspaceError:
            self.state = CycleState.FAILED
            raise

        if not reported_files:
            raise self._fail(NoChangesError(f"No files modified for tag {tag}"))

        staged_files = self._stage(reported_files)
        if not staged_files:
            raise self._fail(NoChangesError(f"No staged changes for tag {tag}"))
        self.state = CycleState.CHANGED

        commit_sha = self._commit(COMMIT_MESSAGE_PREFIX + tag)
        self._set_reference(f"refs/heads/{branch_name}", commit_sha)
        self._set_reference(tag_ref_for(tag), commit_sha)

        self.change_set = ChangeSet(
            branch_name=branch_name,
            modified_files=tuple(staged_files),
            commit_sha=commit_sha,
            tag_ref=tag_ref_for(tag),
        )
        self.state = CycleState.COMMITTED
        log_event(
            logger,
            logging.INFO,
            "workspace.commit.created",
            branch=branch_name,
            commit=commit_sha,
            files_count=len(staged_files),
        )
        return self.change_set

    def publish_branch(self, credentials: GitCredentials | None) -> None:
        change_set = self.change_set
        if change_set is None:
            raise self._fail(PushError("Nothing to push: no change set was committed in this cycle"))

        branch_ref = f"refs/heads/{change_set.branch_name}"
        refspecs = [f"{branch_ref}:{branch_ref}", f"{change_set.tag_ref}:{change_set.tag_ref}"]
        # Branch and tag land together or not at all.
        try:
            self._git(["push", "--atomic", "origin", *refspecs], credentials=credentials)
        except CommandError as error:
            raise self._fail(PushError(f"Failed to push branch {change_set.branch_name}: {error}")) from error
        self.state = CycleState.PUSHED
        log_event(logger, logging.INFO, "workspace.push.done", branch=change_set.branch_name, tag_ref=change_set.tag_ref)

    def mark_done(self) -> None:
        self.state = CycleState.DONE
