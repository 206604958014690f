import logging
import uuid
from contextvars import Token
from dataclasses import dataclass
from functools import partial
from typing import Callable

from application.release_flow import ReleaseCycleResult, ReleaseFlowConfig, ReleaseFlowDependencies
from application.tag_watch import TagWatcher
from domain.models import BotIdentity, GitCredentials, RepositoryReference
from domain.repository_url import clone_url, parse_repository_url
from domain.rewrite_rule import build_rewrite_rule
from infrastructure.github.github_client import GitHubClient
from infrastructure.github.pr_gateway import PullRequestGateway
from infrastructure.github.tag_gateway import TagGateway
from infrastructure.observability.context import reset_cycle_id, set_cycle_id
from infrastructure.observability.logging_utils import log_event, register_basic_auth
from infrastructure.observability.workflow_observer import observe_change_set, observe_cycle_step
from infrastructure.repo.mutator_factory import build_content_mutator
from infrastructure.repo.workspace import Workspace
from infrastructure.runtime.settings import ReleaseBotSettings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleasePipeline:
    config: ReleaseFlowConfig
    dependencies: ReleaseFlowDependencies
    watcher: TagWatcher
    monitored_repository: RepositoryReference
    workspace: Workspace


class CycleScope:
    """Tags log records with a cycle id and closes the workspace state machine."""

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace
        self._token: Token[str] | None = None

    def begin(self, tag: str) -> None:
        self.workspace.begin_cycle()
        self._token = set_cycle_id(f"{tag}-{uuid.uuid4().hex[:8]}")

    def end(self, result: ReleaseCycleResult | None) -> None:
        if result is not None and result.status == "success":
            self.workspace.mark_done()
        if self._token is not None:
            reset_cycle_id(self._token)
            self._token = None


def _client_factory(token: str | None) -> Callable[[RepositoryReference], GitHubClient]:
    return partial(GitHubClient.for_reference, token=token)


def build_pipeline(settings: ReleaseBotSettings) -> ReleasePipeline:
    # URL and pattern problems surface here, before the workspace is touched.
    monitored_repository = parse_repository_url(settings.monitor_repo_url)
    target_repository = parse_repository_url(settings.target_repo_url)
    rewrite_rule = build_rewrite_rule(
        settings.rewrite_regex,
        settings.rewrite_format,
        settings.rewrite_file_pattern,
    )
    mutator = build_content_mutator(
        settings.mutation_strategy,
        rewrite_rule=rewrite_rule,
        updater_command=settings.updater_command,
    )

    token = settings.github_token or None
    credentials = GitCredentials(username=settings.bot_username, token=settings.github_token) if token else None
    if credentials is not None:
        register_basic_auth(credentials.username, credentials.token)

    log_event(
        logger,
        logging.INFO,
        "pipeline.configured",
        monitored=monitored_repository.full_name,
        target=target_repository.full_name,
        mutation_strategy=mutator.name,
        workspace=str(settings.workspace_dir),
    )

    workspace = Workspace.open(
        clone_url(target_repository),
        settings.workspace_dir,
        identity=BotIdentity(name=settings.git_author_name, email=settings.git_author_email),
        base_branch=settings.base_branch,
        credentials=credentials,
    )
    tag_gateway = TagGateway(_client_factory(token))
    pr_gateway = PullRequestGateway(_client_factory(token))
    cycle_scope = CycleScope(workspace)

    dependencies = ReleaseFlowDependencies(
        sync=workspace.sync,
        apply_change=partial(workspace.create_and_apply_change, mutator=mutator),
        publish_branch=partial(workspace.publish_branch, credentials),
        create_pull_request=pr_gateway.create,
        begin_cycle=cycle_scope.begin,
        end_cycle=cycle_scope.end,
        observe_change_set=observe_change_set,
        observe_step=observe_cycle_step,
    )
    config = ReleaseFlowConfig(
        target_repository=target_repository,
        base_branch=settings.base_branch,
    )
    return ReleasePipeline(
        config=config,
        dependencies=dependencies,
        watcher=TagWatcher(tag_gateway.list_tags),
        monitored_repository=monitored_repository,
        workspace=workspace,
    )
