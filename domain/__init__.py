from domain.errors import (
    APIError,
    AuthError,
    CloneError,
    CommitError,
    ConfigError,
    FetchError,
    InvalidURL,
    NoChangesError,
    OpenError,
    PublishError,
    PushError,
    ReleaseBotError,
    TransientAPIError,
    UpdaterError,
    WorkspaceError,
)
from domain.models import (
    BotIdentity,
    ChangeSet,
    GitCredentials,
    PullRequestRecord,
    RepositoryReference,
    RewriteRule,
    TagState,
)
from domain.repository_url import clone_url, parse_repository_url

__all__ = [
    "APIError",
    "AuthError",
    "BotIdentity",
    "ChangeSet",
    "CloneError",
    "CommitError",
    "ConfigError",
    "FetchError",
    "GitCredentials",
    "InvalidURL",
    "NoChangesError",
    "OpenError",
    "PublishError",
    "PullRequestRecord",
    "PushError",
    "ReleaseBotError",
    "RepositoryReference",
    "RewriteRule",
    "TagState",
    "TransientAPIError",
    "UpdaterError",
    "WorkspaceError",
    "clone_url",
    "parse_repository_url",
]
