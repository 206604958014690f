class ReleaseBotError(RuntimeError):
    """Base class for every failure raised by the release bot."""


class ConfigError(ReleaseBotError):
    """Raised at startup for invalid configuration; no cycle runs after it."""


class InvalidURL(ConfigError):
    """Raised when a repository URL cannot be resolved to owner/name."""


class TransientAPIError(ReleaseBotError):
    """Raised when the tag listing request fails; the next poll may succeed."""


class WorkspaceError(ReleaseBotError):
    """Raised when a git operation on the local workspace fails."""


class CloneError(WorkspaceError):
    pass


class OpenError(WorkspaceError):
    pass


class FetchError(WorkspaceError):
    pass


class CommitError(WorkspaceError):
    pass


class PushError(WorkspaceError):
    pass


class UpdaterError(WorkspaceError):
    """Raised when the external updater process exits with a failure."""


class NoChangesError(ReleaseBotError):
    """Raised when a cycle's mutation leaves every tracked file untouched."""


class PublishError(ReleaseBotError):
    """Raised when the pull request cannot be opened."""


class AuthError(PublishError):
    pass


class APIError(PublishError):
    pass
