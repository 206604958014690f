import re
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class RepositoryReference:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class TagState:
    name: str
    commit_sha: str


@dataclass(frozen=True)
class RewriteRule:
    line_regex: re.Pattern[str]
    replacement_format: str
    file_pattern: re.Pattern[str]


@dataclass(frozen=True)
class ChangeSet:
    branch_name: str
    modified_files: tuple[Path, ...]
    commit_sha: str
    tag_ref: str


@dataclass(frozen=True)
class PullRequestRecord:
    number: int
    url: str


@dataclass(frozen=True)
class GitCredentials:
    username: str
    token: str = field(repr=False)


@dataclass(frozen=True)
class BotIdentity:
    name: str
    email: str
