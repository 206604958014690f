import os
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from domain.errors import ConfigError


# Environment variable -> settings field.
ENV_FIELDS = {
    "MONITOR_REPO_URL": "monitor_repo_url",
    "TARGET_REPO_URL": "target_repo_url",
    "POLL_INTERVAL_SECONDS": "poll_interval_seconds",
    "RUN_ONCE": "run_once",
    "RELEASE_TAG": "release_tag",
    "BOT_USERNAME": "bot_username",
    "GITHUB_TOKEN": "github_token",
    "REWRITE_REGEX": "rewrite_regex",
    "REWRITE_FORMAT": "rewrite_format",
    "REWRITE_FILE_PATTERN": "rewrite_file_pattern",
    "WORKSPACE_DIR": "workspace_dir",
    "BASE_BRANCH": "base_branch",
    "GIT_AUTHOR_NAME": "git_author_name",
    "GIT_AUTHOR_EMAIL": "git_author_email",
    "MUTATION_STRATEGY": "mutation_strategy",
    "UPDATER_COMMAND": "updater_command",
}


class ReleaseBotSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    monitor_repo_url: str = Field(..., min_length=1)
    target_repo_url: str = Field(..., min_length=1)
    poll_interval_seconds: int = Field(default=60, gt=0)
    run_once: bool = False
    release_tag: str | None = None
    bot_username: str = Field(default="release-bot", min_length=1)
    github_token: str = Field(default="", repr=False)
    rewrite_regex: str = Field(default=".*[0-9]*.[0-9]*.[0-9]*.*", min_length=1)
    rewrite_format: str = "%s\n"
    rewrite_file_pattern: str = Field(default=".*Dockerfile.*", min_length=1)
    workspace_dir: Path = Path("/tmp/release-bot")
    base_branch: str = Field(default="master", min_length=1)
    git_author_name: str = Field(default="Release Bot", min_length=1)
    git_author_email: str = Field(default="release-bot@example.com", min_length=1)
    mutation_strategy: str = "rewrite"
    updater_command: str = "./release-updater"


def _describe_validation_error(error: ValidationError) -> str:
    field_to_env = {field: env for env, field in ENV_FIELDS.items()}
    problems = []
    for detail in error.errors():
        field_name = str(detail["loc"][0]) if detail.get("loc") else "?"
        problems.append(f"{field_to_env.get(field_name, field_name)}: {detail['msg']}")
    return "; ".join(problems)


def load_settings(
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ReleaseBotSettings:
    source = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for env_name, field_name in ENV_FIELDS.items():
        raw_value = source.get(env_name)
        if raw_value is not None and raw_value != "":
            values[field_name] = raw_value
    for field_name, value in (overrides or {}).items():
        if value is not None:
            values[field_name] = value

    try:
        return ReleaseBotSettings(**values)
    except ValidationError as error:
        raise ConfigError(f"Invalid configuration: {_describe_validation_error(error)}") from error
