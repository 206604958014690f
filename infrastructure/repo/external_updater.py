import logging
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path

from application.ports import ContentMutator
from domain.errors import ConfigError, UpdaterError, WorkspaceError
from infrastructure.observability.logging_utils import log_event
from infrastructure.repo.operations import CommandError, run


logger = logging.getLogger(__name__)

UPDATER_TAG_ENV = "RELEASE_TAG"


def parse_status_paths(output: str) -> list[str]:
    """Paths from ``git status --porcelain -z``; rename sources are skipped."""
    entries = output.split("\0")
    paths: set[str] = set()
    index = 0
    while index < len(entries):
        entry = entries[index]
        index += 1
        if len(entry) < 4:
            continue
        status, path = entry[:2], entry[3:]
        paths.add(path)
        if "R" in status or "C" in status:
            index += 1
    return sorted(paths)


def list_changed_files(root: Path) -> list[Path]:
    try:
        output = run(
            ["git", "status", "--porcelain", "-z", "--untracked-files=all"],
            cwd=root,
        )
    except CommandError as error:
        raise WorkspaceError(str(error)) from error
    return [root / relative_path for relative_path in parse_status_paths(output)]


@dataclass(frozen=True)
class ExternalUpdater(ContentMutator):
    """Runs an executable with the workspace as working directory and lets it edit the tree.

    The new tag is passed through the ``RELEASE_TAG`` environment variable and
    the modified files are read back from git afterwards.
    """

    command: tuple[str, ...] = field(default_factory=lambda: ("./release-updater",))
    name: str = "updater"

    @classmethod
    def from_command_line(cls, command_line: str, base_dir: Path | None = None) -> "ExternalUpdater":
        """Splits ``command_line`` and pins a relative executable path to ``base_dir``.

        The clone is cleaned at every sync, so ``./release-updater`` is looked
        up in the launch directory (``Path.cwd()`` by default) rather than in
        the workspace. Bare names are left for ``PATH`` lookup.
        """
        arguments = shlex.split(command_line)
        if not arguments:
            raise ConfigError("UPDATER_COMMAND must not be empty when MUTATION_STRATEGY=updater")
        executable = arguments[0]
        if os.sep in executable and not os.path.isabs(executable):
            executable = str(((base_dir or Path.cwd()) / executable).resolve())
        return cls(command=(executable, *arguments[1:]))

    def mutate(self, root: Path, tag: str) -> list[Path]:
        log_event(logger, logging.INFO, "updater.run.start", command=list(self.command), tag=tag)
        try:
            run(list(self.command), cwd=root, env={UPDATER_TAG_ENV: tag})
        except CommandError as error:
            raise UpdaterError(str(error)) from error
        modified_files = list_changed_files(root)
        log_event(logger, logging.INFO, "updater.run.done", modified_count=len(modified_files))
        return modified_files
