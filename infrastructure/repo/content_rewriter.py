import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from application.ports import ContentMutator
from domain.errors import WorkspaceError
from domain.models import RewriteRule
from domain.rewrite_rule import matches_file_name, rewrite_lines
from infrastructure.observability.logging_utils import log_event


logger = logging.getLogger(__name__)

# Name of git's metadata directory; never entered at any depth.
VCS_METADATA_DIR = ".git"
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def _walk_files(directory: Path) -> Iterator[Path]:
    with os.scandir(directory) as scanned:
        entries = sorted(scanned, key=lambda entry: entry.name)
    for entry in entries:
        if entry.name == VCS_METADATA_DIR:
            continue
        if entry.is_dir(follow_symlinks=False):
            yield from _walk_files(Path(entry.path))
        elif entry.is_file(follow_symlinks=False):
            yield Path(entry.path)


def _read_lines(file_path: Path) -> list[str]:
    with file_path.open("r", encoding=_ENCODING, errors=_ERRORS, newline="") as handle:
        return handle.readlines()


def _write_lines(file_path: Path, lines: list[str]) -> None:
    with file_path.open("w", encoding=_ENCODING, errors=_ERRORS, newline="") as handle:
        handle.writelines(lines)


def rewrite_file(file_path: Path, rule: RewriteRule, new_value: str) -> bool:
    lines = _read_lines(file_path)
    rewritten_lines, changed = rewrite_lines(rule, lines, new_value)
    if changed:
        _write_lines(file_path, rewritten_lines)
    return changed


def rewrite_tree(root: Path, rule: RewriteRule, new_value: str) -> list[Path]:
    modified_files: list[Path] = []
    try:
        for file_path in _walk_files(root):
            if not matches_file_name(rule, file_path.name):
                continue
            log_event(logger, logging.INFO, "rewrite.file.matched", path=str(file_path.relative_to(root)))
            if rewrite_file(file_path, rule, new_value):
                modified_files.append(file_path)
    except OSError as error:
        raise WorkspaceError(f"Failed to rewrite files under {root}: {error}") from error
    log_event(logger, logging.INFO, "rewrite.tree.done", root=str(root), modified_count=len(modified_files))
    return modified_files


@dataclass(frozen=True)
class PatternRewriter(ContentMutator):
    rule: RewriteRule
    name: str = "rewrite"

    def mutate(self, root: Path, tag: str) -> list[Path]:
        return rewrite_tree(root, self.rule, tag)
