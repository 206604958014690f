import logging
import os
import subprocess
from pathlib import Path
from typing import Mapping, Sequence

from infrastructure.observability.logging_utils import log_event, safe_message


logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    def __init__(self, message: str, *, returncode: int, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


def _execute_command(
    command: Sequence[str],
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    merged_env = {**os.environ, **env} if env else None
    return subprocess.run(command, cwd=cwd, env=merged_env, capture_output=True, text=True)


def run(
    command: Sequence[str],
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> str:
    log_event(logger, logging.INFO, "repo.command.run", command=list(command), cwd=str(cwd) if cwd else None)
    try:
        result = _execute_command(command, cwd=cwd, env=env)
    except OSError as error:
        raise CommandError(
            safe_message(f"Command could not start: {' '.join(command)}: {error}"),
            returncode=-1,
        ) from error
    if result.returncode != 0:
        stdout = safe_message(result.stdout.strip()) if result.stdout else ""
        stderr = safe_message(result.stderr.strip()) if result.stderr else ""
        if stdout:
            log_event(logger, logging.ERROR, "repo.command.stdout", output=stdout)
        if stderr:
            log_event(logger, logging.ERROR, "repo.command.stderr", output=stderr)
        raise CommandError(
            safe_message(
                f"Command failed (exit_code={result.returncode}): {' '.join(command)}"
                + (f": {stderr}" if stderr else "")
            ),
            returncode=result.returncode,
            stderr=stderr,
        )
    return result.stdout


def run_capture(
    command: Sequence[str],
    cwd: Path | None = None,
) -> subprocess.CompletedProcess[str]:
    log_event(
        logger,
        logging.INFO,
        "repo.command.run_capture",
        command=list(command),
        cwd=str(cwd) if cwd else None,
    )
    return _execute_command(command, cwd=cwd)
