import argparse
import logging
import sys

from dotenv import load_dotenv

from application.release_flow import run_once, run_poll_loop
from domain.errors import ConfigError, WorkspaceError
from infrastructure.observability.logging_utils import configure_logging, log_event
from infrastructure.runtime.pipeline_factory import build_pipeline
from infrastructure.runtime.settings import load_settings


logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="release-bot",
        description="Watch a GitHub repository for new tags and open version-bump pull requests.",
    )
    parser.add_argument("--monitor-url", dest="monitor_repo_url", help="URL of the monitored repository")
    parser.add_argument("--target-url", dest="target_repo_url", help="URL of the repository to update")
    parser.add_argument("--interval", dest="poll_interval_seconds", type=int, help="Poll interval in seconds")
    parser.add_argument(
        "--once",
        dest="run_once",
        action="store_true",
        default=None,
        help="Run a single cycle and exit",
    )
    parser.add_argument("--tag", dest="release_tag", help="Tag to apply in --once mode instead of the latest tag")
    parser.add_argument("--regex", dest="rewrite_regex", help="Line pattern to replace")
    parser.add_argument("--format", dest="rewrite_format", help="Format of the replacement (one %%s)")
    parser.add_argument("--file-pattern", dest="rewrite_file_pattern", help="Pattern of file names to rewrite")
    parser.add_argument("--workspace", dest="workspace_dir", help="Directory holding the local clone")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    configure_logging()
    args = build_parser().parse_args(sys.argv[1:] if argv is None else argv)

    log_event(logger, logging.INFO, "cli.start")
    try:
        settings = load_settings(overrides=vars(args))
        pipeline = build_pipeline(settings)
    except (ConfigError, WorkspaceError) as error:
        log_event(logger, logging.ERROR, "cli.startup_failed", error=str(error))
        return EXIT_FAILURE

    if settings.run_once:
        result = run_once(
            pipeline.config,
            pipeline.dependencies,
            watcher=pipeline.watcher,
            monitored_repository=pipeline.monitored_repository,
            tag=settings.release_tag,
        )
        log_event(
            logger,
            logging.INFO if result.succeeded else logging.ERROR,
            "cli.run_once.end",
            status=result.status,
            message=result.message,
            pr_url=result.pr_url,
            error=result.error,
        )
        return EXIT_SUCCESS if result.succeeded else EXIT_FAILURE

    log_event(logger, logging.INFO, "cli.poll_loop.start", interval_seconds=settings.poll_interval_seconds)
    run_poll_loop(
        pipeline.config,
        pipeline.dependencies,
        watcher=pipeline.watcher,
        monitored_repository=pipeline.monitored_repository,
        interval_seconds=settings.poll_interval_seconds,
    )
    return EXIT_SUCCESS


if __name__ == "__main__":
    raise SystemExit(main())
