"""CLI main entry point."""

import sys
from pathlib import Path

import click
import structlog

from . import __version__, console
from .config import load_config
from .errors import SetupAborted, SetupCancelled
from .logging_config import configure_logging, verbosity_to_level
from .prompter import QuestionaryPrompter
from .reporting import render_summary
from .wizard import run_setup

EXIT_ABORTED = 1
EXIT_CANCELLED = 130

logger = structlog.get_logger(__name__)


@click.command()
@click.option(
    "--project-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Project directory to set up",
)
@click.option(
    "--template",
    type=click.Path(dir_okay=False, path_type=Path),
    help="MCP template file (default: .mcp.template.json, then the bundled template)",
)
@click.option("-c", "--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), help="Config file path")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), help="Write JSON logs to a file")
@click.version_option(__version__, prog_name="envwizard")
def cli(
    project_dir: Path,
    template: Path | None,
    config_path: Path | None,
    verbose: int,
    log_file: Path | None,
) -> None:
    """Interactive development environment setup.

    Checks prerequisites, walks through GitHub and Supabase setup, collects
    credentials, and writes .mcp.json and .env for the project.
    """
    configure_logging(verbosity_to_level(verbose), log_file=log_file)
    project_dir = project_dir.resolve()

    config = load_config(
        project_dir,
        config_path=config_path,
        overrides={"template_path": str(template) if template else None},
    )

    try:
        results = run_setup(project_dir, config, QuestionaryPrompter())
    except SetupAborted as e:
        logger.warning("setup_aborted", reason=e.reason)
        console.log(f"Setup failed: {e.message}", "error")
        sys.exit(EXIT_ABORTED)
    except (SetupCancelled, KeyboardInterrupt):
        logger.info("setup_cancelled")
        click.echo()
        console.log("Setup cancelled by user", "warning")
        sys.exit(EXIT_CANCELLED)

    render_summary(results)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
