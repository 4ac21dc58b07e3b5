"""CLI entry point for marco."""
from __future__ import annotations

import logging
import sys
from typing import Optional

import click

from marco import __version__
from marco.config import THREADS_ENV, build_config
from marco.core.errors import ConfigError
from marco.runner import EXIT_CONFIG, run
from marco.spec.discovery import DEFAULT_PATTERN

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

EXIT_INTERRUPTED = 130

EPILOG = """\b
Exit codes:
  0  every test passed
  1  a test failed or errored, or a test file could not be loaded
  2  invalid command line or configuration
  3  no test files or no tests were found
"""

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ConfigurationError(click.ClickException):
    """Run-wide configuration problem detected before any test runs."""

    exit_code = EXIT_CONFIG


def _print_version(ctx: click.Context, __: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"marco {__version__}")
    ctx.exit()


def _configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("marco")
    # rebind to the current stderr on every invocation
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@click.command(context_settings=CONTEXT_SETTINGS, epilog=EPILOG)
@click.option(
    "-i",
    "--input",
    "input_pattern",
    default=DEFAULT_PATTERN,
    show_default=True,
    help="Glob or direct file for test collection.",
)
@click.option(
    "-r",
    "--runner",
    type=str,
    help=(
        "Command to run the tests with (overridden by 'runner' in a file header or test options). "
        "Input is sent on stdin; use {input} or {input_file} to pass it as an argument."
    ),
)
@click.option(
    "--threads",
    type=int,
    metavar="N",
    help=f"Maximum number of tests to run in parallel [env: {THREADS_ENV}; default: CPU count].",
)
@click.option("-v", "--verbose", is_flag=True, help="Stream per-test start/finish lines and debug logging.")
@click.option("-t", "--timeout", type=float, metavar="SECONDS", help="Default per-test timeout (default: 30).")
@click.option("--max-output", type=int, metavar="BYTES", help="Per-stream capture limit (default: 1 MiB).")
@click.option(
    "--report",
    "report_format",
    type=click.Choice(["terminal", "json"]),
    default="terminal",
    show_default=True,
    help="Report format.",
)
@click.option("--report-path", type=str, help="When --report json, write to this path instead of stdout.")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors in terminal output.")
@click.option(
    "--version",
    is_flag=True,
    callback=_print_version,
    expose_value=False,
    is_eager=True,
    help="Show the marco version and exit.",
)
def cli(
    input_pattern: str,
    runner: Optional[str],
    threads: Optional[int],
    verbose: bool,
    timeout: Optional[float],
    max_output: Optional[int],
    report_format: str,
    report_path: Optional[str],
    no_color: bool,
) -> None:
    """Run the tests embedded in Markdown (.marco.md) files."""

    _configure_logging(verbose)
    try:
        config = build_config(
            input_pattern=input_pattern,
            runner=runner,
            threads=threads,
            timeout=timeout,
            max_output=max_output,
            verbose=verbose,
            use_color=not no_color,
        )
    except ConfigError as exc:
        raise ConfigurationError(str(exc)) from exc
    try:
        exit_code = run(config, report_format=report_format, report_path=report_path)
    except KeyboardInterrupt:
        click.echo("Interrupted; running tests were terminated.", err=True)
        raise click.exceptions.Exit(EXIT_INTERRUPTED)
    raise click.exceptions.Exit(exit_code)


def main(argv: Optional[list[str]] = None) -> int:
    """Program entry point for console_scripts shim."""

    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=argv, prog_name="marco", standalone_mode=True)
    except click.ClickException as err:  # pragma: no cover - click handles display
        err.show()
        return err.exit_code
    except SystemExit as exc:  # click may raise exit code
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
