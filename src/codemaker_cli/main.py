"""CLI entrypoint for codemaker."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import rich_click as click

from codemaker_cli import __version__
from codemaker_cli.controllers import (
    CodemakerCliController,
    ConfigureCommand,
    GenerateSourceCommand,
    GenerateUnitTestsCommand,
    MigrateSyntaxCommand,
    RefactorNamingCommand,
)
from codemaker_cli.errors import CodemakerError
from codemaker_cli.language import SUPPORTED_LANGUAGES

click.rich_click.USE_MARKDOWN = True
CONTROLLER = CodemakerCliController()

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_language_option = click.option(
    "--language",
    type=click.Choice(SUPPORTED_LANGUAGES, case_sensitive=False),
    default=None,
    help="Programming language. Resolved from each file extension when omitted.",
)
_files_argument = click.argument("files", nargs=-1, required=True)


class _ClickEchoHandler(logging.Handler):
    """Writes log records to stderr through click."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:  # noqa: BLE001
            self.handleError(record)


def _configure_logging(level: str) -> None:
    package_logger = logging.getLogger("codemaker_cli")
    package_logger.setLevel(level)
    if not any(isinstance(handler, _ClickEchoHandler) for handler in package_logger.handlers):
        handler = _ClickEchoHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)


@click.group()
@click.version_option(version=__version__, prog_name="codemaker")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="INFO",
    show_default=True,
    help="Logging verbosity.",
)
def codemaker(log_level: str) -> None:
    """CodeMaker CLI: generate, migrate and refactor source files."""

    _configure_logging(log_level.upper())


@codemaker.group(invoke_without_command=True)
@click.pass_context
def generate(ctx: click.Context) -> None:
    """Generate code, documentation or unit tests."""

    _require_subcommand(ctx)


@generate.command("code")
@_language_option
@click.option("--replace", is_flag=True, default=False, help="Replace existing code.")
@click.option("--codepath", default=None, help="The codepath to match.")
@_files_argument
def generate_code(
    language: str | None,
    replace: bool,
    codepath: str | None,
    files: tuple[str, ...],
) -> None:
    """Generate code in the given files or glob patterns."""

    _run(
        lambda: CONTROLLER.generate_code(
            GenerateSourceCommand(
                files=files,
                language=language,
                replace=replace,
                codepath=codepath,
            ),
        ),
        failure="Could not generate the code",
    )


@generate.command("docs")
@_language_option
@click.option("--replace", is_flag=True, default=False, help="Replace existing documentation.")
@click.option("--codepath", default=None, help="The codepath to match.")
@_files_argument
def generate_docs(
    language: str | None,
    replace: bool,
    codepath: str | None,
    files: tuple[str, ...],
) -> None:
    """Generate documentation in the given files or glob patterns."""

    _run(
        lambda: CONTROLLER.generate_docs(
            GenerateSourceCommand(
                files=files,
                language=language,
                replace=replace,
                codepath=codepath,
            ),
        ),
        failure="Could not generate the documentation",
    )


@generate.command("unit-tests")
@_language_option
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for generated test files. Created if absent.",
)
@_files_argument
def generate_unit_tests(
    language: str | None,
    output_dir: Path | None,
    files: tuple[str, ...],
) -> None:
    """Generate unit tests for the given files or glob patterns."""

    _run(
        lambda: CONTROLLER.generate_unit_tests(
            GenerateUnitTestsCommand(
                files=files,
                language=language,
                output_dir=output_dir,
            ),
        ),
        failure="Could not generate the tests",
    )


@codemaker.group(invoke_without_command=True)
@click.pass_context
def migrate(ctx: click.Context) -> None:
    """Migrate source files."""

    _require_subcommand(ctx)


@migrate.command("syntax")
@_language_option
@click.option("--language-version", default=None, help="Target language version.")
@_files_argument
def migrate_syntax(
    language: str | None,
    language_version: str | None,
    files: tuple[str, ...],
) -> None:
    """Migrate syntax of the given files. Failures are logged per file."""

    _run(
        lambda: CONTROLLER.migrate_syntax(
            MigrateSyntaxCommand(
                files=files,
                language=language,
                language_version=language_version,
            ),
        ),
        failure="Could not migrate the syntax",
    )


@codemaker.group(invoke_without_command=True)
@click.pass_context
def refactor(ctx: click.Context) -> None:
    """Refactor source files."""

    _require_subcommand(ctx)


@refactor.command("naming")
@_language_option
@_files_argument
def refactor_naming(language: str | None, files: tuple[str, ...]) -> None:
    """Rename local variables in the given files. Failures are logged per file."""

    _run(
        lambda: CONTROLLER.refactor_naming(
            RefactorNamingCommand(files=files, language=language),
        ),
        failure="Could not rename variables",
    )


@codemaker.command("configure")
@click.option("--api-key", prompt="Enter API Key", hide_input=True, help="CodeMaker API key.")
def configure(api_key: str) -> None:
    """Store the API key in the per-user configuration file."""

    _run(
        lambda: CONTROLLER.configure(ConfigureCommand(api_key=api_key)),
        failure="Could not save the configuration",
    )


@codemaker.command("version")
def version() -> None:
    """Print the client version."""

    _emit_lines(CONTROLLER.version())


def _require_subcommand(ctx: click.Context) -> None:
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(1)


def _run(action: Callable[[], list[str]], *, failure: str) -> None:
    try:
        lines = action()
    except (CodemakerError, OSError, UnicodeError) as error:
        raise click.ClickException(f"{failure}: {error}") from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    codemaker()
