"""
Runs deno commands over files and their code samples and prints the problems found.
Exits with status 1 when any problem is reported.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import click

from .commands import DenoCommands, deno
from .config import ConfigError, build_config
from .constants import MARKDOWN_EXTENSIONS, SCRIPT_EXTENSIONS
from .exceptions import DenoError
from .filesystem import find_files
from .logging import configure_logging
from .models import FileResult, Hooks, TestReport

__all__ = ["cli"]

SUPPORTED_EXTENSIONS = SCRIPT_EXTENSIONS | MARKDOWN_EXTENSIONS


def _print_test(report: TestReport) -> None:
    label = "PASS" if report.success else "FAIL"
    name = " > ".join(report.test)
    timing = f" ({report.time})" if report.time else ""
    click.echo(f"{label} {report.file}: {name}{timing}", err=not report.success)


@click.group()
@click.version_option()
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory to run deno in.",
)
@click.option("--executable", help="Path to the deno executable.")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output.")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), help="Write logs to a file.")
@click.pass_context
def cli(
    ctx: click.Context,
    cwd: Path | None = None,
    executable: str | None = None,
    verbose: bool = False,
    log_file: Path | None = None,
):
    """
    Run deno commands and report problems, including those in code samples
    embedded in documentation comments and Markdown files.

    Raises:
        click.BadParameter: If the configuration is invalid.

    Examples:
        deno-report check src README.md
        deno-report --cwd project test --filter parser
    """
    configure_logging(verbose=verbose, log_file=log_file)
    base_dir = (cwd or Path.cwd()).resolve()
    try:
        config = build_config(base_dir, executable=executable)
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    hooks = Hooks(on_problem=lambda problem: click.echo(f"{problem.message}\n", err=True))
    ctx.obj = deno(base_dir, config=config, hooks=hooks)


def _collect_files(commands: DenoCommands, paths: tuple[str, ...]) -> list[str]:
    # Found files are passed relative to the working directory when they are inside it.
    base = commands.path()
    files = []
    for file in find_files(paths or (str(base),), SUPPORTED_EXTENSIONS):
        resolved = Path(file).resolve()
        files.append(str(resolved.relative_to(base)) if resolved.is_relative_to(base) else str(resolved))
    return files


def _run(
    commands: DenoCommands,
    paths: tuple[str, ...],
    action: Callable[[list[str]], list[FileResult]],
) -> None:
    files = _collect_files(commands, paths)
    try:
        results = action(files)
    except (DenoError, OSError) as error:
        raise click.ClickException(str(error)) from error

    problems = sum(len(result.problems) for result in results)
    if problems:
        click.echo(f"Found {problems} problem{'s' if problems != 1 else ''}", err=True)
        raise SystemExit(1)


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.pass_obj
def check(commands: DenoCommands, paths: tuple[str, ...]):
    """Type check files and their TypeScript code samples."""
    _run(
        commands,
        paths,
        lambda files: commands.check(files, permit_no_files=True),
    )


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.option("--check", "check_only", is_flag=True, help="Only report unformatted files.")
@click.pass_obj
def fmt(commands: DenoCommands, paths: tuple[str, ...], check_only: bool):
    """Format files and their code samples."""
    _run(
        commands,
        paths,
        lambda files: commands.fmt(files, check=check_only, permit_no_files=True),
    )


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.option("--fix", is_flag=True, help="Fix problems where possible.")
@click.pass_obj
def lint(commands: DenoCommands, paths: tuple[str, ...], fix: bool):
    """Lint files and their code samples."""
    _run(
        commands,
        paths,
        lambda files: commands.lint(files, fix=fix, permit_no_files=True),
    )


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.option("--lint", is_flag=True, help="Lint documentation comments instead.")
@click.option("--json", "as_json", is_flag=True, help="Print documentation as JSON.")
@click.pass_obj
def doc(commands: DenoCommands, paths: tuple[str, ...], lint: bool, as_json: bool):
    """Print documentation for files, or lint their documentation comments."""
    _run(
        commands,
        paths,
        lambda files: commands.doc(files, json=as_json, lint=lint, permit_no_files=True),
    )


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.option("--update", is_flag=True, help="Update snapshots and mocks.")
@click.option("--filter", "name_filter", help="Run only tests with matching names.")
@click.pass_obj
def test(commands: DenoCommands, paths: tuple[str, ...], update: bool, name_filter: str | None):
    """Run tests, including code samples in documentation."""
    commands.hooks.on_info = lambda info: _print_test(info) if isinstance(info, TestReport) else None
    _run(
        commands,
        paths,
        lambda files: commands.test(
            files, update=update, filter=name_filter, permit_no_files=True
        ),
    )


if __name__ == "__main__":
    cli()
