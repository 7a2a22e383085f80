"""Spawning the toolchain executable."""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

from .constants import ARGS_SEPARATOR
from .exceptions import ExecutableNotFoundError
from .logging import get_logger

logger = get_logger("process")


def build_args(
    command: str,
    *,
    args: Sequence[str] = (),
    conditional_args: Sequence[str] = (),
    files: Sequence[str] = (),
    sample_dir: Path | None = None,
    script_args: Sequence[str] = (),
    separator: str | None = ARGS_SEPARATOR,
    has_scripts: bool = False,
) -> list[str]:
    """Build the argument list of one toolchain invocation.

    Args:
        command: Toolchain subcommand.
        args: Arguments passed on every invocation.
        conditional_args: Arguments passed only when `has_scripts` is set.
        files: Files passed directly to the toolchain.
        sample_dir: Directory of extracted samples, passed when given.
        script_args: Trailing arguments for the executed script.
        separator: Token placed before `script_args`; None passes them as-is.
        has_scripts: Whether any direct input is a script file.

    Returns:
        list[str]: Arguments, without the executable itself.

    Examples:
        build_args("test", args=["--quiet"], files=["mod.ts"], script_args=["--update"])
        # ["test", "--quiet", "mod.ts", "--", "--update"]
    """
    result = [command, *args]
    if has_scripts:
        result.extend(conditional_args)
    result.extend(files)
    if sample_dir is not None:
        result.append(str(sample_dir))
    if script_args:
        if separator:
            result.append(separator)
        result.extend(script_args)
    return result


def build_env(names: Iterable[str], environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Select the whitelisted variables that are set in `environ`."""
    environ = os.environ if environ is None else environ
    return {name: environ[name] for name in names if name in environ}


def resolve_executable(executable: str) -> str:
    """Locate the toolchain executable on PATH or as a path.

    Raises:
        ExecutableNotFoundError: If no executable is found.
    """
    located = shutil.which(executable)
    if located is None:
        raise ExecutableNotFoundError(executable)
    return located


def spawn(
    executable: str,
    args: Sequence[str],
    cwd: Path,
    env: Mapping[str, str],
    inherit_stdout: bool = False,
) -> subprocess.Popen:
    """Start the toolchain with null stdin and piped stdout and stderr.

    With `inherit_stdout`, standard output goes to this process's standard
    output and the returned process has no `stdout` pipe.

    Raises:
        ExecutableNotFoundError: If the executable cannot be located.
        OSError: If the process cannot be started.
    """
    located = resolve_executable(executable)
    logger.debug("Running %s %s in %s", located, " ".join(args), cwd)
    return subprocess.Popen(
        [located, *args],
        cwd=cwd,
        env=dict(env),
        stdin=subprocess.DEVNULL,
        stdout=None if inherit_stdout else subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
