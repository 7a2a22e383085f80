"""Package-specific exception types."""

from __future__ import annotations

from collections.abc import Sequence

from .constants import NO_TARGET_FILES_MESSAGE


class DenoError(RuntimeError):
    """Base class for errors raised while running toolchain commands."""


class NoTargetFilesError(DenoError):
    """Raised when a command has no files left to operate on."""

    def __init__(self, message: str = NO_TARGET_FILES_MESSAGE):
        super().__init__(message)


class ExecutableNotFoundError(DenoError):
    """Raised when the toolchain executable cannot be located.

    Args:
        executable: Name or path that was looked up.
    """

    def __init__(self, executable: str):
        self.executable = executable
        super().__init__(f"Cannot find deno executable: {executable}")


class DenoRunError(DenoError):
    """Raised when a command produced output that could not be classified.

    The message includes the command, the exit code, and every unrecognized or
    fatal line, in the order they were collected.

    Args:
        command: Toolchain subcommand, such as ``"check"``.
        args: Full argument list passed to the executable.
        code: Process exit code.
        lines: Unrecognized output lines and fatal messages.
        cwd: Working directory the command ran in.
    """

    def __init__(
        self,
        command: str,
        args: Sequence[str],
        code: int | None,
        lines: Sequence[str],
        cwd: str | None = None,
    ):
        self.command = command
        self.args = list(args)
        self.code = code
        self.lines = list(lines)
        self.cwd = cwd
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        output = "\n".join(self.lines)
        return f"Error running deno command: {self.command} (exit code {self.code}):\n\n{output}"
