"""
deno-report: structured results from the deno toolchain.

Runs ``deno check``, ``fmt``, ``lint``, ``doc``, ``test`` and ``compile``,
parses their output into typed reports, and applies the same commands to
code samples embedded in documentation comments and Markdown files.

CLI usage:
    deno-report check src README.md
    deno-report fmt --check .

Library usage:
    from deno_report import deno

    for result in deno().lint(["mod.ts", "README.md"]):
        for problem in result.problems:
            print(problem.file, problem.line, problem.message)
"""

from .commands import DenoCommands, deno
from .config import ConfigError, DenoReportConfig, build_config
from .exceptions import DenoError, DenoRunError, ExecutableNotFoundError, NoTargetFilesError
from .models import (
    CheckReport,
    CodeSample,
    DebugReport,
    DiffReport,
    ErrorReport,
    FailureReport,
    FileResult,
    Hooks,
    LintReport,
    OutputReport,
    TestReport,
)
from .runner import Runner, RunOptions

__version__ = "0.1.0"

__all__ = [
    # Commands
    "deno",
    "DenoCommands",
    "Runner",
    "RunOptions",
    # Configuration
    "build_config",
    "ConfigError",
    "DenoReportConfig",
    # Errors
    "DenoError",
    "DenoRunError",
    "ExecutableNotFoundError",
    "NoTargetFilesError",
    # Results
    "CheckReport",
    "CodeSample",
    "DebugReport",
    "DiffReport",
    "ErrorReport",
    "FailureReport",
    "FileResult",
    "Hooks",
    "LintReport",
    "OutputReport",
    "TestReport",
]
