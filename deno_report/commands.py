"""Toolchain commands with structured results.

Example:
    from deno_report import deno

    for result in deno().check(["mod.ts", "README.md"]):
        for problem in result.problems:
            print(problem.message)
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from .config import DenoReportConfig
from .constants import MARKDOWN_EXTENSIONS, SCRIPT_EXTENSIONS, TYPESCRIPT_EXTENSIONS
from .models import FileResult, Hooks
from .reporters import TestReporter, diagnostic_reporter
from .rules import CHECK_RULES, COMPILE_RULES, DOC_RULES, FMT_RULES, LINT_RULES, TEST_OFFSETS, TEST_RULES
from .runner import Runner, RunOptions


class DenoCommands:
    """Run toolchain commands in a fixed working directory.

    Args:
        cwd: Working directory; resolved once, so later directory changes of
            the process do not affect it.
        config: Toolchain and concurrency settings.
        hooks: Callbacks fired while output is parsed.
    """

    def __init__(
        self,
        cwd: str | Path | None = None,
        config: DenoReportConfig | None = None,
        hooks: Hooks | None = None,
    ):
        self._cwd = Path(cwd or Path.cwd()).resolve()
        self.config = config or DenoReportConfig()
        self.hooks = hooks or Hooks()

    def path(self) -> Path:
        """Return the working directory commands run in."""
        return self._cwd

    def run(self, options: RunOptions, files: Sequence[str]) -> list[FileResult]:
        with Runner(options, cwd=self._cwd, config=self.config, hooks=self.hooks) as runner:
            return runner.run(files)

    def check(self, files: Sequence[str], permit_no_files: bool = False) -> list[FileResult]:
        """Type check files and the TypeScript samples in their documentation.

        Markdown files are only scanned for samples.

        Raises:
            NoTargetFilesError: If no TypeScript or Markdown file is given.
            DenoRunError: If the command fails without a recognized report.
        """
        options = RunOptions(
            command="check",
            extensions=TYPESCRIPT_EXTENSIONS | MARKDOWN_EXTENSIONS,
            permit_no_files=permit_no_files,
            extract=True,
            extract_only=MARKDOWN_EXTENSIONS,
            languages=TYPESCRIPT_EXTENSIONS,
            args=("--quiet",),
            rules=CHECK_RULES,
            reporter=diagnostic_reporter,
        )
        return self.run(options, files)

    def fmt(
        self, files: Sequence[str], check: bool = False, permit_no_files: bool = False
    ) -> list[FileResult]:
        """Format files and the samples in their documentation comments.

        With `check`, nothing is written and every unformatted file or sample
        is reported as a diff. Markdown files are formatted by the toolchain
        itself, samples included.
        """
        options = RunOptions(
            command="fmt",
            permit_no_files=permit_no_files,
            extract=True,
            extract_skip=MARKDOWN_EXTENSIONS,
            args=("--check",) if check else ("--quiet",),
            rules=FMT_RULES,
            reporter=diagnostic_reporter,
        )
        return self.run(options, files)

    def doc(
        self,
        files: Sequence[str],
        json: bool = False,
        lint: bool = False,
        permit_no_files: bool = False,
    ) -> list[FileResult]:
        """Generate documentation, or lint documentation comments with `lint`.

        Generated documentation, plain text or `json`, is written to standard
        output as the toolchain prints it; results only carry problems.
        """
        args = ["--quiet"]
        if json:
            args.append("--json")
        if lint:
            args.append("--lint")
        options = RunOptions(
            command="doc",
            extensions=SCRIPT_EXTENSIONS,
            permit_no_files=permit_no_files,
            args=tuple(args),
            rules=LINT_RULES if lint else DOC_RULES,
            reporter=diagnostic_reporter,
            inherit_stdout=not lint,
        )
        return self.run(options, files)

    def lint(
        self, files: Sequence[str], fix: bool = False, permit_no_files: bool = False
    ) -> list[FileResult]:
        """Lint files and the samples in their documentation.

        With `fix`, fixable problems are fixed, in samples too.
        """
        options = RunOptions(
            command="lint",
            extensions=SCRIPT_EXTENSIONS | MARKDOWN_EXTENSIONS,
            permit_no_files=permit_no_files,
            extract=True,
            extract_only=MARKDOWN_EXTENSIONS,
            args=("--quiet", "--fix") if fix else ("--quiet",),
            rules=LINT_RULES,
            reporter=diagnostic_reporter,
        )
        return self.run(options, files)

    def test(
        self,
        files: Sequence[str],
        update: bool = False,
        filter: str | None = None,
        permit_no_files: bool = False,
    ) -> list[FileResult]:
        """Run tests, including the samples in documentation.

        Permissions come from the toolchain configuration file; in `update`
        mode every permission is granted and ``--update`` is passed to the
        tests so snapshots and mocks are rewritten.
        """
        args = [
            "--quiet",
            "--permit-no-files",
            "--no-check",
            "--doc",
            "--allow-all" if update else "--permission-set",
        ]
        if filter:
            args.extend(["--filter", filter])
        options = RunOptions(
            command="test",
            extensions=SCRIPT_EXTENSIONS | MARKDOWN_EXTENSIONS,
            permit_no_files=permit_no_files,
            args=tuple(args),
            conditional_args=("--coverage",),
            script_args=("--update",) if update else (),
            rules=TEST_RULES,
            reporter=TestReporter,
            offsets=TEST_OFFSETS,
        )
        return self.run(options, files)

    def compile(
        self,
        script: str,
        args: Sequence[str] = (),
        target: str | None = None,
        include: Sequence[str] = (),
        output: str | None = None,
    ) -> list[FileResult]:
        """Compile a script into a self contained executable.

        Args:
            script: Script to compile.
            args: Arguments baked into the executable.
            target: Target triple for cross compilation.
            include: Additional modules, files, or directories to embed.
            output: Output file.
        """
        command_args = ["--quiet", "--permission-set"]
        if target:
            command_args.extend(["--target", target])
        for item in include:
            command_args.extend(["--include", item])
        if output:
            command_args.extend(["--output", output])
        options = RunOptions(
            command="compile",
            extensions=SCRIPT_EXTENSIONS,
            args=tuple(command_args),
            script_args=tuple(args),
            separator=None,
            rules=COMPILE_RULES,
            reporter=diagnostic_reporter,
        )
        return self.run(options, [script])


def deno(
    cwd: str | Path | None = None,
    *,
    config: DenoReportConfig | None = None,
    hooks: Hooks | None = None,
) -> DenoCommands:
    """Create a `DenoCommands` bound to `cwd` (the current directory by default)."""
    return DenoCommands(cwd, config=config, hooks=hooks)
