"""Running one toolchain command and collecting its reports."""

from __future__ import annotations

import contextlib
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .aggregator import ResultAggregator
from .config import DenoReportConfig
from .constants import ARGS_SEPARATOR, SCRIPT_EXTENSIONS
from .exceptions import DenoRunError, NoTargetFilesError
from .extractor import extract_samples
from .filesystem import file_extension, temporary_directory
from .logging import get_logger
from .machine import ReportStateMachine
from .models import CodeSample, FileResult, Hooks, LocationOffset, ParserRule, Reporter, ReportKind
from .process import build_args, build_env, spawn
from .resolver import LocationResolver
from .rewriter import rewrite_samples
from .streams import merge_streams

logger = get_logger("runner")


@dataclass(frozen=True)
class RunOptions:
    """Static description of one toolchain command.

    Attributes:
        command: Toolchain subcommand, such as ``"check"``.
        extensions: Extensions accepted as inputs; None accepts every file.
        permit_no_files: Return empty results instead of failing when no
            input is left after filtering.
        extract: Whether code samples are extracted from the inputs.
        extract_skip: Extensions whose documents are not scanned for samples.
        extract_only: Extensions whose documents are only scanned for samples
            and never passed to the toolchain directly.
        languages: Extensions a sample's language must map to.
        args: Arguments passed on every invocation.
        conditional_args: Arguments passed only when a direct input is a script.
        script_args: Trailing arguments for the executed script.
        separator: Token placed before `script_args`; None omits it.
        rules: Output grammar of the command.
        reporter: Factory creating a fresh reporter for each run.
        offsets: Per-kind offsets for pseudo-references stamped by the toolchain.
        inherit_stdout: Pass standard output through to the caller instead of
            parsing it.
    """

    command: str
    extensions: frozenset[str] | None = None
    permit_no_files: bool = False
    extract: bool = False
    extract_skip: frozenset[str] = frozenset()
    extract_only: frozenset[str] = frozenset()
    languages: frozenset[str] = SCRIPT_EXTENSIONS
    args: tuple[str, ...] = ()
    conditional_args: tuple[str, ...] = ()
    script_args: tuple[str, ...] = ()
    separator: str | None = ARGS_SEPARATOR
    rules: tuple[ParserRule, ...] = ()
    reporter: Callable[[], Reporter] | None = None
    offsets: Mapping[ReportKind, LocationOffset] = field(default_factory=dict)
    inherit_stdout: bool = False


class Runner:
    """Run a toolchain command over files and the code samples inside them.

    A runner is single use. Used as a context manager, it owns the temporary
    directory holding extracted samples and removes it on exit; `run` enters
    the context itself when called outside of one.

    Args:
        options: Command description.
        cwd: Directory the toolchain runs in; relative inputs are resolved
            against it.
        config: Toolchain and concurrency settings.
        hooks: Callbacks fired while output is parsed.

    Examples:
        with Runner(options, cwd=Path.cwd()) as runner:
            results = runner.run(["mod.ts", "README.md"])
    """

    def __init__(
        self,
        options: RunOptions,
        cwd: Path | None = None,
        config: DenoReportConfig | None = None,
        hooks: Hooks | None = None,
    ):
        self.options = options
        self.cwd = (cwd or Path.cwd()).resolve()
        self.config = config or DenoReportConfig()
        self.hooks = hooks or Hooks()
        self.sample_dir: Path | None = None
        self.samples: dict[Path, CodeSample] = {}
        self._stack: contextlib.ExitStack | None = None

    def __enter__(self) -> Runner:
        self._stack = contextlib.ExitStack()
        if self.options.extract:
            self.sample_dir = self._stack.enter_context(temporary_directory())
        return self

    def __exit__(self, *exc_info) -> None:
        if self._stack is not None:
            self._stack.close()
            self._stack = None
        self.sample_dir = None

    def run(self, files: Sequence[str]) -> list[FileResult]:
        """Run the command and return one result per requested file.

        Args:
            files: Files to process, relative to `cwd` or absolute.

        Returns:
            list[FileResult]: Results in request order, followed by results for
            other files that reports resolved to.

        Raises:
            NoTargetFilesError: If no file is left after filtering and empty
                runs are not permitted.
            DenoRunError: If the toolchain printed output that no rule
                recognizes, or a fatal error.
            ExecutableNotFoundError: If the toolchain cannot be found.
            IOError: If a document cannot be read or rewritten.
        """
        if self._stack is None:
            with self:
                return self.run(files)

        options = self.options
        files = list(dict.fromkeys(files))
        aggregator_files = files
        if options.extensions is not None:
            files = [file for file in files if file_extension(file) in options.extensions]
        if not files and not options.permit_no_files:
            raise NoTargetFilesError()

        display_names = {(self.cwd / file).resolve(): file for file in files}
        if self.sample_dir is not None:
            documents = [
                path
                for path, file in display_names.items()
                if file_extension(file) not in options.extract_skip
            ]
            self.samples = extract_samples(
                documents,
                self.sample_dir,
                options.languages,
                self.config.extract_concurrency,
            )

        direct = [file for file in files if file_extension(file) not in options.extract_only]
        unrecognized: list[str] = []
        aggregator = ResultAggregator(
            aggregator_files,
            options.reporter() if options.reporter is not None else None,
            self.hooks,
            unrecognized,
        )
        if not direct and not self.samples:
            return aggregator.results

        args = build_args(
            options.command,
            args=options.args,
            conditional_args=options.conditional_args,
            files=direct,
            sample_dir=self.sample_dir if self.samples else None,
            script_args=options.script_args,
            separator=options.separator,
            has_scripts=any(file_extension(file) in SCRIPT_EXTENSIONS for file in direct),
        )
        resolver = LocationResolver(
            self.cwd,
            samples=self.samples,
            sample_dir=self.sample_dir,
            display_names=display_names,
            offsets=options.offsets,
        )

        def flush(data: dict[str, str], done: bool) -> None:
            resolver.resolve(data)
            if done:
                aggregator.add(data)
            else:
                aggregator.partial(data)

        machine = ReportStateMachine(options.rules, flush, unrecognized.append)
        process = spawn(
            self.config.executable,
            args,
            self.cwd,
            build_env(self.config.env_passthrough),
            inherit_stdout=options.inherit_stdout,
        )
        with process:
            for event in merge_streams(process.stdout, process.stderr, self.config.chunk_size):
                machine.feed(event)
            machine.close()
            code = process.wait()

        if unrecognized:
            raise DenoRunError(options.command, args, code, unrecognized, cwd=str(self.cwd))
        if code != 0:
            logger.debug("deno %s exited with code %d", options.command, code)

        rewrite_samples(self.samples.values(), self.config.rewrite_concurrency)
        return aggregator.results
