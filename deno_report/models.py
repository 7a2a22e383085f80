"""Data models for deno-report."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any, ClassVar, Union


class StreamSource(Enum):
    """Output stream a line was read from."""

    STDOUT = "stdout"
    STDERR = "stderr"


class ReportKind(str, Enum):
    """Kinds of reports recognized in toolchain output."""

    ERROR = "error"
    CHECK = "check"
    LINT = "lint"
    DIFF = "diff"
    FAILURE = "failure"
    TEST = "test"
    OUTPUT = "output"
    DEBUG = "debug"
    FATAL = "fatal"


class Category(Enum):
    """How a finished report is handled by the result aggregator.

    Attributes:
        FATAL: Fails the run even though the line was recognized.
        PROBLEM: Stored as a problem of the file it resolves to.
        INFO: Stored as an informational entry of the file it resolves to.
        DEBUG: Passed to the debug hook and dropped.
    """

    FATAL = auto()
    PROBLEM = auto()
    INFO = auto()
    DEBUG = auto()


CATEGORIES: Mapping[ReportKind, Category] = {
    ReportKind.ERROR: Category.PROBLEM,
    ReportKind.CHECK: Category.PROBLEM,
    ReportKind.LINT: Category.PROBLEM,
    ReportKind.DIFF: Category.PROBLEM,
    ReportKind.FAILURE: Category.PROBLEM,
    ReportKind.TEST: Category.INFO,
    ReportKind.OUTPUT: Category.INFO,
    ReportKind.DEBUG: Category.DEBUG,
    ReportKind.FATAL: Category.FATAL,
}


class ScanState(Enum):
    """Extractor states used while scanning a document line by line.

    Attributes:
        NORMAL: Outside of any fenced sample.
        IN_SAMPLE: Between an opening fence and its closing fence.
    """

    NORMAL = auto()
    IN_SAMPLE = auto()


@dataclass
class ScanContext:
    """Encapsulate extractor state while walking a document.

    Attributes:
        state: Current extractor state.
        start_index: Zero-based index of the opening fence line.
        indent: Full prefix before the opening fence, repeated on the closing fence.
        begin: Prefix every content line must start with.
        language: Language tag of the opening fence, if any.
        lines: Content lines collected so far, still indented.
    """

    state: ScanState = ScanState.NORMAL
    start_index: int = 0
    indent: str = ""
    begin: str = ""
    language: str | None = None
    lines: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CodeSample:
    """A fenced code block found inside a document.

    Attributes:
        file: Absolute path of the document containing the block.
        start_line: One-based line number of the opening fence.
        line_count: Number of content lines between the fences.
        column: One-based column where content starts (indent length + 1).
        indent: Prefix stripped from every content line.
        language: Language tag of the opening fence, or None when untagged.
        content: Dedented content, each line terminated by a newline.
        path: Sample file holding the content, once materialized.
    """

    file: Path
    start_line: int
    line_count: int
    column: int
    indent: str
    language: str | None
    content: str
    path: Path | None = None

    @property
    def end_line(self) -> int:
        """One-based line number of the closing fence."""
        return self.start_line + self.line_count + 1

    @property
    def reference(self) -> str:
        """Pseudo-reference tagging locations inside this sample."""
        return f"{self.file}${self.start_line}-{self.end_line}"


@dataclass(frozen=True)
class LineEvent:
    """A line (or a still-growing fragment of one) read from the toolchain.

    Attributes:
        source: Stream the text came from.
        text: Line text without its terminating newline.
        final: False while the line is still a fragment.
    """

    source: StreamSource
    text: str
    final: bool = True


@dataclass(frozen=True)
class ParserRule:
    """One row of a command's declarative output grammar.

    Attributes:
        patterns: Regular expressions tried in order against the line.
        states: Parser states the rule applies in; empty means any state.
        report: Kind of report the rule starts, if any.
        next: State entered after a final line matches.
        aggregate: Captured fields concatenated across lines instead of replaced.
        ignore: Discard matching lines without touching the pending report.
    """

    patterns: tuple[re.Pattern[str], ...]
    states: frozenset[str] = frozenset()
    report: ReportKind | None = None
    next: str | None = None
    aggregate: tuple[str, ...] = ()
    ignore: bool = False

    def applies(self, state: str) -> bool:
        return not self.states or state in self.states

    def match(self, text: str) -> re.Match[str] | None:
        for pattern in self.patterns:
            match = pattern.search(text)
            if match:
                return match
        return None


@dataclass
class PendingReport:
    """Working value of the report state machine.

    Attributes:
        state: Current named parser state.
        data: Fields and message accumulated for the in-flight report.
        done: Whether the line that started the report was final.
    """

    state: str
    data: dict[str, str] | None = None
    done: bool = False


@dataclass(frozen=True)
class LocationOffset:
    """Adjustment applied to toolchain-stamped pseudo-references.

    Attributes:
        line: Added to the line of a report or embedded reference.
        column: Added to the column of a report.
        embedded_column: Added to columns of references inside messages.
    """

    line: int = 0
    column: int = 0
    embedded_column: int = 0


@dataclass(frozen=True)
class Report:
    """A finished report with its user facing message."""

    kind: ClassVar[ReportKind]
    message: str


@dataclass(frozen=True)
class ErrorReport(Report):
    kind: ClassVar[ReportKind] = ReportKind.ERROR
    file: str
    line: int | None = None
    column: int | None = None


@dataclass(frozen=True)
class CheckReport(Report):
    kind: ClassVar[ReportKind] = ReportKind.CHECK
    file: str
    line: int
    column: int
    rule: str
    reason: str


@dataclass(frozen=True)
class LintReport(Report):
    kind: ClassVar[ReportKind] = ReportKind.LINT
    file: str
    line: int
    column: int
    rule: str
    reason: str


@dataclass(frozen=True)
class DiffReport(Report):
    kind: ClassVar[ReportKind] = ReportKind.DIFF
    file: str


@dataclass(frozen=True)
class FailureReport(Report):
    kind: ClassVar[ReportKind] = ReportKind.FAILURE
    file: str
    line: int
    column: int
    test: tuple[str, ...]


@dataclass(frozen=True)
class TestReport(Report):
    """Outcome of a single test or test step.

    Attributes:
        file: File the test belongs to.
        test: Test name followed by the names of nested steps.
        success: True for passing and ignored tests.
        status: Status string printed by the toolchain.
        line: Line of a documentation test inside its document.
        time: Elapsed time as printed by the toolchain.
    """

    __test__ = False

    kind: ClassVar[ReportKind] = ReportKind.TEST
    file: str
    test: tuple[str, ...]
    success: bool
    status: str
    line: int | None = None
    time: str | None = None


@dataclass(frozen=True)
class OutputReport(Report):
    kind: ClassVar[ReportKind] = ReportKind.OUTPUT
    file: str
    test: tuple[str, ...]
    output: str


@dataclass(frozen=True)
class DebugReport(Report):
    kind: ClassVar[ReportKind] = ReportKind.DEBUG
    fields: Mapping[str, str] = field(default_factory=dict)


Problem = Union[ErrorReport, CheckReport, LintReport, DiffReport, FailureReport]
Info = Union[TestReport, OutputReport]
Reporter = Callable[[Mapping[str, str]], list[Report]]


@dataclass
class FileResult:
    """Reports collected for a single file.

    Attributes:
        file: File path, spelled the way the caller passed it.
        problems: Problems attributed to the file.
        infos: Informational reports attributed to the file.
    """

    file: str
    problems: list[Problem] = field(default_factory=list)
    infos: list[Info] = field(default_factory=list)


@dataclass
class Hooks:
    """Optional callbacks fired while output is being parsed.

    Final hooks receive typed reports; partial hooks receive the resolved data
    of a report that is still accumulating lines.
    """

    on_problem: Callable[[Problem], Any] | None = None
    on_info: Callable[[Info], Any] | None = None
    on_debug: Callable[[DebugReport], Any] | None = None
    on_fatal: Callable[[str], Any] | None = None
    on_partial_problem: Callable[[Mapping[str, str]], Any] | None = None
    on_partial_info: Callable[[Mapping[str, str]], Any] | None = None
    on_partial_debug: Callable[[Mapping[str, str]], Any] | None = None
