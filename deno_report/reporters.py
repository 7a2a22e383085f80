"""Materialization of typed reports from resolved report data."""

from __future__ import annotations

from collections.abc import Mapping

from .constants import UNKNOWN
from .models import (
    CheckReport,
    DiffReport,
    ErrorReport,
    FailureReport,
    LintReport,
    OutputReport,
    Report,
    Reporter,
    ReportKind,
    TestReport,
)


def _number(value: str | None, default: int = -1) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _optional_number(value: str | None) -> int | None:
    number = _number(value)
    return None if number == -1 else number


def report_diagnostic(data: Mapping[str, str]) -> list[Report]:
    """Build the report for a diagnostic that needs no context from earlier lines.

    Examples:
        report_diagnostic({"kind": "diff", "file": "mod.ts", "message": "from mod.ts:"})
        # [DiffReport(message="from mod.ts:", file="mod.ts")]
    """
    kind = ReportKind(data["kind"])
    message = data["message"].rstrip()
    file = data.get("file", UNKNOWN)

    if kind in (ReportKind.CHECK, ReportKind.LINT):
        report_type = CheckReport if kind is ReportKind.CHECK else LintReport
        return [
            report_type(
                message=message,
                file=file,
                line=_number(data.get("line")),
                column=_number(data.get("column")),
                rule=data.get("rule", UNKNOWN),
                reason=data.get("reason", UNKNOWN),
            )
        ]
    if kind is ReportKind.DIFF:
        return [DiffReport(message=message, file=file)]
    if kind is ReportKind.ERROR:
        return [
            ErrorReport(
                message=message,
                file=file,
                line=_optional_number(data.get("line")),
                column=_optional_number(data.get("column")),
            )
        ]
    return []


def diagnostic_reporter() -> Reporter:
    return report_diagnostic


class TestReporter:
    """Build test results, tracking the running file and the test being run.

    `running N tests from <file>` lines select the file later results belong
    to. Status lines maintain a stack of test and step names, two spaces of
    indentation per step level; a status line without a status only updates
    the stack.
    """

    __test__ = False

    def __init__(self):
        self.file = UNKNOWN
        self.line: int | None = None
        self.test: list[str] = []

    def __call__(self, data: Mapping[str, str]) -> list[Report]:
        kind = ReportKind(data["kind"])
        message = data["message"].rstrip()

        if kind is ReportKind.TEST:
            return self._test(data, message)
        if kind is ReportKind.OUTPUT:
            return [
                OutputReport(
                    message=message,
                    file=self.file,
                    test=tuple(self.test),
                    output=data.get("output", ""),
                )
            ]
        if kind is ReportKind.FAILURE:
            return [
                FailureReport(
                    message=message,
                    file=data.get("file", UNKNOWN),
                    line=_number(data.get("line")),
                    column=_number(data.get("column")),
                    test=tuple(data.get("name", UNKNOWN).split(" ... ")),
                )
            ]
        return report_diagnostic(data)

    def _test(self, data: Mapping[str, str], message: str) -> list[Report]:
        if "name" not in data:
            self.file = data.get("file", UNKNOWN)
            self.line = _optional_number(data.get("line"))
            return []

        depth = len(data.get("step", "")) // 2
        del self.test[depth:]
        self.test.append(data["name"])

        status = data.get("status")
        if status is None:
            return []
        return [
            TestReport(
                message=message,
                file=self.file,
                test=tuple(self.test),
                success=status in ("ok", "ignored"),
                status=status,
                line=self.line,
                time=data.get("time"),
            )
        ]
