"""Collection of finished reports into per-file results."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .logging import get_logger
from .models import (
    CATEGORIES,
    Category,
    DebugReport,
    FileResult,
    Hooks,
    Reporter,
    ReportKind,
)

logger = get_logger("aggregator")


def debug_reporter(data: Mapping[str, str]) -> DebugReport:
    fields = {key: value for key, value in data.items() if key not in ("kind", "message")}
    return DebugReport(message=data["message"].rstrip(), fields=fields)


class ResultAggregator:
    """File finished reports under the documents they resolve to.

    Results exist up front for every requested file, in request order; a
    report resolving to another file adds a result for it on demand.

    Args:
        files: Requested files, spelled the way the caller passed them.
        reporter: Materializes problems and infos from resolved report data.
        hooks: Callbacks fired for finished and partial reports.
        unrecognized: Collector receiving the messages of fatal reports.
    """

    def __init__(
        self,
        files: Iterable[str],
        reporter: Reporter | None,
        hooks: Hooks | None = None,
        unrecognized: list[str] | None = None,
    ):
        self.reporter = reporter
        self.hooks = hooks or Hooks()
        self.unrecognized = unrecognized if unrecognized is not None else []
        self._results: dict[str, FileResult] = {}
        for file in files:
            self._results.setdefault(file, FileResult(file=file))

    @property
    def results(self) -> list[FileResult]:
        return list(self._results.values())

    def add(self, data: Mapping[str, str]) -> None:
        """Handle the data of a finished report."""
        category = CATEGORIES[ReportKind(data["kind"])]

        if category is Category.FATAL:
            message = data["message"].rstrip()
            if self.hooks.on_fatal is not None:
                self.hooks.on_fatal(message)
            self.unrecognized.append(message)
            return

        if category is Category.DEBUG:
            if self.hooks.on_debug is not None:
                self.hooks.on_debug(debug_reporter(data))
            return

        if self.reporter is None:
            logger.debug("No reporter for %s report: %s", data["kind"], data["message"])
            return

        for report in self.reporter(data):
            result = self._result_for(report.file)
            if CATEGORIES[report.kind] is Category.PROBLEM:
                result.problems.append(report)
                if self.hooks.on_problem is not None:
                    self.hooks.on_problem(report)
            else:
                result.infos.append(report)
                if self.hooks.on_info is not None:
                    self.hooks.on_info(report)

    def partial(self, data: Mapping[str, str]) -> None:
        """Pass the data of a still-growing report to the partial hooks."""
        hook = {
            Category.PROBLEM: self.hooks.on_partial_problem,
            Category.INFO: self.hooks.on_partial_info,
            Category.DEBUG: self.hooks.on_partial_debug,
        }.get(CATEGORIES[ReportKind(data["kind"])])
        if hook is not None:
            hook(data)

    def _result_for(self, file: str) -> FileResult:
        result = self._results.get(file)
        if result is None:
            result = self._results[file] = FileResult(file=file)
        return result
