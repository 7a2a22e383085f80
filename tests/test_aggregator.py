from __future__ import annotations

from deno_report.aggregator import ResultAggregator, debug_reporter
from deno_report.models import DebugReport, FileResult, Hooks, LintReport, OutputReport
from deno_report.reporters import TestReporter, report_diagnostic


def _lint(file: str, message: str = "problem") -> dict[str, str]:
    return {
        "kind": "lint",
        "file": file,
        "line": "1",
        "column": "1",
        "rule": "no-var",
        "reason": "reason",
        "message": message,
    }


def test_results_exist_for_every_requested_file_in_order():
    aggregator = ResultAggregator(["b.ts", "a.ts", "b.ts"], report_diagnostic)

    assert aggregator.results == [FileResult(file="b.ts"), FileResult(file="a.ts")]


def test_problems_are_filed_under_their_file():
    aggregator = ResultAggregator(["a.ts", "b.ts"], report_diagnostic)

    aggregator.add(_lint("b.ts"))

    a, b = aggregator.results
    assert a.problems == []
    assert [problem.file for problem in b.problems] == ["b.ts"]


def test_reports_for_unrequested_files_add_results():
    aggregator = ResultAggregator(["a.ts"], report_diagnostic)

    aggregator.add(_lint("deps/other.ts"))

    assert [result.file for result in aggregator.results] == ["a.ts", "deps/other.ts"]


def test_infos_and_hooks():
    problems, infos = [], []
    hooks = Hooks(on_problem=problems.append, on_info=infos.append)
    aggregator = ResultAggregator(["a_test.ts"], TestReporter(), hooks)

    aggregator.add({"kind": "test", "file": "a_test.ts", "message": "running 1 test"})
    aggregator.add({"kind": "output", "message": "out", "output": "hello"})
    aggregator.add(
        {
            "kind": "failure",
            "file": "a_test.ts",
            "line": "2",
            "column": "3",
            "name": "works",
            "message": "works => a_test.ts:2:3",
        }
    )

    [result] = aggregator.results
    assert result.infos == [OutputReport(message="out", file="a_test.ts", test=(), output="hello")]
    assert infos == result.infos
    assert problems == result.problems
    assert result.problems[0].test == ("works",)


def test_fatal_reports_are_collected_and_forwarded():
    fatal = []
    unrecognized = ["earlier"]
    hooks = Hooks(on_fatal=fatal.append)
    aggregator = ResultAggregator(["a.ts"], report_diagnostic, hooks, unrecognized)

    aggregator.add({"kind": "fatal", "message": "error: boom\n"})

    assert fatal == ["error: boom"]
    assert unrecognized == ["earlier", "error: boom"]
    assert aggregator.results == [FileResult(file="a.ts")]


def test_debug_reports_go_to_the_debug_hook_only():
    debug = []
    aggregator = ResultAggregator(["a.ts"], report_diagnostic, Hooks(on_debug=debug.append))

    aggregator.add({"kind": "debug", "message": "Checked 1 file", "file": "a.ts"})

    assert debug == [DebugReport(message="Checked 1 file", fields={"file": "a.ts"})]
    assert aggregator.results == [FileResult(file="a.ts")]


def test_missing_reporter_drops_reports():
    aggregator = ResultAggregator(["a.ts"], None)

    aggregator.add(_lint("a.ts"))

    assert aggregator.results == [FileResult(file="a.ts")]


def test_partial_reports_are_routed_by_category():
    partial_problems, partial_infos, partial_debug = [], [], []
    hooks = Hooks(
        on_partial_problem=partial_problems.append,
        on_partial_info=partial_infos.append,
        on_partial_debug=partial_debug.append,
    )
    aggregator = ResultAggregator([], report_diagnostic, hooks)

    aggregator.partial(_lint("a.ts"))
    aggregator.partial({"kind": "test", "message": "running"})
    aggregator.partial({"kind": "debug", "message": "Check"})
    aggregator.partial({"kind": "fatal", "message": "error: x"})

    assert [data["kind"] for data in partial_problems] == ["lint"]
    assert [data["kind"] for data in partial_infos] == ["test"]
    assert [data["kind"] for data in partial_debug] == ["debug"]
    assert aggregator.results == []


def test_debug_reporter_keeps_extra_fields():
    report = debug_reporter({"kind": "debug", "message": "Found 2 errors.\n", "count": "2"})

    assert report == DebugReport(message="Found 2 errors.", fields={"count": "2"})


def test_problem_reports_are_typed():
    aggregator = ResultAggregator(["a.ts"], report_diagnostic)

    aggregator.add(_lint("a.ts", "no-var"))

    [problem] = aggregator.results[0].problems
    assert isinstance(problem, LintReport)
