"""Output grammars of the toolchain commands.

Each table is tried top to bottom. Rules restricted to states only apply while
the machine is in one of them, so catch-all body rules stay confined to the
report they extend.
"""

from __future__ import annotations

import re

from .constants import INITIAL_STATE
from .models import LocationOffset, ParserRule, ReportKind


def _rule(
    *patterns: str,
    states: tuple[str, ...] = (),
    report: ReportKind | None = None,
    next: str | None = None,
    aggregate: tuple[str, ...] = (),
    ignore: bool = False,
) -> ParserRule:
    return ParserRule(
        patterns=tuple(re.compile(pattern) for pattern in patterns),
        states=frozenset(states),
        report=report,
        next=next,
        aggregate=aggregate,
        ignore=ignore,
    )


NARRATION = _rule(
    r"^(?:Check|Download|Compile|Emit|Warning) \S.*$",
    report=ReportKind.DEBUG,
)
FATAL = _rule(r"^error: .*$", report=ReportKind.FATAL, next="fatal")
FATAL_CONTINUATION = _rule(r"^\s+\S.*$", states=("fatal",))
BLANK = _rule(r"^\s*$", ignore=True)

CHECK_RULES = (
    NARRATION,
    _rule(r"^Found \d+ errors?\.$", r"^error: Type checking failed\.$", report=ReportKind.DEBUG),
    _rule(
        r"^(?:error: )?(?P<rule>TS\d+) \[(?P<severity>[A-Z]+)\]: (?P<reason>.*)$",
        report=ReportKind.CHECK,
    ),
    # The first location is the diagnostic's; later ones belong to related information.
    _rule(
        r"^\s+at (?P<file>\S.*?):(?P<line>\d+):(?P<column>\d+)$",
        states=("check",),
        next="related",
    ),
    FATAL,
    FATAL_CONTINUATION,
    _rule(r"^.*$", states=("check", "related")),
    BLANK,
)

FMT_RULES = (
    NARRATION,
    _rule(
        r"^error: Found \d+ not formatted files? in \d+ files?$",
        r"^Checked \d+ files?$",
        report=ReportKind.DEBUG,
    ),
    _rule(r"^from (?P<file>\S.*?):$", report=ReportKind.DIFF),
    _rule(r"^Error formatting: (?P<file>.*)$", report=ReportKind.FATAL, next="fatal"),
    FATAL,
    FATAL_CONTINUATION,
    _rule(r"^.*$", states=("diff",)),
    BLANK,
)

LINT_RULES = (
    NARRATION,
    _rule(
        r"^(?:error: )?Found \d+ (?:problems?|documentation lint errors?)\b.*$",
        r"^Checked \d+ files?$",
        report=ReportKind.DEBUG,
    ),
    _rule(r"^(?:error|warning)\[(?P<rule>[^\]]+)\]: (?P<reason>.*)$", report=ReportKind.LINT),
    _rule(
        r"^\s*-->\s*(?P<file>\S.*?):(?P<line>\d+):(?P<column>\d+)$",
        states=("lint",),
        next="lint-body",
    ),
    FATAL,
    FATAL_CONTINUATION,
    _rule(r"^.*$", states=("lint", "lint-body")),
    BLANK,
)

DOC_RULES = (
    NARRATION,
    FATAL,
    FATAL_CONTINUATION,
    BLANK,
)

TEST_RULES = (
    _rule(
        r"^------- (?:post-test )?output -------$",
        report=ReportKind.OUTPUT,
        next="output",
    ),
    _rule(r"^----- (?:post-test )?output end -----$", states=("output",), next=INITIAL_STATE),
    _rule(r"^(?P<output>.*)$", states=("output",), aggregate=("output",)),
    _rule(r"^ ERRORS ?$", report=ReportKind.DEBUG, next="errors"),
    _rule(r"^ FAILURES ?$", report=ReportKind.DEBUG, next="failures"),
    _rule(
        r"^(?:ok|FAILED) \| \d+ passed.*$",
        r"^error: Test failed$",
        r"^\|(?: [^|]* \|)+$",
        report=ReportKind.DEBUG,
        next=INITIAL_STATE,
    ),
    _rule(
        r"^(?P<name>\S.*?) => (?P<file>\S.*?):(?P<line>\d+):(?P<column>\d+)$",
        states=("errors", "failure"),
        report=ReportKind.FAILURE,
        next="failure",
    ),
    _rule(
        r"^(?P<file>\S.*?) \(uncaught error\)$",
        states=("errors", "failure"),
        report=ReportKind.ERROR,
        next="failure",
    ),
    _rule(
        r"^\S.* => .*$",
        r"^\S.* \(uncaught error\)$",
        states=("failures",),
        report=ReportKind.DEBUG,
        next="failures",
    ),
    _rule(r"^.*$", states=("failure",)),
    _rule(r"^running 0 tests? from .*$", report=ReportKind.DEBUG, next=INITIAL_STATE),
    _rule(r"^running \d+ tests? from (?P<file>.+)$", report=ReportKind.TEST, next=INITIAL_STATE),
    _rule(
        r"^(?P<step>(?:  )*)(?P<name>\S.*?) \.\.\."
        r"(?: (?P<status>FAILED|INCOMPLETE|ok|ignored)(?: .*?\((?P<time>[^()]*)\))?)?$",
        report=ReportKind.TEST,
        next=INITIAL_STATE,
    ),
    NARRATION,
    FATAL,
    FATAL_CONTINUATION,
    BLANK,
)

COMPILE_RULES = DOC_RULES

TEST_OFFSETS = {
    ReportKind.TEST: LocationOffset(),
    ReportKind.FAILURE: LocationOffset(line=-1, column=-5, embedded_column=-4),
}
