from __future__ import annotations

from pathlib import Path

from hypothesis import given
from hypothesis import strategies as st

from deno_report.models import CodeSample, LocationOffset, ReportKind
from deno_report.resolver import LocationResolver, from_file_url

CWD = Path("/project")
SAMPLE_DIR = Path("/tmp/deno-report-abc")
README = CWD / "README.md"
MODULE = CWD / "src" / "mod.ts"

MARKDOWN_SAMPLE = CodeSample(
    file=README,
    start_line=5,
    line_count=3,
    column=1,
    indent="",
    language="ts",
    content="a\nb\nc\n",
    path=SAMPLE_DIR / "tmp1$5-9.ts",
)
JSDOC_SAMPLE = CodeSample(
    file=MODULE,
    start_line=12,
    line_count=2,
    column=4,
    indent=" * ",
    language="ts",
    content="a\nb\n",
    path=SAMPLE_DIR / "tmp2$12-15.ts",
)


def _resolver(**kwargs) -> LocationResolver:
    return LocationResolver(
        CWD,
        samples={sample.path: sample for sample in (MARKDOWN_SAMPLE, JSDOC_SAMPLE)},
        sample_dir=SAMPLE_DIR,
        display_names={README: "README.md", MODULE: "src/mod.ts"},
        **kwargs,
    )


def test_from_file_url():
    assert from_file_url("file:///project/src/mod.ts") == "/project/src/mod.ts"
    assert from_file_url("file:///project/my%20file.ts") == "/project/my file.ts"
    assert from_file_url("src/mod.ts") == "src/mod.ts"


def test_sample_location_maps_to_document():
    data = {
        "kind": "check",
        "file": f"file://{JSDOC_SAMPLE.path}",
        "line": "1",
        "column": "7",
        "message": f"TS2322 [ERROR]: bad\n    at file://{JSDOC_SAMPLE.path}:1:7",
    }

    _resolver().resolve(data)

    assert data["file"] == "src/mod.ts"
    assert data["line"] == "13"
    assert data["column"] == "10"
    assert data["message"] == "TS2322 [ERROR]: bad\n    at file:///project/src/mod.ts:13:10"


@given(
    line=st.integers(min_value=1, max_value=10_000),
    column=st.integers(min_value=1, max_value=500),
)
def test_sample_locations_shift_by_sample_origin(line, column):
    data = {
        "kind": "lint",
        "file": str(JSDOC_SAMPLE.path),
        "line": str(line),
        "column": str(column),
        "message": "problem",
    }

    _resolver().resolve(data)

    assert int(data["line"]) == line + JSDOC_SAMPLE.start_line
    assert int(data["column"]) == column + JSDOC_SAMPLE.column - 1


def test_sample_without_location_points_at_fence():
    data = {
        "kind": "diff",
        "file": str(MARKDOWN_SAMPLE.path),
        "message": f"from {MARKDOWN_SAMPLE.path}:\n1 | -a\n1 | +a;",
    }

    _resolver().resolve(data)

    assert data["file"] == "README.md"
    assert data["message"] == "from /project/README.md:5:1:\n1 | -a\n1 | +a;"
    assert "line" not in data


def test_unknown_sample_file_is_left_as_is():
    unknown = SAMPLE_DIR / "other$1-3.ts"
    data = {"kind": "check", "file": str(unknown), "line": "1", "column": "1", "message": "x"}

    _resolver().resolve(data)

    assert data["file"] == str(unknown.parent / "other")
    assert data["line"] == "1"


def test_sample_paths_in_message_become_references():
    data = {
        "kind": "error",
        "message": f"error: Uncaught (in promise) Error\n    at {MARKDOWN_SAMPLE.path}:2:3",
    }

    _resolver().resolve(data)

    assert data["message"] == "error: Uncaught (in promise) Error\n    at /project/README.md:7:3"


def test_pseudo_reference_file_with_offsets():
    offsets = {ReportKind.FAILURE: LocationOffset(line=-1, column=-5, embedded_column=-4)}
    data = {
        "kind": "failure",
        "file": "./README.md$5-9.ts",
        "line": "3",
        "column": "7",
        "message": "test => ./README.md$5-9.ts:3:7",
    }

    _resolver(offsets=offsets).resolve(data)

    assert data["file"] == "README.md"
    assert data["line"] == "7"
    assert data["column"] == "2"


def test_pseudo_reference_in_comment_adds_prefix_width():
    data = {
        "kind": "check",
        "file": "file:///project/src/mod.ts$40-44.ts",
        "line": "2",
        "column": "5",
        "message": "x",
    }

    _resolver().resolve(data)

    assert data["file"] == "src/mod.ts"
    assert data["line"] == "42"
    assert data["column"] == "8"


def test_pseudo_reference_without_line_points_at_fence():
    data = {"kind": "test", "file": "file:///project/README.md$20-25.ts", "message": "running"}

    _resolver().resolve(data)

    assert data["file"] == "README.md"
    assert data["line"] == "20"


def test_embedded_reference_for_known_sample():
    data = {"kind": "error", "message": "at file:///project/src/mod.ts$12-15.ts:2:1"}

    _resolver().resolve(data)

    assert data["message"] == "at file:///project/src/mod.ts:14:4"


def test_embedded_reference_without_sample_uses_offsets():
    offsets = {ReportKind.FAILURE: LocationOffset(line=-1, column=-5, embedded_column=-4)}
    data = {"kind": "failure", "message": "    at file:///project/README.md$20-25.ts:3:9"}

    _resolver(offsets=offsets).resolve(data)

    assert data["message"] == "    at file:///project/README.md:22:5"


def test_embedded_reference_into_own_comment_adds_prefix_width():
    offsets = {ReportKind.FAILURE: LocationOffset(line=-1, column=-5, embedded_column=-4)}
    data = {
        "kind": "failure",
        "file": "/project/src/util.ts$40-45.ts",
        "line": "3",
        "column": "9",
        "message": "    at file:///project/src/util.ts$40-45.ts:3:9",
    }

    _resolver(offsets=offsets).resolve(data)

    assert data["message"] == "    at file:///project/src/util.ts:42:8"


def test_embedded_reference_into_other_file_keeps_column():
    offsets = {ReportKind.FAILURE: LocationOffset(line=-1, column=-5, embedded_column=-4)}
    data = {
        "kind": "failure",
        "file": "/project/src/mod.ts",
        "line": "3",
        "column": "9",
        "message": "    at file:///project/src/util.ts$40-45.ts:3:9",
    }

    _resolver(offsets=offsets).resolve(data)

    assert data["message"] == "    at file:///project/src/util.ts:42:5"


def test_embedded_reference_without_report_file_keeps_column():
    data = {"kind": "error", "message": "at file:///project/src/util.ts$40-45.ts:3:9"}

    _resolver().resolve(data)

    assert data["message"] == "at file:///project/src/util.ts:43:9"


def test_embedded_reference_keeps_surrounding_decoration():
    data = {"kind": "error", "message": "(./src/mod.ts$12-15.ts:L1:C2)"}

    _resolver().resolve(data)

    assert data["message"] == "(./src/mod.ts:L13:C5)"


def test_messages_without_references_are_unchanged():
    message = "error: Module not found at 12:3 in $HOME/x"
    data = {"kind": "fatal", "message": message}

    _resolver().resolve(data)

    assert data["message"] == message


def test_files_outside_request_keep_their_spelling():
    data = {"kind": "lint", "file": "other/file.ts", "line": "3", "column": "1", "message": "x"}

    _resolver().resolve(data)

    assert data == {
        "kind": "lint",
        "file": "other/file.ts",
        "line": "3",
        "column": "1",
        "message": "x",
    }


def test_display_name_uses_caller_spelling():
    data = {"kind": "lint", "file": "/project/src/mod.ts", "line": "3", "column": "1", "message": "x"}

    _resolver().resolve(data)

    assert data["file"] == "src/mod.ts"
