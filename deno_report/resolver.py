"""Location resolution from sample files back to original documents."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from .constants import (
    EMBEDDED_REFERENCE_PATTERN,
    FILE_URL_PREFIX,
    JSDOC_COLUMN_CORRECTION,
    MARKDOWN_EXTENSIONS,
    PSEUDO_REFERENCE_PATTERN,
    SAMPLE_SUFFIX_PATTERN,
)
from .filesystem import file_extension
from .logging import get_logger
from .models import CodeSample, LocationOffset, ReportKind

logger = get_logger("resolver")


def from_file_url(value: str) -> str:
    """Convert a ``file://`` URL to a path, leaving other values untouched.

    Examples:
        from_file_url("file:///home/user/mod.ts")  # "/home/user/mod.ts"
    """
    if not value.startswith(FILE_URL_PREFIX):
        return value
    return url2pathname(urlparse(value).path)


def _to_int(value: str | None) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _comment_correction(file: str) -> int:
    if file_extension(file) in MARKDOWN_EXTENSIONS:
        return 0
    return JSDOC_COLUMN_CORRECTION


class LocationResolver:
    """Rewrite report locations from sample coordinates to document coordinates.

    Args:
        cwd: Directory relative paths are resolved against.
        samples: Materialized samples keyed by sample file path.
        sample_dir: Directory holding the sample files, if any.
        display_names: Caller spelling of each requested document, keyed by
            absolute path.
        offsets: Per-kind offsets for pseudo-references stamped by the toolchain.
    """

    def __init__(
        self,
        cwd: Path,
        samples: Mapping[Path, CodeSample] | None = None,
        sample_dir: Path | None = None,
        display_names: Mapping[Path, str] | None = None,
        offsets: Mapping[ReportKind, LocationOffset] | None = None,
    ):
        self.cwd = cwd
        self.samples = dict(samples or {})
        self.sample_dir = sample_dir
        self.display_names = dict(display_names or {})
        self.offsets = dict(offsets or {})
        self._by_origin = {
            (sample.file, sample.start_line): sample for sample in self.samples.values()
        }
        self._sample_path_pattern = (
            re.compile(re.escape(f"{sample_dir}{os.sep}") + r"[^\s:/\\]+")
            if sample_dir is not None
            else None
        )

    def resolve(self, data: dict[str, str]) -> dict[str, str]:
        """Resolve the locations of one report's data in place.

        Resolution is best effort: values that cannot be interpreted are left
        as they are.

        Args:
            data: Report data with ``kind`` and ``message`` and optionally
                ``file``, ``line``, and ``column``.

        Returns:
            dict[str, str]: The same mapping, updated.
        """
        offset = self.offsets.get(ReportKind(data["kind"]), LocationOffset())

        if "file" in data:
            data["file"] = from_file_url(data["file"])
            if self._in_sample_dir(data["file"]):
                self._resolve_sample(data)
            else:
                self._resolve_reference(data, offset)

        current = SAMPLE_SUFFIX_PATTERN.sub("", data["file"]) if "file" in data else None
        data["message"] = self._replace_sample_paths(data["message"])
        data["message"] = self._resolve_embedded(data["message"], offset, current)

        if current is not None:
            data["file"] = self._display_name(current)
        return data

    def absolute(self, file: str) -> Path:
        return (self.cwd / file).resolve()

    def _in_sample_dir(self, file: str) -> bool:
        return self.sample_dir is not None and file.startswith(f"{self.sample_dir}{os.sep}")

    def _resolve_sample(self, data: dict[str, str]) -> None:
        file = data["file"]
        sample = self.samples.get(Path(file))
        if sample is None:
            logger.warning("No code sample recorded for %s", file)
            return

        line = _to_int(data.get("line"))
        column = _to_int(data.get("column"))
        if line is not None and column is not None:
            data["message"] = data["message"].replace(file, sample.reference)
            data["line"] = str(line + sample.start_line)
            data["column"] = str(column + sample.column - 1)
        else:
            data["message"] = data["message"].replace(
                file, f"{sample.file}:{sample.start_line}:{sample.column}"
            )
        data["file"] = str(sample.file)

    def _resolve_reference(self, data: dict[str, str], offset: LocationOffset) -> None:
        match = PSEUDO_REFERENCE_PATTERN.match(data["file"])
        if not match:
            return

        line = _to_int(data.get("line"))
        data["line"] = str((line or 0) + int(match.group("start")) + offset.line)
        column = _to_int(data.get("column"))
        if column is not None:
            data["column"] = str(column + offset.column + _comment_correction(match.group("file")))

    def _replace_sample_paths(self, message: str) -> str:
        if self._sample_path_pattern is None:
            return message

        def replace(match: re.Match[str]) -> str:
            sample = self.samples.get(Path(match.group(0)))
            return sample.reference if sample is not None else match.group(0)

        return self._sample_path_pattern.sub(replace, message)

    def _resolve_embedded(
        self, message: str, offset: LocationOffset, current: str | None = None
    ) -> str:
        """Shift ``path$start-end:line:column`` references inside `message`.

        The comment prefix width is only added for references into the
        report's own file, `current`.
        """
        current_path = self.absolute(current) if current is not None else None

        def replace(match: re.Match[str]) -> str:
            file = match.group("file")
            line = int(match.group("line"))
            column = int(match.group("column"))
            start = int(match.group("start"))
            sample = self._by_origin.get((self.absolute(file), start))
            if sample is not None:
                line += sample.start_line
                column += sample.column - 1
            else:
                line += start + offset.line
                column += offset.embedded_column
                if self.absolute(file) == current_path:
                    column += _comment_correction(file)
            return (
                f"{match.group('url')}{match.group('a1')}"
                f":{match.group('a2')}{line}{match.group('a3')}"
                f":{match.group('a4')}{column}"
            )

        return EMBEDDED_REFERENCE_PATTERN.sub(replace, message)

    def _display_name(self, file: str) -> str:
        return self.display_names.get(self.absolute(file), file)
