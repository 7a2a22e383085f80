"""Code sample extraction from documentation comments and Markdown files."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Collection, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path

from .constants import FENCE_MARKER, FENCE_OPEN_PATTERN, LANGUAGE_EXTENSIONS
from .filesystem import read_document
from .logging import get_logger
from .models import CodeSample, ScanContext, ScanState

logger = get_logger("extractor")


def _try_open_sample(ctx: ScanContext, line: str, index: int) -> bool:
    """Detect an opening fence and start collecting a sample.

    The text before the backticks is split into `begin`, which every content
    line must repeat, and the spaces that follow it. Together they form the
    indent that the closing fence must repeat exactly.

    Examples:
        _try_open_sample(ScanContext(), " * ```ts", 3)  # True, begin " *", indent " * "
    """
    if ctx.state is not ScanState.NORMAL:
        return False

    match = FENCE_OPEN_PATTERN.match(line)
    if not match:
        return False

    ctx.state = ScanState.IN_SAMPLE
    ctx.start_index = index
    ctx.indent = match.group("indent")
    ctx.begin = match.group("begin")
    ctx.language = match.group("language")
    ctx.lines = []
    return True


def _try_close_sample(ctx: ScanContext, line: str) -> bool:
    """Check whether `line` is the closing fence of the active sample."""
    if ctx.state is not ScanState.IN_SAMPLE:
        return False

    return line.rstrip(" ") == ctx.indent + FENCE_MARKER


def _try_collect_line(ctx: ScanContext, line: str) -> bool:
    """Append a content line when it carries the sample's common prefix."""
    if ctx.state is not ScanState.IN_SAMPLE:
        return False

    if not line.startswith(ctx.begin):
        return False

    ctx.lines.append(line)
    return True


def _reset(ctx: ScanContext) -> None:
    ctx.state = ScanState.NORMAL
    ctx.start_index = 0
    ctx.indent = ""
    ctx.begin = ""
    ctx.language = None
    ctx.lines = []


def _build_sample(ctx: ScanContext, file: Path) -> CodeSample:
    width = len(ctx.indent)
    return CodeSample(
        file=file,
        start_line=ctx.start_index + 1,
        line_count=len(ctx.lines),
        column=width + 1,
        indent=ctx.indent,
        language=ctx.language,
        content="".join(f"{line[width:]}\n" for line in ctx.lines),
    )


def find_samples(text: str, file: Path) -> list[CodeSample]:
    """Find fenced code samples in a document.

    A sample is a block whose opening fence, closing fence, and every content
    line share one common prefix, so blocks inside ``/** ... */`` comments are
    delimited by their `` * `` prefix. When a content line lacks the prefix, or
    the fence is never closed, the opening line is not treated as a sample and
    scanning resumes on the line after it.

    Args:
        text: Document content.
        file: Absolute path recorded as the origin of each sample.

    Returns:
        list[CodeSample]: Samples in document order, tagged or not.

    Examples:
        find_samples("```ts\\nconst x = 1;\\n```\\n", Path("/docs/README.md"))
    """
    lines = [line.removesuffix("\r") for line in text.split("\n")]
    if lines and lines[-1] == "":
        lines.pop()

    samples = []
    ctx = ScanContext()
    index = 0
    while index < len(lines):
        line = lines[index]
        if _try_close_sample(ctx, line):
            samples.append(_build_sample(ctx, file))
            _reset(ctx)
        elif _try_collect_line(ctx, line):
            pass
        elif ctx.state is ScanState.IN_SAMPLE:
            index = ctx.start_index + 1
            _reset(ctx)
            continue
        else:
            _try_open_sample(ctx, line, index)
        index += 1

        if index == len(lines) and ctx.state is ScanState.IN_SAMPLE:
            index = ctx.start_index + 1
            _reset(ctx)

    return samples


def sample_extension(sample: CodeSample, languages: Collection[str]) -> str | None:
    """Return the file extension for a sample, or None if it is not processed.

    Examples:
        sample_extension(sample, {"ts", "tsx"})  # "ts" for a ```typescript block
    """
    if sample.language is None:
        return None
    extension = LANGUAGE_EXTENSIONS.get(sample.language.lower())
    if extension is None or extension not in languages:
        return None
    return extension


def write_sample(sample: CodeSample, sample_dir: Path, extension: str) -> CodeSample:
    """Materialize a sample as a file named ``<random>$<start>-<end>.<ext>``.

    `start` is the line of the opening fence and `end` the line of the closing
    fence (`CodeSample.end_line`), both one-based. Only `start` is used to map
    locations back; the suffix is stripped from reported file names.
    """
    suffix = f"${sample.start_line}-{sample.end_line}.{extension}"
    fd, name = tempfile.mkstemp(dir=sample_dir, suffix=suffix)
    with os.fdopen(fd, "w", encoding="UTF-8", newline="") as handle:
        handle.write(sample.content)
    return replace(sample, path=Path(name))


def extract_samples(
    files: Sequence[Path],
    sample_dir: Path,
    languages: Collection[str],
    concurrency: int,
) -> dict[Path, CodeSample]:
    """Extract the samples of several documents into `sample_dir`.

    Documents are processed in parallel, at most `concurrency` at a time.
    Missing documents are skipped; other read errors propagate.

    Args:
        files: Absolute document paths.
        sample_dir: Directory receiving the sample files.
        languages: Extensions a sample must map to in order to be written.
        concurrency: Maximum number of documents processed at once.

    Returns:
        dict[Path, CodeSample]: Materialized samples keyed by sample file path.

    Raises:
        IOError: If a document exists but cannot be read.
    """

    def extract_document(file: Path) -> list[CodeSample]:
        text = read_document(file, missing_ok=True)
        if text is None:
            logger.debug("Skipping missing document %s", file)
            return []
        materialized = []
        for sample in find_samples(text, file):
            extension = sample_extension(sample, languages)
            if extension is None:
                continue
            materialized.append(write_sample(sample, sample_dir, extension))
        logger.debug("Extracted %d samples from %s", len(materialized), file)
        return materialized

    with ThreadPoolExecutor(max_workers=concurrency) as executor:
        documents = list(executor.map(extract_document, files))

    return {sample.path: sample for samples in documents for sample in samples}
