"""Writing modified code samples back into their documents."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .constants import FENCE_MARKER
from .filesystem import collect_file_stat, read_document, write_document
from .logging import get_logger
from .models import CodeSample

logger = get_logger("rewriter")

NEWLINES = ("\n", "\r\n")


def fenced_text(sample: CodeSample, content: str, newline: str = "\n") -> str:
    """Render `content` as the fenced block `sample` was extracted from.

    Every line gets the sample's indent back and loses trailing whitespace, so
    blank lines inside documentation comments become a bare `` *``. Lines are
    joined with `newline`, whatever line endings `content` uses.

    Examples:
        fenced_text(sample, "const x = 1;\\n")  # " * ```ts\\n * const x = 1;\\n * ```"
    """
    lines = [
        f"{FENCE_MARKER}{sample.language or ''}",
        *content.rstrip().split("\n"),
        FENCE_MARKER,
    ]
    return newline.join(f"{sample.indent}{line}".rstrip() for line in lines)


def _replace_block(text: str, sample: CodeSample, content: str) -> str:
    for newline in NEWLINES:
        block = fenced_text(sample, sample.content, newline)
        if block in text:
            return text.replace(block, fenced_text(sample, content, newline))
    logger.warning("Code sample at %s:%d not found", sample.file, sample.start_line)
    return text


def _rewrite_document(file: Path, samples: Sequence[CodeSample]) -> bool:
    changes = []
    for sample in samples:
        content = read_document(sample.path)
        if content != sample.content:
            changes.append((sample, content))
    if not changes:
        return False

    expected_stat = collect_file_stat(file)
    original = read_document(file)
    text = original
    for sample, content in changes:
        text = _replace_block(text, sample, content)
    if text == original:
        return False

    write_document(file, text, expected_stat)
    logger.info("Updated %d code samples in %s", len(changes), file)
    return True


def rewrite_samples(samples: Iterable[CodeSample], concurrency: int) -> list[Path]:
    """Patch every sample the toolchain modified back into its document.

    Samples are grouped by document; documents are processed in parallel, at
    most `concurrency` at a time. Unchanged samples leave their document
    untouched.

    Args:
        samples: Materialized samples of a finished run.
        concurrency: Maximum number of documents processed at once.

    Returns:
        list[Path]: Documents that were rewritten.

    Raises:
        IOError: If a sample or document cannot be read, or a document changed
            on disk while being rewritten.
    """
    by_document: dict[Path, list[CodeSample]] = defaultdict(list)
    for sample in samples:
        if sample.path is not None:
            by_document[sample.file].append(sample)

    with ThreadPoolExecutor(max_workers=concurrency) as executor:
        changed = list(executor.map(_rewrite_document, by_document, by_document.values()))

    return [file for file, rewritten in zip(by_document, changed) if rewritten]
