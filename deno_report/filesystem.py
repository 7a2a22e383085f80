"""Filesystem helpers for deno-report."""

from __future__ import annotations

import os
import shutil
import stat
import tempfile
from collections.abc import Collection, Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path


def file_extension(path: str | os.PathLike[str]) -> str:
    """Return the lowercase extension of `path` without its leading dot.

    Examples:
        file_extension("docs/README.MD")  # "md"
    """
    return Path(path).suffix[1:].lower()


def find_files(
    paths: Iterable[str], extensions: Collection[str] | None = None
) -> list[str]:
    """Expand files and directories into a sorted list of matching files.

    Directories are walked recursively, skipping hidden directories. Files given
    explicitly are kept even when hidden. Paths keep the spelling of the input
    they were found under.

    Args:
        paths: Files or directories to expand.
        extensions: Extensions (without dot) to keep; None keeps every file.

    Returns:
        list[str]: Deduplicated matching file paths.

    Examples:
        find_files(["src", "README.md"], extensions={"ts", "md"})
    """
    found: dict[str, None] = {}
    for raw_path in paths:
        path = Path(raw_path)
        if path.is_dir():
            candidates = _walk(path)
        else:
            candidates = iter([path])
        for candidate in candidates:
            if extensions is not None and file_extension(candidate) not in extensions:
                continue
            found.setdefault(str(candidate), None)
    return sorted(found)


def _walk(directory: Path) -> Iterator[Path]:
    for root, dirnames, filenames in os.walk(directory):
        dirnames[:] = sorted(name for name in dirnames if not name.startswith("."))
        for filename in sorted(filenames):
            yield Path(root) / filename


@contextmanager
def temporary_directory(prefix: str = "deno-report-") -> Iterator[Path]:
    """Create a temporary directory that is removed when the context exits.

    The yielded path is fully resolved, so it matches the paths reported by
    tools that print real paths.

    Examples:
        with temporary_directory() as directory:
            (directory / "sample.ts").write_text("export {};")
    """
    directory = Path(tempfile.mkdtemp(prefix=prefix)).resolve()
    try:
        yield directory
    finally:
        shutil.rmtree(directory, ignore_errors=True)


def collect_file_stat(filepath: Path) -> os.stat_result:
    """Return stat information for a regular file.

    Raises:
        IOError: If the path is inaccessible or not a regular file.
    """
    try:
        stat_result = os.stat(filepath)
    except OSError as error:
        error_message = f"Error accessing {filepath}: {error}"
        raise IOError(error_message) from error

    if not stat.S_ISREG(stat_result.st_mode):
        error_message = f"{filepath} is not a regular file."
        raise IOError(error_message)

    return stat_result


def ensure_file_unchanged(
    expected_stat: os.stat_result, current_stat: os.stat_result, filepath: Path
):
    """Detect changes between two filesystem snapshots.

    Raises:
        IOError: If inode, device, size, or modification time differ.
    """
    fingerprint_before = (
        getattr(expected_stat, "st_ino", None),
        getattr(expected_stat, "st_dev", None),
        expected_stat.st_size,
        expected_stat.st_mtime_ns,
    )
    fingerprint_after = (
        getattr(current_stat, "st_ino", None),
        getattr(current_stat, "st_dev", None),
        current_stat.st_size,
        current_stat.st_mtime_ns,
    )

    if fingerprint_before != fingerprint_after:
        error_message = f"{filepath} changed during processing; refusing to overwrite."
        raise IOError(error_message)


def read_document(filepath: Path, missing_ok: bool = False) -> str | None:
    """Read a document as UTF-8 text with consistent error handling.

    Args:
        filepath: Path to the document.
        missing_ok: Return None instead of raising when the file does not exist.

    Returns:
        str | None: Document text, or None for a missing file when allowed.

    Raises:
        IOError: If the path is missing (unless allowed), inaccessible, or not a file.
    """
    try:
        with open(filepath, "r", encoding="UTF-8", newline="") as handle:
            return handle.read()
    except FileNotFoundError as error:
        if missing_ok:
            return None
        raise IOError(f"Error accessing {filepath}: {error}") from error
    except (PermissionError, IsADirectoryError, NotADirectoryError) as error:
        raise IOError(f"Error accessing {filepath}: {error}") from error


def write_document(filepath: Path, content: str, expected_stat: os.stat_result):
    """Atomically replace a document with new content.

    The content is written to a temporary file next to the document, synced,
    given the original permissions, and moved over the original.

    Args:
        filepath: Document to replace.
        content: New document text.
        expected_stat: Stat captured before the document was read, used to
            detect concurrent modification.

    Raises:
        IOError: If the document changed since it was read or cannot be
            replaced atomically.
    """
    current_stat = collect_file_stat(filepath)
    ensure_file_unchanged(expected_stat, current_stat, filepath)
    permissions = stat.S_IMODE(expected_stat.st_mode)

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="UTF-8", newline="", delete=False, dir=filepath.parent
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
            os.chmod(tmp_file.name, permissions)

        os.replace(temp_path, filepath)
    except OSError as error:
        raise IOError(f"Error writing {filepath}: {error}") from error
    finally:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
