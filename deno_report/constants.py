"""Constants used across the deno-report package."""

from __future__ import annotations

import re

# Toolchain
ARGS_SEPARATOR = "--"

# File types
TYPESCRIPT_EXTENSIONS = frozenset({"ts", "tsx"})
SCRIPT_EXTENSIONS = TYPESCRIPT_EXTENSIONS | frozenset({"js", "jsx", "mts", "mjs", "cts", "cjs"})
MARKDOWN_EXTENSIONS = frozenset({"md"})
LANGUAGE_EXTENSIONS = {
    "typescript": "ts",
    "javascript": "js",
    **{extension: extension for extension in SCRIPT_EXTENSIONS},
}

# Code samples
FENCE_OPEN_PATTERN = re.compile(r"^(?P<indent>(?P<begin>.*?) *)```(?P<language>\w+)? *$")
FENCE_MARKER = "```"
SAMPLE_SUFFIX_PATTERN = re.compile(r"\$\d+-\d+(?:\.\w+)?$")
# Columns lost to the " * " prefix of documentation comment lines
JSDOC_COLUMN_CORRECTION = 3

# Locations
FILE_URL_PREFIX = "file://"
PSEUDO_REFERENCE_PATTERN = re.compile(r"^(?P<file>.*?)\$(?P<start>\d+)-(?P<end>\d+)(?:\.\w+)?$")
EMBEDDED_REFERENCE_PATTERN = re.compile(
    r"(?P<url>(?:file://)?(?P<file>(?:/|\./|\.\./)[^\s$]*?))"
    r"\$(?P<start>\d+)-(?P<end>\d+)(?:\.\w+)?(?P<a1>\S*?)"
    r":(?P<a2>\S*?)(?<![0-9\[])(?P<line>\d+)(?P<a3>\S*?)"
    r":(?P<a4>\S*?)(?<![0-9\[])(?P<column>\d+)"
)

# Output parsing
ANSI_PATTERN = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")
INITIAL_STATE = "default"
UNKNOWN = "<unknown>"
NO_TARGET_FILES_MESSAGE = "No target files found"
