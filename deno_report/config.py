"""Configuration loading and management."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
import tomllib

EXECUTABLE_ENV_VAR = "DENO_REPORT_EXECUTABLE"


@dataclass
class DenoReportConfig:
    """Configuration for running toolchain commands.

    Attributes:
        executable: Name or path of the ``deno`` executable.
        env_passthrough: Environment variables passed through to the toolchain.
        extract_concurrency: Documents scanned for code samples in parallel.
        rewrite_concurrency: Documents patched with modified samples in parallel.
        chunk_size: Maximum number of bytes read from an output stream at once.

    Examples:
        DenoReportConfig(executable="/opt/deno/bin/deno", rewrite_concurrency=2)
    """

    # Toolchain
    executable: str = "deno"
    env_passthrough: list[str] = field(default_factory=lambda: ["NO_COLOR", "FORCE_COLOR"])

    # Concurrency
    extract_concurrency: int = 10
    rewrite_concurrency: int = 4

    # Streams
    chunk_size: int = 64 * 1024


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`chunk_size` must be a positive integer")
    """


def load_config(search_path: Path) -> DenoReportConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.deno-report]`` table from `pyproject.toml` and the
    ``[deno-report]`` or ``[tool.deno-report]`` table from `.deno-report.toml`
    when present. Returns default values when no configuration is found. TOML
    files that cannot be read or decoded are skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        DenoReportConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If the table is present but not a mapping or contains
            unsupported keys.
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "deno-report")]
        )
        if pyproject_config is not None:
            return pyproject_config

        dotfile_config = _load_from_file(
            current / ".deno-report.toml",
            table_paths=[("deno-report",), ("tool", "deno-report")],
        )
        if dotfile_config is not None:
            return dotfile_config

        parent = current.parent
        if parent == current:
            break
        current = parent

    return DenoReportConfig()


_MISSING = object()


def _load_from_file(
    config_file: Path, table_paths: list[tuple[str, ...]]
) -> DenoReportConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> DenoReportConfig:
    table_display = ".".join(table_path)

    if raw_config is None:
        return DenoReportConfig()

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    raw_config = {key.replace("-", "_"): value for key, value in raw_config.items()}
    try:
        return DenoReportConfig(**raw_config)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def normalize_config(config: DenoReportConfig) -> DenoReportConfig:
    env_passthrough = config.env_passthrough
    if isinstance(env_passthrough, str):
        env_passthrough = [env_passthrough]
    if isinstance(env_passthrough, (list, tuple)):
        env_passthrough = list(dict.fromkeys(env_passthrough))

    return replace(config, env_passthrough=env_passthrough)


def validate_config(config: DenoReportConfig) -> None:
    """Validate a `DenoReportConfig` instance.

    Raises:
        ConfigError: If the executable is empty, the passthrough list is not a
            list of variable names, or numeric limits are not positive integers.
    """
    config = normalize_config(config)

    if not isinstance(config.executable, str) or not config.executable:
        raise ConfigError("`executable` must be a non-empty string")

    if not isinstance(config.env_passthrough, list) or not all(
        isinstance(name, str) and name for name in config.env_passthrough
    ):
        raise ConfigError("`env_passthrough` must be a list of variable names")

    limits = {
        "extract_concurrency": config.extract_concurrency,
        "rewrite_concurrency": config.rewrite_concurrency,
        "chunk_size": config.chunk_size,
    }
    _ensure_integers(limits)
    _ensure_positive(limits)


def apply_overrides(config: DenoReportConfig, **overrides: object) -> DenoReportConfig:
    """Apply override values to a `DenoReportConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        DenoReportConfig: New configuration with the overrides applied, or the
        original configuration when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `DenoReportConfig`.

    Examples:
        updated = apply_overrides(config, executable="/usr/local/bin/deno")
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def get_executable(default: str) -> str:
    """Resolve the toolchain executable, honoring the environment override.

    Raises:
        ConfigError: If the environment value is set but blank.

    Examples:
        os.environ["DENO_REPORT_EXECUTABLE"] = "/opt/deno/bin/deno"
        executable = get_executable(default="deno")
    """
    env_value = os.environ.get(EXECUTABLE_ENV_VAR)
    if env_value is None:
        return default

    if not env_value.strip():
        raise ConfigError(f"{EXECUTABLE_ENV_VAR} must not be empty")

    return env_value.strip()


def build_config(search_path: Path, **overrides: object) -> DenoReportConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        DenoReportConfig: Validated configuration ready for running commands.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), rewrite_concurrency=1)
    """
    config = load_config(search_path)
    config = replace(config, executable=get_executable(config.executable))
    config = apply_overrides(config, **overrides)
    config = normalize_config(config)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
