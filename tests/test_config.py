from __future__ import annotations

import textwrap
import pytest
from pathlib import Path

from deno_report.config import (
    ConfigError,
    DenoReportConfig,
    apply_overrides,
    build_config,
    get_executable,
    load_config,
    validate_config,
)


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def _write_deno_report(base: Path, body: str) -> Path:
    path = base / ".deno-report.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_loads_config_from_pyproject(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.deno-report]
        executable = "/opt/deno/bin/deno"
        env-passthrough = ["NO_COLOR", "DENO_DIR"]
        extract-concurrency = 2
        rewrite_concurrency = 3
        chunk_size = 1024
        """,
    )

    config = load_config(tmp_path)

    assert config == DenoReportConfig(
        executable="/opt/deno/bin/deno",
        env_passthrough=["NO_COLOR", "DENO_DIR"],
        extract_concurrency=2,
        rewrite_concurrency=3,
        chunk_size=1024,
    )


def test_loads_config_from_dotfile(tmp_path: Path):
    _write_deno_report(
        tmp_path,
        """
        [deno-report]
        executable = "deno-canary"
        """,
    )
    nested = tmp_path / "child"
    nested.mkdir()

    config = load_config(nested)

    assert config.executable == "deno-canary"
    assert config.rewrite_concurrency == DenoReportConfig().rewrite_concurrency


def test_pyproject_takes_precedence_over_dotfile(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.deno-report]
        executable = "from-pyproject"
        """,
    )
    _write_deno_report(
        tmp_path,
        """
        [deno-report]
        executable = "from-dotfile"
        """,
    )

    assert load_config(tmp_path).executable == "from-pyproject"


def test_load_config_walks_up_directories(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.deno-report]
        chunk_size = 4096
        """,
    )
    nested = tmp_path / "a" / "b" / "c"
    nested.mkdir(parents=True)

    config = load_config(nested)

    assert config.chunk_size == 4096


def test_empty_config_table_stops_inheritance(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.deno-report]
        executable = "root-deno"
        """,
    )
    child = tmp_path / "child"
    child.mkdir()
    _write_pyproject(
        child,
        """
        [tool.deno-report]
        """,
    )

    config = load_config(child)

    assert config.executable == DenoReportConfig().executable


def test_pyproject_without_table_is_skipped(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.deno-report]
        executable = "root-deno"
        """,
    )
    child = tmp_path / "child"
    child.mkdir()
    _write_pyproject(
        child,
        """
        [project]
        name = "child"
        """,
    )

    assert load_config(child).executable == "root-deno"


def test_load_config_returns_defaults_when_missing(tmp_path: Path):
    config = load_config(tmp_path)

    assert config == DenoReportConfig()


def test_load_config_skips_invalid_toml(tmp_path: Path):
    invalid_dir = tmp_path / "invalid"
    invalid_dir.mkdir()
    _write_pyproject(invalid_dir, "not = {valid")
    _write_pyproject(
        tmp_path,
        """
        [tool.deno-report]
        executable = "parent-deno"
        """,
    )

    nested = invalid_dir / "child"
    nested.mkdir()
    config = load_config(nested)

    assert config.executable == "parent-deno"


def test_load_config_errors_on_invalid_table(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.deno-report]
        executable = "deno"
        unexpected = true
        """,
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_errors_on_non_table(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool]
        deno-report = "deno"
        """,
    )

    with pytest.raises(ConfigError, match="tool.deno-report"):
        load_config(tmp_path)


@pytest.mark.parametrize(
    "config",
    [
        DenoReportConfig(executable=""),
        DenoReportConfig(env_passthrough=[""]),
        DenoReportConfig(env_passthrough=[1]),  # type: ignore[list-item]
        DenoReportConfig(extract_concurrency=0),
        DenoReportConfig(rewrite_concurrency=-1),
        DenoReportConfig(chunk_size=0),
    ],
)
def test_validate_config_rejects_invalid_values(config: DenoReportConfig):
    with pytest.raises(ConfigError):
        validate_config(config)


@pytest.mark.parametrize(
    "config",
    [
        DenoReportConfig(extract_concurrency="many"),  # type: ignore[arg-type]
        DenoReportConfig(rewrite_concurrency=True),
        DenoReportConfig(chunk_size=1.5),  # type: ignore[arg-type]
    ],
)
def test_validate_config_rejects_non_numeric_limits(config: DenoReportConfig):
    with pytest.raises(ConfigError):
        validate_config(config)


def test_apply_overrides_ignores_none():
    config = DenoReportConfig()

    assert apply_overrides(config, executable=None) is config
    assert apply_overrides(config, executable="other").executable == "other"


def test_get_executable_uses_environment(monkeypatch):
    monkeypatch.setenv("DENO_REPORT_EXECUTABLE", " /opt/deno ")

    assert get_executable("deno") == "/opt/deno"


def test_get_executable_rejects_blank_environment(monkeypatch):
    monkeypatch.setenv("DENO_REPORT_EXECUTABLE", "  ")

    with pytest.raises(ConfigError):
        get_executable("deno")


def test_build_config_applies_environment_then_overrides(tmp_path: Path, monkeypatch):
    _write_pyproject(
        tmp_path,
        """
        [tool.deno-report]
        executable = "configured"
        env_passthrough = "NO_COLOR"
        """,
    )
    monkeypatch.setenv("DENO_REPORT_EXECUTABLE", "from-env")

    assert build_config(tmp_path).executable == "from-env"
    assert build_config(tmp_path, executable="from-cli").executable == "from-cli"
    assert build_config(tmp_path).env_passthrough == ["NO_COLOR"]


def test_build_config_rejects_invalid_values(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("DENO_REPORT_EXECUTABLE", raising=False)
    _write_pyproject(
        tmp_path,
        """
        [tool.deno-report]
        chunk_size = 0
        """,
    )

    with pytest.raises(ConfigError, match="chunk_size"):
        build_config(tmp_path)
