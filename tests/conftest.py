from __future__ import annotations

import json
import sys
import textwrap
from dataclasses import dataclass
from pathlib import Path

import pytest
from click.testing import CliRunner

from deno_report.config import DenoReportConfig

FAKE_DENO = """\
#!{python}
import json
import os
import re
import sys
from pathlib import Path

settings = json.loads({settings!r})
args = sys.argv[1:]

samples = {{}}
for arg in args:
    if os.path.isdir(arg):
        for name in os.listdir(arg):
            start = int(name.rsplit("$", 1)[1].split("-", 1)[0])
            samples[start] = os.path.join(arg, name)

Path(settings["record"]).write_text(
    json.dumps(
        {{
            "args": args,
            "cwd": os.getcwd(),
            "env": dict(os.environ),
            "samples": sorted(os.path.basename(path) for path in samples.values()),
        }}
    ),
    encoding="utf-8",
)

for start, content in settings["rewrite"].items():
    with open(samples[int(start)], "w", encoding="utf-8", newline="") as handle:
        handle.write(content)


def render(text):
    text = text.replace("<cwd>", os.getcwd())
    return re.sub(r"<sample:(\\d+)>", lambda match: samples[int(match.group(1))], text)


sys.stdout.write(render(settings["stdout"]))
sys.stdout.flush()
sys.stderr.write(render(settings["stderr"]))
sys.stderr.flush()
sys.exit(settings["code"])
"""


@dataclass
class FakeDeno:
    """A scripted stand-in for the deno executable.

    Output templates may use ``<cwd>`` for the working directory and
    ``<sample:N>`` for the path of the sample file whose opening fence is on
    line N.
    """

    path: Path
    record: Path

    @property
    def config(self) -> DenoReportConfig:
        return DenoReportConfig(executable=str(self.path))

    @property
    def called(self) -> bool:
        return self.record.exists()

    def invocation(self) -> dict:
        return json.loads(self.record.read_text(encoding="utf-8"))


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Provides a reusable Click CLI runner."""
    return CliRunner()


@pytest.fixture()
def fake_deno(tmp_path_factory):
    """Install a fake deno printing the given output and exiting with `code`."""
    directory = tmp_path_factory.mktemp("bin")

    def install(
        stdout: str = "",
        stderr: str = "",
        code: int = 0,
        rewrite: dict[int, str] | None = None,
    ) -> FakeDeno:
        path = directory / "deno"
        record = directory / "invocation.json"
        settings = json.dumps(
            {
                "record": str(record),
                "stdout": textwrap.dedent(stdout).lstrip("\n"),
                "stderr": textwrap.dedent(stderr).lstrip("\n"),
                "code": code,
                "rewrite": {str(start): content for start, content in (rewrite or {}).items()},
            }
        )
        path.write_text(FAKE_DENO.format(python=sys.executable, settings=settings), encoding="utf-8")
        path.chmod(0o755)
        return FakeDeno(path=path, record=record)

    return install
