import json
import sys
from pathlib import Path

import pytest

from kbstage.core.packaging.packager import build_command, is_success, run_packager

from kbstage.core.packaging.models import SUCCESS_MARKER as SUCCESS_LINE


def test_success_marker_anywhere_in_output():
    out = "info: reading objects\nwarn: something odd\n" + SUCCESS_LINE + "\ninfo: bye\n"
    assert is_success(out)


@pytest.mark.parametrize(
    "out",
    [
        "",
        "Knowledge base package creation completed\n",
        "knowledge base package creation completed successfully\n",
        "Done.\n",
    ],
)
def test_output_without_exact_marker_is_failure(out):
    assert not is_success(out)


def test_dll_tool_runs_through_dotnet_host():
    cmd = build_command(Path("/opt/kbt/kbpack.dll"), Path("/tmp/stage"), Path("/out/p.kb"))
    assert cmd == ["dotnet", str(Path("/opt/kbt/kbpack.dll")), "pack", "-s", str(Path("/tmp/stage")), "-o", str(Path("/out/p.kb"))]


def test_native_tool_runs_directly():
    cmd = build_command(Path("/opt/kbt/kbpack"), Path("/s"), Path("/o.kb"))
    assert cmd[0] == str(Path("/opt/kbt/kbpack"))
    assert cmd[1:] == ["pack", "-s", str(Path("/s")), "-o", str(Path("/o.kb"))]


def test_run_packager_success_and_args(make_fake_tool, tmp_path: Path):
    tool = make_fake_tool()
    stage = tmp_path / "stage"
    stage.mkdir()
    out = tmp_path / "out" / "pkg.kb"

    outcome = run_packager(tool, stage, out, runner=sys.executable)

    assert outcome.success
    assert outcome.returncode == 0
    assert "noise on stderr" in outcome.output  # stderr merged into the same stream
    args = json.loads(Path(str(out) + ".args").read_text(encoding="utf-8"))
    assert args == ["pack", "-s", str(stage), "-o", str(out)]


def test_zero_exit_without_marker_is_failure(make_fake_tool, tmp_path: Path):
    tool = make_fake_tool(lines=("Something else happened",), exit_code=0)
    outcome = run_packager(tool, tmp_path, tmp_path / "p.kb", runner=sys.executable)
    assert outcome.returncode == 0
    assert not outcome.success


def test_nonzero_exit_with_marker_is_success(make_fake_tool, tmp_path: Path):
    tool = make_fake_tool(lines=(SUCCESS_LINE,), exit_code=3)
    outcome = run_packager(tool, tmp_path, tmp_path / "p.kb", runner=sys.executable)
    assert outcome.returncode == 3
    assert outcome.success
