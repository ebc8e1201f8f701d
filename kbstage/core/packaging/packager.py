from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from kbstage.core.packaging.models import SUCCESS_MARKER, PackagingOutcome

_log = logging.getLogger("kbstage.packager")

DOTNET_HOST = "dotnet"


def build_command(tool_path: Path, staging_root: Path, output_path: Path, *, runner: Optional[str] = None) -> List[str]:
    """
    Typical command:
        dotnet kbpack.dll pack -s /tmp/kbstage-x1y2 -o /out/Package.kb
    """
    tool = Path(tool_path)
    if runner is None and tool.suffix.lower() == ".dll":
        runner = DOTNET_HOST

    cmd = [runner] if runner else []
    cmd += [str(tool), "pack", "-s", str(staging_root), "-o", str(output_path)]
    return cmd


def is_success(output: str, marker: str = SUCCESS_MARKER) -> bool:
    return marker in (output or "")


def run_packager(
    tool_path: Path,
    staging_root: Path,
    output_path: Path,
    *,
    runner: Optional[str] = None,
) -> PackagingOutcome:
    """
    Run the packaging tool to completion and capture stdout+stderr as one stream.

    The exit code is recorded but does not decide the outcome: the tool reports
    success only through SUCCESS_MARKER in its output.
    """
    cmd = build_command(tool_path, staging_root, output_path, runner=runner)
    _log.info("Running packaging tool: %s", " ".join(cmd))

    p = subprocess.run(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        encoding="utf-8",
        errors="replace",
    )
    output = p.stdout or ""
    for line in output.splitlines():
        _log.info("%s", line)

    return PackagingOutcome(output=output, returncode=p.returncode, success=is_success(output))
