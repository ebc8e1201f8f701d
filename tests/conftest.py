import sys
import textwrap
from pathlib import Path

import pytest

from kbstage.core.config.settings import OriginSettings, PackagingSettings
from kbstage.core.observability.metrics import reset_metrics

SUCCESS_LINE = "Knowledge base package creation completed successfully"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    # Keep a developer's KBSTAGE_* environment out of the tests
    for key in (
        "KBSTAGE_CONFIG_FILE",
        "KBSTAGE_KBPACK_PATH",
        "KBSTAGE_TOOL_RUNNER",
        "KBSTAGE_CONTENT_PREFIX",
        "KBSTAGE_TAXONOMY_DIR",
        "KBSTAGE_RULES_FILTERS_DIR",
        "KBSTAGE_TMP_DIR",
        "KBSTAGE_OUTPUT_DIR",
        "KBSTAGE_EXCLUSION_MARKER",
        "KBSTAGE_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_metrics()


def write_meta(directory: Path, object_id: str) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "metainfo.yaml").write_text(f"ObjectId: {object_id}\n", encoding="utf-8")


@pytest.fixture()
def make_fake_tool(tmp_path: Path):
    """
    Writes a stand-in for the packaging tool. It records its argv next to the
    output archive (<output>.args), writes the archive, prints `lines` and exits
    with `exit_code`.
    """

    def _make(lines=(SUCCESS_LINE,), exit_code: int = 0, name: str = "fake_kbpack.py") -> Path:
        script = tmp_path / "tools" / name
        script.parent.mkdir(parents=True, exist_ok=True)
        script.write_text(
            textwrap.dedent(
                f"""
                import json
                import sys
                from pathlib import Path

                args = sys.argv[1:]
                out = Path(args[args.index("-o") + 1])
                out.parent.mkdir(parents=True, exist_ok=True)
                Path(str(out) + ".args").write_text(json.dumps(args), encoding="utf-8")
                out.write_bytes(b"KB")
                print("kbpack starting", flush=True)
                print("noise on stderr", file=sys.stderr, flush=True)
                for line in {list(lines)!r}:
                    print(line, flush=True)
                sys.exit({int(exit_code)})
                """
            ),
            encoding="utf-8",
        )
        return script

    return _make


@pytest.fixture()
def content_repo(tmp_path: Path) -> Path:
    """
    <repo>/packages/esc_pack/...            package with CRLF content
    <repo>/common/rules_filters/...         shared filters, one vendor-internal
    <repo>/taxonomy/...                     taxonomy reference data
    """
    repo = tmp_path / "repo"

    pkg = repo / "packages" / "esc_pack"
    write_meta(pkg, "LOC-PKG-1")
    rule_dir = pkg / "correlation_rules" / "rule_a"
    write_meta(rule_dir, "LOC-CR-1")
    (rule_dir / "rule.co").write_bytes(b"line1\r\nline2\r\n")

    rf = repo / "common" / "rules_filters"
    write_meta(rf / "internal_filter", "PT-RF-100")
    (rf / "internal_filter" / "filter.flt").write_text("x", encoding="utf-8")
    write_meta(rf / "shared_filter", "LOC-RF-200")
    (rf / "shared_filter" / "filter.flt").write_text("y", encoding="utf-8")

    tax = repo / "taxonomy"
    tax.mkdir(parents=True)
    (tax / "taxonomy.json").write_text('{"fields": []}', encoding="utf-8")

    return repo


@pytest.fixture()
def settings(tmp_path: Path, content_repo: Path, make_fake_tool) -> PackagingSettings:
    tool = make_fake_tool()
    return PackagingSettings(
        kbpack_path=str(tool),
        tool_runner=sys.executable,
        content_prefix="LOC",
        taxonomy_dir=str(content_repo / "taxonomy"),
        tmp_dir=str(tmp_path / "staging"),
        output_dir=str(tmp_path / "out"),
        origin=OriginSettings(id="origin-1", system_name="LOC", nickname="Local"),
    )
