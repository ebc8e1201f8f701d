from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from kbstage.core.config.settings import load_settings
from kbstage.core.errors import SettingsError
from kbstage.core.packaging.models import BuildStatus
from kbstage.core.packaging.pipeline import PackagePipeline

_log = logging.getLogger("kbstage.cli")

EXIT_OK = 0
EXIT_BUILD_FAILED = 1
EXIT_ERROR = 2


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="kbstage", description="Stage a content package and build a .kb archive")
    ap.add_argument("package_dir", help="Package directory, e.g. <repo>/packages/<name>")
    ap.add_argument("-o", "--output", required=True, help="Output archive path (overwritten if present)")
    ap.add_argument("--config", default=None, help="Settings file (default: $KBSTAGE_CONFIG_FILE)")
    args = ap.parse_args(argv)

    try:
        settings = load_settings(Path(args.config) if args.config else None)
    except SettingsError as e:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
        _log.error("%s", e)
        return EXIT_ERROR

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )

    report = PackagePipeline(settings).run(Path(args.package_dir), Path(args.output))
    print(json.dumps(report.to_dict(), indent=2, sort_keys=True))

    if report.status is BuildStatus.SUCCEEDED:
        return EXIT_OK
    if report.status is BuildStatus.FAILED:
        return EXIT_BUILD_FAILED
    return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
