from __future__ import annotations

import logging
import time
import traceback
from pathlib import Path
from typing import Optional

from kbstage.core.config.settings import PackagingSettings
from kbstage.core.observability.metrics import record_build
from kbstage.core.packaging.layout import DEFAULT_LAYOUT, StagingLayout
from kbstage.core.packaging.models import BuildReport, BuildStatus, Package, utc_now_iso
from kbstage.core.packaging.origin import current_origin
from kbstage.core.packaging.packager import run_packager
from kbstage.core.packaging.paths import expand_user_path
from kbstage.core.packaging.prefix import validate_content_prefix
from kbstage.core.packaging.rules_filters import RulesFilterPruner
from kbstage.core.packaging.staging import StagingAssembler

_log = logging.getLogger("kbstage.pipeline")

INTERNAL_ERROR_MESSAGE = "Internal error while building package"


class PackagePipeline:
    def __init__(self, settings: PackagingSettings, *, layout: StagingLayout = DEFAULT_LAYOUT):
        self.settings = settings
        self.layout = layout

    def _assembler(self) -> StagingAssembler:
        s = self.settings
        return StagingAssembler(
            taxonomy_dir=expand_user_path(s.taxonomy_dir),
            rules_filters_dir=expand_user_path(s.rules_filters_dir) if s.rules_filters_dir else None,
            origin_provider=lambda: current_origin(s),
            tmp_dir=s.tmp_dir,
            layout=self.layout,
            pruner=RulesFilterPruner(
                exclusion_marker=s.exclusion_marker,
                metainfo_filename=self.layout.metainfo_filename,
            ),
        )

    def _precondition_error(self, package_dir: Path) -> Optional[str]:
        if not self.settings.kbpack_path:
            return "Path to the packaging tool is not configured (kbpack_path)"
        tool = expand_user_path(self.settings.kbpack_path)
        if not tool.exists():
            return f"Packaging tool not found at {tool}; check kbpack_path"
        if not self.settings.taxonomy_dir:
            return "Path to the taxonomy directory is not configured (taxonomy_dir)"
        if not package_dir.is_dir():
            return f"Package directory not found: {package_dir}"
        return None

    def run(self, package_dir: Path, output_path: Path) -> BuildReport:
        started = time.monotonic()
        package_dir = expand_user_path(package_dir)
        output_path = expand_user_path(output_path)
        report = BuildReport(package_name=package_dir.name, output_path=str(output_path))

        try:
            problem = self._precondition_error(package_dir)
            if problem:
                _log.error("%s", problem)
                report.status = BuildStatus.PRECONDITION_FAILED
                report.error = problem
                return report

            package = Package.from_directory(package_dir, metainfo_filename=self.layout.metainfo_filename)
            report.warnings.extend(validate_content_prefix(package.object_id, self.settings.content_prefix))

            _log.info("Building package '%s'", package.name)
            staging_root = self._assembler().assemble(package, output_path)
            report.staging_root = str(staging_root)
            _log.info("Staging directory: %s", staging_root)

            outcome = run_packager(
                expand_user_path(self.settings.kbpack_path),
                staging_root,
                output_path,
                runner=self.settings.tool_runner,
            )
            report.outcome = outcome

            if outcome.success:
                _log.info("Package '%s' built successfully: %s", package.name, output_path)
                report.status = BuildStatus.SUCCEEDED
            else:
                _log.error("Package '%s' build failed, see packaging tool output", package.name)
                report.status = BuildStatus.FAILED
                report.error = f"Packaging tool did not report success for '{package.name}'"
            return report

        except Exception as e:
            _log.error("%s: %s\n%s", INTERNAL_ERROR_MESSAGE, e, traceback.format_exc())
            report.status = BuildStatus.ERROR
            report.error = f"{INTERNAL_ERROR_MESSAGE}: {e}"
            return report

        finally:
            report.finished_ts = utc_now_iso()
            record_build(report.status.value, time.monotonic() - started)


def build_package(settings: PackagingSettings, package_dir: Path, output_path: Path) -> BuildReport:
    return PackagePipeline(settings).run(package_dir, output_path)
