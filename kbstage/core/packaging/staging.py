from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Optional

from kbstage.core.observability.metrics import record_normalized, record_pruned
from kbstage.core.packaging.eol import normalize_eol
from kbstage.core.packaging.layout import DEFAULT_LAYOUT, StagingLayout
from kbstage.core.packaging.models import Origin, Package
from kbstage.core.packaging.paths import expand_user_path
from kbstage.core.packaging.rules_filters import RulesFilterPruner

_log = logging.getLogger("kbstage.staging")

OriginProvider = Callable[[], Origin]

STAGING_DIR_PREFIX = "kbstage-"


def default_rules_filters_dir(package_dir: Path) -> Path:
    """<repo>/packages/<name> -> <repo>/common/rules_filters"""
    return Path(package_dir).resolve().parent.parent / "common" / "rules_filters"


class StagingAssembler:
    """
    Builds the directory tree handed to the packaging tool.

    Every step must finish before the next starts; the first OSError aborts
    the run and the partially built tree is left on disk.
    """

    def __init__(
        self,
        *,
        taxonomy_dir: Path,
        rules_filters_dir: Optional[Path],
        origin_provider: OriginProvider,
        tmp_dir: Optional[Path] = None,
        layout: StagingLayout = DEFAULT_LAYOUT,
        pruner: Optional[RulesFilterPruner] = None,
    ):
        self.taxonomy_dir = Path(taxonomy_dir)
        self.rules_filters_dir = Path(rules_filters_dir) if rules_filters_dir else None
        self.origin_provider = origin_provider
        self.tmp_dir = tmp_dir
        self.layout = layout
        self.pruner = pruner or RulesFilterPruner(metainfo_filename=layout.metainfo_filename)

    def _new_root(self) -> Path:
        base = expand_user_path(self.tmp_dir) if self.tmp_dir else Path(tempfile.gettempdir()).resolve()
        base.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix=STAGING_DIR_PREFIX, dir=str(base)))

    def assemble(self, package: Package, output_path: Path) -> Path:
        output_path = Path(output_path)
        if output_path.exists():
            _log.info("Removing existing archive %s", output_path)
            output_path.unlink()

        root = self._new_root()
        _log.info("Staging package %r in %s", package.name, root)

        # objects/<packageName>
        objects_dir = self.layout.objects_dir(root, package.name)
        objects_dir.parent.mkdir(parents=True, exist_ok=True)
        shutil.copytree(package.directory, objects_dir)
        record_normalized(len(normalize_eol(objects_dir)))

        # contracts/taxonomy
        taxonomy_dst = self.layout.taxonomy_dir(root)
        taxonomy_dst.mkdir(parents=True, exist_ok=True)
        shutil.copytree(self.taxonomy_dir, taxonomy_dst, dirs_exist_ok=True)

        # contracts/origins/origins.json
        origins_dst = self.layout.origins_dir(root)
        origins_dst.mkdir(parents=True, exist_ok=True)
        origin = self.origin_provider()
        self.layout.origins_file(root).write_text(origin.to_json(), encoding="utf-8")

        # common/rules_filters
        rules_src = self.rules_filters_dir or default_rules_filters_dir(package.directory)
        rules_dst = self.layout.rules_filters_dir(root)
        rules_dst.mkdir(parents=True, exist_ok=True)
        shutil.copytree(rules_src, rules_dst, dirs_exist_ok=True)
        removed = self.pruner.prune(rules_dst)
        record_pruned(len(removed))
        if removed:
            _log.info("Pruned %d vendor-internal rules filter director(ies)", len(removed))

        return root
