from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class StagingLayout:
    """
    Fixed names of the staging tree consumed by the packaging tool:

      <root>/objects/<packageName>/...
      <root>/contracts/taxonomy/...
      <root>/contracts/origins/origins.json
      <root>/common/rules_filters/...
    """

    objects_dirname: str = "objects"
    contracts_dirname: str = "contracts"
    taxonomy_dirname: str = "taxonomy"
    origins_dirname: str = "origins"
    origins_filename: str = "origins.json"
    common_dirname: str = "common"
    rules_filters_dirname: str = "rules_filters"
    metainfo_filename: str = "metainfo.yaml"

    def objects_dir(self, root: Path, package_name: str) -> Path:
        return root / self.objects_dirname / package_name

    def taxonomy_dir(self, root: Path) -> Path:
        return root / self.contracts_dirname / self.taxonomy_dirname

    def origins_dir(self, root: Path) -> Path:
        return root / self.contracts_dirname / self.origins_dirname

    def origins_file(self, root: Path) -> Path:
        return self.origins_dir(root) / self.origins_filename

    def rules_filters_dir(self, root: Path) -> Path:
        return root / self.common_dirname / self.rules_filters_dirname


DEFAULT_LAYOUT = StagingLayout()
