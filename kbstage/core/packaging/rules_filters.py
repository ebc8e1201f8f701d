from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List

from kbstage.core.packaging.metainfo import METAINFO_FILENAME, MetaInfoLoadKind, read_metainfo

_log = logging.getLogger("kbstage.pruner")

# ObjectId prefix of vendor-internal content that must not ship with a package
DEFAULT_EXCLUSION_MARKER = "PT"


def _child_dirs(directory: Path) -> List[Path]:
    return sorted(
        (p for p in directory.iterdir() if p.is_dir() and not p.is_symlink()),
        key=lambda p: p.name,
    )


class RulesFilterPruner:
    """
    Removes vendor-internal subtrees from a staged rules_filters copy.

    A directory whose metainfo.yaml has an ObjectId starting with the exclusion
    marker is deleted together with everything beneath it. Any other directory
    is kept and its children are examined with the same rule. The root passed
    to prune() is never itself evaluated.
    """

    def __init__(
        self,
        *,
        exclusion_marker: str = DEFAULT_EXCLUSION_MARKER,
        metainfo_filename: str = METAINFO_FILENAME,
    ):
        self.exclusion_marker = exclusion_marker
        self.metainfo_filename = metainfo_filename

    def is_excluded(self, directory: Path) -> bool:
        load = read_metainfo(directory, self.metainfo_filename)

        if load.kind is MetaInfoLoadKind.MISSING:
            return False
        if load.kind is MetaInfoLoadKind.UNREADABLE:
            _log.error("Cannot read %s: %s", load.path, load.error)
            return False

        object_id = load.record.object_id if load.record is not None else None
        return bool(object_id) and object_id.startswith(self.exclusion_marker)

    def prune(self, root: Path) -> List[Path]:
        root = Path(root)
        try:
            stack = list(reversed(_child_dirs(root)))
        except OSError as e:
            _log.error("Cannot list rules filters directory %s: %s", root, e)
            return []

        removed: List[Path] = []
        while stack:
            current = stack.pop()

            if self.is_excluded(current):
                _log.info("Removing vendor-internal directory %s", current)
                try:
                    shutil.rmtree(current)
                except OSError as e:
                    _log.error("Failed to remove %s: %s", current, e)
                else:
                    removed.append(current)
                # removed or not, a matched subtree is never descended into
                continue

            try:
                children = _child_dirs(current)
            except OSError as e:
                _log.error("Cannot list directory %s: %s", current, e)
                continue
            stack.extend(reversed(children))

        return removed


def prune_rules_filters(root: Path, *, exclusion_marker: str = DEFAULT_EXCLUSION_MARKER) -> List[Path]:
    return RulesFilterPruner(exclusion_marker=exclusion_marker).prune(root)
