from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from kbstage.core.errors import KbStageError
from kbstage.core.packaging.paths import iter_files

_log = logging.getLogger("kbstage.eol")


def convert_windows_eol(content: str) -> str:
    return content.replace("\r\n", "\n")


def normalize_eol(root: Path) -> List[Path]:
    """
    Rewrite every file under root with CRLF converted to LF, in place.

    Files are read and written as UTF-8 text; only changed files are written.
    Returns the rewritten paths. Running twice is a no-op the second time.
    A file that is not UTF-8 text raises KbStageError naming that file.
    """
    rewritten: List[Path] = []
    for f in iter_files(root):
        # newline="" keeps "\r\n" intact on read and stops translation on write
        try:
            with f.open("r", encoding="utf-8", newline="") as fp:
                content = fp.read()
        except UnicodeDecodeError as e:
            raise KbStageError(f"Cannot normalize line endings, {f} is not UTF-8 text: {e}") from e

        normalized = convert_windows_eol(content)
        if normalized == content:
            continue

        with f.open("w", encoding="utf-8", newline="") as fp:
            fp.write(normalized)
        rewritten.append(f)

    if rewritten:
        _log.info("Normalized line endings in %d file(s) under %s", len(rewritten), root)
    return rewritten
