from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Union

PathLike = Union[str, os.PathLike]


def expand_user_path(path: PathLike) -> Path:
    """
    Expand "~" / "~user" and make the path absolute.
    The packaging tool receives raw argv strings and does not expand shorthand.
    """
    return Path(os.path.expandvars(str(path))).expanduser().resolve()


def iter_files(root: Path) -> Iterable[Path]:
    for p in sorted(Path(root).rglob("*")):
        if p.is_file():
            yield p
