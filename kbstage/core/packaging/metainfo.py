from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

METAINFO_FILENAME = "metainfo.yaml"
OBJECT_ID_KEY = "ObjectId"


class MetaInfoLoadKind(str, Enum):
    FOUND = "FOUND"
    MISSING = "MISSING"
    UNREADABLE = "UNREADABLE"


@dataclass(frozen=True)
class MetadataRecord:
    path: Path
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def object_id(self) -> Optional[str]:
        v = self.fields.get(OBJECT_ID_KEY)
        if v is None:
            return None
        return str(v).strip()


@dataclass(frozen=True)
class MetaInfoLoad:
    kind: MetaInfoLoadKind
    path: Path
    record: Optional[MetadataRecord] = None
    error: Optional[BaseException] = None

    @property
    def found(self) -> bool:
        return self.kind is MetaInfoLoadKind.FOUND


def read_metainfo(directory: Path, filename: str = METAINFO_FILENAME) -> MetaInfoLoad:
    """
    Load the metadata record stored beside a directory's content.

    Never raises for I/O or parse problems:
      - no file            -> MISSING (expected, not every directory has one)
      - unreadable/invalid -> UNREADABLE with the underlying error attached
    """
    p = Path(directory) / filename

    try:
        raw = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        return MetaInfoLoad(kind=MetaInfoLoadKind.MISSING, path=p)
    except (OSError, UnicodeDecodeError) as e:
        return MetaInfoLoad(kind=MetaInfoLoadKind.UNREADABLE, path=p, error=e)

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        return MetaInfoLoad(kind=MetaInfoLoadKind.UNREADABLE, path=p, error=e)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        err = ValueError(f"{p} must be a mapping, got {type(data).__name__}")
        return MetaInfoLoad(kind=MetaInfoLoadKind.UNREADABLE, path=p, error=err)

    return MetaInfoLoad(
        kind=MetaInfoLoadKind.FOUND,
        path=p,
        record=MetadataRecord(path=p, fields={str(k): v for k, v in data.items()}),
    )
