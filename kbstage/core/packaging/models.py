from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from kbstage.core.packaging.metainfo import read_metainfo

# Leading vendor token of an ObjectId, e.g. "LOC-RF-1234" -> "LOC".
PREFIX_PATTERN = re.compile(r"^(\S+?)-")

SUCCESS_MARKER = "Knowledge base package creation completed successfully"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def extract_prefix(object_id: str) -> Optional[str]:
    m = PREFIX_PATTERN.match(object_id or "")
    if not m:
        return None
    return m.group(1)


@dataclass(frozen=True)
class Package:
    object_id: str
    directory: Path

    @property
    def name(self) -> str:
        return self.directory.name

    @property
    def vendor_prefix(self) -> Optional[str]:
        return extract_prefix(self.object_id)

    @classmethod
    def from_directory(cls, directory: Path, *, metainfo_filename: str = "metainfo.yaml") -> "Package":
        """
        Discover a package on disk. The identifier comes from the package's own
        metadata record; a package without a readable ObjectId falls back to its
        directory name.
        """
        d = Path(directory)
        load = read_metainfo(d, metainfo_filename)
        object_id = None
        if load.found and load.record is not None:
            object_id = load.record.object_id
        return cls(object_id=object_id or d.name, directory=d)


class Origin(BaseModel):
    """Build/user context embedded in the package as contracts/origins/origins.json."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="Id")
    system_name: str = Field(..., alias="SystemName")
    nickname: str = Field("", alias="Nickname")
    revision: str = Field("", alias="Revision")
    content_prefix: str = Field("", alias="ContentPrefix")
    author: str = Field("", alias="Author")
    host: str = Field("", alias="Host")
    created_at: str = Field(default_factory=utc_now_iso, alias="CreatedAt")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=4)


@dataclass
class PackagingOutcome:
    output: str
    returncode: Optional[int] = None
    success: bool = False


class BuildStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PRECONDITION_FAILED = "precondition_failed"
    ERROR = "error"


@dataclass
class BuildReport:
    package_name: str
    output_path: str
    status: BuildStatus = BuildStatus.ERROR
    staging_root: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None
    outcome: Optional[PackagingOutcome] = None
    started_ts: str = field(default_factory=utc_now_iso)
    finished_ts: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is BuildStatus.SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["status"] = self.status.value
        return d
