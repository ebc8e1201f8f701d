from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from kbstage.core.config.settings import PackagingSettings, load_settings
from kbstage.core.packaging.paths import expand_user_path
from kbstage.core.packaging.pipeline import PackagePipeline

router = APIRouter(prefix="/api/v1/packages", tags=["packages"])
logger = logging.getLogger("kbstage.api.packages")


def get_settings() -> PackagingSettings:
    # Re-read per request so settings file edits apply without a restart
    return load_settings()


class BuildPackageRequest(BaseModel):
    package_dir: str = Field(..., description="Package directory, e.g. <repo>/packages/<name>")
    output_path: str = Field(..., description="Archive name under the configured output_dir (.kb); an existing file is replaced")


class PackagingOutcomeModel(BaseModel):
    output: str
    returncode: Optional[int] = None
    success: bool


class BuildPackageResponse(BaseModel):
    kind: str = "package_build"
    package_name: str
    output_path: str
    status: str
    ok: bool
    staging_root: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    outcome: Optional[PackagingOutcomeModel] = None
    started_ts: str
    finished_ts: Optional[str] = None


ARCHIVE_SUFFIX = ".kb"


def resolve_output_path(settings: PackagingSettings, output_path: str) -> Path:
    """
    Confine client-supplied archive paths to settings.output_dir.

    Relative paths are taken under output_dir; absolute ones must already be
    inside it. Only *.kb targets are accepted, since the build replaces them.
    """
    if not settings.output_dir:
        raise HTTPException(status_code=400, detail="output_dir is not configured; API builds are disabled")

    base = expand_user_path(settings.output_dir)
    candidate = Path(output_path)
    if not candidate.is_absolute():
        candidate = base / candidate
    candidate = candidate.resolve()

    if candidate == base or base not in candidate.parents:
        raise HTTPException(status_code=400, detail=f"output_path must be inside {base}")
    if candidate.suffix.lower() != ARCHIVE_SUFFIX:
        raise HTTPException(status_code=400, detail=f"output_path must end with {ARCHIVE_SUFFIX}")

    base.mkdir(parents=True, exist_ok=True)
    return candidate


@router.post("/build", response_model=BuildPackageResponse)
def build_package(payload: BuildPackageRequest, settings: PackagingSettings = Depends(get_settings)):
    """
    Runs the whole build synchronously. Build failures are reported in the body
    (status != "succeeded"), not as HTTP errors. Only a rejected output_path is a 400.
    """
    output_path = resolve_output_path(settings, payload.output_path)
    report = PackagePipeline(settings).run(Path(payload.package_dir), output_path)
    logger.info("package build %s: %s", report.package_name, report.status.value)
    return {"ok": report.ok, **report.to_dict()}
