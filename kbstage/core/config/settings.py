"""
Packaging settings loader.

Reads an optional YAML/JSON settings file and applies environment overrides
on top of it. This replaces the editor-side configuration the packaging flow
used to depend on (tool path, content prefix, taxonomy location, origin).

Settings file format (YAML or JSON):
    kbpack_path: ~/kbt/extra-tools/kbpack/kbpack.dll
    content_prefix: LOC
    taxonomy_dir: ~/kbt/knowledgebases/contracts/taxonomy
    tmp_dir: ~/.kbstage/tmp
    output_dir: ~/kb-packages
    origin:
      id: 2f3c...
      system_name: LOC
      nickname: Local content

Environment variables:
    KBSTAGE_CONFIG_FILE — path to the settings file (optional).
    KBSTAGE_<FIELD>     — overrides a top-level field, e.g. KBSTAGE_CONTENT_PREFIX.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from kbstage.core.errors import SettingsError

_log = logging.getLogger("kbstage.settings")

ENV_PREFIX = "KBSTAGE_"
CONFIG_FILE_ENV = "KBSTAGE_CONFIG_FILE"

_ENV_FIELDS = (
    "kbpack_path",
    "tool_runner",
    "content_prefix",
    "taxonomy_dir",
    "rules_filters_dir",
    "tmp_dir",
    "output_dir",
    "exclusion_marker",
    "log_level",
)


class OriginSettings(BaseModel):
    id: Optional[str] = None
    # "" => content_prefix
    system_name: str = ""
    nickname: str = ""
    revision: str = ""


class PackagingSettings(BaseModel):
    # Path to the packaging tool. A .dll is run through the .NET host.
    kbpack_path: str = ""
    # Explicit command used to run kbpack_path (default: "dotnet" for .dll, none otherwise)
    tool_runner: Optional[str] = None

    content_prefix: str = "LOC"
    taxonomy_dir: str = ""
    # None => <content repo>/common/rules_filters, derived from the package location
    rules_filters_dir: Optional[str] = None
    # None => system temp directory
    tmp_dir: Optional[str] = None
    # Where the HTTP API may write archives; None => API builds are refused
    output_dir: Optional[str] = None

    exclusion_marker: str = "PT"
    log_level: str = "INFO"

    origin: OriginSettings = Field(default_factory=OriginSettings)


def _parse_text(raw_text: str, source: Path) -> Dict[str, Any]:
    # JSON first, YAML as fallback (YAML accepts most JSON, but error messages are worse)
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise SettingsError(f"Failed to parse settings file {source}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {source} must be a mapping, got {type(data).__name__}")
    return data


def _env_overrides() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name in _ENV_FIELDS:
        v = os.getenv(ENV_PREFIX + name.upper())
        if v is None:
            continue
        v = v.strip()
        if v:
            out[name] = v
    return out


def _resolve_path(path: Optional[Path]) -> Optional[Path]:
    if path is not None:
        return Path(path)
    env_path = os.getenv(CONFIG_FILE_ENV, "").strip()
    if env_path:
        return Path(env_path).expanduser()
    return None


def load_settings(path: Optional[Path] = None) -> PackagingSettings:
    """
    Build settings from (in order, later wins):
      1. model defaults
      2. settings file (argument, else KBSTAGE_CONFIG_FILE)
      3. KBSTAGE_* environment overrides

    An explicitly requested file that does not exist is an error.
    """
    data: Dict[str, Any] = {}

    resolved = _resolve_path(path)
    if resolved is not None:
        try:
            raw_text = resolved.read_text(encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Cannot read settings file {resolved}: {exc}") from exc
        data = _parse_text(raw_text, resolved)
        _log.info("Loaded settings from %s", resolved)

    data.update(_env_overrides())

    try:
        return PackagingSettings.model_validate(data)
    except ValidationError as exc:
        raise SettingsError(f"Invalid packaging settings: {exc}") from exc
