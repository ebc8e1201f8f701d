from __future__ import annotations

from collections import Counter
from typing import Dict

from prometheus_client import Counter as PromCounter
from prometheus_client import Histogram

# Named counters (in-process snapshot, used by tests and the status endpoint)
_NAMED = Counter()

_PROM_BUILDS = PromCounter(
    "kbstage_builds_total",
    "Package builds by final status",
    ["status"],
)

_PROM_BUILD_SECONDS = Histogram(
    "kbstage_build_duration_seconds",
    "Wall time of a package build, staging and packaging tool included",
)

_PROM_PRUNED_DIRS = PromCounter(
    "kbstage_pruned_directories_total",
    "Vendor-internal directories removed from staged rules filters",
)

_PROM_NORMALIZED_FILES = PromCounter(
    "kbstage_normalized_files_total",
    "Staged files rewritten by CRLF -> LF normalization",
)


def reset_metrics() -> None:
    """
    Test helper: clears in-process counters to avoid cross-test leakage.
    Prometheus collectors are process-global and are left untouched.
    """
    _NAMED.clear()


def inc_named(name: str, value: int = 1) -> None:
    if not name:
        return
    _NAMED[name] += int(value)


def record_build(status: str, duration_s: float) -> None:
    s = status or "unknown"
    _NAMED["builds_total"] += 1
    _NAMED[f"builds_{s}"] += 1
    _PROM_BUILDS.labels(status=s).inc()
    _PROM_BUILD_SECONDS.observe(max(0.0, float(duration_s)))


def record_pruned(count: int) -> None:
    if count <= 0:
        return
    _NAMED["pruned_directories"] += count
    _PROM_PRUNED_DIRS.inc(count)


def record_normalized(count: int) -> None:
    if count <= 0:
        return
    _NAMED["normalized_files"] += count
    _PROM_NORMALIZED_FILES.inc(count)


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
