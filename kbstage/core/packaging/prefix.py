from __future__ import annotations

import logging
from typing import List

from kbstage.core.packaging.models import extract_prefix

_log = logging.getLogger("kbstage.prefix")


def validate_content_prefix(object_id: str, content_prefix: str) -> List[str]:
    """
    Advisory check of a package ObjectId against the configured content prefix.

    Returns warning messages (empty when the prefix matches). Never raises;
    the caller continues the build regardless of the result.
    """
    warnings: List[str] = []

    package_prefix = extract_prefix(object_id)
    if package_prefix is None:
        warnings.append(f"Could not extract prefix from package ObjectId {object_id!r}")
    elif package_prefix != content_prefix:
        warnings.append(
            f"Content prefix {content_prefix!r} does not match ObjectId {object_id!r} "
            f"(prefix {package_prefix!r}); the package may fail to install. "
            "Change the content prefix or the package ObjectId"
        )

    for w in warnings:
        _log.warning("%s", w)
    return warnings
