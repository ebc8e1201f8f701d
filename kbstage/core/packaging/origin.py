from __future__ import annotations

import getpass
import logging
import socket
import uuid

from kbstage.core.config.settings import PackagingSettings
from kbstage.core.packaging.models import Origin

_log = logging.getLogger("kbstage.origin")


def _current_username() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return ""


def current_origin(settings: PackagingSettings) -> Origin:
    """Origin descriptor for the current user and settings; built fresh per run."""
    o = settings.origin
    username = _current_username()
    _log.info("Username: %s", username)

    return Origin(
        id=o.id or str(uuid.uuid4()),
        system_name=o.system_name or settings.content_prefix,
        nickname=o.nickname,
        revision=o.revision,
        content_prefix=settings.content_prefix,
        author=username,
        host=socket.gethostname(),
    )
