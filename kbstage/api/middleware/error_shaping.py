from __future__ import annotations

import logging
import traceback
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from kbstage.core.errors import KbStageError, SettingsError

log = logging.getLogger("kbstage.errors")


def _payload(detail: str, rid: str | None) -> dict:
    payload = {"detail": detail}
    if rid:
        payload["request_id"] = rid
    return payload


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    Shapes errors escaping the handlers:
      - SettingsError / KbStageError -> 500 / 400 with the error message only
      - anything else                -> 500 "Internal Server Error"
    Tracebacks are logged server-side and never returned.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            if isinstance(e, SettingsError):
                return JSONResponse(status_code=500, content=_payload(f"Packaging settings are invalid: {e}", rid))
            if isinstance(e, KbStageError):
                return JSONResponse(status_code=400, content=_payload(str(e), rid))
            return JSONResponse(status_code=500, content=_payload("Internal Server Error", rid))
