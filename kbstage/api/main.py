from __future__ import annotations

from fastapi import FastAPI

from kbstage import __version__
from kbstage.api.endpoints import observability, packages
from kbstage.api.middleware.error_shaping import SafeErrorMiddleware
from kbstage.api.middleware.request_context import RequestContextMiddleware

app = FastAPI(
    title="kbstage API",
    version=__version__,
)

# Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
#   SafeErrorMiddleware -> RequestContextMiddleware -> handler
app.add_middleware(RequestContextMiddleware)
app.add_middleware(SafeErrorMiddleware)

app.include_router(observability.router)
app.include_router(packages.router)
