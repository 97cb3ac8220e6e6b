"""
ASGI middleware for request validation (FastAPI/Starlette).
"""

from __future__ import annotations

from typing import Any, Callable

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest
from starlette.responses import PlainTextResponse, Response

from ..headers import TLS_VERSIONS, normalize_headers, parse_form, response_headers
from ..models import Request
from ..pipeline import Pipeline


def _http_protocol(version: str) -> str:
    # ASGI reports "1.1" or "2"; the chain compares against "HTTP/2.0"
    if "." not in version:
        version = f"{version}.0"
    return f"HTTP/{version}"


def _tls_version(scope: dict[str, Any]) -> str | None:
    tls = scope.get("extensions", {}).get("tls")
    if not tls:
        return None
    return TLS_VERSIONS.get(tls.get("tls_version"))


async def build_request(request: StarletteRequest) -> Request:
    """Translate a Starlette request into a chain Request."""
    headers = normalize_headers(request.headers.items())

    body: dict[str, str] = {}
    if request.method == "POST":
        body = parse_form(await request.body(), headers.get("content-type", ""))

    return Request(
        method=request.method,
        scheme=request.url.scheme,
        path=request.url.path,
        query=request.url.query,
        headers=headers,
        cookies=dict(request.cookies),
        body=body,
        client_address=request.client.host if request.client else "",
        protocol=_http_protocol(request.scope.get("http_version", "1.1")),
        tls_version=_tls_version(request.scope),
    )


class RequestValidatorASGIMiddleware(BaseHTTPMiddleware):
    """
    ASGI middleware that runs the validation chain before the app.

    The chain runs in Starlette's thread pool because DNS lookups and the
    verification provider call block. Terminal responses are returned as
    plain text; an admitted request is attached to
    `request.state.admission` (the enriched chain Request).

    Args:
        app: ASGI application
        pipeline: Pipeline built from an ordered list of stages

    Example (FastAPI):
        >>> from fastapi import FastAPI, Request
        >>> from request_validator import Pipeline, default_stages
        >>>
        >>> app = FastAPI()
        >>> app.add_middleware(
        ...     RequestValidatorASGIMiddleware,
        ...     pipeline=Pipeline(default_stages(config, store)),
        ... )
        >>>
        >>> @app.get("/page")
        >>> async def page(request: Request):
        ...     admission = request.state.admission
        ...     return {"bot": admission.allowed_bot}
    """

    def __init__(self, app: Any, pipeline: Pipeline):
        super().__init__(app)
        self.pipeline = pipeline

    async def dispatch(
        self,
        request: StarletteRequest,
        call_next: Callable[[StarletteRequest], Any],
    ) -> Response:
        chain_request = await build_request(request)
        admission = await run_in_threadpool(self.pipeline.admit, chain_request)

        if admission.response is not None:
            body, headers = response_headers(admission.response.headers, admission.response.body)
            response = PlainTextResponse(body, status_code=admission.response.status)
            for key, value in headers:
                response.headers.append(key, value)
            return response

        request.state.admission = admission.request
        return await call_next(request)
