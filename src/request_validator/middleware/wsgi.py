"""
WSGI middleware for request validation (Flask and other WSGI apps).
"""

from __future__ import annotations

from io import BytesIO
from http import HTTPStatus
from typing import Any, Callable, Iterable, Mapping

from ..headers import normalize_headers, parse_cookies, parse_form, response_headers
from ..models import Request
from ..pipeline import Pipeline

ADMISSION_KEY = "request_validator.admission"


def _extract_headers(environ: dict[str, Any]) -> dict[str, str]:
    """Extract HTTP headers from WSGI environ."""
    pairs: list[tuple[str, str]] = []
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            # HTTP_USER_AGENT -> user-agent
            pairs.append((key[5:].replace("_", "-"), value))
        elif key == "CONTENT_TYPE":
            pairs.append(("content-type", value))
        elif key == "CONTENT_LENGTH":
            pairs.append(("content-length", value))
    return normalize_headers(pairs)


def _read_body(environ: dict[str, Any]) -> bytes:
    """Read the request body and reset the input stream for the app."""
    content_length = environ.get("CONTENT_LENGTH")
    if not content_length:
        return b""
    try:
        length = int(content_length)
        body_bytes = environ["wsgi.input"].read(length)
    except (ValueError, KeyError):
        return b""
    environ["wsgi.input"] = BytesIO(body_bytes)
    return body_bytes


def build_request(environ: dict[str, Any]) -> Request:
    """Translate a WSGI environ into a chain Request."""
    headers = _extract_headers(environ)
    method = environ.get("REQUEST_METHOD", "GET")

    body: dict[str, str] = {}
    if method == "POST":
        body = parse_form(_read_body(environ), headers.get("content-type", ""))

    return Request(
        method=method,
        scheme=environ.get("wsgi.url_scheme", "http"),
        path=environ.get("PATH_INFO", "/") or "/",
        query=environ.get("QUERY_STRING", ""),
        headers=headers,
        cookies=parse_cookies(environ.get("HTTP_COOKIE", "")),
        body=body,
        client_address=environ.get("REMOTE_ADDR", ""),
        protocol=environ.get("SERVER_PROTOCOL", "HTTP/1.1"),
        tls_version=environ.get("SSL_PROTOCOL") or None,
    )


class RequestValidatorWSGIMiddleware:
    """
    WSGI middleware that runs the validation chain before the app.

    Terminal responses are returned as plain text. An admitted request is
    attached to `environ["request_validator.admission"]`.

    Args:
        app: WSGI application
        pipeline: Pipeline built from an ordered list of stages

    Example (Flask):
        >>> from flask import Flask, request
        >>> from request_validator import Pipeline, default_stages
        >>> from request_validator.middleware.wsgi import RequestValidatorWSGIMiddleware
        >>>
        >>> app = Flask(__name__)
        >>> app.wsgi_app = RequestValidatorWSGIMiddleware(
        ...     app.wsgi_app, Pipeline(default_stages(config, store))
        ... )
        >>>
        >>> @app.route("/page")
        >>> def page():
        ...     admission = request.environ["request_validator.admission"]
        ...     return {"bot": admission.allowed_bot}
    """

    def __init__(
        self,
        app: Callable[..., Iterable[bytes]],
        pipeline: Pipeline,
    ):
        self.app = app
        self.pipeline = pipeline

    def __call__(
        self,
        environ: dict[str, Any],
        start_response: Callable[..., Any],
    ) -> Iterable[bytes]:
        admission = self.pipeline.admit(build_request(environ))

        if admission.response is not None:
            return self._terminal_response(
                start_response,
                admission.response.status,
                admission.response.headers,
                admission.response.body,
            )

        environ[ADMISSION_KEY] = admission.request
        return self.app(environ, start_response)

    def _terminal_response(
        self,
        start_response: Callable[..., Any],
        status: int,
        headers: Mapping[str, str],
        text: str,
    ) -> Iterable[bytes]:
        """Return a stage's terminal response."""
        reason, header_list = response_headers(headers, text)
        body = reason.encode("utf-8")
        start_response(
            f"{status} {HTTPStatus(status).phrase}",
            [
                ("Content-Type", "text/plain; charset=utf-8"),
                ("Content-Length", str(len(body))),
                *header_list,
            ],
        )
        return [body]
