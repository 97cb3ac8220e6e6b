"""
Read-only method gate.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from ..headers import method_not_allowed_body
from ..models import Handler, Request, Response


class MethodGate:
    """
    Reject methods outside ``allowed`` with 405, regardless of bot status.

    Args:
        allowed: Accepted methods. Default: GET, HEAD
        exempt: Extra methods accepted on specific paths, e.g.
            ``{"/api/captcha-verify": ("POST",)}`` for a form endpoint
            handled by a later stage
    """

    def __init__(
        self,
        allowed: Iterable[str] = ("GET", "HEAD"),
        exempt: Mapping[str, Iterable[str]] | None = None,
    ):
        self.allowed = tuple(method.upper() for method in allowed)
        self.exempt = {
            path: frozenset(method.upper() for method in methods)
            for path, methods in (exempt or {}).items()
        }

    def handle(self, request: Request, call_next: Handler) -> Response:
        method = request.method.upper()
        if method in self.allowed or method in self.exempt.get(request.path, ()):
            return call_next(request)

        return Response(status=405, body=method_not_allowed_body(self.allowed))
