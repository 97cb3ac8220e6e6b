"""
Obsolete HTTP and TLS version rejection.
"""

import logging

from ..config import ValidatorConfig
from ..models import Handler, Request, Response

logger = logging.getLogger(__name__)


class ProtocolGate:
    """
    On https requests, reject with 505 any protocol other than the required
    one and any deprecated TLS version. Plain http is not checked.
    """

    def __init__(self, config: ValidatorConfig):
        self.required_protocol = config.required_http_protocol
        self.deprecated_tls = frozenset(config.deprecated_tls_versions)

    def handle(self, request: Request, call_next: Handler) -> Response:
        if request.allowed_bot or not request.is_secure:
            return call_next(request)

        if request.protocol != self.required_protocol:
            logger.info("%s - Wrong protocol rejected: '%s'", request.client_address, request.protocol)
            return Response(status=505, body="Bad HTTP protocol version")

        if request.tls_version in self.deprecated_tls:
            logger.info("%s - Old TLS version rejected: '%s'", request.client_address, request.tls_version)
            return Response(status=505, body="Bad TLS version")

        return call_next(request)
