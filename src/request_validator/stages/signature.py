"""
Known-bad client rejection.
"""

import logging

from ..models import Handler, Request, Response
from ..signatures import is_bad_agent

logger = logging.getLogger(__name__)


class SignatureFilter:
    """Reject User-Agents on the static deny-list with 403."""

    def handle(self, request: Request, call_next: Handler) -> Response:
        if request.allowed_bot:
            return call_next(request)

        if is_bad_agent(request.user_agent):
            logger.info("%s - Bad bot rejected: '%s'", request.client_address, request.user_agent)
            return Response(status=403, body="Bad bot rejected")

        return call_next(request)
