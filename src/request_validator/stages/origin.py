"""
Origin proof cookie gate.
"""

import logging

from ..config import ValidatorConfig
from ..models import Handler, Request, Response
from ..tokens import COOKIE_NAME, build_set_cookie, origin_token, tokens_match

logger = logging.getLogger(__name__)


class OriginProofGate:
    """
    Require the address-derived ``request_key`` cookie.

    A client without the correct token gets a 307 back to the same target
    with the token set, so every scripted client pays one full round trip
    before any expensive check runs. Verified crawlers pass through.
    """

    def __init__(self, config: ValidatorConfig):
        self.pepper = config.cookie_pepper
        self.max_age_s = config.cookie_max_age_s

    def handle(self, request: Request, call_next: Handler) -> Response:
        if request.allowed_bot:
            return call_next(request)

        expected = origin_token(request.client_address, self.pepper)
        if not tokens_match(expected, request.cookies.get(COOKIE_NAME)):
            logger.debug("%s - Issuing origin token for %s", request.client_address, request.target)
            return Response(
                status=307,
                headers={
                    "Set-Cookie": build_set_cookie(expected, self.max_age_s, request.is_secure),
                    "Location": request.target,
                },
            )

        return call_next(request.with_request_token(expected))
