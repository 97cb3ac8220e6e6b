"""
Header sanity checks and query string canonicalization.
"""

import logging

from ..config import ValidatorConfig
from ..headers import ACCEPT_DISALLOWED_RE, NON_PRINTABLE_RE
from ..models import Handler, Request, Response

logger = logging.getLogger(__name__)

# User-Agents this short are never sent by real browsers
MIN_USER_AGENT_LENGTH = 11


def bad_user_agent(user_agent: str) -> bool:
    return (
        user_agent in ("", "-")
        or len(user_agent) < MIN_USER_AGENT_LENGTH
        or NON_PRINTABLE_RE.search(user_agent) is not None
    )


def bad_accept(accept: str) -> bool:
    return ACCEPT_DISALLOWED_RE.search(accept) is not None


class HeaderSanityFilter:
    """
    Reject malformed User-Agent and Accept headers with 400, and redirect
    requests carrying a query string to the bare path with 301.

    Paths starting with one of ``config.query_exempt_prefixes`` keep their
    query string. Verified crawlers pass through.
    """

    def __init__(self, config: ValidatorConfig):
        self.query_exempt_prefixes = tuple(config.query_exempt_prefixes)

    def handle(self, request: Request, call_next: Handler) -> Response:
        if request.allowed_bot:
            return call_next(request)

        user_agent = request.user_agent
        if bad_user_agent(user_agent):
            logger.info(
                "%s - Bad User-Agent header rejected: '%s'",
                request.client_address,
                user_agent,
            )
            return Response(status=400, body="Bad request headers")

        accept = request.headers.get("accept", "")
        if bad_accept(accept):
            logger.info(
                "%s - Bad Accept header rejected: '%s', User-Agent: '%s'",
                request.client_address,
                accept,
                user_agent,
            )
            return Response(status=400, body="Bad request headers")

        if request.query and not request.path.startswith(self.query_exempt_prefixes):
            return Response(status=301, headers={"Location": request.path})

        return call_next(request)
