"""
Search-engine crawler verification.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ..dns import DnsCheck, Resolver, forward_confirmed
from ..models import Handler, Request, Response
from ..signatures import CRAWLERS, CrawlerSignature

logger = logging.getLogger(__name__)


class CrawlerVerifier:
    """
    Verify clients that claim to be a search-engine crawler.

    A claimed crawler must pass forward-confirmed reverse DNS for its
    operator, otherwise the request is rejected with 403. A verified crawler
    is marked ``allowed_bot`` so later stages neither cookie-gate nor
    challenge it. Requests without a crawler claim pass through unchanged.

    Args:
        resolver: DNS resolver used for the reverse and forward lookups
        crawlers: Operators in priority order. Default: Google, then Bing
    """

    def __init__(
        self,
        resolver: Resolver,
        crawlers: Sequence[CrawlerSignature] = CRAWLERS,
    ):
        self.resolver = resolver
        self.crawlers = tuple(crawlers)

    def claimed(self, user_agent: str) -> CrawlerSignature | None:
        for crawler in self.crawlers:
            if crawler.claims(user_agent):
                return crawler
        return None

    def close(self) -> None:
        close = getattr(self.resolver, "close", None)
        if close is not None:
            close()

    def handle(self, request: Request, call_next: Handler) -> Response:
        crawler = self.claimed(request.user_agent)
        if crawler is None:
            return call_next(request)

        try:
            check = forward_confirmed(request.client_address, crawler, self.resolver)
        except Exception as e:
            check = DnsCheck(verified=False, error=f"DNS verification failed: {e}")

        if not check.verified:
            logger.warning(
                "%s - Fake %s rejected: %s (hostname: %s)",
                request.client_address,
                crawler.name,
                check.error,
                check.hostname,
            )
            return Response(status=403, body="Fake bot rejected")

        logger.debug("%s - %s verified as %s", request.client_address, crawler.name, check.hostname)
        return call_next(request.mark_allowed_bot())
