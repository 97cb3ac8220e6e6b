"""
Rate-adaptive human-verification gate.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable

from ..client import CaptchaVerifier
from ..config import ValidatorConfig
from ..models import Handler, RateWindow, Request, Response, VerificationResult
from ..store import RateStore, ReputationSource

logger = logging.getLogger(__name__)

READ_ONLY_METHODS = frozenset({"GET", "HEAD"})

KNOWN_BOT_REASON = "Known bot IP"
HIGH_TRAFFIC_REASON = "High traffic from your IP"
STORE_UNAVAILABLE_REASON = "Verification required"


class ChallengeGate:
    """
    Interpose a human-verification challenge for suspicious clients.

    Submissions to ``config.captcha_path`` are verified with the provider;
    an accepted submission is recorded in the store and forwarded with
    ``challenge_pass`` set.

    Any other request from a client without a recent verification pass is
    challenged if the reputation source flags its address, or if it exceeds
    the hourly limit, or, after a long absence, the daily limit. A challenged
    read gets 401 with the reason (the HTTP layer renders the challenge
    page); a challenged mutation gets 401 ``Expired session``. Unchallenged
    GETs are counted in the store.

    Args:
        config: Validator settings (path, field name, limits)
        store: Rate/session store
        captcha: Verification provider client
        reputation: Proxy and known-bot signal
        clock: Returns the current Unix time. Default: time.time
    """

    def __init__(
        self,
        config: ValidatorConfig,
        store: RateStore,
        captcha: CaptchaVerifier,
        reputation: ReputationSource,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.store = store
        self.captcha = captcha
        self.reputation = reputation
        self.clock = clock

    def handle(self, request: Request, call_next: Handler) -> Response:
        if request.method.upper() == "POST" and request.path == self.config.captcha_path:
            return self._handle_submission(request, call_next)

        if request.allowed_bot:
            return call_next(request)

        try:
            reason = self.challenge_reason(request.client_address)
        except Exception:
            logger.exception("%s - Rate store lookup failed", request.client_address)
            reason = STORE_UNAVAILABLE_REASON

        if reason is not None:
            logger.info("%s - Challenge on %s: %s", request.client_address, request.path, reason)
            if request.method.upper() in READ_ONLY_METHODS:
                return Response(status=401, body=reason)
            return Response(status=401, body="Expired session")

        if request.method.upper() == "GET":
            try:
                self.store.register_request(request.client_address)
            except Exception:
                logger.exception("%s - Rate store update failed", request.client_address)

        return call_next(request)

    def challenge_pass_age(self, window: RateWindow) -> float:
        """Seconds since the last verification pass, infinite if none."""
        if window.last_challenge_pass is None:
            return math.inf
        return self.clock() - window.last_challenge_pass

    def challenge_reason(self, address: str) -> str | None:
        """Return why the address must be challenged, or None."""
        window = self.store.window(address)
        age = self.challenge_pass_age(window)
        if age <= self.config.challenge_pass_ttl_s:
            return None

        if self.reputation.is_known_proxy_or_bot(address):
            return KNOWN_BOT_REASON

        if window.hourly > self.config.hourly_limit or (
            age > self.config.long_absence_s and window.daily > self.config.daily_limit
        ):
            return HIGH_TRAFFIC_REASON

        return None

    def _handle_submission(self, request: Request, call_next: Handler) -> Response:
        token = request.body.get(self.config.captcha_response_field, "")
        if not token:
            return Response(status=401, body="Missing CAPTCHA response")

        try:
            result = self.captcha.verify_sync(token, request.client_address)
        except Exception as e:
            result = VerificationResult(success=False, error=f"Verification failed: {e}")

        if not result.success:
            logger.warning(
                "%s - Invalid CAPTCHA response: %s",
                request.client_address,
                result.error_codes or result.error,
            )
            return Response(status=403, body="Invalid CAPTCHA response")

        try:
            self.store.record_challenge_pass(request.client_address)
        except Exception:
            logger.exception("%s - Recording verification pass failed", request.client_address)

        return call_next(request.mark_challenge_pass())
