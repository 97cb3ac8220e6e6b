"""
Client for the human-verification provider's siteverify endpoint.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from .config import DEFAULT_CAPTCHA_VERIFY_URL
from .models import VerificationResult

logger = logging.getLogger(__name__)


class CaptchaVerifier(Protocol):
    """Verifies a challenge-response token submitted by a client."""

    def verify_sync(self, response: str, remote_ip: str) -> VerificationResult:
        ...


def parse_verification(data: Any) -> VerificationResult:
    """
    Interpret a decoded provider response.

    ``success`` is accepted as the boolean ``true`` or the string ``"true"``;
    anything else, including a missing field, is a failed verification.

    Examples:
        >>> parse_verification({"success": "true"}).success
        True
        >>> parse_verification({"error-codes": ["invalid-input-response"]}).success
        False
    """
    if not isinstance(data, dict):
        return VerificationResult(success=False, error="Verifier response is not an object")

    success = data.get("success")
    error_codes = data.get("error-codes") or []
    if not isinstance(error_codes, list):
        error_codes = [str(error_codes)]

    return VerificationResult(
        success=success is True or success == "true",
        error_codes=[str(code) for code in error_codes],
        error=None if "success" in data else "Missing success field",
    )


class CaptchaClient:
    """
    Client for an hCaptcha-compatible verification service.

    Posts the client's response token as a form body and interprets the
    JSON reply. Transport errors, timeouts and malformed bodies never raise;
    they return a failed VerificationResult with ``error`` set.

    Args:
        site_key: Public site key
        secret_key: Secret key for the verification API
        verify_url: URL of the siteverify endpoint.
            Default: https://hcaptcha.com/siteverify
        timeout_s: Request timeout in seconds. Default: 3.0

    Example:
        >>> client = CaptchaClient(site_key="site", secret_key="secret")
        >>> result = client.verify_sync(token, "203.0.113.5")
        >>> if result.success:
        ...     print("human")
    """

    def __init__(
        self,
        site_key: str,
        secret_key: str,
        verify_url: str = DEFAULT_CAPTCHA_VERIFY_URL,
        timeout_s: float = 3.0,
    ):
        self.site_key = site_key
        self.secret_key = secret_key
        self.verify_url = verify_url
        self.timeout_s = timeout_s

    def _form(self, response: str, remote_ip: str) -> dict[str, str]:
        return {
            "secret": self.secret_key,
            "response": response,
            "remoteip": remote_ip,
            "sitekey": self.site_key,
        }

    async def verify(self, response: str, remote_ip: str) -> VerificationResult:
        """
        Verify a response token asynchronously.

        Args:
            response: Token submitted by the client
            remote_ip: Client network address

        Returns:
            VerificationResult with success flag and provider error codes
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                reply = await client.post(
                    self.verify_url,
                    data=self._form(response, remote_ip),
                )
        except httpx.HTTPError as e:
            return self._transport_failure(e, remote_ip)

        return self._parse_response(reply, remote_ip)

    def verify_sync(self, response: str, remote_ip: str) -> VerificationResult:
        """
        Verify a response token synchronously.

        Args:
            response: Token submitted by the client
            remote_ip: Client network address

        Returns:
            VerificationResult with success flag and provider error codes
        """
        try:
            with httpx.Client(timeout=self.timeout_s) as client:
                reply = client.post(
                    self.verify_url,
                    data=self._form(response, remote_ip),
                )
        except httpx.HTTPError as e:
            return self._transport_failure(e, remote_ip)

        return self._parse_response(reply, remote_ip)

    def _transport_failure(self, e: httpx.HTTPError, remote_ip: str) -> VerificationResult:
        logger.warning("Verification provider unreachable: %s (IP: %s)", e, remote_ip)
        return VerificationResult(success=False, error=f"Verification failed: {e}")

    def _parse_response(self, reply: httpx.Response, remote_ip: str) -> VerificationResult:
        """Parse provider response into VerificationResult."""
        try:
            data = reply.json()
        except ValueError:
            logger.warning(
                "Invalid verification provider response: %s (IP: %s)",
                reply.status_code,
                remote_ip,
            )
            return VerificationResult(
                success=False,
                error=f"Invalid verifier response: {reply.status_code}",
            )

        result = parse_verification(data)
        if not result.success:
            logger.info(
                "Verification rejected: %s (IP: %s)",
                result.error_codes or result.error,
                remote_ip,
            )
        return result
