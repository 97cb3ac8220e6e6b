"""
Data models for request validation.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Mapping


@dataclass(frozen=True)
class Request:
    """
    Immutable request value passed through the validation chain.

    Attributes:
        method: HTTP method (GET, POST, etc.)
        scheme: URI scheme, "http" or "https"
        path: URI path
        query: Raw query string without the leading "?"
        headers: Request headers with lowercase names
        cookies: Request cookies by name
        body: Parsed form body parameters
        client_address: Client network address
        protocol: Negotiated HTTP protocol, e.g. "HTTP/2.0"
        tls_version: Negotiated TLS version, e.g. "TLSv1.3", if any
        allowed_bot: Set by the crawler check for verified search engines
        request_token: Origin token accepted from the client cookie
        challenge_pass: Set when a verification submission succeeded
    """
    method: str
    path: str
    client_address: str
    scheme: str = "https"
    query: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)
    body: Mapping[str, str] = field(default_factory=dict)
    protocol: str = "HTTP/1.1"
    tls_version: str | None = None
    allowed_bot: bool = False
    request_token: str | None = None
    challenge_pass: bool = False

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def target(self) -> str:
        """Path plus query string, as sent in the request line."""
        if self.query:
            return f"{self.path}?{self.query}"
        return self.path

    @property
    def is_secure(self) -> bool:
        return self.scheme == "https"

    def mark_allowed_bot(self) -> Request:
        return replace(self, allowed_bot=True)

    def with_request_token(self, token: str) -> Request:
        return replace(self, request_token=token)

    def mark_challenge_pass(self) -> Request:
        return replace(self, challenge_pass=True)


@dataclass(frozen=True)
class Response:
    """
    Terminal response returned by a stage.

    Attributes:
        status: HTTP status code
        body: Plain text body
        headers: Response headers
    """
    status: int
    body: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RateWindow:
    """
    Rate counters for one client address, as reported by the store.

    Attributes:
        hourly: Requests counted in the current hour
        daily: Requests counted in the current day
        last_challenge_pass: Unix time of the last verification pass
    """
    hourly: int = 0
    daily: int = 0
    last_challenge_pass: float | None = None


@dataclass
class VerificationResult:
    """
    Result from the human-verification provider.

    Attributes:
        success: Whether the provider accepted the response token
        error_codes: Error codes reported by the provider
        error: Local error message if the call itself failed
    """
    success: bool
    error_codes: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class Admission:
    """
    Outcome of running the chain without a concrete endpoint.

    Attributes:
        request: The request as enriched by the stages that ran
        response: Terminal response, or None if the request was admitted
    """
    request: Request
    response: Response | None = None

    @property
    def admitted(self) -> bool:
        return self.response is None


Handler = Callable[[Request], Response]
