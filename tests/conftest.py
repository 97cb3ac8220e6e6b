"""Shared fixtures: fake resolver, clock, store and verification provider."""

import pytest

from request_validator import MemoryRateStore, ValidatorConfig, VerificationResult
from request_validator.models import Request, Response
from request_validator.tokens import COOKIE_NAME, origin_token

PEPPER = "test-pepper"
BROWSER_UA = "Mozilla/5.0 (X11; Linux x86_64; rv:128.0) Gecko/20100101 Firefox/128.0"
GOOGLEBOT_UA = "Googlebot/2.1 (+http://www.google.com/bot.html)"
BINGBOT_UA = "Mozilla/5.0 (compatible; bingbot/2.0; +http://www.bing.com/bingbot.htm)"


class FakeResolver:
    """Resolver backed by dicts; records every lookup."""

    def __init__(self, ptr=None, addresses=None):
        self.ptr = dict(ptr or {})
        self.addresses = dict(addresses or {})
        self.lookups = []

    def reverse(self, address):
        self.lookups.append(("reverse", address))
        return self.ptr.get(address)

    def forward(self, hostname):
        self.lookups.append(("forward", hostname))
        return list(self.addresses.get(hostname, []))


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeCaptcha:
    """Verification provider returning a fixed result."""

    def __init__(self, success=True):
        self.success = success
        self.calls = []

    def verify_sync(self, response, remote_ip):
        self.calls.append((response, remote_ip))
        if self.success:
            return VerificationResult(success=True)
        return VerificationResult(success=False, error_codes=["invalid-input-response"])


class FakeReputation:
    def __init__(self, flagged=()):
        self.flagged = set(flagged)

    def is_known_proxy_or_bot(self, address):
        return address in self.flagged


@pytest.fixture
def config():
    return ValidatorConfig(
        cookie_pepper=PEPPER,
        captcha_site_key="site-key",
        captcha_secret_key="secret-key",
        captcha_verify_url="http://localhost:8082/siteverify",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return MemoryRateStore(clock=clock)


@pytest.fixture
def resolver():
    return FakeResolver(
        ptr={"203.0.113.5": "crawl-203-0-113-5.googlebot.com"},
        addresses={"crawl-203-0-113-5.googlebot.com": ["203.0.113.5"]},
    )


@pytest.fixture
def captcha():
    return FakeCaptcha(success=True)


@pytest.fixture
def reputation():
    return FakeReputation()


@pytest.fixture
def endpoint():
    """Application endpoint that records the requests it receives."""
    received = []

    def handler(request):
        received.append(request)
        return Response(status=200, body="ok")

    handler.received = received
    return handler


@pytest.fixture
def make_request():
    """Build a browser-like request; keyword arguments override fields."""

    def build(
        path="/page",
        method="GET",
        address="198.51.100.7",
        user_agent=BROWSER_UA,
        accept="text/html,application/xhtml+xml,*/*;q=0.8",
        with_cookie=True,
        headers=None,
        **kwargs,
    ):
        all_headers = {"user-agent": user_agent, "accept": accept}
        all_headers.update(headers or {})
        cookies = kwargs.pop("cookies", None)
        if cookies is None:
            cookies = {COOKIE_NAME: origin_token(address, PEPPER)} if with_cookie else {}
        kwargs.setdefault("protocol", "HTTP/2.0")
        kwargs.setdefault("tls_version", "TLSv1.3")
        return Request(
            method=method,
            path=path,
            client_address=address,
            headers=all_headers,
            cookies=cookies,
            **kwargs,
        )

    return build
