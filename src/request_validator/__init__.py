"""
Request validator

Admission pipeline for public web endpoints: verifies search-engine
crawlers, enforces an origin proof cookie, rejects known-bad clients and
malformed requests, and gates suspicious clients behind a human-verification
challenge.
"""

from .client import CaptchaClient
from .config import ConfigError, ValidatorConfig
from .dns import DnsCheck, SocketResolver, forward_confirmed
from .models import Admission, RateWindow, Request, Response, VerificationResult
from .pipeline import Pipeline, default_stages
from .stages import (
    ChallengeGate,
    CrawlerVerifier,
    HeaderSanityFilter,
    MethodGate,
    OriginProofGate,
    ProtocolGate,
    SignatureFilter,
)
from .store import MemoryRateStore, NoReputation
from .tokens import origin_token, tokens_match
from .middleware.wsgi import RequestValidatorWSGIMiddleware

__version__ = "0.1.0"

__all__ = [
    "Admission",
    "CaptchaClient",
    "ChallengeGate",
    "ConfigError",
    "CrawlerVerifier",
    "DnsCheck",
    "HeaderSanityFilter",
    "MemoryRateStore",
    "MethodGate",
    "NoReputation",
    "OriginProofGate",
    "Pipeline",
    "ProtocolGate",
    "RateWindow",
    "Request",
    "RequestValidatorWSGIMiddleware",
    "Response",
    "SignatureFilter",
    "SocketResolver",
    "ValidatorConfig",
    "VerificationResult",
    "default_stages",
    "forward_confirmed",
    "origin_token",
    "tokens_match",
]

# Middleware imports - optional, require framework dependencies
try:
    from .middleware.asgi import RequestValidatorASGIMiddleware
    __all__.append("RequestValidatorASGIMiddleware")
except ImportError:
    pass
