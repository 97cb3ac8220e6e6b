"""
Validation stages, listed in chain order.
"""

from .crawler import CrawlerVerifier
from .origin import OriginProofGate
from .signature import SignatureFilter
from .sanity import HeaderSanityFilter
from .protocol import ProtocolGate
from .method import MethodGate
from .challenge import ChallengeGate

__all__ = [
    "CrawlerVerifier",
    "OriginProofGate",
    "SignatureFilter",
    "HeaderSanityFilter",
    "ProtocolGate",
    "MethodGate",
    "ChallengeGate",
]
