"""
Chain assembly.

Each stage exposes ``handle(request, call_next)`` and either returns a
terminal Response or delegates to ``call_next``. The chain order is an
explicit list supplied by the caller; no stage picks its own successor.
"""

from __future__ import annotations

from functools import partial
from typing import Protocol, Sequence

from .client import CaptchaClient, CaptchaVerifier
from .config import ValidatorConfig
from .dns import Resolver, SocketResolver
from .models import Admission, Handler, Request, Response
from .store import NoReputation, RateStore, ReputationSource
from .stages import (
    ChallengeGate,
    CrawlerVerifier,
    HeaderSanityFilter,
    MethodGate,
    OriginProofGate,
    ProtocolGate,
    SignatureFilter,
)


# Marker returned by the internal endpoint used by Pipeline.admit
_ADMITTED = Response(status=0)


class Stage(Protocol):
    def handle(self, request: Request, call_next: Handler) -> Response:
        ...


class Pipeline:
    """
    Runs a request through an ordered list of stages.

    Args:
        stages: Stages in execution order
        endpoint: Application handler reached when every stage forwards

    Example:
        >>> pipeline = Pipeline(default_stages(config, store), endpoint=render_page)
        >>> response = pipeline.handle(request)
    """

    def __init__(
        self,
        stages: Sequence[Stage],
        endpoint: Handler | None = None,
    ):
        self.stages = tuple(stages)
        self.endpoint = endpoint

    def handle(self, request: Request) -> Response:
        if self.endpoint is None:
            raise RuntimeError("Pipeline has no endpoint; use admit() instead")
        return self._compose(self.endpoint)(request)

    def admit(self, request: Request) -> Admission:
        """
        Run the stages without an endpoint.

        Returns:
            Admission with the enriched request if every stage forwarded,
            otherwise the terminal response of the stage that stopped it
        """
        admitted: list[Request] = []

        def endpoint(req: Request) -> Response:
            admitted.append(req)
            return _ADMITTED

        response = self._compose(endpoint)(request)
        if response is _ADMITTED:
            return Admission(request=admitted[-1])
        return Admission(request=request, response=response)

    def close(self) -> None:
        """Release resources held by stages, such as a resolver's lookup pool."""
        for stage in self.stages:
            close = getattr(stage, "close", None)
            if close is not None:
                close()

    def _compose(self, endpoint: Handler) -> Handler:
        handler = endpoint
        for stage in reversed(self.stages):
            handler = partial(stage.handle, call_next=handler)
        return handler


def default_stages(
    config: ValidatorConfig,
    store: RateStore,
    resolver: Resolver | None = None,
    captcha: CaptchaVerifier | None = None,
    reputation: ReputationSource | None = None,
) -> list[Stage]:
    """
    Build the standard chain in its fixed order.

    Crawler verification comes first so that a verified crawler is never
    cookie-gated or challenged by a later stage.

    Args:
        config: Validator settings
        store: Rate/session store
        resolver: DNS resolver. Default: SocketResolver with config timeout,
            shut down by ``Pipeline.close()``
        captcha: Verification provider. Default: CaptchaClient from config
        reputation: Proxy/known-bot signal. Default: flags nothing
    """
    if resolver is None:
        resolver = SocketResolver(timeout_s=config.dns_timeout_s)
    if captcha is None:
        captcha = CaptchaClient(
            site_key=config.captcha_site_key,
            secret_key=config.captcha_secret_key,
            verify_url=config.captcha_verify_url,
            timeout_s=config.verify_timeout_s,
        )

    return [
        CrawlerVerifier(resolver),
        OriginProofGate(config),
        SignatureFilter(),
        HeaderSanityFilter(config),
        ProtocolGate(config),
        MethodGate(config.allowed_methods, exempt={config.captcha_path: ("POST",)}),
        ChallengeGate(config, store, captcha, reputation or NoReputation()),
    ]
