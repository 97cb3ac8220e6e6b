"""
Configuration for the validation chain.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

# Default hosted verification endpoint (hCaptcha-compatible siteverify)
DEFAULT_CAPTCHA_VERIFY_URL = "https://hcaptcha.com/siteverify"

ENV_PREFIX = "REQUEST_VALIDATOR_"


class ConfigError(ValueError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class ValidatorConfig:
    """
    Settings consumed by the validation stages.

    Args:
        cookie_pepper: Secret mixed into the origin token
        captcha_site_key: Public site key of the verification provider
        captcha_secret_key: Secret key of the verification provider
        captcha_verify_url: Provider verification endpoint
        captcha_path: Path that receives verification submissions
        captcha_response_field: Form field carrying the response token
        query_exempt_prefixes: Paths that keep their query string
        required_http_protocol: Protocol required on https requests
        deprecated_tls_versions: TLS versions rejected on https requests
        allowed_methods: Methods accepted by the method gate
        challenge_pass_ttl_s: Age below which a verification pass skips checks
        long_absence_s: Pass age after which the daily limit applies
        hourly_limit: Requests per hour before a challenge
        daily_limit: Requests per day before a challenge
        cookie_max_age_s: Lifetime of the origin token cookie
        dns_timeout_s: Timeout for each DNS lookup
        verify_timeout_s: Timeout for the provider call
    """
    cookie_pepper: str
    captcha_site_key: str = ""
    captcha_secret_key: str = ""
    captcha_verify_url: str = DEFAULT_CAPTCHA_VERIFY_URL
    captcha_path: str = "/api/captcha-verify"
    captcha_response_field: str = "h-captcha-response"
    query_exempt_prefixes: tuple[str, ...] = ("/order/",)
    required_http_protocol: str = "HTTP/2.0"
    deprecated_tls_versions: frozenset[str] = field(
        default_factory=lambda: frozenset({"SSLv3", "TLSv1", "TLSv1.1", "TLSv1.2"})
    )
    allowed_methods: tuple[str, ...] = ("GET", "HEAD")
    challenge_pass_ttl_s: float = 14 * 3600
    long_absence_s: float = 24 * 3600
    hourly_limit: int = 150
    daily_limit: int = 1200
    cookie_max_age_s: int = 86400
    dns_timeout_s: float = 0.3
    verify_timeout_s: float = 3.0

    def __post_init__(self) -> None:
        if not self.cookie_pepper:
            raise ConfigError("cookie_pepper must not be empty")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        prefix: str = ENV_PREFIX,
    ) -> ValidatorConfig:
        """
        Build a config from environment variables.

        Required:
            REQUEST_VALIDATOR_COOKIE_PEPPER
            REQUEST_VALIDATOR_CAPTCHA_SITE_KEY
            REQUEST_VALIDATOR_CAPTCHA_SECRET_KEY

        Optional:
            REQUEST_VALIDATOR_CAPTCHA_VERIFY_URL
            REQUEST_VALIDATOR_CAPTCHA_PATH
            REQUEST_VALIDATOR_HOURLY_LIMIT
            REQUEST_VALIDATOR_DAILY_LIMIT
            REQUEST_VALIDATOR_DNS_TIMEOUT_S
            REQUEST_VALIDATOR_VERIFY_TIMEOUT_S

        Raises:
            ConfigError: If a required variable is missing or a number is malformed
        """
        env = os.environ if environ is None else environ

        def required(name: str) -> str:
            value = env.get(prefix + name, "")
            if not value:
                raise ConfigError(f"Missing required setting: {prefix}{name}")
            return value

        kwargs: dict[str, object] = {
            "cookie_pepper": required("COOKIE_PEPPER"),
            "captcha_site_key": required("CAPTCHA_SITE_KEY"),
            "captcha_secret_key": required("CAPTCHA_SECRET_KEY"),
        }

        if env.get(prefix + "CAPTCHA_VERIFY_URL"):
            kwargs["captcha_verify_url"] = env[prefix + "CAPTCHA_VERIFY_URL"]
        if env.get(prefix + "CAPTCHA_PATH"):
            kwargs["captcha_path"] = env[prefix + "CAPTCHA_PATH"]

        numeric = {
            "HOURLY_LIMIT": ("hourly_limit", int),
            "DAILY_LIMIT": ("daily_limit", int),
            "DNS_TIMEOUT_S": ("dns_timeout_s", float),
            "VERIFY_TIMEOUT_S": ("verify_timeout_s", float),
        }
        for name, (attr, cast) in numeric.items():
            raw = env.get(prefix + name)
            if not raw:
                continue
            try:
                kwargs[attr] = cast(raw)
            except ValueError as e:
                raise ConfigError(f"Invalid value for {prefix}{name}: {raw!r}") from e

        return cls(**kwargs)  # type: ignore[arg-type]
