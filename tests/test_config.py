"""Tests for ValidatorConfig."""

import pytest

from request_validator import ConfigError, ValidatorConfig

REQUIRED = {
    "REQUEST_VALIDATOR_COOKIE_PEPPER": "pepper",
    "REQUEST_VALIDATOR_CAPTCHA_SITE_KEY": "site",
    "REQUEST_VALIDATOR_CAPTCHA_SECRET_KEY": "secret",
}


class TestValidatorConfig:
    """Tests for ValidatorConfig."""

    def test_defaults(self):
        """Defaults match the documented thresholds."""
        config = ValidatorConfig(cookie_pepper="pepper")
        assert config.challenge_pass_ttl_s == 14 * 3600
        assert config.long_absence_s == 24 * 3600
        assert config.hourly_limit == 150
        assert config.daily_limit == 1200
        assert config.cookie_max_age_s == 86400
        assert config.captcha_path == "/api/captcha-verify"
        assert config.allowed_methods == ("GET", "HEAD")

    def test_empty_pepper_rejected(self):
        """An empty pepper would make tokens predictable."""
        with pytest.raises(ConfigError):
            ValidatorConfig(cookie_pepper="")

    def test_from_env(self):
        """Required settings are read from the environment."""
        config = ValidatorConfig.from_env(REQUIRED)
        assert config.cookie_pepper == "pepper"
        assert config.captcha_site_key == "site"
        assert config.captcha_secret_key == "secret"
        assert config.captcha_verify_url == "https://hcaptcha.com/siteverify"

    def test_from_env_overrides(self):
        """Optional overrides are parsed."""
        env = dict(REQUIRED)
        env["REQUEST_VALIDATOR_HOURLY_LIMIT"] = "300"
        env["REQUEST_VALIDATOR_DNS_TIMEOUT_S"] = "0.5"
        env["REQUEST_VALIDATOR_CAPTCHA_PATH"] = "/verify"

        config = ValidatorConfig.from_env(env)

        assert config.hourly_limit == 300
        assert config.dns_timeout_s == 0.5
        assert config.captcha_path == "/verify"

    @pytest.mark.parametrize("missing", sorted(REQUIRED))
    def test_from_env_missing(self, missing):
        """Each required setting must be present."""
        env = {k: v for k, v in REQUIRED.items() if k != missing}
        with pytest.raises(ConfigError, match=missing):
            ValidatorConfig.from_env(env)

    def test_from_env_bad_number(self):
        """Malformed numbers raise ConfigError."""
        env = dict(REQUIRED, REQUEST_VALIDATOR_DAILY_LIMIT="lots")
        with pytest.raises(ConfigError, match="DAILY_LIMIT"):
            ValidatorConfig.from_env(env)
