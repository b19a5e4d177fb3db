"""
Unit tests for application settings.

Tests verify eager validation of the environment and the derived
verification configuration.
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from mailer.config.settings import Settings, get_settings
from mailer.domain.models import CaptchaProvider

ENV_VARS = [
    "URL",
    "JWT_SECRET",
    "JWT_EXPIRATION",
    "CAPTCHA_PROVIDER",
    "CAPTCHA_THRESHOLD",
    "CAPTCHA_BRANDING",
    "RECAPTCHA_SITE_KEY",
    "RECAPTCHA_SECRET",
    "HCAPTCHA_SITE_KEY",
    "HCAPTCHA_SECRET",
    "CORS_ORIGIN",
    "LOOPS_SO_SECRET",
    "LOOPS_CONFIRMATION_TEMPLATE_ID",
    "UNSUBSCRIBE_CLEARS_LISTS",
    "NUMBER_OF_PROXIES",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test from an environment without mailer settings."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("URL", "https://news.example.com/")
    monkeypatch.setenv("JWT_SECRET", "secret")


def load() -> Settings:
    return Settings(_env_file=None)  # type: ignore[call-arg]


class TestRequiredValues:
    """Tests for values whose absence aborts start-up."""

    def test_defaults(self) -> None:
        settings = load()
        assert settings.url == "https://news.example.com"
        assert settings.captcha_provider is CaptchaProvider.NONE
        assert settings.captcha_threshold == 0.5
        assert settings.jwt_expiration == timedelta(days=365)
        assert settings.unsubscribe_clears_lists is False

    def test_missing_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("URL")
        with pytest.raises(ValidationError):
            load()

    def test_relative_url_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("URL", "/subscribe")
        with pytest.raises(ValidationError):
            load()

    def test_missing_jwt_secret(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("JWT_SECRET")
        with pytest.raises(ValidationError):
            load()

    def test_empty_jwt_secret(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JWT_SECRET", "")
        with pytest.raises(ValidationError):
            load()


class TestCaptchaSettings:
    """Tests for CAPTCHA provider configuration."""

    def test_unsupported_provider(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CAPTCHA_PROVIDER", "turnstile")
        with pytest.raises(ValidationError):
            load()

    def test_recaptcha_requires_keys(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CAPTCHA_PROVIDER", "recaptcha")
        monkeypatch.setenv("RECAPTCHA_SITE_KEY", "site")
        with pytest.raises(ValidationError, match="RECAPTCHA_SECRET"):
            load()

    def test_hcaptcha_requires_site_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CAPTCHA_PROVIDER", "hcaptcha")
        monkeypatch.setenv("HCAPTCHA_SECRET", "secret")
        with pytest.raises(ValidationError, match="HCAPTCHA_SITE_KEY"):
            load()

    @pytest.mark.parametrize("value", ["-0.1", "1.5", "abc"])
    def test_threshold_out_of_range(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("CAPTCHA_THRESHOLD", value)
        with pytest.raises(ValidationError):
            load()

    def test_unsupported_branding(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CAPTCHA_BRANDING", "banner")
        with pytest.raises(ValidationError):
            load()

    def test_verification_config_for_hcaptcha(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CAPTCHA_PROVIDER", "hcaptcha")
        monkeypatch.setenv("HCAPTCHA_SITE_KEY", "h-site")
        monkeypatch.setenv("HCAPTCHA_SECRET", "h-secret")
        monkeypatch.setenv("RECAPTCHA_SECRET", "r-secret")
        monkeypatch.setenv("CAPTCHA_THRESHOLD", "0.7")

        config = load().verification_config()

        assert config.provider is CaptchaProvider.HCAPTCHA
        assert config.site_key == "h-site"
        assert config.secret == "h-secret"
        assert config.score_threshold == 0.7

    def test_verification_config_for_none_has_no_secret(self) -> None:
        config = load().verification_config()
        assert config.provider is CaptchaProvider.NONE
        assert config.secret == ""
        assert config.site_key == ""


class TestServerSettings:
    def test_issuer_host(self) -> None:
        assert load().issuer_host == "news.example.com"

    def test_jwt_expiration_iso_duration(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JWT_EXPIRATION", "PT1H")
        assert load().jwt_expiration == timedelta(hours=1)

    def test_jwt_expiration_must_be_positive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JWT_EXPIRATION", "PT0S")
        with pytest.raises(ValidationError):
            load()

    def test_cors_origins_split_on_whitespace(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CORS_ORIGIN", " https://a.example  https://b.example ")
        assert load().cors_origins == ["https://a.example", "https://b.example"]

    def test_number_of_proxies(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert load().number_of_proxies == 1
        monkeypatch.setenv("NUMBER_OF_PROXIES", "2")
        assert load().number_of_proxies == 2

    @pytest.mark.parametrize("value", ["-1", "two"])
    def test_number_of_proxies_invalid(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("NUMBER_OF_PROXIES", value)
        with pytest.raises(ValidationError):
            load()

    def test_loops_requires_template(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOOPS_SO_SECRET", "loops-key")
        with pytest.raises(ValidationError, match="LOOPS_CONFIRMATION_TEMPLATE_ID"):
            load()

    def test_get_settings_is_cached(self) -> None:
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
