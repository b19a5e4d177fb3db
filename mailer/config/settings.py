"""
Application settings - pydantic-settings configuration.

This module defines application configuration using pydantic-settings
for environment variable loading with validation and defaults.
Validation is eager: a missing or malformed required value aborts start-up.
"""

from datetime import timedelta
from functools import lru_cache
from urllib.parse import urlsplit

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mailer.domain.models import CaptchaProvider, VerificationConfig


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Public base URL of the deployment (confirmation links, token issuer)
    url: str

    # Identity tokens
    jwt_secret: str = Field(min_length=1)
    jwt_expiration: timedelta = timedelta(days=365)  # seconds or ISO-8601 duration

    # CAPTCHA
    captcha_provider: CaptchaProvider = CaptchaProvider.NONE
    captcha_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    captcha_branding: str = Field(default="disclaimer", pattern=r"^(none|badge|disclaimer)$")
    recaptcha_site_key: str = ""
    recaptcha_secret: str = ""
    hcaptcha_site_key: str = ""
    hcaptcha_secret: str = ""

    # Company information shown in emails and the control panel
    company_name: str = ""
    company_address: str = ""
    company_logo: str | None = None

    # Reverse proxies in front of the service that append to X-Forwarded-For
    number_of_proxies: int = Field(default=1, ge=0)

    # Space separated list of origins allowed to embed sign-up forms
    cors_origin: str = ""

    # Loops.so contact store; empty selects the in-memory store and console mailer
    loops_so_secret: str = ""
    loops_confirmation_template_id: str = ""

    http_timeout_seconds: float = Field(default=10.0, gt=0)  # Applies to every outbound call
    unsubscribe_clears_lists: bool = False

    @field_validator("url")
    @classmethod
    def _require_hostname(cls, value: str) -> str:
        if not urlsplit(value).hostname:
            raise ValueError(f"URL must be an absolute URL: {value!r}")
        return value.rstrip("/")

    @field_validator("jwt_expiration")
    @classmethod
    def _positive_expiration(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("JWT_EXPIRATION must be positive")
        return value

    @model_validator(mode="after")
    def _require_provider_keys(self) -> "Settings":
        if self.captcha_provider is CaptchaProvider.RECAPTCHA:
            if not self.recaptcha_site_key:
                raise ValueError("RECAPTCHA_SITE_KEY is not set")
            if not self.recaptcha_secret:
                raise ValueError("RECAPTCHA_SECRET is not set")
        elif self.captcha_provider is CaptchaProvider.HCAPTCHA:
            if not self.hcaptcha_site_key:
                raise ValueError("HCAPTCHA_SITE_KEY is not set")
            if not self.hcaptcha_secret:
                raise ValueError("HCAPTCHA_SECRET is not set")
        if self.loops_so_secret and not self.loops_confirmation_template_id:
            raise ValueError("LOOPS_CONFIRMATION_TEMPLATE_ID is not set")
        return self

    @property
    def issuer_host(self) -> str:
        """Hostname bound into issued identity tokens."""
        return urlsplit(self.url).hostname or ""

    @property
    def cors_origins(self) -> list[str]:
        return self.cors_origin.split()

    @property
    def captcha_site_key(self) -> str:
        if self.captcha_provider is CaptchaProvider.RECAPTCHA:
            return self.recaptcha_site_key
        if self.captcha_provider is CaptchaProvider.HCAPTCHA:
            return self.hcaptcha_site_key
        return ""

    def verification_config(self) -> VerificationConfig:
        """Frozen settings of the active CAPTCHA provider."""
        secret = ""
        if self.captcha_provider is CaptchaProvider.RECAPTCHA:
            secret = self.recaptcha_secret
        elif self.captcha_provider is CaptchaProvider.HCAPTCHA:
            secret = self.hcaptcha_secret
        return VerificationConfig(
            provider=self.captcha_provider,
            site_key=self.captcha_site_key,
            secret=secret,
            score_threshold=self.captcha_threshold,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]
