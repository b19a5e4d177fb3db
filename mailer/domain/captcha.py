"""
Bot verification - One contract over several CAPTCHA providers.

Variants:
- NoCaptchaVerifier: always passes, no outbound call
- RecaptchaVerifier: reCAPTCHA v3 (score + action)
- HCaptchaVerifier: hCaptcha (no action; score only on enterprise plans)

Decision order for the remote providers
=======================================

1. Transport failure / non-2xx       -> UpstreamUnavailable (raised by transport)
2. Provider error codes present      -> classified, even when success=true
3. Action reported and != requested  -> CaptchaActionMismatch
4. Score present and < threshold     -> passed=False (not an error)
5. Otherwise                         -> passed=True

Error code taxonomy:
    invalid-input-response, missing-input-response -> BadCaptcha
    timeout-or-duplicate, expired-input-response   -> CaptchaTimeout
    anything else                                  -> CaptchaProviderError
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from .exceptions import (
    BadCaptcha,
    CaptchaActionMismatch,
    CaptchaProviderError,
    CaptchaTimeout,
    ConfigurationError,
    MissingCaptchaToken,
    ServerError,
)
from .models import CaptchaProvider, VerificationConfig, VerificationOutcome
from .ports import CaptchaTransport

logger = logging.getLogger(__name__)

RECAPTCHA_VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"
HCAPTCHA_VERIFY_URL = "https://api.hcaptcha.com/siteverify"

BAD_CAPTCHA_CODES = frozenset({"invalid-input-response", "missing-input-response"})
CAPTCHA_TIMEOUT_CODES = frozenset({"timeout-or-duplicate", "expired-input-response"})


class CaptchaVerifier(Protocol):
    """Common contract of all provider variants."""

    provider: CaptchaProvider

    async def verify(
        self, action: str, token: str | None = None, remote_ip: str | None = None
    ) -> VerificationOutcome:
        ...


def classify_error_codes(provider: CaptchaProvider, error_codes: Sequence[str]) -> None:
    """
    Raise the error category for provider-reported error codes.

    Raises:
        BadCaptcha: token invalid or missing, caller must re-solve
        CaptchaTimeout: token expired or duplicate, caller may retry
        CaptchaProviderError: anything else (secret, sitekey, bad request)
    """
    joined = ", ".join(error_codes)
    logger.error("CAPTCHA error codes (%s): %s", provider.value, joined)
    details = f"CAPTCHA error: {joined}"
    codes = set(error_codes)
    if codes & BAD_CAPTCHA_CODES:
        raise BadCaptcha(details)
    if codes & CAPTCHA_TIMEOUT_CODES:
        raise CaptchaTimeout(details)
    raise CaptchaProviderError(details)


@dataclass
class NoCaptchaVerifier:
    """Verifier for deployments without bot protection."""

    provider: CaptchaProvider = CaptchaProvider.NONE

    async def verify(
        self, action: str, token: str | None = None, remote_ip: str | None = None
    ) -> VerificationOutcome:
        return VerificationOutcome(passed=True, action=action)


@dataclass
class _SiteVerifyVerifier:
    """Shared site-verify flow of the remote providers."""

    config: VerificationConfig
    transport: CaptchaTransport

    provider = CaptchaProvider.NONE
    verify_url = ""
    reports_action = False

    async def verify(
        self, action: str, token: str | None = None, remote_ip: str | None = None
    ) -> VerificationOutcome:
        if not token:
            raise MissingCaptchaToken("CAPTCHA token is required")

        form = {"secret": self.config.secret, "response": token}
        if remote_ip:
            form["remoteip"] = remote_ip
        data = await self.transport.post_form(self.verify_url, form)

        outcome = self._parse(data)
        logger.info(
            "CAPTCHA (%s): success=%s score=%s action=%s challenge_ts=%s hostname=%s",
            self.provider.value,
            data.get("success"),
            outcome.score,
            outcome.action,
            outcome.challenge_timestamp,
            outcome.hostname,
        )

        if outcome.error_codes:
            classify_error_codes(self.provider, outcome.error_codes)

        if not data.get("success"):
            logger.error("CAPTCHA (%s) rejected without error codes", self.provider.value)
            raise CaptchaProviderError("CAPTCHA validation failed")

        if self.reports_action and outcome.action != action:
            logger.error(
                "CAPTCHA action does not match: expected=%s actual=%s", action, outcome.action
            )
            raise CaptchaActionMismatch("CAPTCHA error: action-mismatch")

        if outcome.score is not None and outcome.score < self.config.score_threshold:
            logger.warning(
                "CAPTCHA score below threshold %s: %s", self.config.score_threshold, outcome.score
            )
            return _with_passed(outcome, False)

        return _with_passed(outcome, True)

    def _parse(self, data: dict[str, Any]) -> VerificationOutcome:
        error_codes = data.get("error-codes") or []
        if not isinstance(error_codes, list):
            raise ServerError(f"unexpected error-codes in {self.provider.value} response")
        score = data.get("score")
        if score is not None and not isinstance(score, (int, float)):
            raise ServerError(f"unexpected score in {self.provider.value} response")
        return VerificationOutcome(
            passed=False,
            score=float(score) if score is not None else None,
            action=str(data.get("action") or ""),
            hostname=str(data.get("hostname") or ""),
            challenge_timestamp=str(data.get("challenge_ts") or ""),
            error_codes=tuple(str(code) for code in error_codes),
        )


def _with_passed(outcome: VerificationOutcome, passed: bool) -> VerificationOutcome:
    return VerificationOutcome(
        passed=passed,
        score=outcome.score,
        action=outcome.action,
        hostname=outcome.hostname,
        challenge_timestamp=outcome.challenge_timestamp,
        error_codes=outcome.error_codes,
    )


class RecaptchaVerifier(_SiteVerifyVerifier):
    """
    reCAPTCHA v3 verifier.

    https://developers.google.com/recaptcha/docs/v3#site_verify_response
    """

    provider = CaptchaProvider.RECAPTCHA
    verify_url = RECAPTCHA_VERIFY_URL
    reports_action = True


class HCaptchaVerifier(_SiteVerifyVerifier):
    """
    hCaptcha verifier.

    hCaptcha reports no action, so the action check is skipped. A score is
    only present on enterprise plans.
    """

    provider = CaptchaProvider.HCAPTCHA
    verify_url = HCAPTCHA_VERIFY_URL


def build_verifier(config: VerificationConfig, transport: CaptchaTransport) -> CaptchaVerifier:
    """
    Construct the active provider variant once, at start-up.

    Raises:
        ConfigurationError: remote provider configured without a secret
    """
    if config.provider is CaptchaProvider.NONE:
        return NoCaptchaVerifier()
    if not config.secret:
        raise ConfigurationError(f"missing secret for CAPTCHA provider {config.provider.value}")
    if config.provider is CaptchaProvider.RECAPTCHA:
        return RecaptchaVerifier(config=config, transport=transport)
    if config.provider is CaptchaProvider.HCAPTCHA:
        return HCaptchaVerifier(config=config, transport=transport)
    raise ConfigurationError(f"unsupported CAPTCHA provider: {config.provider}")
