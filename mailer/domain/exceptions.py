"""
Domain exceptions - Structured error taxonomy for the subscription core.

Every failure raised by the core is a SubscriptionError carrying:
- status_code: HTTP-style status class used by the boundary
- reason: stable machine-readable string clients branch on
- message: human-readable, client-facing text
- details: internal-only diagnostics (may contain provider error codes),
  never included in client payloads
"""


class SubscriptionError(Exception):
    """Base class for all classified failures of the subscription core."""

    status_code: int = 500
    reason: str | None = "server-error"
    message: str = "Internal server error"

    def __init__(
        self,
        details: str | None = None,
        *,
        message: str | None = None,
        reason: str | None = None,
        status_code: int | None = None,
    ) -> None:
        if message is not None:
            self.message = message
        if reason is not None:
            self.reason = reason
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message if details is None else f"{self.message}: {details}")


class ConfigurationError(SubscriptionError):
    """Required configuration (secret, URL, catalog) is missing or invalid."""

    status_code = 500
    reason = "server-configuration"
    message = "Server configuration error"


class ServerError(SubscriptionError):
    """Unexpected failure of an outbound call."""


class UpstreamUnavailable(SubscriptionError):
    """Outbound call timed out, failed in transport, or returned non-2xx."""

    status_code = 503
    reason = "upstream-unavailable"
    message = "Service temporarily unavailable"


# CAPTCHA


class MissingCaptchaToken(SubscriptionError):
    status_code = 400
    reason = "missing-captcha-token"
    message = "Bad request"


class BadCaptcha(SubscriptionError):
    """Token invalid or missing on the provider side; caller must re-solve."""

    status_code = 400
    reason = "bad-captcha"
    message = "Bad request"


class CaptchaActionMismatch(SubscriptionError):
    status_code = 400
    reason = "captcha-action-mismatch"
    message = "Bad request"


class CaptchaTimeout(SubscriptionError):
    """Token expired or already used; caller should re-solve and resubmit."""

    status_code = 429
    reason = "captcha-timeout"
    message = "Try again"


class CaptchaProviderError(SubscriptionError):
    """Provider reported an unclassified error, usually a misconfiguration."""

    status_code = 500
    reason = "captcha-provider-error"
    message = "Internal server error"


class RateLimitedOrBot(SubscriptionError):
    """Requestor categorized as bot. Same outward shape as rate limiting."""

    status_code = 429
    reason = "rate-limited"
    message = "Try again later"


class PreviouslyUnsubscribed(RateLimitedOrBot):
    """Contact opted out earlier. Indistinguishable from RateLimitedOrBot to clients."""


# Identity tokens


class MissingToken(SubscriptionError):
    status_code = 401
    reason = "missing-token"
    message = "Unauthorized"


class InvalidToken(SubscriptionError):
    status_code = 401
    reason = "invalid-token"
    message = "Unauthorized"


class ExpiredToken(SubscriptionError):
    status_code = 401
    reason = "expired-token"
    message = "Unauthorized"


class MissingSubject(SubscriptionError):
    status_code = 401
    reason = "missing-subject"
    message = "Unauthorized"


class Forbidden(SubscriptionError):
    """Authenticated email does not match the email of the resource."""

    status_code = 403
    reason = "email-mismatch"
    message = "Forbidden"


class ContactNotFound(SubscriptionError):
    status_code = 404
    reason = "contact-not-found"
    message = "Contact not found"
