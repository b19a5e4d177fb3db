"""
Domain models - Value objects exchanged between the core components.

All models are immutable dataclasses. Contact state is owned by the
external contact store; the core only reads ContactSnapshot and computes
new desired state from it.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class CaptchaProvider(str, Enum):
    """Supported bot-verification backends."""

    RECAPTCHA = "recaptcha"
    HCAPTCHA = "hcaptcha"
    NONE = "none"


class OptInStatus(str, Enum):
    """
    Double opt-in state of a contact.

    PENDING -> ACCEPTED happens only when the subscriber confirms.
    Any state -> REJECTED happens only on an explicit unsubscribe.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class VerificationConfig:
    """Settings of the active bot-verification provider."""

    provider: CaptchaProvider
    site_key: str = ""
    secret: str = ""
    score_threshold: float = 0.5


@dataclass(frozen=True)
class VerificationOutcome:
    """
    Result of a challenge verification attempt.

    `passed` is computed by the verifier, never copied from the
    provider's `success` flag.
    """

    passed: bool
    score: float | None = None
    action: str = ""
    hostname: str = ""
    challenge_timestamp: str = ""
    error_codes: tuple[str, ...] = ()


@dataclass(frozen=True)
class IdentityToken:
    """Bearer credential standing in for a confirmed email address."""

    subject: str
    issuer: str
    issued_at: datetime
    expires_at: datetime
    encoded: str = field(repr=False)

    def serialize(self) -> str:
        return self.encoded


@dataclass(frozen=True)
class MailingList:
    id: str
    name: str
    description: str = ""
    is_public: bool = True


@dataclass(frozen=True)
class MailingListStatus:
    """A catalog entry annotated with the contact's membership."""

    id: str
    name: str
    description: str
    is_public: bool
    subscribed: bool


@dataclass(frozen=True)
class ContactSnapshot:
    """
    Read model of a subscriber in the external contact store.

    A list id absent from `mailing_lists` means "not a member".
    """

    id: str
    email: str
    subscribed: bool
    opt_in_status: OptInStatus
    mailing_lists: Mapping[str, bool] = field(default_factory=dict)
    referer: str | None = None

    def is_member(self, list_id: str) -> bool:
        return bool(self.mailing_lists.get(list_id, False))


@dataclass(frozen=True)
class SubscribeRequest:
    email: str
    captcha_token: str | None
    mailing_lists: frozenset[str] = frozenset()
    language: str = "en"
    referer: str | None = None
    remote_ip: str | None = None


@dataclass(frozen=True)
class UpdateSubscriptionRequest:
    email: str
    subscribe: bool
    mailing_lists: Mapping[str, bool] | None = None


@dataclass(frozen=True)
class SubscribeResult:
    accepted: bool
    requires_confirmation: bool
    email: str


@dataclass(frozen=True)
class SubscriptionStatus:
    email: str
    subscribed: bool
    opt_in_status: OptInStatus
    mailing_lists: list[MailingListStatus]
    referer: str | None = None


@dataclass(frozen=True)
class UpdateResult:
    email: str
    subscribed: bool
