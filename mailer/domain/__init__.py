"""
Domain layer - Pure business logic with zero web framework imports.

Contains the verification-and-reconciliation core of the mailer:
bot verification, identity tokens and double opt-in reconciliation.
Infrastructure is reached only through the ports defined here.
"""

from .captcha import CaptchaVerifier, build_verifier
from .exceptions import SubscriptionError
from .models import (
    CaptchaProvider,
    ContactSnapshot,
    MailingList,
    OptInStatus,
    VerificationConfig,
    VerificationOutcome,
)
from .ports import CaptchaTransport, ContactStore, MailDispatcher
from .subscription import SubscriptionService
from .tokens import TokenAuthority

__all__ = [
    "CaptchaProvider",
    "CaptchaTransport",
    "CaptchaVerifier",
    "ContactSnapshot",
    "ContactStore",
    "MailDispatcher",
    "MailingList",
    "OptInStatus",
    "SubscriptionError",
    "SubscriptionService",
    "TokenAuthority",
    "VerificationConfig",
    "VerificationOutcome",
    "build_verifier",
]
