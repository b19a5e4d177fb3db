"""
Subscription service - Double opt-in reconciliation against the contact store.

Subscribe flow
==============

    verify CAPTCHA (action "subscribe")
      -> passed=False                          RateLimitedOrBot
    upsert contact (idempotent by email)
      -> opt-in rejected                       PreviouslyUnsubscribed
    missing = requested lists - member lists
    confirmation required when not subscribed overall or missing non-empty
      -> issue token, send confirmation link
    success either way; requires_confirmation tells the cases apart

The contact snapshot is never mutated. Overall subscription and list
membership change only through `apply_update`, which the boundary calls
after authenticating the bearer token of a confirmed subscriber.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urlencode, urlsplit

from .captcha import CaptchaVerifier
from .exceptions import ConfigurationError, ContactNotFound, PreviouslyUnsubscribed, RateLimitedOrBot
from .models import (
    ContactSnapshot,
    MailingList,
    MailingListStatus,
    OptInStatus,
    SubscribeRequest,
    SubscribeResult,
    SubscriptionStatus,
    UpdateResult,
    UpdateSubscriptionRequest,
)
from .ports import ContactStore, MailDispatcher
from .tokens import TokenAuthority

logger = logging.getLogger(__name__)

SUBSCRIBE_ACTION = "subscribe"


def missing_mailing_lists(requested: frozenset[str], contact: ContactSnapshot) -> frozenset[str]:
    """Requested lists the contact is not yet a member of."""
    return frozenset(list_id for list_id in requested if not contact.is_member(list_id))


def requires_confirmation(requested: frozenset[str], contact: ContactSnapshot) -> bool:
    """
    Whether a confirmation email must be (re-)sent.

    True when the contact is not subscribed overall, or when at least one
    requested list is outside its current membership.
    """
    return not contact.subscribed or bool(missing_mailing_lists(requested, contact))


def merge_catalog(
    catalog: list[MailingList], membership: Mapping[str, bool]
) -> list[MailingListStatus]:
    """Annotate every catalog entry with membership; unknown lists are not subscribed."""
    return [
        MailingListStatus(
            id=mailing_list.id,
            name=mailing_list.name,
            description=mailing_list.description,
            is_public=mailing_list.is_public,
            subscribed=bool(membership.get(mailing_list.id, False)),
        )
        for mailing_list in catalog
    ]


@dataclass
class SubscriptionService:
    """
    Domain service reconciling subscription requests with contact state.

    Orchestrates CAPTCHA verification, contact upsert, confirmation token
    issuance and confirmation email dispatch.
    """

    contacts: ContactStore
    mailer: MailDispatcher
    tokens: TokenAuthority
    verifier: CaptchaVerifier
    base_url: str
    unsubscribe_clears_lists: bool = False

    async def subscribe(self, request: SubscribeRequest) -> SubscribeResult:
        """
        Accept a sign-up and send a confirmation email when needed.

        Raises:
            ConfigurationError: public base URL is not configured
            RateLimitedOrBot: CAPTCHA score below threshold
            PreviouslyUnsubscribed: contact opted out earlier
            SubscriptionError: CAPTCHA errors and upstream failures
        """
        issuer_host = self._issuer_host()

        outcome = await self.verifier.verify(
            SUBSCRIBE_ACTION, request.captcha_token, request.remote_ip
        )
        if not outcome.passed:
            raise RateLimitedOrBot("Requestor categorized as bot")

        email = self._normalize_email(request.email)
        contact = await self.contacts.upsert(
            email,
            request.mailing_lists,
            language=request.language,
            referer=request.referer,
        )

        if contact.opt_in_status is OptInStatus.REJECTED:
            logger.warning("Rejected contact attempted to subscribe again: %s", contact.id)
            raise PreviouslyUnsubscribed("Contact opted out")

        if not requires_confirmation(request.mailing_lists, contact):
            logger.info("Contact %s already subscribed to requested lists", contact.id)
            return SubscribeResult(accepted=True, requires_confirmation=False, email=contact.email)

        token = self.tokens.issue(contact.email, issuer_host)
        confirmation_url = self.confirmation_url(
            token.serialize(), request.language, request.mailing_lists
        )
        await self.mailer.send_confirmation(contact.email, confirmation_url, request.language)
        logger.info("Confirmation email sent to contact %s", contact.id)
        return SubscribeResult(accepted=True, requires_confirmation=True, email=contact.email)

    async def get_status(self, email: str) -> SubscriptionStatus:
        """
        Merge the contact's membership with the full mailing-list catalog.

        Raises:
            ContactNotFound: no contact exists for the email
        """
        contact = await self.contacts.find_by_email(self._normalize_email(email))
        if contact is None:
            raise ContactNotFound(f"no contact for {email}")
        catalog = list(await self.contacts.list_catalog())
        return SubscriptionStatus(
            email=contact.email,
            subscribed=contact.subscribed,
            opt_in_status=contact.opt_in_status,
            mailing_lists=merge_catalog(catalog, contact.mailing_lists),
            referer=contact.referer,
        )

    async def apply_update(self, request: UpdateSubscriptionRequest) -> UpdateResult:
        """
        Subscribe or unsubscribe an authenticated contact.

        The caller must have matched the authenticated identity against
        `request.email`. On unsubscribe the list delta is ignored; list
        flags are cleared only when `unsubscribe_clears_lists` is set.
        Each call is a single store write.
        """
        email = self._normalize_email(request.email)

        if request.subscribe:
            await self.contacts.update_subscription(
                email, True, dict(request.mailing_lists) if request.mailing_lists else None
            )
            return UpdateResult(email=email, subscribed=True)

        cleared: dict[str, bool] | None = None
        if self.unsubscribe_clears_lists:
            contact = await self.contacts.find_by_email(email)
            if contact is not None:
                cleared = {list_id: False for list_id, member in contact.mailing_lists.items() if member}
        await self.contacts.update_subscription(email, False, cleared or None)
        return UpdateResult(email=email, subscribed=False)

    async def list_mailing_lists(self) -> list[MailingList]:
        """Public entries of the mailing-list catalog."""
        return [item for item in await self.contacts.list_catalog() if item.is_public]

    def confirmation_url(self, token: str, language: str, mailing_lists: frozenset[str]) -> str:
        query = {"token": token, "lang": language}
        if mailing_lists:
            query["lists"] = ",".join(sorted(mailing_lists))
        return f"{self.base_url.rstrip('/')}/subscription?{urlencode(query)}"

    def _issuer_host(self) -> str:
        host = urlsplit(self.base_url).hostname if self.base_url else None
        if not host:
            logger.error("Public base URL is not configured")
            raise ConfigurationError("missing URL env")
        return host

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()
