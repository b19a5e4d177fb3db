"""
In-memory contact store adapter - Implements ContactStore protocol.

Keeps contacts in a process-local dict for local development and tests.
State is lost on restart; it is not a persistence layer.
"""

import logging
import uuid
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace

from mailer.domain.exceptions import ContactNotFound
from mailer.domain.models import ContactSnapshot, MailingList, OptInStatus

logger = logging.getLogger(__name__)


class InMemoryContactStore:
    """
    Implements ContactStore protocol with a dict keyed by email.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Methods never await, so each call is atomic within the event loop.
    """

    def __init__(self, catalog: Iterable[MailingList] = ()) -> None:
        self._catalog = list(catalog)
        self._contacts: dict[str, ContactSnapshot] = {}

    def add(self, contact: ContactSnapshot) -> None:
        """Seed a contact (used by tests and local fixtures)."""
        self._contacts[contact.email] = contact

    async def find_by_email(self, email: str) -> ContactSnapshot | None:
        return self._contacts.get(email)

    async def upsert(
        self,
        email: str,
        mailing_lists: frozenset[str],
        *,
        language: str = "en",
        referer: str | None = None,
    ) -> ContactSnapshot:
        existing = self._contacts.get(email)
        if existing is not None:
            return existing
        contact = ContactSnapshot(
            id=uuid.uuid4().hex,
            email=email,
            subscribed=False,
            opt_in_status=OptInStatus.PENDING,
            mailing_lists={},
            referer=referer,
        )
        self._contacts[email] = contact
        logger.info("Created contact %s", contact.id)
        return contact

    async def update_subscription(
        self,
        email: str,
        subscribed: bool,
        mailing_lists: Mapping[str, bool] | None = None,
    ) -> None:
        contact = self._require(email)
        status = OptInStatus.ACCEPTED if subscribed else OptInStatus.REJECTED
        self._contacts[email] = replace(
            contact,
            subscribed=subscribed,
            opt_in_status=status,
            mailing_lists={**contact.mailing_lists, **(mailing_lists or {})},
        )

    async def list_catalog(self) -> Sequence[MailingList]:
        return list(self._catalog)

    def _require(self, email: str) -> ContactSnapshot:
        contact = self._contacts.get(email)
        if contact is None:
            raise ContactNotFound(f"no contact for {email}")
        return contact
