"""
Port interfaces - Protocol definitions for external collaborators.

The domain depends only on these protocols. Adapters implement them
through structural subtyping. Every port method is a single outbound
call and may raise UpstreamUnavailable or ServerError.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from .models import ContactSnapshot, MailingList


class CaptchaTransport(Protocol):
    """Port for the server-to-server site-verify exchange."""

    async def post_form(self, url: str, form: Mapping[str, str]) -> dict[str, Any]:
        """
        POST a form-encoded body and return the decoded JSON object.

        Raises:
            UpstreamUnavailable: timeout, transport failure or non-2xx status
            ServerError: response body is not a JSON object
        """
        ...


class ContactStore(Protocol):
    """Port interface for the remote mailing-list service."""

    async def find_by_email(self, email: str) -> ContactSnapshot | None:
        """Return the contact for `email`, or None when it does not exist."""
        ...

    async def upsert(
        self,
        email: str,
        mailing_lists: frozenset[str],
        *,
        language: str = "en",
        referer: str | None = None,
    ) -> ContactSnapshot:
        """
        Create the contact when absent and return its current snapshot.

        Idempotent by email. Never adds list membership and never changes
        the overall subscription or opt-in status of an existing contact.
        """
        ...

    async def update_subscription(
        self,
        email: str,
        subscribed: bool,
        mailing_lists: Mapping[str, bool] | None = None,
    ) -> None:
        """
        Subscribe (opt-in accepted) or unsubscribe (opt-in rejected) the contact.

        `mailing_lists` flags are written in the same update; lists not
        named there are untouched.
        """
        ...

    async def list_catalog(self) -> Sequence[MailingList]:
        """Return every mailing list known to the service."""
        ...


class MailDispatcher(Protocol):
    """Port interface for confirmation email delivery."""

    async def send_confirmation(self, email: str, confirmation_url: str, language: str) -> None:
        ...
