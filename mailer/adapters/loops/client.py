"""
Loops.so adapters - Implement ContactStore and MailDispatcher protocols.

Talks to the Loops.so REST API (https://loops.so/docs/api-reference)
over a shared httpx.AsyncClient:

- GET  /contacts/find?email=   contact lookup (list, empty when absent)
- POST /contacts/create        contact creation
- PUT  /contacts/update        subscription and list membership writes
- GET  /lists                  mailing-list catalog
- POST /transactional          confirmation email

Every call carries the configured timeout. Timeouts, transport failures
and non-2xx statuses raise UpstreamUnavailable; malformed payloads raise
ServerError. Nothing is retried here.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from mailer.domain.exceptions import ServerError, UpstreamUnavailable
from mailer.domain.models import ContactSnapshot, MailingList, OptInStatus

logger = logging.getLogger(__name__)

LOOPS_API_URL = "https://app.loops.so/api/v1"
CONTACT_SOURCE = "mailer"


class LoopsClient:
    """Thin authenticated JSON client for the Loops.so API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        *,
        base_url: str = LOOPS_API_URL,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout_seconds)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        allow_status: tuple[int, ...] = (),
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                json=json,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Accept": "application/json",
                },
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.error("Loops.so %s %s failed: %s", method, path, exc)
            raise UpstreamUnavailable(f"Loops.so unreachable: {exc}") from exc

        if not response.is_success and response.status_code not in allow_status:
            logger.error("Loops.so %s %s returned status %s", method, path, response.status_code)
            raise UpstreamUnavailable(
                f"Loops.so {method} {path} returned status {response.status_code}"
            )
        return response

    @staticmethod
    def decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ServerError("Loops.so returned invalid JSON") from exc


def parse_contact(data: Mapping[str, Any]) -> ContactSnapshot:
    """Map a Loops.so contact object to a ContactSnapshot."""
    try:
        opt_in = data.get("optInStatus")
        return ContactSnapshot(
            id=str(data["id"]),
            email=str(data["email"]),
            subscribed=bool(data.get("subscribed", False)),
            opt_in_status=OptInStatus(opt_in) if opt_in else OptInStatus.PENDING,
            mailing_lists={str(k): bool(v) for k, v in (data.get("mailingLists") or {}).items()},
            referer=data.get("referer") or None,
        )
    except (KeyError, ValueError, TypeError, AttributeError) as exc:
        raise ServerError(f"unexpected Loops.so contact payload: {exc}") from exc


def parse_mailing_list(data: Mapping[str, Any]) -> MailingList:
    try:
        return MailingList(
            id=str(data["id"]),
            name=str(data["name"]),
            description=str(data.get("description") or ""),
            is_public=bool(data.get("isPublic", False)),
        )
    except (KeyError, TypeError, AttributeError) as exc:
        raise ServerError(f"unexpected Loops.so list payload: {exc}") from exc


class LoopsContactStore:
    """
    Implements ContactStore protocol via the Loops.so contacts API.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, loops: LoopsClient) -> None:
        self._loops = loops

    async def find_by_email(self, email: str) -> ContactSnapshot | None:
        response = await self._loops.request("GET", "/contacts/find", params={"email": email})
        contacts = LoopsClient.decode(response)
        if not isinstance(contacts, list):
            raise ServerError("unexpected Loops.so find payload")
        if not contacts:
            return None
        return parse_contact(contacts[0])

    async def upsert(
        self,
        email: str,
        mailing_lists: frozenset[str],
        *,
        language: str = "en",
        referer: str | None = None,
    ) -> ContactSnapshot:
        existing = await self.find_by_email(email)
        if existing is not None:
            return existing

        payload: dict[str, Any] = {
            "email": email,
            "subscribed": False,
            "mailingLists": {},
            "source": CONTACT_SOURCE,
            "language": language,
        }
        if referer:
            payload["referer"] = referer
        response = await self._loops.request(
            "POST", "/contacts/create", json=payload, allow_status=(409,)
        )
        if response.status_code == 409:
            # Created concurrently by another request for the same email
            contact = await self.find_by_email(email)
            if contact is None:
                raise ServerError("Loops.so reported a conflict for a missing contact")
            return contact

        body = LoopsClient.decode(response)
        contact_id = body.get("id") if isinstance(body, dict) else None
        if not contact_id:
            raise ServerError("Loops.so create returned no contact id")
        logger.info("Created Loops.so contact %s", contact_id)
        return ContactSnapshot(
            id=str(contact_id),
            email=email,
            subscribed=False,
            opt_in_status=OptInStatus.PENDING,
            mailing_lists={},
            referer=referer,
        )

    async def update_subscription(
        self,
        email: str,
        subscribed: bool,
        mailing_lists: Mapping[str, bool] | None = None,
    ) -> None:
        status = OptInStatus.ACCEPTED if subscribed else OptInStatus.REJECTED
        payload: dict[str, Any] = {
            "email": email,
            "subscribed": subscribed,
            "optInStatus": status.value,
        }
        if mailing_lists:
            payload["mailingLists"] = dict(mailing_lists)
        # Status and list flags go out in a single update
        await self._loops.request("PUT", "/contacts/update", json=payload)

    async def list_catalog(self) -> Sequence[MailingList]:
        response = await self._loops.request("GET", "/lists")
        lists = LoopsClient.decode(response)
        if not isinstance(lists, list):
            raise ServerError("unexpected Loops.so lists payload")
        return [parse_mailing_list(item) for item in lists]


class LoopsMailDispatcher:
    """
    Implements MailDispatcher protocol via Loops.so transactional email.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, loops: LoopsClient, template_id: str) -> None:
        self._loops = loops
        self._template_id = template_id

    async def send_confirmation(self, email: str, confirmation_url: str, language: str) -> None:
        await self._loops.request(
            "POST",
            "/transactional",
            json={
                "transactionalId": self._template_id,
                "email": email,
                "dataVariables": {"confirmationUrl": confirmation_url, "language": language},
            },
        )
        logger.info("Confirmation email queued for %s", email)
