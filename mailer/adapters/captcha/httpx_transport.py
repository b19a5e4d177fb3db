"""
httpx CAPTCHA transport - Implements CaptchaTransport protocol.

Sends the site-verify request as a form-encoded POST over a shared
httpx.AsyncClient. Timeouts and transport failures surface as
UpstreamUnavailable so provider outages are never mistaken for bots.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from mailer.domain.exceptions import ServerError, UpstreamUnavailable

logger = logging.getLogger(__name__)


class HttpxCaptchaTransport:
    """
    Implements CaptchaTransport protocol via httpx.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, client: httpx.AsyncClient, timeout_seconds: float = 10.0) -> None:
        self._client = client
        self._timeout = httpx.Timeout(timeout_seconds)

    async def post_form(self, url: str, form: Mapping[str, str]) -> dict[str, Any]:
        try:
            response = await self._client.post(
                url,
                data=dict(form),
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.error("CAPTCHA verification request failed: %s", exc)
            raise UpstreamUnavailable(f"CAPTCHA provider unreachable: {exc}") from exc

        if not response.is_success:
            logger.error("CAPTCHA API returned status %s", response.status_code)
            raise UpstreamUnavailable(f"CAPTCHA API returned status {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise ServerError("CAPTCHA API returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise ServerError("CAPTCHA API returned unexpected payload")
        return data
