"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- Validated settings independent of the host environment
- Token authority and in-memory contact store
- Recording fakes for outbound collaborators
"""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

import pytest

from mailer.adapters.memory import InMemoryContactStore
from mailer.config.settings import Settings
from mailer.domain.models import MailingList
from mailer.domain.tokens import TokenAuthority

T = TypeVar("T")

JWT_SECRET = "test-secret-key-for-jwt-signing-0123456789-abcdefghijklmnopqrstuv"
ISSUER_HOST = "testserver"

CATALOG = [
    MailingList(id="list-1", name="Newsletter", description="Main newsletter", is_public=True),
    MailingList(id="list-2", name="Updates", description="Product updates", is_public=True),
    MailingList(id="list-3", name="Staff", description="Internal", is_public=False),
]


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Drive a domain coroutine to completion."""
    return asyncio.run(coro)


class RecordingMailDispatcher:
    """MailDispatcher fake that keeps every confirmation it was asked to send."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    async def send_confirmation(self, email: str, confirmation_url: str, language: str) -> None:
        self.sent.append((email, confirmation_url, language))


@pytest.fixture
def settings() -> Settings:
    """Settings for a deployment served at http://testserver without CAPTCHA."""
    return Settings(
        url=f"http://{ISSUER_HOST}",
        jwt_secret=JWT_SECRET,
        captcha_provider="none",
        company_name="Example Ltd",
        company_address="1 Example Street",
        loops_so_secret="",
        _env_file=None,  # type: ignore[call-arg]
    )


@pytest.fixture
def tokens() -> TokenAuthority:
    return TokenAuthority(secret=JWT_SECRET)


@pytest.fixture
def contact_store() -> InMemoryContactStore:
    return InMemoryContactStore(CATALOG)


@pytest.fixture
def mail_dispatcher() -> RecordingMailDispatcher:
    return RecordingMailDispatcher()
