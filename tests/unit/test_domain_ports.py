"""
Unit tests for domain ports and models.

Tests verify:
- Port interfaces are satisfied structurally by the adapters
- Enum wire values
- Domain purity (zero web framework or HTTP client imports)
"""

import subprocess
from enum import Enum
from typing import get_type_hints

import pytest

from mailer.adapters.captcha import HttpxCaptchaTransport
from mailer.adapters.loops import LoopsContactStore, LoopsMailDispatcher
from mailer.adapters.memory import InMemoryContactStore
from mailer.domain.models import CaptchaProvider, ContactSnapshot, OptInStatus
from mailer.domain.ports import CaptchaTransport, ContactStore, MailDispatcher


class TestEnums:
    def test_opt_in_status_values(self) -> None:
        assert issubclass(OptInStatus, Enum)
        assert [status.value for status in OptInStatus] == ["pending", "accepted", "rejected"]

    def test_captcha_provider_values(self) -> None:
        assert CaptchaProvider("recaptcha") is CaptchaProvider.RECAPTCHA
        assert CaptchaProvider("hcaptcha") is CaptchaProvider.HCAPTCHA
        assert CaptchaProvider("none") is CaptchaProvider.NONE

    def test_unknown_provider_rejected(self) -> None:
        with pytest.raises(ValueError):
            CaptchaProvider("turnstile")


class TestContactSnapshot:
    def test_is_member(self) -> None:
        contact = ContactSnapshot(
            id="c1",
            email="a@example.com",
            subscribed=True,
            opt_in_status=OptInStatus.ACCEPTED,
            mailing_lists={"list-1": True, "list-2": False},
        )
        assert contact.is_member("list-1") is True
        assert contact.is_member("list-2") is False
        assert contact.is_member("list-3") is False


class TestPortsImplemented:
    """Adapters expose every method of the port they implement."""

    @pytest.mark.parametrize(
        ("port", "adapter"),
        [
            (ContactStore, InMemoryContactStore),
            (ContactStore, LoopsContactStore),
            (MailDispatcher, LoopsMailDispatcher),
            (CaptchaTransport, HttpxCaptchaTransport),
        ],
    )
    def test_adapter_has_port_methods(self, port: type, adapter: type) -> None:
        methods = [name for name in vars(port) if not name.startswith("_")]
        assert methods
        for name in methods:
            assert callable(getattr(adapter, name, None)), f"{adapter.__name__} lacks {name}"

    def test_ports_are_typed(self) -> None:
        hints = get_type_hints(ContactStore.find_by_email)
        assert "return" in hints


class TestDomainPurity:
    """Tests for domain purity - zero framework imports."""

    @pytest.mark.parametrize("pattern", ["from fastapi", "from pydantic", "import httpx", "from starlette"])
    def test_no_framework_imports_in_domain(self, pattern: str) -> None:
        result = subprocess.run(
            ["grep", "-r", pattern, "mailer/domain/"],
            capture_output=True,
            text=True,
        )
        assert result.returncode != 0, f"{pattern} found: {result.stdout}"
