"""
Console mail dispatcher adapter - Implements MailDispatcher protocol.

This module provides a console-based implementation of the domain's
mail dispatcher port, logging confirmation links for local development.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleMailDispatcher:
    """
    Implements MailDispatcher protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For development purposes - prints confirmation links to stdout.
    """

    async def send_confirmation(self, email: str, confirmation_url: str, language: str) -> None:
        """
        Log the confirmation link (simulates email delivery).

        Args:
            email: Recipient email address (normalized by domain layer)
            confirmation_url: Link embedding the identity token
            language: Language of the email template
        """
        logger.info(
            "[CONFIRMATION] Email: %s Language: %s URL: %s", email, language, confirmation_url
        )
