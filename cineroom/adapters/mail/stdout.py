"""Stdout mail delivery adapter.

Implements MailDeliveryPort by printing mails to the terminal. Used in
development so no mail leaves the machine.
"""

import asyncio
import logging

from cineroom.core.models import MailMessage
from cineroom.core.ports import MailDeliveryPort

logger = logging.getLogger(__name__)


class StdoutMailDelivery(MailDeliveryPort):
    """Prints mails to stdout with human-readable formatting."""

    def __init__(self, include_html: bool = False):
        """Initialize stdout delivery.

        Args:
            include_html: If True, also print the HTML part.
        """
        self.include_html = include_html

    async def deliver(self, message: MailMessage) -> None:
        await asyncio.to_thread(print, self.format_message(message))
        logger.debug("Mail printed to stdout", extra={"subject": message.subject})

    def format_message(self, message: MailMessage) -> str:
        lines = [
            "=" * 80,
            f"From: {', '.join(message.sender)}",
            f"To: {', '.join(message.to)}",
            f"Subject: {message.subject}",
            "-" * 80,
            message.text_body.rstrip(),
        ]
        if self.include_html and message.html_body is not None:
            lines.extend(["-" * 80, message.html_body.rstrip()])
        lines.append("=" * 80)
        return "\n".join(lines)
