"""SMTP mail delivery adapter.

Implements MailDeliveryPort with the standard library smtplib client, run in
a worker thread so the event loop is never blocked on the network.
"""

import asyncio
import logging
import smtplib

from cineroom.core.models import MailMessage
from cineroom.core.ports import MailDeliveryPort

logger = logging.getLogger(__name__)


class SMTPMailDelivery(MailDeliveryPort):
    """Sends mails through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        starttls: bool = True,
        timeout_seconds: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.starttls = starttls
        self.timeout_seconds = timeout_seconds

    def _send(self, message: MailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds) as server:
            if self.starttls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password or "")
            server.send_message(message.to_email_message())

    async def deliver(self, message: MailMessage) -> None:
        """Send one message.

        Raises:
            smtplib.SMTPException, OSError: If the relay refuses or is unreachable.
        """
        try:
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                f"Failed to send mail via SMTP: {e}",
                extra={"subject": message.subject, "to": list(message.to)},
            )
            raise
        logger.info(
            "Mail sent via SMTP",
            extra={"subject": message.subject, "to": list(message.to)},
        )
