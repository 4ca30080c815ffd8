"""Outbox mail delivery adapter.

Implements MailDeliveryPort by writing each mail as an ``.eml`` file into
date-based directories (YYYY-MM-DD). Useful for staging environments and
for keeping an audit trail of what was sent.
"""

import asyncio
import logging
import re
from datetime import UTC, datetime
from pathlib import Path

from cineroom.core.models import MailMessage
from cineroom.core.ports import MailDeliveryPort

logger = logging.getLogger(__name__)


class OutboxMailDelivery(MailDeliveryPort):
    """Writes mails to .eml files organized by date."""

    def __init__(self, outbox_dir: str):
        """Initialize outbox delivery.

        Args:
            outbox_dir: Base directory for the date subdirectories.

        Raises:
            ValueError: If outbox_dir is a filesystem root.
            OSError: If base directory cannot be created.
        """
        self.base_dir = Path(outbox_dir).resolve()
        if self.base_dir.parent == self.base_dir:
            raise ValueError(f"outbox_dir cannot be a filesystem root: {outbox_dir}")
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OSError(f"Failed to create outbox directory {outbox_dir}: {e}") from e
        self._lock = asyncio.Lock()

    @staticmethod
    def _sanitize_filename(text: str) -> str:
        """Replace anything but word characters and hyphens, cap at 60 chars."""
        return re.sub(r"[^\w\-]", "_", text)[:60]

    def _message_path(self, message: MailMessage, now: datetime) -> Path:
        date_dir = self.base_dir / now.strftime("%Y-%m-%d")
        stamp = now.strftime("%H%M%S%f")
        return date_dir / f"{stamp}_{self._sanitize_filename(message.subject)}.eml"

    async def deliver(self, message: MailMessage) -> None:
        """Write the message to the outbox.

        Raises:
            OSError: If the file cannot be written.
        """
        async with self._lock:
            path = self._message_path(message, datetime.now(UTC))
            await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, message.to_email_message().as_bytes())
        logger.info(
            "Mail written to outbox",
            extra={"path": str(path), "subject": message.subject},
        )
