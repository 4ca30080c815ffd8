"""CLI command implementations for CinéRoom administration.

Provides human-initiated actions through the command-line interface.

This adapter maps CLI commands (events, approve, reject, check_in, previews,
preview) to ModerationPort and CheckInPort operations and the mailer preview
harness. It handles
CLI-specific formatting and error reporting.
"""

import logging
from typing import Any

from cineroom.core.models import Event, ValidationStatus
from cineroom.core.ports import CheckInPort, ModerationPort
from cineroom.mailers.previews import PreviewRenderer

logger = logging.getLogger(__name__)


class CLICommandHandler:
    """Handles CLI commands by delegating to the core ports and previews."""

    def __init__(
        self,
        moderation: ModerationPort,
        previews: PreviewRenderer,
        check_in: CheckInPort,
    ):
        """Initialize the CLI command handler.

        Args:
            moderation: ModerationPort implementation to execute commands.
            previews: Renderer for mailer previews.
            check_in: CheckInPort implementation for ticket checks.
        """
        self.moderation = moderation
        self.previews = previews
        self.check_in = check_in

    async def list_events(
        self, status: str | None = None, output_format: str = "json"
    ) -> dict[str, Any]:
        """List events, optionally filtered by validation status.

        Args:
            status: pending, approved or rejected.
            output_format: 'json' or 'text'.
        """
        try:
            status_enum = ValidationStatus(status.lower()) if status else None
        except ValueError:
            return {
                "status": "error",
                "operation": "list",
                "message": f"Unknown validation status: {status}",
            }

        events = await self.moderation.list_events(status_enum)

        if output_format == "text":
            return {
                "status": "success",
                "operation": "list",
                "data": self._format_events_as_text(events),
            }
        if output_format != "json":
            return {
                "status": "error",
                "operation": "list",
                "message": f"Unsupported format: {output_format}",
            }
        return {
            "status": "success",
            "operation": "list",
            "data": [
                {
                    "id": e.id,
                    "title": e.title,
                    "event_date": e.event_date.isoformat(),
                    "validation_status": e.validation_status.value,
                }
                for e in events
            ],
        }

    async def approve_event(self, event_id: str, verbose: bool = False) -> dict[str, Any]:
        """Approve an event via CLI.

        Returns:
            Dictionary with status and message.
        """
        try:
            await self.moderation.approve_event(event_id)
        except (LookupError, ValueError) as e:
            logger.error(f"Failed to approve event: {e}")
            return {
                "status": "error",
                "operation": "approve",
                "event_id": event_id,
                "message": str(e),
            }

        if verbose:
            logger.info(f"Approved event {event_id}", extra={"verbose": True})
        return {
            "status": "success",
            "operation": "approve",
            "event_id": event_id,
            "message": f"Event {event_id} approved",
        }

    async def reject_event(
        self, event_id: str, reason: str | None = None, verbose: bool = False
    ) -> dict[str, Any]:
        """Reject an event via CLI.

        Returns:
            Dictionary with status and message.
        """
        try:
            await self.moderation.reject_event(event_id, reason)
        except (LookupError, ValueError) as e:
            logger.error(f"Failed to reject event: {e}")
            return {
                "status": "error",
                "operation": "reject",
                "event_id": event_id,
                "message": str(e),
            }

        result = {
            "status": "success",
            "operation": "reject",
            "event_id": event_id,
            "message": f"Event {event_id} rejected",
        }
        if reason:
            result["reason"] = reason
        if verbose:
            logger.info(f"Rejected event {event_id}", extra={"reason": reason, "verbose": True})
        return result

    async def check_in_ticket(self, participation_id: str, ticket_code: str) -> dict[str, Any]:
        """Check a ticket in at the entrance.

        Returns:
            Dictionary with status and the checked-in participation.
        """
        try:
            result = await self.check_in.check_in(participation_id, ticket_code)
        except (LookupError, ValueError) as e:
            logger.error(f"Check-in refused: {e}")
            return {
                "status": "error",
                "operation": "check_in",
                "participation_id": participation_id,
                "message": str(e),
            }
        return {
            "status": "success",
            "operation": "check_in",
            "message": "Check-in successful",
            "data": result.to_dict(),
        }

    def list_previews(self) -> dict[str, Any]:
        return {
            "status": "success",
            "operation": "previews",
            "data": self.previews.list_previews(),
        }

    def render_preview(self, preview: str, email: str) -> dict[str, Any]:
        """Render one previewed email as headers plus text body."""
        try:
            message = self.previews.render_message(preview, email)
        except LookupError as e:
            return {
                "status": "error",
                "operation": "preview",
                "message": str(e),
            }
        return {
            "status": "success",
            "operation": "preview",
            "data": {
                "from": list(message.sender),
                "to": list(message.to),
                "subject": message.subject,
                "body": message.text_body,
            },
        }

    @staticmethod
    def _format_events_as_text(events: list[Event]) -> str:
        if not events:
            return "No events."
        lines = []
        for event in events:
            lines.append(
                f"{event.id}  [{event.validation_status.value.upper()}]  "
                f"{event.event_date:%Y-%m-%d %H:%M}  {event.title}"
            )
        return "\n".join(lines)
