"""Composition root for the CinéRoom booking service.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Configuration loading via config module
- Adapter instantiation
- Core service initialization
- Dependency injection
- Entry point selection (HTTP server or CLI)
"""

import asyncio
import json
import logging
import sys
from typing import Any

from cineroom.adapters.cli.commands import CLICommandHandler
from cineroom.adapters.mail.outbox import OutboxMailDelivery
from cineroom.adapters.mail.smtp import SMTPMailDelivery
from cineroom.adapters.mail.stdout import StdoutMailDelivery
from cineroom.adapters.notification.mail import MailNotificationAdapter
from cineroom.adapters.payments.stripe import StripeCheckoutAdapter
from cineroom.adapters.store.sqlite import SQLiteBookingStore
from cineroom.adapters.web.http_server import AppHTTPServer
from cineroom.adapters.web.receiver import AppReceiver
from cineroom.config import Settings, load_settings
from cineroom.core.check_in_service import CheckInService
from cineroom.core.checkout_service import CheckoutService
from cineroom.core.moderation_service import ModerationService
from cineroom.core.ports import MailDeliveryPort
from cineroom.mailers import build_mailers
from cineroom.mailers.previews import PreviewRenderer


async def _run_cli_interactive(cli_handler: CLICommandHandler) -> None:
    """Run interactive CLI loop.

    Provides a REPL-like interface for administration commands.

    Args:
        cli_handler: CLICommandHandler instance for executing commands.
    """
    logger = logging.getLogger(__name__)
    logger.info("Starting interactive CLI. Type 'help' for available commands or 'exit' to quit.")

    loop = asyncio.get_running_loop()

    while True:
        try:
            # Read from stdin in a thread so the loop keeps running
            command_line = await loop.run_in_executor(None, input, "cineroom> ")
            command_line = command_line.strip()

            if not command_line:
                continue

            if command_line.lower() == "exit":
                logger.info("Exiting CLI")
                break

            if command_line.lower() == "help":
                _print_cli_help()
                continue

            parts = command_line.split(maxsplit=1)
            command = parts[0].lower()
            args_str = parts[1] if len(parts) > 1 else ""

            try:
                args = json.loads(args_str) if args_str else {}
            except json.JSONDecodeError:
                logger.error("Invalid JSON arguments. Use 'help' for command syntax.")
                continue

            try:
                result = await _execute_cli_command(cli_handler, command, args)
                print(json.dumps(result, indent=2, default=str))
            except Exception as e:
                logger.error(f"Command execution error: {e}", exc_info=True)
                print(json.dumps({"status": "error", "message": str(e)}, indent=2))

        except EOFError:
            logger.info("EOF received, exiting CLI")
            break
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            continue


async def _execute_cli_command(
    cli_handler: CLICommandHandler,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Execute a CLI command.

    Args:
        cli_handler: CLICommandHandler instance.
        command: Command name.
        args: Command arguments.

    Returns:
        Command result dictionary.

    Raises:
        ValueError: If command is not recognized or a parameter is missing.
    """
    if command == "events":
        return await cli_handler.list_events(
            status=args.get("status"),
            output_format=args.get("format", "json"),
        )

    elif command == "approve":
        if "event_id" not in args:
            raise ValueError("Missing required parameter: event_id")
        return await cli_handler.approve_event(
            event_id=args["event_id"],
            verbose=args.get("verbose", False),
        )

    elif command == "reject":
        if "event_id" not in args:
            raise ValueError("Missing required parameter: event_id")
        return await cli_handler.reject_event(
            event_id=args["event_id"],
            reason=args.get("reason"),
            verbose=args.get("verbose", False),
        )

    elif command == "check_in":
        if "participation_id" not in args or "ticket_code" not in args:
            raise ValueError("Missing required parameters: participation_id, ticket_code")
        return await cli_handler.check_in_ticket(
            participation_id=args["participation_id"],
            ticket_code=args["ticket_code"],
        )

    elif command == "previews":
        return cli_handler.list_previews()

    elif command == "preview":
        if "preview" not in args or "email" not in args:
            raise ValueError("Missing required parameters: preview, email")
        return cli_handler.render_preview(args["preview"], args["email"])

    else:
        raise ValueError(f"Unknown command: {command}. Use 'help' for available commands.")


def _print_cli_help() -> None:
    """Print CLI help message."""
    help_text = """
Available Commands (JSON format):

  events
    List events, optionally filtered by validation status.
    Status options: pending, approved, rejected

    Example: events {"status": "pending", "format": "text"}

  approve
    Approve an event and notify its creator.
    Required: event_id

    Example: approve {"event_id": "uuid-here"}

  reject
    Reject an event and notify its creator.
    Required: event_id
    Optional: reason

    Example: reject {"event_id": "uuid-here", "reason": "duplicate screening"}

  check_in
    Accept a ticket at the entrance and mark it as used.
    Required: participation_id, ticket_code

    Example: check_in {"participation_id": "uuid-here", "ticket_code": "code-here"}

  previews
    List the available mailer previews.

  preview
    Render one mailer preview.
    Required: preview, email

    Example: preview {"preview": "event_mailer", "email": "event_approved"}

  help
    Show this help message.

  exit
    Exit the CLI.

Note: All commands accept arguments as a single JSON object.
Provide the JSON after the command name on the same line.
    """
    print(help_text)


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def build_mail_delivery(settings: Settings) -> MailDeliveryPort:
    """Select the mail transport named by the settings."""
    if settings.mail_delivery == "outbox":
        return OutboxMailDelivery(outbox_dir=settings.mail_outbox_dir)
    if settings.mail_delivery == "smtp":
        return SMTPMailDelivery(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username or None,
            password=settings.smtp_password or None,
            starttls=settings.smtp_starttls,
        )
    return StdoutMailDelivery()


async def bootstrap() -> None:
    """Load configuration, wire adapters, and start the application.

    This is the composition root: the single place where all components
    are instantiated and wired together.

    Steps:
    1. Load configuration from environment
    2. Configure logging
    3. Instantiate adapters with configuration
    4. Initialize core services
    5. Select and start run mode

    Raises:
        SystemExit: On fatal errors (configuration, adapter initialization)
        asyncio.CancelledError: On graceful shutdown signal
    """
    # Step 1: Load configuration
    settings = load_settings()

    # Step 2: Configure logging
    configure_logging(settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)
    logger.info(f"Loading CinéRoom ({settings.environment})...")

    # Step 3: Instantiate adapters
    logger.info("Initializing adapters...")

    store = SQLiteBookingStore(db_path=settings.store_sqlite_path)
    logger.info(f"Booking store initialized: {settings.store_sqlite_path}")

    if not settings.stripe_api_key:
        logger.warning("STRIPE_API_KEY not set; checkout requests will be refused by Stripe")
    gateway = StripeCheckoutAdapter(
        api_key=settings.stripe_api_key,
        api_base_url=settings.stripe_api_base,
        currency=settings.stripe_currency,
    )

    delivery = build_mail_delivery(settings)
    logger.info(f"Mail delivery: {settings.mail_delivery}")

    mailers = build_mailers(
        default_from=settings.mailer_from_email,
        default_to=settings.mailer_default_to,
    )
    notification = MailNotificationAdapter(mailers=mailers, delivery=delivery)

    # Step 4: Initialize core services
    logger.info("Initializing core services...")

    checkout_service = CheckoutService(
        store=store,
        gateway=gateway,
        notification=notification,
        base_url=settings.base_url,
        max_seats=settings.checkout_max_seats,
    )
    moderation_service = ModerationService(store=store, notification=notification)
    check_in_service = CheckInService(store=store)

    previews = PreviewRenderer(mailers) if settings.previews_enabled else None
    if previews is not None:
        logger.info("Mailer previews enabled at /mailers")

    # Step 5: Select run mode and start
    logger.info(f"Starting in {settings.run_mode} mode...")

    try:
        if settings.run_mode == "cli":
            cli_handler = CLICommandHandler(
                moderation_service,
                previews or PreviewRenderer(mailers),
                check_in_service,
            )
            await _run_cli_interactive(cli_handler)

        elif settings.run_mode == "server":
            if not settings.stripe_webhook_secret:
                logger.warning(
                    "STRIPE_WEBHOOK_SECRET not set; Stripe webhooks will be rejected"
                )
            receiver = AppReceiver(
                checkout=checkout_service,
                moderation=moderation_service,
                check_in=check_in_service,
                stripe_webhook_secret=settings.stripe_webhook_secret or None,
                webhook_tolerance_seconds=settings.stripe_webhook_tolerance_seconds,
                previews=previews,
            )
            http_server = AppHTTPServer(
                receiver=receiver,
                host=settings.http_host,
                port=settings.http_port,
                api_key=settings.api_key or None,
                require_auth=settings.require_auth,
            )
            await http_server.start()

            try:
                while True:
                    await asyncio.sleep(1)
            finally:
                await http_server.stop()

        else:
            logger.error(f"Unknown run mode: {settings.run_mode}")
            sys.exit(1)

    finally:
        await gateway.close()
        await store.close_pool()


def main() -> None:
    """Application entry point.

    Loads configuration, wires adapters, initializes core services,
    and starts the appropriate run mode (server or CLI).

    Exit codes:
        0: Successful shutdown
        1: Fatal bootstrap or runtime error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    logger = logging.getLogger(__name__)
    try:
        asyncio.run(bootstrap())
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except asyncio.CancelledError:
        logger.info("Graceful shutdown completed")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
