"""Mailer base class and template environment.

Each mailer action renders ``<mailer_name>/<action>.txt`` and, when the
template exists, ``<mailer_name>/<action>.html`` from the package templates.
HTML templates extend ``layouts/mailer.html``.
"""

import logging
import re
from collections.abc import Iterable
from datetime import datetime
from functools import lru_cache
from typing import Any

from jinja2 import Environment, PackageLoader, TemplateNotFound, select_autoescape

from cineroom.core.models import MailMessage

logger = logging.getLogger(__name__)


def format_date(value: datetime | None, format_str: str = "%B %d, %Y at %H:%M") -> str:
    """Format a datetime for mail display."""
    if value is None:
        return ""
    return value.strftime(format_str)


def format_price(cents: int, currency: str = "EUR") -> str:
    """Format an amount in cents for mail display."""
    return f"{cents / 100:.2f} {currency}"


@lru_cache(maxsize=1)
def template_environment() -> Environment:
    """Shared Jinja2 environment for mail and preview templates."""
    env = Environment(
        loader=PackageLoader("cineroom.mailers", "templates"),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["format_date"] = format_date
    env.filters["format_price"] = format_price
    return env


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


class ApplicationMailer:
    """Base class for all mailers.

    Class attributes hold the defaults; instances may override them from
    settings without touching the class.
    """

    default_from = "from@example.com"
    default_to = "to@example.org"

    def __init__(
        self,
        default_from: str | None = None,
        default_to: str | None = None,
        environment: Environment | None = None,
    ):
        if default_from:
            self.default_from = default_from
        if default_to:
            self.default_to = default_to
        self.environment = environment or template_environment()

    @classmethod
    def mailer_name(cls) -> str:
        """Template folder for this mailer (EventMailer -> event_mailer)."""
        return _snake_case(cls.__name__)

    def mail(
        self,
        action: str,
        subject: str,
        to: str | Iterable[str] | None = None,
        **context: Any,
    ) -> MailMessage:
        """Render the templates of an action into a MailMessage.

        Args:
            action: Template base name inside the mailer folder.
            subject: Subject line.
            to: Recipient address(es); the mailer's default when empty.
            **context: Variables made available to the templates.

        Raises:
            TemplateNotFound: If the text template is missing.
        """
        if isinstance(to, str):
            recipients: tuple[str, ...] = (to,)
        else:
            recipients = tuple(address for address in (to or ()) if address)
        if not recipients:
            recipients = (self.default_to,)

        base = f"{self.mailer_name()}/{action}"
        context = {"subject": subject, **context}
        text_body = self.environment.get_template(f"{base}.txt").render(**context)

        html_body = None
        try:
            html_template = self.environment.get_template(f"{base}.html")
        except TemplateNotFound:
            logger.debug(f"No HTML template for {base}, sending text only")
        else:
            html_body = html_template.render(**context)

        return MailMessage(
            subject=subject,
            sender=(self.default_from,),
            to=recipients,
            text_body=text_body,
            html_body=html_body,
        )
