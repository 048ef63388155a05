"""
Notification email for print orders.

Renders the administrator email from the Jinja templates in
``templates/email`` and delivers it over SMTP. The transport is resolved
when a message is sent, so a server without mail credentials still accepts
orders and only the notification fails.
"""

from __future__ import annotations

import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from pathlib import Path
from typing import Any, List, Mapping, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.exceptions import ConfigurationError, DispatchError
from logging_config import get_logger
from models.order import Order, UploadedFile


logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

GMAIL_HOST = "smtp.gmail.com"
GMAIL_PORT = 465
SECURE_PORT = 465
STARTTLS_PORT = 587
CONNECT_TIMEOUT_SECONDS = 20.0

_templates = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    keep_trailing_newline=True,
)


@dataclass(frozen=True)
class MailSettings:
    """Mail transport settings, read from the Flask config."""

    admin_email: Optional[str] = None
    from_email: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = None
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None
    smtp_secure: bool = True
    gmail_user: Optional[str] = None
    gmail_app_password: Optional[str] = None
    attachment_limit_bytes: int = 20 * 1024 * 1024

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "MailSettings":
        port = config.get("SMTP_PORT")
        return cls(
            admin_email=config.get("ADMIN_EMAIL"),
            from_email=config.get("FROM_EMAIL"),
            smtp_host=config.get("SMTP_HOST"),
            smtp_port=int(port) if port else None,
            smtp_user=config.get("SMTP_USER"),
            smtp_pass=config.get("SMTP_PASS"),
            smtp_secure=bool(config.get("SMTP_SECURE", True)),
            gmail_user=config.get("GMAIL_USER"),
            gmail_app_password=config.get("GMAIL_APP_PASSWORD"),
            attachment_limit_bytes=int(config.get("ATTACHMENT_LIMIT_BYTES", 20 * 1024 * 1024)),
        )

    @property
    def uses_smtp(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_pass)

    @property
    def uses_gmail(self) -> bool:
        return bool(self.gmail_user and self.gmail_app_password)

    @property
    def sender(self) -> Optional[str]:
        return self.from_email or self.smtp_user or self.gmail_user


@dataclass(frozen=True)
class OrderMessage:
    """A rendered notification, ready to hand to the Mailer."""

    order_id: str
    subject: str
    text: str
    html: str
    attachments: List[UploadedFile] = field(default_factory=list)

    @property
    def attachments_included(self) -> bool:
        return bool(self.attachments)


def attachment_note(combined_size: int, limit: int) -> Optional[str]:
    """Explanation appended to the email when the files are too big to attach."""
    if combined_size <= limit:
        return None
    size_mb = combined_size / 1024 / 1024
    return f"Attachments not included (combined size {size_mb:.1f}MB exceeds limit)."


def build_message(order: Order, settings: MailSettings) -> OrderMessage:
    """Render the text and HTML bodies for an order; decide on attachments."""
    note = attachment_note(order.combined_size, settings.attachment_limit_bytes)
    context = {
        "order": order,
        "quote": order.quote,
        "attachment_note": note,
    }

    return OrderMessage(
        order_id=order.order_id,
        subject=f"Print4me - New Print Request from {order.name}",
        text=_templates.get_template("print_request.txt").render(**context),
        html=_templates.get_template("print_request.html").render(**context),
        attachments=[] if note else list(order.uploads),
    )


class Mailer:
    """Delivers OrderMessages to the administrator over SMTP."""

    def __init__(self, settings: MailSettings) -> None:
        self.settings = settings

    def send(self, message: OrderMessage) -> str:
        """
        Send one notification.

        Returns:
            The Message-ID of the sent email

        Raises:
            ConfigurationError: No transport or no administrator address
            DispatchError: The SMTP conversation failed
        """
        if not self.settings.admin_email:
            raise ConfigurationError("ADMIN_EMAIL is not set", setting="ADMIN_EMAIL")

        email = self._compose(message)
        connection = self._connect(message.order_id)

        try:
            with connection:
                self._login(connection)
                connection.send_message(email)
        except (smtplib.SMTPException, OSError) as exc:
            raise DispatchError(message.order_id, str(exc)) from exc

        return email["Message-ID"]

    def _compose(self, message: OrderMessage) -> EmailMessage:
        email = EmailMessage()
        email["Subject"] = message.subject
        email["From"] = self.settings.sender or self.settings.admin_email
        email["To"] = self.settings.admin_email
        email["Date"] = formatdate(localtime=True)
        email["Message-ID"] = make_msgid(domain="print4me")
        email.set_content(message.text)
        email.add_alternative(message.html, subtype="html")

        for upload in message.attachments:
            maintype, _, subtype = upload.mimetype.partition("/")
            if not maintype or not subtype:
                maintype, subtype = "application", "octet-stream"
            email.add_attachment(
                upload.read_bytes(),
                maintype=maintype,
                subtype=subtype,
                filename=upload.filename,
            )

        return email

    def _connect(self, order_id: str) -> smtplib.SMTP:
        settings = self.settings

        try:
            if settings.uses_smtp:
                if settings.smtp_secure:
                    return smtplib.SMTP_SSL(
                        settings.smtp_host,
                        settings.smtp_port or SECURE_PORT,
                        timeout=CONNECT_TIMEOUT_SECONDS,
                    )
                return smtplib.SMTP(
                    settings.smtp_host,
                    settings.smtp_port or STARTTLS_PORT,
                    timeout=CONNECT_TIMEOUT_SECONDS,
                )

            if settings.uses_gmail:
                return smtplib.SMTP_SSL(GMAIL_HOST, GMAIL_PORT, timeout=CONNECT_TIMEOUT_SECONDS)
        except (smtplib.SMTPException, OSError) as exc:
            raise DispatchError(order_id, f"cannot connect to mail server: {exc}") from exc

        raise ConfigurationError(
            "Email transport is not configured. Provide SMTP_* or GMAIL_USER/GMAIL_APP_PASSWORD in .env",
            setting="SMTP_HOST",
        )

    def _login(self, connection: smtplib.SMTP) -> None:
        settings = self.settings

        if settings.uses_smtp:
            if not settings.smtp_secure:
                connection.ehlo()
                if connection.has_extn("starttls"):
                    connection.starttls()
                    connection.ehlo()
            connection.login(settings.smtp_user, settings.smtp_pass)
        else:
            connection.login(settings.gmail_user, settings.gmail_app_password)

        logger.debug(f"Authenticated with mail server as {settings.sender}")
