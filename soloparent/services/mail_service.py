"""
Solo Parent Backend: Mail Service
==================================

What:  Sends the transactional emails of the case workflow.
How:   Builds an EmailMessage per kind and hands it to smtplib in a worker
       thread (smtplib is blocking). STARTTLS and login are used when
       configured.

Contract:
    send(to, kind, data) -> bool

    Never raises into a workflow. Missing configuration, an unknown kind or
    any SMTP / socket error is logged and reported as False, and the caller
    degrades to "status updated but email failed".
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from enum import Enum
from html import escape
from typing import Any, Dict, Optional, Tuple

from soloparent.config import Settings, settings

logger = logging.getLogger(__name__)


class MailKind(str, Enum):
    STATUS = "status"
    RENEWAL_STATUS = "renewal_status"
    REVOKE = "revoke"
    TERMINATION = "termination"
    REVERIFICATION = "reverification"
    PASSWORD_RESET = "password_reset"


def _paragraphs(*lines: str) -> str:
    return "".join(f"<p>{line}</p>" for line in lines)


def _render(kind: MailKind, data: Dict[str, Any]) -> Tuple[str, str]:
    """Subject and HTML body for one mail kind. `data` values are escaped."""
    name = escape(str(data.get("name") or "Applicant"))
    remarks = escape(str(data.get("remarks") or ""))
    greeting = f"Dear {name},"

    if kind is MailKind.STATUS:
        status = escape(str(data.get("status", "")))
        if status == "Accepted":
            body = _paragraphs(
                greeting,
                "Your solo parent application has been accepted.",
                "You may now log in to the Solo Parent Support System.",
            )
        else:
            body = _paragraphs(
                greeting,
                "We regret to inform you that your solo parent application has been declined.",
                f"Remarks: {remarks}" if remarks else "Please contact your barangay office for details.",
            )
        return f"Solo Parent Application {status}", body

    if kind is MailKind.RENEWAL_STATUS:
        status = escape(str(data.get("status", "")))
        if status == "Accepted":
            lines = [greeting, "Your solo parent ID renewal has been approved."]
        else:
            lines = [greeting, "Your solo parent ID renewal needs attention."]
            if remarks:
                lines.append(f"Remarks: {remarks}")
        return f"Solo Parent Renewal {status}", _paragraphs(*lines)

    if kind is MailKind.REVOKE:
        return "Solo Parent Status Under Review", _paragraphs(
            greeting,
            "Your solo parent status is under investigation.",
            f"Remarks: {remarks}" if remarks else "Please visit your designated SPO.",
            "You are given 5 to 7 working days to comply.",
        )

    if kind is MailKind.TERMINATION:
        return "Solo Parent Account Terminated", _paragraphs(
            greeting,
            "Your solo parent account has been terminated after review.",
        )

    if kind is MailKind.REVERIFICATION:
        return "Solo Parent Account Reactivated", _paragraphs(
            greeting,
            "Your solo parent account has been reactivated and verified.",
        )

    reset_link = escape(str(data.get("reset_link", "")))
    return "Password Reset Request", _paragraphs(
        greeting,
        "We received a request to reset your password.",
        f'<a href="{reset_link}">Reset your password</a>',
        "This link expires in one hour. Ignore this email if you did not ask for it.",
    )


class MailService:
    """SMTP-backed implementation of the mail collaborator."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or settings

    def build_message(self, to: str, kind: MailKind, data: Dict[str, Any]) -> EmailMessage:
        subject, html = _render(kind, data)
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = formataddr((self.config.mail_sender_name, self.config.mail_sender))
        msg["To"] = to
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(
            self.config.smtp_host,
            self.config.smtp_port,
            timeout=self.config.smtp_timeout_seconds,
        ) as smtp:
            if self.config.smtp_use_tls:
                smtp.starttls()
            if self.config.smtp_username and self.config.smtp_password:
                smtp.login(self.config.smtp_username, self.config.smtp_password)
            smtp.send_message(msg)

    async def send(self, to: str, kind: str, data: Optional[Dict[str, Any]] = None) -> bool:
        try:
            mail_kind = MailKind(kind)
        except ValueError:
            logger.error("Unknown mail kind %r; nothing sent to %s", kind, to)
            return False

        if not to:
            logger.warning("No recipient for %s mail; nothing sent", mail_kind.value)
            return False

        if not self.config.mail_configured:
            logger.warning("SMTP is not configured; %s mail to %s not sent", mail_kind.value, to)
            return False

        msg = self.build_message(to, mail_kind, data or {})
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("Failed to send %s mail to %s: %s", mail_kind.value, to, str(e))
            return False

        logger.info("Sent %s mail to %s", mail_kind.value, to)
        return True


mail_service = MailService()
