"""
Email service for centralized email sending.

Configuration:
    Email settings are read from Django settings:
    - EMAIL_BACKEND
    - EMAIL_HOST, EMAIL_PORT, EMAIL_TIMEOUT
    - DEFAULT_FROM_EMAIL

Usage:
    from toolkit.services.email import EmailService

    delivered = EmailService.send(
        to="friend@example.com",
        subject="alice shared a file with you: report.pdf",
        body_text="...",
    )
"""

from __future__ import annotations

import logging
import smtplib

from django.conf import settings
from django.core.mail import EmailMultiAlternatives

logger = logging.getLogger(__name__)


class EmailService:
    """
    Centralized email sending.

    Implements toolkit.protocols.EmailSender. Delivery failures are
    reported through the return value rather than raised, so callers
    sending to several recipients can record each outcome separately.

    Usage:
        success = EmailService.send(
            to="user@example.com",
            subject="Quick note",
            body_text="Plain text content",
            body_html="<p>HTML content</p>",
        )
    """

    @staticmethod
    def send(
        to: str | list[str],
        subject: str,
        body_text: str,
        body_html: str | None = None,
        from_email: str | None = None,
        reply_to: str | None = None,
    ) -> bool:
        """
        Send email with raw content.

        Args:
            to: Recipient email address(es)
            subject: Email subject line
            body_text: Plain text email body
            body_html: HTML email body (optional)
            from_email: Sender email (defaults to DEFAULT_FROM_EMAIL)
            reply_to: Reply-to address

        Returns:
            True if the backend accepted the message
        """
        if isinstance(to, str):
            to = [to]

        email = EmailMultiAlternatives(
            subject=subject,
            body=body_text,
            from_email=from_email or settings.DEFAULT_FROM_EMAIL,
            to=to,
            reply_to=[reply_to] if reply_to else None,
        )
        if body_html:
            email.attach_alternative(body_html, "text/html")

        try:
            sent = email.send(fail_silently=False)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                f"Failed to send email to {to}: {e}",
                extra={"recipients": to, "subject": subject},
            )
            return False

        logger.info(f"Email sent to {to}: {subject}")
        return sent > 0
