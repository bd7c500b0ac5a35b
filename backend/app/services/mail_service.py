"""
Forum Backend — Mail Service
=============================

What:  Renders and sends transactional email (currently: password reset).
How:   smtplib over STARTTLS, run in the thread pool so the blocking SMTP
       conversation does not stall the event loop.
Who:   PasswordResetService.

When SMTP_HOST is empty the transport is disabled: the send is skipped and a
warning is logged (without the link, which contains a live token). Startup
already reports the missing setting via validate_required_for_production().
"""

import logging
import smtplib
from email.mime.text import MIMEText
from email.utils import formataddr
from html import escape
from typing import Optional

from starlette.concurrency import run_in_threadpool

from app.config import Settings
from app.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


class MailService:
    """SMTP sender configured from Settings."""

    app_name = "Evangadi Forum"

    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.use_tls = settings.smtp_use_tls
        self.timeout = settings.smtp_timeout
        self.mail_from = settings.mail_from
        self.mail_from_name = settings.mail_from_name

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    async def send_password_reset(
        self,
        to_email: str,
        username: str,
        reset_link: str,
        expires_minutes: int = 15,
    ) -> None:
        """
        Raises:
            EmailDeliveryError: the SMTP server could not be reached or refused the message
        """
        await self.send(
            to_email=to_email,
            subject=f"[{self.app_name}] Password Reset",
            html=self._build_reset_email_html(
                username=username,
                reset_link=reset_link,
                expires_minutes=expires_minutes,
            ),
        )

    async def send(self, to_email: str, subject: str, html: str, from_name: Optional[str] = None) -> None:
        if not self.enabled:
            logger.warning("SMTP transport disabled; email '%s' to %s not sent", subject, to_email)
            return
        await run_in_threadpool(self._send_sync, to_email, subject, html, from_name)
        logger.info("Sent email '%s' to %s", subject, to_email)

    def _send_sync(self, to_email: str, subject: str, html: str, from_name: Optional[str]) -> None:
        msg = MIMEText(html, "html", "utf-8")
        msg["Subject"] = subject
        msg["From"] = formataddr((from_name or self.mail_from_name, self.mail_from))
        msg["To"] = to_email

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.user:
                    server.login(self.user, self.password)
                server.sendmail(self.mail_from, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email send to %s failed: %s", to_email, e)
            raise EmailDeliveryError(context={"error_type": type(e).__name__})

    def _build_reset_email_html(self, *, username: str, reset_link: str, expires_minutes: int) -> str:
        return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Reset Your Password</h2>
            <p>Hi {escape(username)},</p>
            <p>We received a request to reset the password for your {self.app_name} account.</p>
            <p>Click the link below to choose a new password. The link expires in {expires_minutes} minutes.</p>
            <p style="margin: 30px 0;">
                <a href="{escape(reset_link)}" style="color: #ff8500; font-weight: bold;">Reset Password</a>
            </p>
            <p>If you didn't request this, you can safely ignore this email.</p>
        </div>
        """
