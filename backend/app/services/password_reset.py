"""
Forum Backend — Password Reset Flow
====================================

What:  Coordinates CredentialStore, TokenService and MailService for the
       forgot-password → validate link → set new password sequence.

Flow:
    requested       POST /forgot-password {email}
                    known email → 15 minute reset token mailed as
                    <frontend_url>/reset-password?token=<token>
                    unknown email → nothing sent, same response
    token verified  GET /validate-reset-token?token=...
    password set    POST /reset-password?token=... {newPassword}

The reset token is not stored anywhere; an expired or tampered token fails
at verification time.
"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import BackgroundTasks
from urllib.parse import urlencode

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import EmailDeliveryError, ValidationError
from app.schemas.user import ValidateResetTokenResponse
from app.services.credential_store import CredentialStore, validate_password
from app.services.mail_service import MailService
from app.services.token_service import PURPOSE_PASSWORD_RESET, TokenService

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account exists for that email, a reset link has been sent."


class PasswordResetService:

    def __init__(
        self,
        credential_store: CredentialStore,
        token_service: TokenService,
        mail_service: MailService,
        frontend_url: str,
        reset_ttl: timedelta = timedelta(minutes=15),
    ):
        self.credential_store = credential_store
        self.token_service = token_service
        self.mail_service = mail_service
        self.frontend_url = frontend_url.rstrip("/")
        self.reset_ttl = reset_ttl

    def build_reset_link(self, token: str) -> str:
        return f"{self.frontend_url}/reset-password?{urlencode({'token': token})}"

    async def forgot_password(
        self,
        db: AsyncSession,
        email: Optional[str],
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> str:
        """
        Mail a reset link if the account exists. Returns the response message,
        which is identical either way.

        With background_tasks the mail is sent after the response, so neither
        SMTP latency nor an SMTP failure reaches the caller. Without it the
        send is awaited inline.

        Raises:
            ValidationError: email missing
            EmailDeliveryError: inline send failed
        """
        if not email or not email.strip():
            raise ValidationError("Please provide your email", field="email")

        user = await self.credential_store.get_by_email(db, email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return FORGOT_PASSWORD_MESSAGE

        token = self.token_service.issue_reset_token(user.userid, self.reset_ttl)
        mail = dict(
            to_email=user.email,
            username=user.username,
            reset_link=self.build_reset_link(token),
            expires_minutes=int(self.reset_ttl.total_seconds() // 60),
        )
        if background_tasks is None:
            await self.mail_service.send_password_reset(**mail)
        else:
            background_tasks.add_task(self._deliver_reset_mail, user.userid, mail)
        logger.info("Password reset link issued for userid=%d", user.userid)
        return FORGOT_PASSWORD_MESSAGE

    async def _deliver_reset_mail(self, userid: int, mail: dict) -> None:
        try:
            await self.mail_service.send_password_reset(**mail)
        except EmailDeliveryError as e:
            logger.error("Reset mail for userid=%d not delivered: %s", userid, e.context)

    def validate_reset_token(self, token: Optional[str]) -> ValidateResetTokenResponse:
        """
        Raises:
            TokenExpiredError / TokenInvalidError
        """
        payload = self.token_service.verify(token, purpose=PURPOSE_PASSWORD_RESET)
        return ValidateResetTokenResponse(valid=True, userid=payload["userid"])

    async def reset_password(
        self,
        db: AsyncSession,
        token: Optional[str],
        new_password: Optional[str],
    ) -> None:
        """
        Raises:
            ValidationError: new password missing or too short
            TokenExpiredError / TokenInvalidError: bad reset token
        """
        if not new_password:
            raise ValidationError("Please provide the new password", field="newPassword")
        validate_password(new_password, field="newPassword")

        payload = self.token_service.verify(token, purpose=PURPOSE_PASSWORD_RESET)
        await self.credential_store.set_password(db, payload["userid"], new_password)
