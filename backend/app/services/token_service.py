"""
Forum Backend — Token Service
==============================

What:  Issues and verifies signed, time-limited tokens (HS256 JWTs).
Who:   CredentialStore (session tokens at login), PasswordResetService
       (reset links), and the get_current_principal dependency.

Token purposes:
    session         {userid, username}  24h  Authorization: Bearer <token>
    password_reset  {userid}            15m  ?token=<token> in the reset link

Every token carries a `purpose` claim and verify() can require one, so a
leaked reset link cannot be replayed as a login session and vice versa.
Nothing is persisted: a token is valid exactly when its signature checks
out and `exp` is in the future.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from app.exceptions import TokenExpiredError, TokenInvalidError

logger = logging.getLogger(__name__)

PURPOSE_SESSION = "session"
PURPOSE_PASSWORD_RESET = "password_reset"


class TokenService:
    """Stateless JWT signer/verifier bound to one secret."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("TokenService requires a non-empty secret")
        self._secret = secret
        self._algorithm = algorithm

    def issue(
        self,
        payload: Dict[str, Any],
        ttl: timedelta,
        purpose: Optional[str] = None,
    ) -> str:
        """Sign payload with iat/exp claims (and purpose, when given)."""
        now = datetime.now(timezone.utc)
        claims = dict(payload)
        if purpose:
            claims["purpose"] = purpose
        claims["iat"] = int(now.timestamp())
        claims["exp"] = int((now + ttl).timestamp())
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: Optional[str], purpose: Optional[str] = None) -> Dict[str, Any]:
        """
        Decode and validate a token.

        Raises:
            TokenExpiredError: signature is fine but exp has passed
            TokenInvalidError: missing, malformed, bad signature, or wrong purpose
        """
        if not token:
            raise TokenInvalidError("Token is required")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.InvalidTokenError as e:
            logger.debug("Token rejected: %s", type(e).__name__)
            raise TokenInvalidError()

        if purpose is not None and payload.get("purpose") != purpose:
            raise TokenInvalidError()
        if "userid" not in payload:
            raise TokenInvalidError()
        return payload

    # ── Convenience wrappers ─────────────────────────────────────────────

    def issue_session_token(self, userid: int, username: str, ttl: timedelta) -> str:
        return self.issue({"userid": userid, "username": username}, ttl, purpose=PURPOSE_SESSION)

    def issue_reset_token(self, userid: int, ttl: timedelta) -> str:
        return self.issue({"userid": userid}, ttl, purpose=PURPOSE_PASSWORD_RESET)
