"""
Forum Backend — Token Service Unit Tests
=========================================

What we test:
    ✅ Session and reset tokens round-trip their claims
    ✅ Expired tokens raise TokenExpiredError
    ✅ Tampered, foreign-secret and garbage tokens raise TokenInvalidError
    ✅ A token issued for one purpose is rejected for another
"""

from datetime import timedelta

import jwt
import pytest

from app.exceptions import TokenExpiredError, TokenInvalidError
from app.services.token_service import (
    PURPOSE_PASSWORD_RESET,
    PURPOSE_SESSION,
    TokenService,
)


class TestIssueAndVerify:

    def setup_method(self):
        self.service = TokenService("unit-test-secret")

    def test_session_token_carries_identity(self):
        token = self.service.issue_session_token(7, "abebe", timedelta(hours=24))
        payload = self.service.verify(token, purpose=PURPOSE_SESSION)

        assert payload["userid"] == 7
        assert payload["username"] == "abebe"
        assert payload["purpose"] == PURPOSE_SESSION
        assert payload["exp"] - payload["iat"] == 24 * 3600

    def test_reset_token_carries_userid_only(self):
        token = self.service.issue_reset_token(3, timedelta(minutes=15))
        payload = self.service.verify(token, purpose=PURPOSE_PASSWORD_RESET)

        assert payload["userid"] == 3
        assert "username" not in payload

    def test_verify_without_purpose_accepts_any_purpose(self):
        token = self.service.issue_reset_token(3, timedelta(minutes=15))
        assert self.service.verify(token)["userid"] == 3

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenService("")


class TestRejection:

    def setup_method(self):
        self.service = TokenService("unit-test-secret")

    def test_expired_token(self):
        token = self.service.issue_reset_token(1, timedelta(seconds=-30))
        with pytest.raises(TokenExpiredError):
            self.service.verify(token, purpose=PURPOSE_PASSWORD_RESET)

    def test_token_signed_with_other_secret(self):
        token = TokenService("someone-else").issue_reset_token(1, timedelta(minutes=15))
        with pytest.raises(TokenInvalidError):
            self.service.verify(token)

    def test_tampered_token(self):
        token = self.service.issue_session_token(1, "abebe", timedelta(hours=1))
        header, payload, signature = token.split(".")
        flipped = signature[:-2] + ("AA" if signature[-2:] != "AA" else "BB")
        with pytest.raises(TokenInvalidError):
            self.service.verify(f"{header}.{payload}.{flipped}")

    @pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
    def test_missing_or_malformed(self, token):
        with pytest.raises(TokenInvalidError):
            self.service.verify(token)

    def test_session_token_is_not_a_reset_token(self):
        token = self.service.issue_session_token(1, "abebe", timedelta(hours=1))
        with pytest.raises(TokenInvalidError):
            self.service.verify(token, purpose=PURPOSE_PASSWORD_RESET)

    def test_reset_token_is_not_a_session_token(self):
        token = self.service.issue_reset_token(1, timedelta(minutes=15))
        with pytest.raises(TokenInvalidError):
            self.service.verify(token, purpose=PURPOSE_SESSION)

    def test_token_without_exp_rejected(self):
        token = jwt.encode({"userid": 1}, "unit-test-secret", algorithm="HS256")
        with pytest.raises(TokenInvalidError):
            self.service.verify(token)

    def test_token_without_userid_rejected(self):
        token = self.service.issue({"username": "abebe"}, timedelta(hours=1))
        with pytest.raises(TokenInvalidError):
            self.service.verify(token)
