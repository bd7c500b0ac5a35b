"""
Forum Backend — Credential Store Unit Tests
============================================

What:  Registration, login and password updates against a real SQLite schema.

What we test:
    ✅ Register stores a bcrypt hash, never the plain password
    ✅ Missing fields, short passwords and duplicates are rejected
    ✅ Login returns a session token for the right user
    ✅ Unknown email and wrong password fail with the same error
    ✅ set_password replaces the hash
"""

import bcrypt
import pytest
from sqlalchemy import select

from app.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.models.user import User
from app.schemas.user import Principal
from app.services.credential_store import hash_password, verify_password
from app.services.token_service import PURPOSE_SESSION


async def _register(store, db, username="abebe", email="abebe@example.com", password="secret123"):
    return await store.register(
        db,
        username=username,
        firstname="Abebe",
        lastname="Kebede",
        email=email,
        password=password,
    )


class TestPasswordHelpers:

    def test_hash_is_salted_and_verifiable(self):
        first = hash_password("secret123", rounds=4)
        second = hash_password("secret123", rounds=4)

        assert first != second
        assert verify_password("secret123", first)
        assert not verify_password("secret124", first)

    def test_malformed_hash_does_not_verify(self):
        assert verify_password("secret123", "not-a-bcrypt-hash") is False


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_persists_hashed_password(self, credential_store, db_session):
        result = await _register(credential_store, db_session)

        assert result.userid > 0
        assert result.message == "User registered successfully"

        user = await db_session.get(User, result.userid)
        assert user.username == "abebe"
        assert user.password != "secret123"
        assert bcrypt.checkpw(b"secret123", user.password.encode("utf-8"))

    @pytest.mark.asyncio
    async def test_email_is_normalized(self, credential_store, db_session):
        result = await _register(credential_store, db_session, email="  Abebe@Example.COM ")
        user = await db_session.get(User, result.userid)
        assert user.email == "abebe@example.com"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["username", "firstname", "lastname", "email", "password"])
    async def test_missing_field(self, credential_store, db_session, missing):
        fields = {
            "username": "abebe",
            "firstname": "Abebe",
            "lastname": "Kebede",
            "email": "abebe@example.com",
            "password": "secret123",
        }
        fields[missing] = "   " if missing != "password" else None

        with pytest.raises(ValidationError) as exc_info:
            await credential_store.register(db_session, **fields)
        assert exc_info.value.context["missing"] == [missing]

    @pytest.mark.asyncio
    async def test_short_password(self, credential_store, db_session):
        with pytest.raises(ValidationError, match="at least 6 characters"):
            await _register(credential_store, db_session, password="12345")

    @pytest.mark.asyncio
    async def test_password_over_bcrypt_limit(self, credential_store, db_session):
        with pytest.raises(ValidationError, match="72 bytes"):
            await _register(credential_store, db_session, password="x" * 73)

    @pytest.mark.asyncio
    async def test_duplicate_username(self, credential_store, db_session):
        await _register(credential_store, db_session)

        with pytest.raises(ConflictError) as exc_info:
            await _register(credential_store, db_session, email="other@example.com")
        assert exc_info.value.context["field"] == "username"

    @pytest.mark.asyncio
    async def test_duplicate_email_any_case(self, credential_store, db_session):
        await _register(credential_store, db_session)

        with pytest.raises(ConflictError) as exc_info:
            await _register(credential_store, db_session, username="other", email="ABEBE@example.com")
        assert exc_info.value.context["field"] == "email"

        count = len((await db_session.execute(select(User))).scalars().all())
        assert count == 1


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_returns_session_token(self, credential_store, token_service, db_session):
        registered = await _register(credential_store, db_session)

        result = await credential_store.login(db_session, email="abebe@example.com", password="secret123")

        assert result.username == "abebe"
        assert result.userid == registered.userid
        payload = token_service.verify(result.token, purpose=PURPOSE_SESSION)
        assert payload["userid"] == registered.userid
        assert payload["username"] == "abebe"

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, credential_store, db_session):
        await _register(credential_store, db_session)

        with pytest.raises(AuthenticationError) as wrong_password:
            await credential_store.login(db_session, email="abebe@example.com", password="nope-nope")
        with pytest.raises(AuthenticationError) as unknown_email:
            await credential_store.login(db_session, email="ghost@example.com", password="secret123")

        assert wrong_password.value.message == unknown_email.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_missing_input(self, credential_store, db_session):
        with pytest.raises(ValidationError):
            await credential_store.login(db_session, email="", password="secret123")
        with pytest.raises(ValidationError):
            await credential_store.login(db_session, email="abebe@example.com", password=None)

    def test_check_user_echoes_principal(self, credential_store):
        result = credential_store.check_user(Principal(userid=4, username="abebe"))
        assert result.message == "Valid user"
        assert (result.userid, result.username) == (4, "abebe")


class TestSetPassword:

    @pytest.mark.asyncio
    async def test_new_password_replaces_old(self, credential_store, db_session):
        registered = await _register(credential_store, db_session)

        await credential_store.set_password(db_session, registered.userid, "brand-new-pass")

        await credential_store.login(db_session, email="abebe@example.com", password="brand-new-pass")
        with pytest.raises(AuthenticationError):
            await credential_store.login(db_session, email="abebe@example.com", password="secret123")

    @pytest.mark.asyncio
    async def test_short_new_password(self, credential_store, db_session):
        registered = await _register(credential_store, db_session)
        with pytest.raises(ValidationError) as exc_info:
            await credential_store.set_password(db_session, registered.userid, "123")
        assert exc_info.value.context["field"] == "newPassword"

    @pytest.mark.asyncio
    async def test_unknown_user(self, credential_store, db_session):
        with pytest.raises(NotFoundError):
            await credential_store.set_password(db_session, 999, "brand-new-pass")


class TestRegisterColumnLimits:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field, value, limit",
        [
            ("username", "u" * 51, 50),
            ("firstname", "f" * 51, 50),
            ("lastname", "l" * 51, 50),
            ("email", "e" * 243 + "@example.com", 254),
        ],
    )
    async def test_over_length_field(self, credential_store, db_session, field, value, limit):
        fields = {
            "username": "abebe",
            "firstname": "Abebe",
            "lastname": "Kebede",
            "email": "abebe@example.com",
            "password": "secret123",
        }
        fields[field] = value

        with pytest.raises(ValidationError) as exc_info:
            await credential_store.register(db_session, **fields)
        assert exc_info.value.context == {"field": field, "max_length": limit}

        count = len((await db_session.execute(select(User))).scalars().all())
        assert count == 0

    @pytest.mark.asyncio
    async def test_username_at_limit(self, credential_store, db_session):
        result = await _register(credential_store, db_session, username="u" * 50)
        assert result.userid > 0
