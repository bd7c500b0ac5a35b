"""
Forum Backend — Credential Store
=================================

What:  Persists user records and verifies credentials.
Who:   Called by the /api/users route handlers and by PasswordResetService.

Operations:
    register()      validate → uniqueness check → bcrypt hash → insert
    login()         lookup by email → bcrypt compare → session token
    check_user()    echo the authenticated principal
    set_password()  validate → bcrypt hash → update (reset flow)

Password hashing:
    bcrypt with a per-password salt and a configurable cost factor (10 by
    default). bcrypt is CPU bound, so hashing and comparing run in the
    thread pool instead of blocking the event loop.

    Unknown emails still pay for one bcrypt comparison against a dummy hash,
    so "no such account" and "wrong password" take the same time and return
    the same AuthenticationError.

Email addresses are stored and looked up trimmed and lower-cased.
"""

import logging
from datetime import timedelta
from typing import Optional

import bcrypt
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    ForumError,
    NotFoundError,
    ValidationError,
)
from app.models.user import User
from app.schemas.user import CheckUserResponse, LoginResponse, Principal, RegisterResponse
from app.services.limits import check_max_length
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def hash_password(plain: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long input
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_password(password: Optional[str], field: str = "password") -> str:
    """Apply the password rules shared by registration and reset."""
    if not password:
        raise ValidationError("Please provide a password", field=field)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            field=field,
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes long",
            field=field,
        )
    return password


class CredentialStore:
    """
    User persistence and credential checks.

    Like the other services it holds no per-request state: the AsyncSession
    is passed into every call and committed by get_db_session().
    """

    def __init__(
        self,
        token_service: TokenService,
        bcrypt_rounds: int = 10,
        session_ttl: timedelta = timedelta(days=1),
    ):
        self.token_service = token_service
        self.bcrypt_rounds = bcrypt_rounds
        self.session_ttl = session_ttl
        self._dummy_hash = hash_password("not-a-real-password", rounds=bcrypt_rounds)

    async def register(
        self,
        db: AsyncSession,
        username: Optional[str],
        firstname: Optional[str],
        lastname: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> RegisterResponse:
        """
        Create a new user.

        Raises:
            ValidationError: a field is missing/blank or too long, or the password breaks the rules
            ConflictError: username or email is already registered
            DatabaseError: the insert failed for any other reason
        """
        fields = {
            "username": username,
            "firstname": firstname,
            "lastname": lastname,
            "email": email,
            "password": password,
        }
        missing = [name for name, value in fields.items() if not value or not value.strip()]
        if missing:
            raise ValidationError(
                "Please provide all required information",
                context={"missing": missing},
            )
        validate_password(password)

        username = username.strip()
        email = normalize_email(email)
        firstname = firstname.strip()
        lastname = lastname.strip()
        check_max_length(username, User.username, "username")
        check_max_length(firstname, User.firstname, "firstname")
        check_max_length(lastname, User.lastname, "lastname")
        check_max_length(email, User.email, "email")

        try:
            result = await db.execute(
                select(User.username, User.email).where(
                    or_(User.username == username, User.email == email)
                )
            )
            existing = result.first()
            if existing is not None:
                field = "username" if existing.username == username else "email"
                raise ConflictError(context={"field": field})

            hashed = await run_in_threadpool(hash_password, password, self.bcrypt_rounds)
            user = User(
                username=username,
                firstname=firstname,
                lastname=lastname,
                email=email,
                password=hashed,
            )
            db.add(user)
            try:
                await db.flush()
            except IntegrityError:
                # Lost a race with a concurrent registration
                raise ConflictError()

            logger.info("Registered user %s (userid=%d)", user.username, user.userid)
            return RegisterResponse(userid=user.userid)

        except ForumError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error registering user: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def login(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
    ) -> LoginResponse:
        """
        Verify credentials and issue a session token.

        Raises:
            ValidationError: email or password missing
            AuthenticationError: unknown email or wrong password (same message)
        """
        if not email or not email.strip() or not password:
            raise ValidationError("Please provide all required information")

        user = await self.get_by_email(db, email)
        if user is None:
            await run_in_threadpool(verify_password, password, self._dummy_hash)
            raise AuthenticationError()

        if not await run_in_threadpool(verify_password, password, user.password):
            logger.info("Failed login for userid=%d", user.userid)
            raise AuthenticationError()

        token = self.token_service.issue_session_token(user.userid, user.username, self.session_ttl)
        return LoginResponse(token=token, username=user.username, userid=user.userid)

    def check_user(self, principal: Principal) -> CheckUserResponse:
        return CheckUserResponse(username=principal.username, userid=principal.userid)

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.email == normalize_email(email)))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up user by email: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def set_password(
        self,
        db: AsyncSession,
        userid: int,
        new_password: Optional[str],
    ) -> None:
        """
        Replace a user's password hash.

        Raises:
            ValidationError: new password breaks the rules
            NotFoundError: the user no longer exists
        """
        validate_password(new_password, field="newPassword")
        try:
            user = await db.get(User, userid)
            if user is None:
                raise NotFoundError(resource="user", resource_id=str(userid))
            user.password = await run_in_threadpool(hash_password, new_password, self.bcrypt_rounds)
            await db.flush()
            logger.info("Password updated for userid=%d", userid)
        except ForumError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating password: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})
