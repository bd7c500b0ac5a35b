"""
Forum Backend — User SQLAlchemy Model
======================================

What:  ORM model for the `users` table.
Who:   Written by CredentialStore (register, password reset); joined by
       QuestionRepository to show the author's username.

Table Design:
    - userid: integer surrogate key, embedded in session tokens
    - username / email: unique constraints back the "already exists" check,
      so two concurrent registrations cannot both succeed
    - password: bcrypt hash (60 chars), never the plain text
"""

from datetime import datetime, timezone
from typing import List, TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.question import Question


class User(Base):
    """
    A registered forum member.

    Lifecycle:
        1. Created on registration
        2. password replaced by the reset flow
        3. Never deleted by this service
    """

    __tablename__ = "users"

    userid: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    firstname: Mapped[str] = mapped_column(String(50), nullable=False)
    lastname: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False, unique=True)

    # bcrypt hash, e.g. $2b$10$...
    password: Mapped[str] = mapped_column(String(100), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    questions: Mapped[List["Question"]] = relationship(back_populates="owner")

    def __repr__(self) -> str:
        return f"<User(userid={self.userid}, username='{self.username}')>"
