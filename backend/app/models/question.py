"""
Forum Backend — Question SQLAlchemy Model
==========================================

What:  ORM model for the `questions` table.
Who:   Read and written by QuestionRepository.

Table Design:
    - id: integer surrogate key; gives the listing a stable newest-first order
    - questionid: public identifier used in URLs, built from the owner's
      userid and the creation time (q_<userid>_<epoch-ms>_<hex>)
    - userid: owner reference; set once at creation and never updated
    - tag: optional free-form label
"""

from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.user import User


class Question(Base):
    """A question posted by a user."""

    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    questionid: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    userid: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.userid", ondelete="CASCADE"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    tag: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    owner: Mapped["User"] = relationship(back_populates="questions")

    __table_args__ = (
        Index("idx_questions_userid", "userid"),
    )

    def __repr__(self) -> str:
        return f"<Question(questionid='{self.questionid}', userid={self.userid})>"
