"""
Forum Backend — Question Repository
====================================

What:  Persistence and queries for questions: create, paginated listing,
       lookup, search, and owner-checked update/delete.
Who:   Called by the /api/questions route handlers.

Ownership:
    A question's userid is written once, at creation. update() and delete()
    load the row first and compare its userid with the acting user before
    touching it: missing row → NotFoundError, other owner → AuthorizationError.

Listing order:
    Newest first by the integer surrogate key, so page boundaries stay
    stable between requests as long as nothing is inserted in between.

Search:
    Case-insensitive, unanchored substring match on title OR description.
    `%` and `_` in the query are escaped and match literally.
"""

import logging
import math
import secrets
import time
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from app.models.question import Question
from app.models.user import User
from app.schemas.question import QuestionListResponse, QuestionResponse
from app.services.limits import check_max_length

logger = logging.getLogger(__name__)

# Largest OFFSET sent to the database (signed 32-bit)
MAX_OFFSET = 2**31 - 1


def generate_question_id(userid: int) -> str:
    """q_<userid>_<epoch-ms>_<6 hex chars>; the suffix keeps same-millisecond posts apart."""
    return f"q_{userid}_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


def _parse_positive_int(value, default: int) -> int:
    """Lenient query-string parsing: absent, non-numeric or < 1 falls back to default."""
    if value is None:
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed >= 1 else default


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _to_response(question: Question, username: Optional[str] = None) -> QuestionResponse:
    return QuestionResponse(
        questionid=question.questionid,
        userid=question.userid,
        title=question.title,
        description=question.description,
        tag=question.tag,
        username=username,
        created_at=question.created_at,
    )


class QuestionRepository:
    """
    Question queries over an explicitly passed AsyncSession.

    Writes only flush; the commit belongs to get_db_session().
    """

    def __init__(self, default_page_size: int = 5, max_page_size: int = 100):
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    async def create(
        self,
        db: AsyncSession,
        userid: int,
        title: Optional[str],
        description: Optional[str],
        tag: Optional[str] = None,
    ) -> QuestionResponse:
        """
        Raises:
            ValidationError: title or description missing, or title/tag too long
            DatabaseError: insert failed
        """
        if _is_blank(title) or _is_blank(description):
            raise ValidationError(
                "Please provide all required information",
                context={"required": ["title", "description"]},
            )
        tag = tag.strip() if tag and tag.strip() else None
        check_max_length(title.strip(), Question.title, "title")
        check_max_length(tag, Question.tag, "tag")

        try:
            question = Question(
                questionid=generate_question_id(userid),
                userid=userid,
                title=title.strip(),
                description=description.strip(),
                tag=tag,
            )
            db.add(question)
            await db.flush()
            logger.info("Question %s created by userid=%d", question.questionid, userid)
            return _to_response(question)
        except SQLAlchemyError as e:
            logger.error("Database error creating question: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the question. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def list_paged(
        self,
        db: AsyncSession,
        page=None,
        limit=None,
    ) -> QuestionListResponse:
        """
        One page of questions joined with the owner's username.

        page/limit accept raw query-string values; anything absent or invalid
        falls back to page 1 and the default page size.
        """
        page = _parse_positive_int(page, 1)
        limit = min(_parse_positive_int(limit, self.default_page_size), self.max_page_size)
        offset = (page - 1) * limit

        try:
            total = (await db.execute(select(func.count(Question.id)))).scalar() or 0

            questions = []
            # No stored page starts beyond MAX_OFFSET
            if offset <= MAX_OFFSET:
                result = await db.execute(
                    select(Question, User.username)
                    .join(User, Question.userid == User.userid)
                    .order_by(Question.id.desc())
                    .limit(limit)
                    .offset(offset)
                )
                questions = [_to_response(q, username) for q, username in result.all()]

            return QuestionListResponse(
                questions=questions,
                total=total,
                page=page,
                total_pages=math.ceil(total / limit),
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing questions: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve questions. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_by_id(self, db: AsyncSession, questionid: str) -> QuestionResponse:
        """
        Raises:
            NotFoundError: no question with that id
        """
        question, username = await self._load(db, questionid)
        return _to_response(question, username)

    async def update(
        self,
        db: AsyncSession,
        questionid: str,
        userid: int,
        title: Optional[str],
        description: Optional[str],
    ) -> QuestionResponse:
        """
        Replace title and description of a question the caller owns.

        Raises:
            ValidationError: title or description missing, or title too long
            NotFoundError: no question with that id
            AuthorizationError: caller is not the owner
        """
        if _is_blank(title) or _is_blank(description):
            raise ValidationError(
                "Please provide all required information",
                context={"required": ["title", "description"]},
            )

        check_max_length(title.strip(), Question.title, "title")

        question, username = await self._load(db, questionid)
        if question.userid != userid:
            raise AuthorizationError("You are not allowed to update this question")

        try:
            question.title = title.strip()
            question.description = description.strip()
            await db.flush()
            await db.refresh(question)
            logger.info("Question %s updated by userid=%d", questionid, userid)
            return _to_response(question, username)
        except SQLAlchemyError as e:
            logger.error("Database error updating question %s: %s", questionid, str(e))
            raise DatabaseError(
                message="Could not update the question. Please try again.",
                context={"questionid": questionid},
            )

    async def delete(self, db: AsyncSession, questionid: str, userid: int) -> None:
        """
        Raises:
            NotFoundError: no question with that id
            AuthorizationError: caller is not the owner
        """
        question, _ = await self._load(db, questionid)
        if question.userid != userid:
            raise AuthorizationError("You are not allowed to delete this question")

        try:
            await db.delete(question)
            await db.flush()
            logger.info("Question %s deleted by userid=%d", questionid, userid)
        except SQLAlchemyError as e:
            logger.error("Database error deleting question %s: %s", questionid, str(e))
            raise DatabaseError(
                message="Could not delete the question. Please try again.",
                context={"questionid": questionid},
            )

    async def search(self, db: AsyncSession, query: Optional[str]) -> List[QuestionResponse]:
        """
        Raises:
            ValidationError: query missing or blank
        """
        if _is_blank(query):
            raise ValidationError("Search query is required", field="query")
        term = query.strip()

        try:
            result = await db.execute(
                select(Question, User.username)
                .join(User, Question.userid == User.userid)
                .where(
                    or_(
                        Question.title.icontains(term, autoescape=True),
                        Question.description.icontains(term, autoescape=True),
                    )
                )
                .order_by(Question.id.desc())
            )
            return [_to_response(q, username) for q, username in result.all()]
        except SQLAlchemyError as e:
            logger.error("Database error searching questions: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Search failed. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def _load(self, db: AsyncSession, questionid: str) -> Tuple[Question, Optional[str]]:
        try:
            result = await db.execute(
                select(Question, User.username)
                .join(User, Question.userid == User.userid)
                .where(Question.questionid == questionid)
            )
            row = result.first()
        except SQLAlchemyError as e:
            logger.error("Database error fetching question %s: %s", questionid, str(e))
            raise DatabaseError(
                message="Could not retrieve the question. Please try again.",
                context={"questionid": questionid},
            )

        if row is None:
            raise NotFoundError(resource="question", resource_id=questionid)
        return row[0], row[1]
