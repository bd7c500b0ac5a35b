"""
Forum Backend — Question Route Handlers
========================================

Routes (prefix /api/questions):
    POST   /question            201  (Bearer)
    GET    /all-questions       200  ?page=&limit=
    GET    /search              200  ?query=
    GET    /{question_id}       200 | 404
    PUT    /{question_id}       200 | 401 | 404  (Bearer, owner only)
    DELETE /{question_id}       200 | 401 | 404  (Bearer, owner only)

/all-questions and /search are declared before /{question_id}; routes match
in declaration order and the path parameter would otherwise capture them.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_principal, get_question_repository
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.question import (
    QuestionCreateRequest,
    QuestionCreatedResponse,
    QuestionDetailResponse,
    QuestionListResponse,
    QuestionSearchResponse,
    QuestionUpdateRequest,
    QuestionUpdatedResponse,
)
from app.schemas.user import Principal
from app.services.question_repository import QuestionRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/questions", tags=["Questions"])


@router.post(
    "/question",
    status_code=201,
    response_model=QuestionCreatedResponse,
    responses={
        400: {"description": "Missing title or description", "model": ErrorResponse},
        401: {"description": "Not logged in", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Post a new question",
)
async def create_question(
    body: QuestionCreateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    repo: QuestionRepository = Depends(get_question_repository),
) -> QuestionCreatedResponse:
    question = await repo.create(
        db,
        userid=principal.userid,
        title=body.title,
        description=body.description,
        tag=body.tag,
    )
    return QuestionCreatedResponse(question=question)


@router.get(
    "/all-questions",
    response_model=QuestionListResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List questions, newest first, one page at a time",
    description="page defaults to 1 and limit to 5 when absent or not a positive integer.",
)
async def list_questions(
    page: Optional[str] = Query(default=None, description="1-based page number"),
    limit: Optional[str] = Query(default=None, description="Questions per page"),
    db: AsyncSession = Depends(get_db_session),
    repo: QuestionRepository = Depends(get_question_repository),
) -> QuestionListResponse:
    # Raw strings on purpose: bad values fall back to defaults instead of 422
    return await repo.list_paged(db, page=page, limit=limit)


@router.get(
    "/search",
    response_model=QuestionSearchResponse,
    responses={400: {"description": "Missing query", "model": ErrorResponse}},
    summary="Case-insensitive substring search over title and description",
)
async def search_questions(
    query: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
    repo: QuestionRepository = Depends(get_question_repository),
) -> QuestionSearchResponse:
    questions = await repo.search(db, query)
    return QuestionSearchResponse(questions=questions)


@router.get(
    "/{question_id}",
    response_model=QuestionDetailResponse,
    responses={404: {"description": "Question not found", "model": ErrorResponse}},
    summary="Get a single question",
)
async def get_question(
    question_id: str,
    db: AsyncSession = Depends(get_db_session),
    repo: QuestionRepository = Depends(get_question_repository),
) -> QuestionDetailResponse:
    question = await repo.get_by_id(db, question_id)
    return QuestionDetailResponse(question=question)


@router.put(
    "/{question_id}",
    response_model=QuestionUpdatedResponse,
    responses={
        400: {"description": "Missing title or description", "model": ErrorResponse},
        401: {"description": "Not logged in, or not the owner", "model": ErrorResponse},
        404: {"description": "Question not found", "model": ErrorResponse},
    },
    summary="Update title and description of your own question",
)
async def update_question(
    question_id: str,
    body: QuestionUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    repo: QuestionRepository = Depends(get_question_repository),
) -> QuestionUpdatedResponse:
    question = await repo.update(
        db,
        questionid=question_id,
        userid=principal.userid,
        title=body.title,
        description=body.description,
    )
    return QuestionUpdatedResponse(question=question)


@router.delete(
    "/{question_id}",
    response_model=MessageResponse,
    responses={
        401: {"description": "Not logged in, or not the owner", "model": ErrorResponse},
        404: {"description": "Question not found", "model": ErrorResponse},
    },
    summary="Delete your own question",
)
async def delete_question(
    question_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    repo: QuestionRepository = Depends(get_question_repository),
) -> MessageResponse:
    await repo.delete(db, questionid=question_id, userid=principal.userid)
    return MessageResponse(message="Question deleted successfully")
