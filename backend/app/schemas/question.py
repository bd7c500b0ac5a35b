"""
Forum Backend — Question Schemas
=================================

What:  API contract for question endpoints.
Why:   Separate from the ORM model so the response shape (owner username,
       camelCase totalPages) is controlled here and not by the table layout.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class QuestionCreateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    tag: Optional[str] = None


class QuestionUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class QuestionResponse(BaseModel):
    """
    What:  One question, with the owner's username when it was joined in.
    """
    questionid: str = Field(description="Public question identifier")
    userid: int = Field(description="Owner's user id")
    title: str
    description: str
    tag: Optional[str] = None
    username: Optional[str] = Field(default=None, description="Owner's username")
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class QuestionCreatedResponse(BaseModel):
    message: str = "Question created successfully"
    question: QuestionResponse


class QuestionDetailResponse(BaseModel):
    question: QuestionResponse


class QuestionUpdatedResponse(BaseModel):
    message: str = "Question updated successfully"
    question: QuestionResponse


class QuestionListResponse(BaseModel):
    """
    What:  One page of questions plus the numbers a pager needs.

    Pagination is offset-based (page/limit): the forum UI shows numbered
    pages, so it needs total and totalPages up front.
    """
    model_config = ConfigDict(populate_by_name=True)

    questions: List[QuestionResponse]
    total: int = Field(description="Total number of questions")
    page: int = Field(description="Page number that was returned")
    total_pages: int = Field(
        alias="totalPages",
        description="ceil(total / limit)",
    )


class QuestionSearchResponse(BaseModel):
    questions: List[QuestionResponse]
