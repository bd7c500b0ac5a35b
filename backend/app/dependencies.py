"""
Forum Backend — FastAPI Dependencies
=====================================

Services are constructed once in create_app() and stored on app.state; these
functions hand them to route handlers. Tests swap implementations by
assigning different objects to app.state.

get_current_principal() is the auth guard for protected routes: it reads
`Authorization: Bearer <token>`, verifies a session token and returns the
Principal. Anything else answers 401.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.exceptions import AuthenticationError, TokenError
from app.schemas.user import Principal
from app.services.credential_store import CredentialStore
from app.services.password_reset import PasswordResetService
from app.services.question_repository import QuestionRepository
from app.services.token_service import PURPOSE_SESSION, TokenService

bearer = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credential_store


def get_question_repository(request: Request) -> QuestionRepository:
    return request.app.state.question_repository


def get_password_reset_service(request: Request) -> PasswordResetService:
    return request.app.state.password_reset_service


def get_current_principal(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    token_service: TokenService = Depends(get_token_service),
) -> Principal:
    if creds is None or creds.scheme.lower() != "bearer":
        raise AuthenticationError("Authentication invalid")

    try:
        payload = token_service.verify(creds.credentials, purpose=PURPOSE_SESSION)
    except TokenError as e:
        raise AuthenticationError("Authentication invalid", context={"reason": e.error_code})

    username = payload.get("username")
    if not username:
        raise AuthenticationError("Authentication invalid")
    return Principal(userid=payload["userid"], username=username)
