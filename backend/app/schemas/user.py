"""
Forum Backend — User & Auth Schemas
====================================

Request bodies declare every field optional on purpose: a missing field is a
business-rule failure reported by CredentialStore as a 400 validation_error
with a readable message, not a pydantic 422.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    """Body of POST /reset-password; the token travels in the query string."""
    model_config = ConfigDict(populate_by_name=True)

    new_password: Optional[str] = Field(default=None, alias="newPassword")


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"
    userid: int


class LoginResponse(BaseModel):
    message: str = "User login successful"
    token: str = Field(description="Bearer session token, valid for 24 hours")
    username: str
    userid: int


class CheckUserResponse(BaseModel):
    message: str = "Valid user"
    username: str
    userid: int


class ValidateResetTokenResponse(BaseModel):
    valid: bool
    userid: int


# ══════════════════════════════════════════════════════════════════════════
# Authenticated identity
# ══════════════════════════════════════════════════════════════════════════


class Principal(BaseModel):
    """The user identity carried by a verified session token."""
    model_config = ConfigDict(frozen=True)

    userid: int
    username: str
