"""
Forum Backend — Pydantic Schemas
=================================

Request and response contracts, kept apart from the ORM models:
    common    message, error and health bodies
    user      registration, login, password reset, Principal
    question  question payloads and list/search envelopes
"""
