# Middleware package init
"""
Forum Backend — Middleware Package
===================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Access Log] → [Rate Limit] → [CORS] → Route Handler

    1. Request ID first, so every log line and every error body (429s
       included) carries the correlation id
    2. Access log wraps the rate limiter and therefore records rejected calls
    3. Rate limit rejects abusive clients before any database work
"""
