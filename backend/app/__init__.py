"""
Forum Backend — Application Package
====================================

Layered layout:

    ┌─────────────────────────────────────┐
    │     Routes (app/routes)             │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     Services (app/services)         │  ← validation, ownership, auth
    ├─────────────────────────────────────┤
    │     Models & Schemas                │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │     Database (app/database.py)      │  ← explicit handle, session per request
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
