# Routes package init
"""
Forum Backend — API Routes Package
===================================

Route Inventory:
    - users.py:      /api/users/*      (register, login, password reset, check)
    - questions.py:  /api/questions/*  (question CRUD, listing, search)
    - health.py:     GET /health       (service health check)

Routes stay thin: they parse input, call a service, and return a schema.
Business rules and error decisions live in app/services.
"""
