# Services package init
"""
Forum Backend — Services Layer
===============================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Services receive an AsyncSession per call and return schema objects
       or raise ForumError subclasses. They are built once by create_app()
       and reached from routes through app/dependencies.py.

Service Inventory:
    - TokenService: signs and verifies session and reset JWTs
    - CredentialStore: user registration, login, password updates
    - QuestionRepository: question CRUD, pagination and search
    - MailService: SMTP delivery of transactional email
    - PasswordResetService: forgot-password / reset-password flow
"""
