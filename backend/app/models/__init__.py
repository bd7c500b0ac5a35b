# Models package init
"""
Importing this package registers every table with Base.metadata, which
Database.create_all() and Alembic's autogenerate both read.
"""

from app.models.user import User
from app.models.question import Question

__all__ = ["User", "Question"]
