"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.user import ROLE_ADMIN, ROLE_EMPLOYEE, ROLES, User

__all__ = ["Base", "ROLE_ADMIN", "ROLE_EMPLOYEE", "ROLES", "User"]
