"""ORM model for application users (auth and RBAC)."""

import uuid

from sqlalchemy import Column, DateTime, String, func

from app.models.base import Base

ROLE_ADMIN = "admin"
ROLE_EMPLOYEE = "employee"
ROLES = (ROLE_ADMIN, ROLE_EMPLOYEE)


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'admin' or 'employee'
    cnpj_access: digits-only business registration number (access tag). It used to
        be a second login factor; today it is informational and copied into tokens.
    password_hash: bcrypt encoding, or plaintext for rows still awaiting
        `python -m app.scripts.hash_legacy_passwords`.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_user_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    cnpj_access = Column(String(32), nullable=False, default="")
    password_hash = Column(String(255), nullable=True)
    role = Column(String(32), nullable=False, default=ROLE_EMPLOYEE)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
