"""Credential store: the only place that reads or writes rows of the users table."""

from collections.abc import Sequence

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, StoreError
from app.core.security import BCRYPT_HASH_LEN, BCRYPT_PREFIXES, normalize_access_tag
from app.models import ROLE_EMPLOYEE, User


def normalize_email(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def is_user_active(user: User) -> bool:
    """
    Extension point for soft-delete / suspension.

    The users table has no activity flag yet, so every existing row is active.
    Login and the auth gate both consult this before granting access.
    """
    return True


class CredentialStore:
    """SQLAlchemy-backed user lookups and writes. Raises StoreError on database failures."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_by_email(self, email: str) -> User | None:
        try:
            return self.db.query(User).filter(User.email == normalize_email(email)).first()
        except SQLAlchemyError as e:
            raise StoreError() from e

    def get_by_id(self, user_id: str) -> User | None:
        try:
            return self.db.query(User).filter(User.id == str(user_id)).first()
        except SQLAlchemyError as e:
            raise StoreError() from e

    def list_users(self) -> list[User]:
        try:
            return self.db.query(User).order_by(User.name).all()
        except SQLAlchemyError as e:
            raise StoreError() from e

    def insert(
        self,
        *,
        name: str,
        email: str,
        password_hash: str | None,
        cnpj_access: str = "",
        role: str = ROLE_EMPLOYEE,
        user_id: str | None = None,
    ) -> User:
        """Insert and commit a user. Raises ConflictError if the email is taken."""
        user = User(
            name=name,
            email=normalize_email(email),
            cnpj_access=normalize_access_tag(cnpj_access),
            password_hash=password_hash,
            role=role,
        )
        if user_id:
            user.id = user_id
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Email already registered.") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError() from e
        self.db.refresh(user)
        return user

    def update_password(self, user: User, password_hash: str, *, commit: bool = True) -> None:
        user.password_hash = password_hash
        if commit:
            self._commit()

    def update_profile(
        self,
        user: User,
        *,
        name: str,
        email: str,
        cnpj_access: str,
        role: str,
        password_hash: str | None = None,
    ) -> User:
        """Overwrite profile fields; the stored hash is kept when password_hash is None."""
        user.name = name
        user.email = normalize_email(email)
        user.cnpj_access = normalize_access_tag(cnpj_access)
        user.role = role
        if password_hash is not None:
            user.password_hash = password_hash
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Email already registered.") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError() from e
        self.db.refresh(user)
        return user

    def delete(self, user: User) -> None:
        self.db.delete(user)
        self._commit()

    def list_legacy_password_users(self) -> Sequence[User]:
        """Rows whose password_hash is set but lacks a recognized bcrypt prefix (plaintext)."""
        try:
            rows = (
                self.db.query(User)
                .filter(User.password_hash.isnot(None), User.password_hash != "")
                .filter(~or_(*[User.password_hash.startswith(p) for p in BCRYPT_PREFIXES]))
                .order_by(User.email)
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreError() from e
        return [u for u in rows if not u.password_hash.startswith(BCRYPT_PREFIXES)]

    def list_malformed_hash_users(self) -> Sequence[User]:
        """Rows that look like bcrypt but have the wrong length; they cannot be migrated."""
        try:
            rows = (
                self.db.query(User)
                .filter(or_(*[User.password_hash.startswith(p) for p in BCRYPT_PREFIXES]))
                .order_by(User.email)
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreError() from e
        return [u for u in rows if len(u.password_hash) != BCRYPT_HASH_LEN]

    def commit(self) -> None:
        self._commit()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError() from e
