"""Helpers shared by the test modules: in-memory database, settings, clock and seeded users."""

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.core.security import hash_password
from app.models import ROLE_EMPLOYEE, Base, User
from app.services.credentials import CredentialStore

TEST_SECRET = "test-secret"
TEST_ROUNDS = 4


def make_settings(**overrides: Any) -> Settings:
    """Settings for tests; ignores any .env file in the working directory."""
    values: dict[str, Any] = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": TEST_SECRET,
        "BCRYPT_ROUNDS": TEST_ROUNDS,
        "AUTH_RATE_LIMIT_TEST_MODE": False,
        "ALLOW_PUBLIC_REGISTER": False,
        "REGISTER_INVITE_TOKEN": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_session_factory() -> sessionmaker:
    """Fresh in-memory SQLite database with all tables, shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def seed_user(
    db: Session,
    email: str = "ana@example.com",
    password: str | None = "correct-horse",
    role: str = ROLE_EMPLOYEE,
    name: str = "Ana Souza",
    cnpj_access: str = "12.345.678/0001-90",
    raw_password_hash: str | None = None,
) -> User:
    """Insert a user; pass raw_password_hash to store a legacy (plaintext) value as-is."""
    password_hash = raw_password_hash
    if password_hash is None and password is not None:
        password_hash = hash_password(password, TEST_ROUNDS)
    return CredentialStore(db).insert(
        name=name,
        email=email,
        password_hash=password_hash,
        cnpj_access=cnpj_access,
        role=role,
    )


class FakeClock:
    """Manually advanced clock (seconds) for rate limiter tests."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
