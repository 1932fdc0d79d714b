"""Password hashing and JWT creation/verification for authentication."""

import re
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Protocol

import bcrypt
import jwt

from app.core.errors import ConfigurationError, ExpiredTokenError, InvalidTokenError

if TYPE_CHECKING:
    from app.core.config import Settings

# Prefixes of the modular-crypt bcrypt encodings we accept ($2a$, $2b$, $2y$).
BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
BCRYPT_HASH_LEN = 60
# bcrypt only looks at the first 72 bytes of the password.
BCRYPT_MAX_PASSWORD_BYTES = 72
DEFAULT_BCRYPT_ROUNDS = 12

_NON_DIGITS = re.compile(r"\D")


class TokenSubject(Protocol):
    id: Any
    email: str
    role: str
    cnpj_access: str | None


def normalize_access_tag(value: object) -> str:
    """Keep only the digits of a CNPJ-like registration number ('12.345/0001-90' -> '12345000190')."""
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(plain_password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    return bcrypt.hashpw(
        _password_bytes(plain_password), bcrypt.gensalt(rounds=rounds)
    ).decode("utf-8")


def is_bcrypt_hash(encoded: str | None) -> bool:
    """True only for a full-length bcrypt encoding with a known version prefix."""
    if not encoded:
        return False
    return encoded.startswith(BCRYPT_PREFIXES) and len(encoded) == BCRYPT_HASH_LEN


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _signing_secret(settings: "Settings") -> str:
    if settings.JWT_SECRET is None:
        raise ConfigurationError("JWT_SECRET is not configured.")
    secret = settings.JWT_SECRET.get_secret_value()
    if not secret.strip():
        raise ConfigurationError("JWT_SECRET is not configured.")
    return secret


def ensure_signing_secret(settings: "Settings") -> None:
    """Raise ConfigurationError if tokens cannot be signed. Called at startup."""
    _signing_secret(settings)


def create_access_token(user: TokenSubject, settings: "Settings") -> str:
    """Create a JWT with sub (user id), email, role, cnpj_access, iat and exp."""
    secret = _signing_secret(settings)
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "cnpj_access": normalize_access_tag(user.cnpj_access),
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: "Settings") -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (sub, email, role, cnpj_access, iat, exp).

    Raises ExpiredTokenError when exp has elapsed, InvalidTokenError for any other
    defect (bad signature, garbage input, missing claims) and ConfigurationError
    when no secret is configured.
    """
    secret = _signing_secret(settings)
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise ExpiredTokenError() from e
    except jwt.PyJWTError as e:
        raise InvalidTokenError() from e
    if not payload.get("sub"):
        raise InvalidTokenError()
    return payload
