"""Login and registration flows.

Login: rate-limit check -> payload normalization -> store lookup -> bcrypt check
-> token. Every failure after the rate-limit check counts against both the IP
and the account key. Unknown email, unusable stored hash and wrong password all
raise the same InvalidCredentialsError.

Stored values that are not bcrypt hashes (legacy plaintext rows) are rejected
here; they are converted offline by app.scripts.hash_legacy_passwords.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from app.core.errors import (
    AppError,
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    ValidationError,
)
from app.core.security import (
    create_access_token,
    hash_password,
    is_bcrypt_hash,
    verify_password,
)
from app.models import ROLE_EMPLOYEE, User
from app.services.auth_payload import (
    classify_body,
    credentials_source,
    is_body_empty,
    normalize_credentials,
)
from app.services.credentials import CredentialStore, is_user_active, normalize_email
from app.services.rate_limiter import AuthRateLimiter, rate_limit_keys

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    token: str
    user: User


@dataclass(frozen=True)
class LoginRequestContext:
    """What the HTTP layer knows about a login request besides the body."""

    ip: str
    content_type: str | None = None


def login(
    body: object,
    context: LoginRequestContext,
    store: CredentialStore,
    limiter: AuthRateLimiter,
    settings: Settings,
) -> AuthResult:
    """Authenticate a login body. Raises RateLimitedError, ValidationError, InvalidCredentialsError,
    ForbiddenError, ConfigurationError or StoreError."""
    limiter.record_attempt()
    credentials = normalize_credentials(credentials_source(classify_body(body)))
    keys = rate_limit_keys(context.ip, credentials.email)

    limiter.check(keys)

    if credentials.deprecated_keys:
        logger.warning(
            "Login payload uses deprecated keys",
            extra={"keys": credentials.deprecated_keys, "ip": context.ip},
        )
    logger.info(
        "Login attempt",
        extra={"email": credentials.email, "has_password": bool(credentials.password)},
    )

    if not credentials.email or not credentials.password:
        limiter.register_failure(keys, "missing_credentials")
        logger.warning(
            "Login failed: incomplete credentials",
            extra={
                "ip": context.ip,
                "has_email": bool(credentials.email),
                "has_password": bool(credentials.password),
            },
        )
        raise ValidationError(
            "Incomplete credentials.",
            details={
                "content_type": context.content_type,
                "body_empty": is_body_empty(body),
            },
        )

    try:
        user = store.get_by_email(credentials.email)
        if user is None:
            logger.warning("Login failed: unknown email", extra={"ip": context.ip})
            raise InvalidCredentialsError()

        stored_hash = (user.password_hash or "").strip()
        if not is_bcrypt_hash(stored_hash):
            logger.warning(
                "Login failed: stored password is not a bcrypt hash",
                extra={"ip": context.ip, "user_id": user.id},
            )
            raise InvalidCredentialsError()

        if not verify_password(credentials.password, stored_hash):
            logger.warning(
                "Login failed: wrong password", extra={"ip": context.ip, "user_id": user.id}
            )
            raise InvalidCredentialsError()

        if not is_user_active(user):
            logger.warning("Login failed: inactive user", extra={"user_id": user.id})
            raise ForbiddenError("Inactive user.")

        token = create_access_token(user, settings)
    except InvalidCredentialsError:
        limiter.register_failure(keys, "invalid_credentials")
        raise
    except ForbiddenError:
        limiter.register_failure(keys, "user_inactive")
        raise
    except AppError:
        limiter.register_failure(keys, "server_error")
        logger.exception("Login failed with a server-side error")
        raise

    limiter.register_success(keys)
    return AuthResult(token=token, user=user)


def _registration_source(body: object) -> Mapping[str, Any]:
    source = credentials_source(classify_body(body))
    return source if isinstance(source, Mapping) else {}


def _check_registration_allowed(
    source: Mapping[str, Any], invite_header: str | None, settings: Settings
) -> None:
    invite_token = settings.REGISTER_INVITE_TOKEN
    if settings.is_production and not settings.ALLOW_PUBLIC_REGISTER and invite_token is None:
        raise ForbiddenError("Registration disabled.")
    if invite_token is not None and not settings.ALLOW_PUBLIC_REGISTER:
        provided = source.get("invite_token") or invite_header or ""
        if not isinstance(provided, str) or not hmac.compare_digest(
            provided.encode("utf-8"), invite_token.get_secret_value().encode("utf-8")
        ):
            raise ForbiddenError("Registration not authorized.")


def register(
    body: object,
    invite_header: str | None,
    store: CredentialStore,
    settings: Settings,
) -> AuthResult:
    """Self-registration with auto-login. New accounts always get the employee role."""
    source = _registration_source(body)
    _check_registration_allowed(source, invite_header, settings)

    name = str(source.get("name") or "").strip()
    email = normalize_email(source.get("email"))
    cnpj_access = source.get("cnpj_access")
    password = source.get("password")
    if not name or not email or not cnpj_access or not password or not isinstance(password, str):
        raise ValidationError("Missing required fields.")

    if store.get_by_email(email) is not None:
        raise ConflictError("Email already registered.")

    user = store.insert(
        name=name,
        email=email,
        cnpj_access=str(cnpj_access),
        password_hash=hash_password(password, settings.BCRYPT_ROUNDS),
        role=ROLE_EMPLOYEE,
    )
    token = create_access_token(user, settings)
    logger.info("User registered", extra={"user_id": user.id})
    return AuthResult(token=token, user=user)
