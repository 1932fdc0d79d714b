"""Shared FastAPI dependencies: credential store, rate limiter and the auth gate."""

import logging
from collections.abc import Callable
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import (
    ForbiddenError,
    InvalidTokenError,
    MissingTokenError,
    UserNotFoundError,
)
from app.core.security import decode_access_token, normalize_access_tag
from app.schemas.auth import CurrentUser
from app.services.credentials import CredentialStore, is_user_active
from app.services.rate_limiter import AuthRateLimiter

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@lru_cache
def get_rate_limiter() -> AuthRateLimiter:
    """Process-wide limiter. Override this dependency to plug a shared store."""
    return AuthRateLimiter.from_settings(get_settings())


def get_credential_store(db: Annotated[Session, Depends(get_db)]) -> CredentialStore:
    return CredentialStore(db)


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer JWT whose subject still exists.

    401 when the header is missing or the user was deleted, 403 when the token is
    invalid or expired (same message for both) or the account is inactive.
    Role and email come from the database row, not the token, so changes apply
    immediately.
    """
    if credentials is None or not credentials.credentials:
        raise MissingTokenError(headers={"WWW-Authenticate": "Bearer"})
    try:
        payload = decode_access_token(credentials.credentials, settings)
    except InvalidTokenError as e:
        logger.info("Rejected bearer token", extra={"reason": type(e).__name__})
        raise
    user = store.get_by_id(payload["sub"])
    if user is None:
        raise UserNotFoundError()
    if not is_user_active(user):
        raise ForbiddenError("Inactive user.")
    current = CurrentUser(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        cnpj_access=normalize_access_tag(user.cnpj_access),
    )
    request.state.user = current
    return current


def require_role(*roles: str) -> Callable[..., CurrentUser]:
    """Dependency factory: 403 unless the authenticated user's role is one of `roles`."""

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if current_user.role not in roles:
            raise ForbiddenError()
        return current_user

    return dependency
