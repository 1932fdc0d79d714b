"""Public login and registration endpoints (mounted at /auth and /api/auth)."""

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, status
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_credential_store, get_rate_limiter
from app.core.config import Settings, get_settings
from app.schemas.auth import AuthPayload, LoginRequest, RegisterRequest, UserPublic
from app.schemas.common import DataResponse, ErrorResponse
from app.services import auth as auth_service
from app.services.credentials import CredentialStore
from app.services.rate_limiter import AuthRateLimiter, client_ip

router = APIRouter()

FORM_CONTENT_TYPES = frozenset({"application/x-www-form-urlencoded", "multipart/form-data"})


async def read_request_body(request: Request) -> Any:
    """
    Decode the body into a mapping or raw text without ever failing.

    JSON bodies are parsed; form bodies become a dict of their string fields;
    anything else (or JSON that does not parse) is returned as text so the
    payload normalizer can try it.
    """
    raw = await request.body()
    if not raw:
        return None
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type == "application/json" or content_type.endswith("+json"):
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError):
            return raw.decode("utf-8", errors="replace")
    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}
    return raw.decode("utf-8", errors="replace")


def _request_ip(request: Request) -> str:
    peer = request.client.host if request.client else None
    return client_ip(request.headers.get("x-forwarded-for"), peer)


@router.post(
    "/login",
    response_model=DataResponse[AuthPayload],
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": LoginRequest.model_json_schema()}}
        }
    },
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def login(
    request: Request,
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    limiter: Annotated[AuthRateLimiter, Depends(get_rate_limiter)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DataResponse[AuthPayload]:
    """
    Authenticate with email and password; returns a JWT and the user.

    Accepts `{email, password}` flat or nested under `auth` (object or JSON string),
    and the legacy names `login`/`usuario`/`senha`/`pass`.
    Include the token in the Authorization header as: Bearer <token>
    """
    body = await read_request_body(request)
    context = auth_service.LoginRequestContext(
        ip=_request_ip(request),
        content_type=request.headers.get("content-type"),
    )
    result = await run_in_threadpool(
        auth_service.login, body, context, store, limiter, settings
    )
    return DataResponse[AuthPayload](
        data=AuthPayload(token=result.token, user=UserPublic.model_validate(result.user))
    )


@router.post(
    "/register",
    response_model=DataResponse[AuthPayload],
    status_code=status.HTTP_201_CREATED,
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"schema": RegisterRequest.model_json_schema()}}
        }
    },
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def register(
    request: Request,
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DataResponse[AuthPayload]:
    """
    Create an employee account and log it in.

    In production this requires ALLOW_PUBLIC_REGISTER or a matching invite token
    (`invite_token` body field or `X-Invite-Token` header).
    """
    body = await read_request_body(request)
    result = await run_in_threadpool(
        auth_service.register,
        body,
        request.headers.get("x-invite-token"),
        store,
        settings,
    )
    return DataResponse[AuthPayload](
        data=AuthPayload(token=result.token, user=UserPublic.model_validate(result.user))
    )
