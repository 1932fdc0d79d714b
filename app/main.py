"""FastAPI application entrypoint. No business logic; only wiring, error rendering and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import protected_router, public_router
from app.core.config import settings
from app.core.errors import AppError
from app.core.security import ensure_signing_secret

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Refuse to start without a signing secret rather than serve with auth broken."""
    ensure_signing_secret(settings)
    logger.info(
        "Proposals API starting",
        extra={
            "environment": settings.APP_ENV,
            "version": settings.APP_VERSION,
            "jwt_expire_minutes": settings.JWT_EXPIRE_MINUTES,
            "rate_limit_test_mode": settings.AUTH_RATE_LIMIT_TEST_MODE,
        },
    )
    if settings.is_production and settings.AUTH_RATE_LIMIT_TEST_MODE:
        logger.warning("AUTH_RATE_LIMIT_TEST_MODE is enabled in production.")
    yield


def _error_body(message: str, details: dict | None = None) -> dict:
    return {"error": message, "details": details, "data": None}


async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed: %s", exc.message, exc_info=exc.__cause__ or exc)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.details),
        headers=exc.headers,
    )


async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=_error_body("Invalid request.", {"errors": jsonable_encoder(exc.errors())}),
    )


async def http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Route not found." if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message),
        headers=getattr(exc, "headers", None),
    )


app = FastAPI(
    title="Proposals API",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

app.include_router(public_router)
app.include_router(protected_router)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Proposals API"}
