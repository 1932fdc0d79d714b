"""Response envelope shared by every endpoint: `{data}` on success, `{error, details, data: null}` on failure."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Successful response wrapper."""

    data: T


class ErrorResponse(BaseModel):
    """Failure envelope rendered by the AppError exception handler."""

    error: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Optional diagnostics")
    data: None = None
