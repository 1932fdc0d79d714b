"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response body for the liveness endpoint."""

    ok: bool = True
    environment: str = Field(description="Current app environment (dev or prod)")


class DatabaseHealthResponse(BaseModel):
    ok: bool
    database: Literal["connected", "disconnected"]


class VersionResponse(BaseModel):
    ok: bool = True
    version: str
