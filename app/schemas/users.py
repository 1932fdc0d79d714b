"""Schemas for the admin user management endpoints."""

from typing import Literal

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    cnpj_access: str = ""
    password: str | None = Field(default=None, min_length=8, max_length=128)
    role: Literal["admin", "employee"] = "employee"
    id: str | None = Field(default=None, max_length=36, description="Optional client-chosen id")


class UserUpdate(BaseModel):
    """Full update; omit password to keep the current one."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    cnpj_access: str = ""
    password: str | None = Field(default=None, min_length=8, max_length=128)
    role: Literal["admin", "employee"] = "employee"


class UserUpdated(BaseModel):
    id: str
