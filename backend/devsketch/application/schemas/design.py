"""Pydantic DTOs (Data Transfer Objects) for the Design feature."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class DesignCreate(BaseModel):
    """Schema for creating a new design row."""

    owner_id: str | None = Field(None, examples=["6f1c2d3e-user"])
    session_id: str = Field(..., examples=["0b6c8f0e-5d1a-4c47-9a55-3f3e2b1c9d10"])
    elements: list[dict[str, Any]] = Field(default_factory=list)


class DesignCreatedResponse(BaseModel):
    id: str


class DesignElementsUpdate(BaseModel):
    """Replaces the drawing; the code is left untouched."""

    elements: list[dict[str, Any]]


class DesignCodeUpdate(BaseModel):
    """Replaces the code; the drawing is left untouched."""

    code: str


class DesignResponse(BaseModel):
    """Schema returned to the client."""

    id: str
    owner_id: str | None = None
    session_id: str
    elements: list[dict[str, Any]]
    code: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
