"""Pydantic DTOs for the sketch-to-code endpoint.

Field names on the wire are camelCase, matching the NDJSON stream messages.
"""

from typing import Any

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    """Request body of ``POST /generate``."""

    elements: list[dict[str, Any]] = Field(default_factory=list)
    framework: str = Field("react", examples=["react"])
    css: str = Field("tailwind", examples=["tailwind"])
    owner_id: str | None = Field(None, alias="ownerId")
    design_hint: str | None = Field(None, alias="designHint")
    use_non_streaming: bool = Field(False, alias="useNonStreaming")

    model_config = {"populate_by_name": True}


class GenerateResponse(BaseModel):
    """Single-response result: either ``code`` or ``error`` is set."""

    code: str = ""
    design_token: str | None = Field(None, alias="designToken")
    error: str | None = None
    error_kind: str | None = Field(None, alias="errorKind")
    success: bool = False

    model_config = {"populate_by_name": True}
