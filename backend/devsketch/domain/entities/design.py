"""Domain entities — pure Python business objects, no framework dependencies."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

LOCAL_DESIGN_PREFIX = "local-"

# A canvas shape record as produced by the drawing library.
Element = dict[str, Any]


def new_session_id() -> str:
    """Return a fresh random (version 4) drawing-session identifier."""
    return str(uuid.uuid4())


def local_design_id(session_id: str) -> str:
    """Synthetic identifier for a design that only lives in local storage."""
    return f"{LOCAL_DESIGN_PREFIX}{session_id}"


def is_local_design_id(design_id: str | None) -> bool:
    return bool(design_id) and design_id.startswith(LOCAL_DESIGN_PREFIX)


class PersistenceMode(str, Enum):
    """Where writes for a design currently go."""

    REMOTE = "remote"
    DEGRADED = "degraded"  # remote failed; local-only until a reconnect probe succeeds
    LOCAL_ONLY = "local_only"  # synthetic local- design; never promoted automatically


@dataclass
class Design:
    """Core domain entity: one sketch plus the code generated from it."""

    session_id: str
    elements: list[Element] = field(default_factory=list)
    id: str | None = None
    owner_id: str | None = None
    code: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_local(self) -> bool:
        return is_local_design_id(self.id)
