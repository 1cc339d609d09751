"""Local persistence adapter — best-effort device storage for drawings and code.

Key layout:
    snapshot_<design_id>     — elements of one design
    code_<design_id>         — code of one design
    drawing_backup           — most recent drawing, whatever the design
    last_generated_code      — most recent code, whatever the design
    design_token             — last active design ID
    drawing_session_id       — current drawing session ID

Every operation is synchronous and never raises: failures are logged and
turn writes into no-ops and reads into ``None``.
"""

import logging
from collections.abc import Sequence
from typing import Any

from devsketch.domain.entities import Element
from devsketch.domain.exceptions import LocalStorageFailure
from devsketch.infrastructure.storage.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

DRAWING_BACKUP_KEY = "drawing_backup"
LAST_CODE_KEY = "last_generated_code"
DESIGN_TOKEN_KEY = "design_token"
SESSION_ID_KEY = "drawing_session_id"


def snapshot_key(design_id: str) -> str:
    return f"snapshot_{design_id}"


def code_key(design_id: str) -> str:
    return f"code_{design_id}"


class LocalDesignStorage:
    """Infrastructure adapter for on-device design snapshots."""

    def __init__(self, store: KeyValueStore, legacy_session_keys: Sequence[str] = ()):
        self._store = store
        self._legacy_session_keys = tuple(legacy_session_keys)

    # ── Primitive access ────────────────────────────────────────────

    def _write(self, key: str, value: Any) -> bool:
        try:
            self._store.set(key, value)
            return True
        except LocalStorageFailure as e:
            logger.warning("Local save skipped: %s", e)
        except Exception:
            logger.exception("Unexpected local storage error writing '%s'", key)
        return False

    def _read(self, key: str) -> Any | None:
        try:
            return self._store.get(key)
        except LocalStorageFailure as e:
            logger.warning("Local read failed: %s", e)
        except Exception:
            logger.exception("Unexpected local storage error reading '%s'", key)
        return None

    # ── Drawing snapshots ───────────────────────────────────────────

    def save_snapshot(self, design_id: str | None, elements: list[Element]) -> bool:
        """Store the elements for a design and as the global drawing backup."""
        saved = self._write(DRAWING_BACKUP_KEY, list(elements))
        if design_id:
            saved = self._write(snapshot_key(design_id), list(elements)) and saved
        return saved

    def load_snapshot(self, design_id: str) -> list[Element] | None:
        return self._as_elements(self._read(snapshot_key(design_id)))

    def load_latest_snapshot(self) -> list[Element] | None:
        return self._as_elements(self._read(DRAWING_BACKUP_KEY))

    @staticmethod
    def _as_elements(value: Any) -> list[Element] | None:
        if value is None:
            return None
        if not isinstance(value, list):
            logger.warning("Ignoring malformed local drawing snapshot")
            return None
        return value

    # ── Code ────────────────────────────────────────────────────────

    def save_code(self, design_id: str | None, code: str) -> bool:
        """Store code for a design and as the most recent code overall."""
        saved = self._write(LAST_CODE_KEY, code)
        if design_id:
            saved = self._write(code_key(design_id), code) and saved
        return saved

    def load_code(self, design_id: str) -> str | None:
        return self._as_text(self._read(code_key(design_id)))

    def load_latest_code(self) -> str | None:
        return self._as_text(self._read(LAST_CODE_KEY))

    # ── Tokens ──────────────────────────────────────────────────────

    def save_design_token(self, design_id: str) -> bool:
        return self._write(DESIGN_TOKEN_KEY, design_id)

    def load_design_token(self) -> str | None:
        return self._as_text(self._read(DESIGN_TOKEN_KEY)) or None

    def save_session_id(self, session_id: str) -> bool:
        return self._write(SESSION_ID_KEY, session_id)

    def load_session_id(self) -> str | None:
        """Return the saved drawing-session ID.

        Falls back to the configured legacy keys, in order, when the primary
        key is empty.
        """
        session_id = self._as_text(self._read(SESSION_ID_KEY))
        if session_id:
            return session_id
        for key in self._legacy_session_keys:
            legacy = self._as_text(self._read(key))
            if legacy:
                logger.info("Recovered session ID from legacy key '%s'", key)
                return legacy
        return None

    @staticmethod
    def _as_text(value: Any) -> str | None:
        return value if isinstance(value, str) else None
