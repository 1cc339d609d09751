"""Session/identity resolver — decides which design an editor opens."""

import logging

from devsketch.application.interfaces.design_repository import DesignRepository
from devsketch.domain.exceptions import RemoteUnavailableError
from devsketch.infrastructure.storage.local_design_storage import LocalDesignStorage

logger = logging.getLogger(__name__)


class DesignResolver:
    """Resolves the active design ID from, in order:

    1. an explicit ID (e.g. from the page URL), which is also saved as the
       last design token;
    2. the saved design token;
    3. the latest remote design of the saved drawing session.

    Steps 1 and 3 save the resolved ID as the design token, so a repeated
    call returns the same ID through step 2.
    """

    def __init__(self, repository: DesignRepository, local_storage: LocalDesignStorage):
        self._repository = repository
        self._local = local_storage

    async def resolve_active_design_id(self, explicit_id: str | None = None) -> str | None:
        if explicit_id:
            self._local.save_design_token(explicit_id)
            return explicit_id

        token = self._local.load_design_token()
        if token:
            return token

        session_id = self._local.load_session_id()
        if not session_id:
            return None

        try:
            design = await self._repository.find_latest_for_session(session_id)
        except RemoteUnavailableError as e:
            logger.warning("Could not look up designs of session %s: %s", session_id, e)
            return None

        if design is None:
            logger.debug("Session %s has no remote design yet", session_id)
            return None
        self._local.save_design_token(design.id)
        return design.id
