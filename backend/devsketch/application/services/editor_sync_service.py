"""Editor state synchronizer — keeps one editor's drawing and code in sync.

The service owns the active design ID, the current elements and code, the
generation flags and a persistence mode per design:

- REMOTE: edits are written through to the local mirror and, debounced,
  to the remote design store.
- DEGRADED: the remote store failed; edits go to local storage only until
  ``reconnect_probe`` succeeds.
- LOCAL_ONLY: the design never had a remote row (``local-<session>`` IDs).

Remote-update notifications are applied to local state except while a save
of the same design is in flight, which drops our own echo.
"""

import asyncio
import logging

from devsketch.application.interfaces import ActorProvider, DesignRepository, Unsubscribe
from devsketch.application.services.code_generation_orchestrator import CodeGenerationOrchestrator
from devsketch.application.services.design_resolver import DesignResolver
from devsketch.domain.entities import (
    LOCAL_DESIGN_PREFIX,
    Design,
    Element,
    GenerationMode,
    GenerationProgress,
    GenerationResult,
    PersistenceMode,
    is_local_design_id,
    local_design_id,
    new_session_id,
)
from devsketch.domain.exceptions import (
    ConstraintViolationError,
    EntityNotFoundError,
    RemoteUnavailableError,
)
from devsketch.infrastructure.storage.local_design_storage import LocalDesignStorage

logger = logging.getLogger(__name__)

_REMOTE_WRITE_ERRORS = (RemoteUnavailableError, EntityNotFoundError, ConstraintViolationError)


class EditorSyncService:
    """Application service — one instance per open editor."""

    def __init__(
        self,
        repository: DesignRepository,
        local_storage: LocalDesignStorage,
        resolver: DesignResolver,
        orchestrator: CodeGenerationOrchestrator,
        actor_provider: ActorProvider,
        *,
        debounce_seconds: float = 1.0,
    ):
        self._repository = repository
        self._local = local_storage
        self._resolver = resolver
        self._orchestrator = orchestrator
        self._actor_provider = actor_provider
        self._debounce_seconds = debounce_seconds

        self._design_id: str | None = None
        self._session_id: str | None = None
        self._owner_id: str | None = None
        self._elements: list[Element] = []
        self._code = ""
        # Partially streamed code; shown through ``code`` but never persisted.
        self._streamed_code: str | None = None
        self._modes: dict[str, PersistenceMode] = {}

        self._elements_dirty = False
        self._code_dirty = False
        self._saving = False
        self._persisting = False
        self._persist_requested = False
        self._generating = False
        self._generation_complete = False

        self._unsubscribe: Unsubscribe | None = None
        self._debounce_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    # ── State ───────────────────────────────────────────────────────

    @property
    def design_id(self) -> str | None:
        return self._design_id

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def elements(self) -> list[Element]:
        return list(self._elements)

    @property
    def code(self) -> str:
        if self._streamed_code is not None:
            return self._streamed_code
        return self._code

    @property
    def saving(self) -> bool:
        """True while a remote save of the active design is in flight."""
        return self._saving

    @property
    def generating(self) -> bool:
        return self._generating

    @property
    def generation_complete(self) -> bool:
        return self._generation_complete

    @property
    def persistence_mode(self) -> PersistenceMode | None:
        if self._design_id is None:
            return None
        return self.mode_for(self._design_id)

    def mode_for(self, design_id: str) -> PersistenceMode:
        if is_local_design_id(design_id):
            return PersistenceMode.LOCAL_ONLY
        return self._modes.get(design_id, PersistenceMode.REMOTE)

    # ── Loading ─────────────────────────────────────────────────────

    async def open_design(self, explicit_id: str | None = None) -> Design | None:
        """Resolve the active design and load it into the editor.

        With nothing to resolve, the editor starts from the last local
        drawing backup; a design is created on the first persisted edit.
        """
        self._owner_id = await self._actor_provider.current_actor_id()
        self._session_id = self._local.load_session_id()

        design_id = await self._resolver.resolve_active_design_id(explicit_id)
        if design_id is None:
            await self._switch_to(None)
            self._elements = self._local.load_latest_snapshot() or []
            self._code = self._local.load_latest_code() or ""
            logger.info("No design to open; restored %d local elements", len(self._elements))
            return None
        return await self.load_design(design_id)

    async def load_design(self, design_id: str) -> Design | None:
        """Make ``design_id`` the active design and load its content.

        A remote outage loads the local snapshot and leaves the design in
        DEGRADED mode; it never creates a new design.
        """
        await self._switch_to(design_id)

        if is_local_design_id(design_id):
            self._modes[design_id] = PersistenceMode.LOCAL_ONLY
            self._session_id = design_id[len(LOCAL_DESIGN_PREFIX):]
            self._apply_local_snapshot(design_id)
            return Design(
                id=design_id,
                session_id=self._session_id,
                elements=self.elements,
                code=self._code or None,
            )

        try:
            design = await self._repository.get_by_id(design_id)
        except RemoteUnavailableError as e:
            logger.warning("Loading design %s failed, using local snapshot: %s", design_id, e)
            self._modes[design_id] = PersistenceMode.DEGRADED
            self._apply_local_snapshot(design_id)
            return None

        if design is None:
            logger.info("Design %s does not exist; starting a new drawing", design_id)
            self._design_id = None
            self._elements = []
            self._code = ""
            return None

        self._modes[design_id] = PersistenceMode.REMOTE
        self._session_id = design.session_id
        self._local.save_session_id(design.session_id)
        self._elements = list(design.elements)
        self._code = design.code or ""
        self._local.save_snapshot(design_id, self._elements)
        if design.code:
            self._local.save_code(design_id, design.code)
        self._subscribe(design_id)
        logger.info("Loaded design %s with %d elements", design_id, len(self._elements))
        return design

    async def new_session(self) -> str:
        """Start a fresh drawing session with an empty design.

        Returns the new design ID, which is ``local-<session>`` when the
        editor is anonymous or the remote store is unavailable.
        """
        await self._switch_to(None)
        self._elements = []
        self._code = ""
        self._generation_complete = False

        session_id = new_session_id()
        self._session_id = session_id
        self._local.save_session_id(session_id)
        self._owner_id = await self._actor_provider.current_actor_id()

        design_id, _ = await self._create_design(session_id, [])
        return design_id

    # ── Edits ───────────────────────────────────────────────────────

    def set_elements(self, elements: list[Element]) -> None:
        """Replace the drawing; persisted after the debounce interval."""
        self._elements = list(elements)
        self._elements_dirty = True
        self._schedule_persist()

    def set_code(self, code: str) -> None:
        """Replace the code; mirrored locally now, persisted after the debounce interval."""
        self._code = code or ""
        self._local.save_code(self._design_id, self._code)
        self._code_dirty = True
        self._schedule_persist()

    def on_remote_update(self, design: Design) -> None:
        """Apply a pushed update of the active design row."""
        if design.id != self._design_id:
            return
        if self._saving:
            logger.debug("Dropping update of %s received during our own save", design.id)
            return

        # Unsaved local edits win; the pending persist writes them back.
        if not self._elements_dirty:
            self._elements = list(design.elements)
            self._local.save_snapshot(design.id, self._elements)
        if not self._code_dirty and design.code is not None:
            self._code = design.code
            self._local.save_code(design.id, design.code)

    def _on_channel_error(self, error: Exception) -> None:
        design_id = self._design_id
        if design_id is None or self.mode_for(design_id) is not PersistenceMode.REMOTE:
            return
        logger.warning("Realtime channel of %s failed: %s", design_id, error)
        self._modes[design_id] = PersistenceMode.DEGRADED

    # ── Persistence ─────────────────────────────────────────────────

    def _schedule_persist(self) -> None:
        if self._debounce_task is not None:
            self._debounce_task.cancel()
        task = asyncio.get_running_loop().create_task(self._debounced_persist())
        self._debounce_task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _debounced_persist(self) -> None:
        await asyncio.sleep(self._debounce_seconds)
        # From here on a new edit starts a new timer instead of cancelling this save.
        self._debounce_task = None
        await self.persist()

    async def persist(self) -> None:
        """Write pending edits now: locally always, remotely in REMOTE mode.

        Calls made while a persist (including the creation of the design) is
        running are coalesced into one more pass once it finishes.
        """
        if self._persisting:
            self._persist_requested = True
            return
        self._persisting = True
        try:
            while True:
                self._persist_requested = False
                await self._persist_once()
                if not self._persist_requested:
                    break
        finally:
            self._persisting = False

    async def _persist_once(self) -> None:
        if not (self._elements_dirty or self._code_dirty):
            return

        # Edits made while this pass awaits stay dirty for the next pass.
        elements = self.elements
        code = self._code
        write_elements = self._elements_dirty
        write_code = self._code_dirty
        self._elements_dirty = self._code_dirty = False

        design_id = self._design_id
        if design_id is None:
            if not elements and not code:
                return
            session_id = self._session_id or new_session_id()
            if self._session_id is None:
                self._session_id = session_id
                self._local.save_session_id(session_id)
            self._saving = True
            try:
                design_id, created_remotely = await self._create_design(session_id, elements)
            finally:
                self._saving = False
            if created_remotely:
                write_elements = False

        self._local.save_snapshot(design_id, elements)
        if write_code:
            self._local.save_code(design_id, code)

        if self.mode_for(design_id) is not PersistenceMode.REMOTE:
            logger.debug("Design %s saved locally only (%s)", design_id, self.mode_for(design_id).value)
            return
        if not (write_elements or write_code):
            return

        self._saving = True
        try:
            if write_elements:
                await self._repository.update_elements(design_id, elements)
            if write_code:
                await self._repository.update_code(design_id, code)
        except _REMOTE_WRITE_ERRORS as e:
            logger.warning("Remote save of %s failed, continuing locally: %s", design_id, e)
            self._modes[design_id] = PersistenceMode.DEGRADED
        finally:
            self._saving = False

    async def _create_design(self, session_id: str, elements: list[Element]) -> tuple[str, bool]:
        """Create the design for ``session_id``; returns (design ID, created remotely)."""
        design_id = None
        if self._owner_id:
            try:
                design_id = await self._repository.create(self._owner_id, session_id, elements)
            except (RemoteUnavailableError, ConstraintViolationError) as e:
                logger.warning("Could not create a remote design, using local storage: %s", e)

        remote = design_id is not None
        if design_id is None:
            design_id = local_design_id(session_id)
        self._modes[design_id] = PersistenceMode.REMOTE if remote else PersistenceMode.LOCAL_ONLY

        # The active ID must be set before anything persists against it.
        self._design_id = design_id
        self._local.save_design_token(design_id)
        self._local.save_snapshot(design_id, elements)
        if remote:
            self._subscribe(design_id)
        logger.info("Created design %s (%s)", design_id, self.mode_for(design_id).value)
        return design_id, remote

    async def reconnect_probe(self) -> bool:
        """Try to leave DEGRADED mode by writing the current state remotely.

        Returns True when the active design is (back) in REMOTE mode.
        """
        design_id = self._design_id
        if design_id is None:
            return False
        mode = self.mode_for(design_id)
        if mode is PersistenceMode.LOCAL_ONLY:
            return False
        if mode is PersistenceMode.REMOTE:
            return True

        elements = self.elements
        code = self._code
        self._saving = True
        try:
            await self._repository.update_elements(design_id, elements)
            if code:
                await self._repository.update_code(design_id, code)
        except _REMOTE_WRITE_ERRORS as e:
            logger.info("Design %s still unreachable: %s", design_id, e)
            return False
        finally:
            self._saving = False

        self._modes[design_id] = PersistenceMode.REMOTE
        self._subscribe(design_id)
        logger.info("Design %s reconnected to the remote store", design_id)
        return True

    async def flush(self) -> None:
        """Cancel the debounce timer and write pending edits immediately."""
        if self._debounce_task is not None:
            self._debounce_task.cancel()
            self._debounce_task = None
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        await self.persist()

    async def close(self) -> None:
        await self.flush()
        self._unsubscribe_active()

    # ── Generation ──────────────────────────────────────────────────

    async def generate_code(
        self,
        framework: str = "react",
        css: str = "tailwind",
        mode: GenerationMode = GenerationMode.AUTO,
    ) -> GenerationResult:
        """Generate code from the current drawing.

        Streamed fragments show up in ``code`` as they arrive but are not
        persisted; only a successful result replaces the stored code. On
        failure ``code`` shows the code from before the generation again.
        """
        design_id = self._design_id
        self._generating = True
        self._generation_complete = False

        def on_progress(progress: GenerationProgress) -> None:
            if self._design_id == design_id:
                self._streamed_code = progress.partial_code
                self._generation_complete = progress.is_complete

        try:
            result = await self._orchestrator.generate(
                self.elements,
                framework,
                css,
                owner_id=self._owner_id,
                design_hint=design_id,
                mode=mode,
                on_progress=on_progress,
            )
        finally:
            self._generating = False
            self._streamed_code = None

        if self._design_id != design_id:
            logger.info("Discarding generated code for %s; another design is open", design_id)
            return result

        if result.succeeded:
            self.set_code(result.code)
            self._generation_complete = True
            if design_id:
                self._local.save_design_token(design_id)
        else:
            self._generation_complete = False
        return result

    # ── Internals ───────────────────────────────────────────────────

    async def _switch_to(self, design_id: str | None) -> None:
        if self._design_id is not None and self._design_id != design_id:
            await self.flush()
        self._unsubscribe_active()
        self._design_id = design_id
        self._streamed_code = None
        self._generation_complete = False

    def _apply_local_snapshot(self, design_id: str) -> None:
        snapshot = self._local.load_snapshot(design_id)
        if snapshot is None:
            snapshot = self._local.load_latest_snapshot()
        self._elements = snapshot or []
        self._code = self._local.load_code(design_id) or ""

    def _subscribe(self, design_id: str) -> None:
        self._unsubscribe_active()
        self._unsubscribe = self._repository.subscribe(
            design_id, self.on_remote_update, self._on_channel_error
        )

    def _unsubscribe_active(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
