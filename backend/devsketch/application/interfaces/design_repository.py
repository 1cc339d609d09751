"""Abstract repository interface (port) for designs — the remote design store."""

from abc import ABC, abstractmethod
from collections.abc import Callable

from devsketch.domain.entities import Design, Element

RemoteUpdateHandler = Callable[[Design], None]
ChannelErrorHandler = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


class DesignRepository(ABC):
    """Port for design persistence — implemented in the infrastructure layer.

    Read operations return ``None`` when the row does not exist and raise
    ``RemoteUnavailableError`` when the store itself cannot answer.
    """

    @abstractmethod
    async def create(
        self,
        owner_id: str | None,
        session_id: str,
        elements: list[Element],
    ) -> str:
        """Insert a new design and return its freshly assigned ID.

        Raises:
            ConstraintViolationError: Missing session ID or another rejected constraint.
            RemoteUnavailableError: The store could not be reached.
        """
        ...

    @abstractmethod
    async def get_by_id(self, design_id: str) -> Design | None:
        """Retrieve a single design by its ID."""
        ...

    @abstractmethod
    async def find_latest_for_owner(self, owner_id: str) -> Design | None:
        """Return the most recently created design of an owner."""
        ...

    @abstractmethod
    async def find_latest_for_session(self, session_id: str) -> Design | None:
        """Return the most recently created design of a drawing session."""
        ...

    @abstractmethod
    async def update_elements(self, design_id: str, elements: list[Element]) -> Design:
        """Replace the elements of a design, leaving its code untouched."""
        ...

    @abstractmethod
    async def update_code(self, design_id: str, code: str) -> Design:
        """Replace the code of a design, leaving its elements untouched."""
        ...

    @abstractmethod
    def subscribe(
        self,
        design_id: str,
        on_update: RemoteUpdateHandler,
        on_channel_error: ChannelErrorHandler | None = None,
    ) -> Unsubscribe:
        """Register for push notifications of updates to one design row.

        ``on_update`` receives the full updated row. ``on_channel_error`` is
        called at most once per subscription when the channel fails.
        Returns a callable that cancels the subscription.
        """
        ...
