"""Abstract interface (port) for the current actor — authentication lives elsewhere."""

from abc import ABC, abstractmethod


class ActorProvider(ABC):
    """Port answering "who is editing right now?"."""

    @abstractmethod
    async def current_actor_id(self) -> str | None:
        """Return the authenticated user ID, or None in anonymous/local mode."""
        ...
