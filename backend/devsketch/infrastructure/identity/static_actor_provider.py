"""Actor provider for editors whose identity is known up front."""

from devsketch.application.interfaces.actor_provider import ActorProvider


class StaticActorProvider(ActorProvider):
    """Returns a fixed actor ID; ``None`` means the editor is anonymous."""

    def __init__(self, actor_id: str | None = None):
        self._actor_id = actor_id or None

    async def current_actor_id(self) -> str | None:
        return self._actor_id
