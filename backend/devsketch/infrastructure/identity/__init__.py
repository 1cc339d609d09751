from .static_actor_provider import StaticActorProvider

__all__ = ["StaticActorProvider"]
