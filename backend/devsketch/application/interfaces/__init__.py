from .actor_provider import ActorProvider
from .chat_provider import ChatProvider
from .design_repository import (
    ChannelErrorHandler,
    DesignRepository,
    RemoteUpdateHandler,
    Unsubscribe,
)
from .generation_gateway import GenerationGateway

__all__ = [
    "ActorProvider",
    "ChatProvider",
    "ChannelErrorHandler",
    "DesignRepository",
    "RemoteUpdateHandler",
    "Unsubscribe",
    "GenerationGateway",
]
