from .design import (
    DesignCodeUpdate,
    DesignCreate,
    DesignCreatedResponse,
    DesignElementsUpdate,
    DesignResponse,
)
from .generation import GenerateRequest, GenerateResponse

__all__ = [
    "DesignCodeUpdate",
    "DesignCreate",
    "DesignCreatedResponse",
    "DesignElementsUpdate",
    "DesignResponse",
    "GenerateRequest",
    "GenerateResponse",
]
