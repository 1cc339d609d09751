from .design import DesignModel

__all__ = [
    "DesignModel",
]
