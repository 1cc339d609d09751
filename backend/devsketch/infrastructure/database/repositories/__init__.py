from .design_repository import SQLAlchemyDesignRepository

__all__ = [
    "SQLAlchemyDesignRepository",
]
