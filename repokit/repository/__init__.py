"""
Repository pattern: data access abstraction, decouples service layer from database session.
"""

from .base import BaseRepository, IRepository
from .exceptions import (
    ConstructionError,
    DuplicateKeyError,
    MultipleMatchesError,
    NotRegisteredError,
    RepositoryError,
    UseAfterDisposeError,
)
from .registry import RepositoryRegistry
from .unit_of_work import UnitOfWork

__all__ = [
    "BaseRepository",
    "IRepository",
    "RepositoryRegistry",
    "UnitOfWork",
    "RepositoryError",
    "NotRegisteredError",
    "DuplicateKeyError",
    "ConstructionError",
    "MultipleMatchesError",
    "UseAfterDisposeError",
]
