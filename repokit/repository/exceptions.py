"""
Repository and Unit of Work errors.

Session/engine failures (SQLAlchemyError and friends) are never wrapped; these
classes only describe misuse of the registry and single-result queries.
"""

from typing import Any


class RepositoryError(Exception):
    """Base class for repository layer errors."""

    code: int = 500

    def __init__(self, message: str, code: int = None, detail: Any = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.detail = detail


class NotRegisteredError(RepositoryError, LookupError):
    """A repository key was requested before it was registered."""


class DuplicateKeyError(RepositoryError, ValueError):
    """A repository key was registered twice."""


class ConstructionError(RepositoryError, TypeError):
    """A repository factory failed, returned a non-repository, or has the wrong signature."""


class MultipleMatchesError(RepositoryError):
    """A single-result query matched more than one record."""

    code = 409


class UseAfterDisposeError(RepositoryError, RuntimeError):
    """The Unit of Work (or a repository obtained from it) was used after dispose()."""
