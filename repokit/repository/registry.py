"""
Repository registry: string key -> factory, with one cached instance per key.
"""

import inspect
from typing import TYPE_CHECKING, Callable, Dict, List
from loguru import logger
from repokit.database.session import Session
from .base import IRepository
from .exceptions import ConstructionError, DuplicateKeyError, NotRegisteredError

if TYPE_CHECKING:
    from .unit_of_work import UnitOfWork

RepositoryFactory = Callable[[Session, "UnitOfWork"], IRepository]


def _check_key(key: str) -> None:
    if not isinstance(key, str):
        raise TypeError(f"Repository key must be a string, got {type(key).__name__}")
    if not key.strip():
        raise ValueError("Repository key must not be empty")


def _check_factory(key: str, factory: RepositoryFactory) -> None:
    if not callable(factory):
        raise ConstructionError(f"Factory for repository '{key}' is not callable")
    try:
        signature = inspect.signature(factory)
    except (TypeError, ValueError):
        # No introspectable signature; checked on first construction instead
        return
    try:
        signature.bind(object(), object())
    except TypeError as exc:
        raise ConstructionError(
            f"Factory for repository '{key}' must accept (session, unit_of_work), "
            f"got {getattr(factory, '__qualname__', factory)}{signature}"
        ) from exc


class RepositoryRegistry:
    """
    Lazily constructs and caches repositories for one Unit of Work.

    Not safe for concurrent mutation: register everything before sharing the
    owning Unit of Work.
    """

    def __init__(self):
        self._factories: Dict[str, RepositoryFactory] = {}
        self._instances: Dict[str, IRepository] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._factories

    def __len__(self) -> int:
        return len(self._factories)

    def keys(self) -> List[str]:
        return list(self._factories)

    def is_constructed(self, key: str) -> bool:
        return key in self._instances

    def register(self, key: str, factory: RepositoryFactory) -> None:
        """Record ``factory`` under ``key``; a key can be registered only once."""
        _check_key(key)
        if key in self._factories:
            raise DuplicateKeyError(f"Repository '{key}' is already registered")
        _check_factory(key, factory)
        self._factories[key] = factory
        logger.debug(f"Repository '{key}' registered")

    def get(self, key: str, session: Session, unit_of_work: "UnitOfWork") -> IRepository:
        """Return the cached repository for ``key``, constructing it on first use."""
        instance = self._instances.get(key)
        if instance is not None:
            return instance

        factory = self._factories.get(key)
        if factory is None:
            raise NotRegisteredError(f"Repository '{key}' is not registered")

        try:
            instance = factory(session, unit_of_work)
        except Exception as exc:
            raise ConstructionError(f"Failed to construct repository '{key}': {exc}") from exc
        if not isinstance(instance, IRepository):
            raise ConstructionError(
                f"Factory for repository '{key}' returned {type(instance).__name__}, not a repository"
            )

        self._instances[key] = instance
        logger.debug(f"Repository '{key}' constructed as {type(instance).__name__}")
        return instance

    def clear(self) -> None:
        self._instances.clear()
        self._factories.clear()
