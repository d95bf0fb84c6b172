"""
Unit of Work: owns one session, a repository registry and the save boundary.
"""

from typing import Optional, Type, Union
from loguru import logger
from sqlmodel.ext.asyncio.session import AsyncSession
from repokit.database.manager import DatabaseManager
from repokit.database.session import Session, SQLModelSession
from .base import BaseRepository, IRepository, T
from .exceptions import UseAfterDisposeError
from .registry import RepositoryFactory, RepositoryRegistry


class UnitOfWork:
    """
    Manages related repositories over one shared session.

    Repositories are registered under string keys and built lazily, once per
    Unit of Work. ``save()`` is the only commit; leaving ``async with`` rolls
    back on error and always disposes. A Unit of Work belongs to a single task.
    """

    def __init__(self, session: Optional[Union[Session, AsyncSession]] = None):
        """Initialize UnitOfWork; the session is owned and closed on dispose."""
        if session is None:
            raise ValueError("Session must be provided. Use UnitOfWork.create() or pass session explicitly.")
        if isinstance(session, AsyncSession):
            session = SQLModelSession(session)

        self.session: Session = session
        self._registry = RepositoryRegistry()
        self._disposed = False

    @classmethod
    async def from_session(cls, session: Union[Session, AsyncSession]) -> "UnitOfWork":
        """Create UnitOfWork from an existing session."""
        return cls(session=session)

    @classmethod
    def create(cls, manager: Optional[DatabaseManager] = None) -> "UnitOfWork":
        """Create UnitOfWork with a new session from the configured database."""
        manager = manager or DatabaseManager.get_instance()
        return cls(session=manager.sql.new_session())

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def _ensure_active(self) -> None:
        if self._disposed:
            raise UseAfterDisposeError("UnitOfWork used after dispose()")

    def register_repository(self, key: str, factory: RepositoryFactory) -> None:
        """Register a repository factory ``(session, unit_of_work) -> repository`` under ``key``."""
        self._ensure_active()
        self._registry.register(key, factory)

    def add_repository(self, repository_class: Type[IRepository], key: Optional[str] = None) -> str:
        """Register a repository class, keyed by ``key``, its ``repository_key`` or its name."""
        if key is None:
            key = getattr(repository_class, "repository_key", None) or repository_class.__name__
        self.register_repository(key, repository_class)
        return key

    def is_registered(self, key: str) -> bool:
        self._ensure_active()
        return key in self._registry

    def get_repository(self, key: str) -> IRepository:
        """Get the repository registered under ``key`` (same instance on every call)."""
        self._ensure_active()
        return self._registry.get(key, self.session, self)

    def get_base_repository(self, model: Type[T]) -> BaseRepository[T]:
        """Get a new, uncached generic repository for ``model``."""
        self._ensure_active()
        return BaseRepository(self.session, self, model)

    async def save(self) -> int:
        """Commit all pending changes; returns the number of changes written."""
        self._ensure_active()
        affected = await self.session.commit()
        logger.info(f"UnitOfWork saved {affected} change(s)")
        return affected

    async def rollback(self) -> None:
        """Rollback all pending changes."""
        self._ensure_active()
        await self.session.rollback()

    async def flush(self) -> None:
        """Flush session (e.g. to get auto-increment IDs)."""
        self._ensure_active()
        await self.session.flush()

    async def dispose(self) -> None:
        """Close the session and drop all repositories; later calls do nothing."""
        if self._disposed:
            return
        self._disposed = True
        try:
            await self.session.dispose()
        finally:
            self._registry.clear()
            logger.debug("UnitOfWork disposed")

    async def __aenter__(self):
        self._ensure_active()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is not None and not self._disposed:
                await self.rollback()
        finally:
            await self.dispose()
