"""
Repository abstract base class and generic implementation.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, List, Optional, Sequence, Type, TypeVar, Union
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import MultipleResultsFound
from sqlmodel import SQLModel
from repokit.database.session import Query, Session
from .exceptions import MultipleMatchesError, UseAfterDisposeError

if TYPE_CHECKING:
    from .unit_of_work import UnitOfWork

T = TypeVar("T", bound=SQLModel)

OrderBy = Union[Any, Sequence[Any]]


def split_include_paths(include: Optional[str]) -> List[str]:
    """Split ``"customer, lines.product"`` into paths, dropping blank segments."""
    if not include:
        return []
    return [path.strip() for path in include.split(",") if path.strip()]


class IRepository(ABC, Generic[T]):
    """Repository interface; defines standard data access API."""

    session: Session
    unit_of_work: Optional["UnitOfWork"]
    model: Type[T]

    @abstractmethod
    async def insert(self, entity: T) -> T:
        """Mark entity for insertion (written on save)."""
        pass

    @abstractmethod
    async def delete_by_id(self, id: Any) -> None:
        """Mark the entity with this primary key for removal; no-op if absent."""
        pass

    @abstractmethod
    async def delete(self, entity: Optional[T]) -> None:
        """Mark entity for removal; no-op for None."""
        pass

    @abstractmethod
    async def update(self, entity: T) -> T:
        """Mark the whole entity as modified."""
        pass

    @abstractmethod
    async def save(self) -> int:
        """Commit the shared session; returns the number of changes written."""
        pass

    @abstractmethod
    async def find(self, where: Any = None, order_by: OrderBy = None, include: str = "") -> List[T]:
        """Find entities matching a filter, optionally ordered and eager-loaded."""
        pass

    @abstractmethod
    async def find_one(self, where: Any = None, order_by: OrderBy = None, include: str = "") -> Optional[T]:
        """Find the single entity matching a filter."""
        pass

    @abstractmethod
    async def exists(self, where: Any = None) -> bool:
        """Check whether any entity matches a filter."""
        pass

    @abstractmethod
    async def get_by_id(self, id: Any) -> Optional[T]:
        """Get entity by primary key."""
        pass


class BaseRepository(IRepository[T]):
    """
    Generic repository over a Session; subclasses add domain queries.

    Custom repositories keep the construction contract ``(session, unit_of_work)``
    so a Unit of Work can build them::

        class OrderRepository(BaseRepository[Order]):
            repository_key = "orders"

            def __init__(self, session, unit_of_work):
                super().__init__(session, unit_of_work, Order)
    """

    # Default key used by UnitOfWork.add_repository()
    repository_key: Optional[str] = None

    def __init__(self, session: Session, unit_of_work: Optional["UnitOfWork"], model: Type[T]):
        """Initialize repository with session, owning unit of work and model."""
        self.session = session
        self.unit_of_work = unit_of_work
        self.model = model

    def _ensure_active(self) -> None:
        if self.unit_of_work is not None and self.unit_of_work.is_disposed:
            raise UseAfterDisposeError(
                f"{type(self).__name__} used after its UnitOfWork was disposed"
            )

    def query(self, where: Any = None, order_by: OrderBy = None, include: str = "") -> Query[T]:
        """Compose a read query: filter, then eager loads, then ordering."""
        self._ensure_active()
        query = self.session.query(self.model)
        if where is not None:
            query = query.where(where)
        for path in split_include_paths(include):
            query = query.include(path)
        if order_by is not None:
            clauses = order_by if isinstance(order_by, (list, tuple)) else (order_by,)
            query = query.order_by(*clauses)
        return query

    async def insert(self, entity: T) -> T:
        self._ensure_active()
        self.session.add_pending(entity)
        return entity

    async def delete_by_id(self, id: Any) -> None:
        self._ensure_active()
        entity = await self.session.lookup_by_key(self.model, id)
        await self.delete(entity)

    async def delete(self, entity: Optional[T]) -> None:
        self._ensure_active()
        if entity is None:
            return
        if not self.session.is_tracked(entity):
            entity = self.session.attach(entity)
        await self.session.mark_removed(entity)

    async def update(self, entity: T) -> T:
        """Attach entity and mark every column modified (whole-entity replace)."""
        self._ensure_active()
        return await self.session.mark_modified(entity)

    async def save(self) -> int:
        self._ensure_active()
        return await self.session.commit()

    async def find(self, where: Any = None, order_by: OrderBy = None, include: str = "") -> List[T]:
        return await self.query(where, order_by, include).all()

    async def find_one(self, where: Any = None, order_by: OrderBy = None, include: str = "") -> Optional[T]:
        try:
            return await self.query(where, order_by, include).one_or_none()
        except MultipleResultsFound as exc:
            raise MultipleMatchesError(
                f"More than one {self.model.__name__} matched a single-result query"
            ) from exc

    async def exists(self, where: Any = None) -> bool:
        return await self.query(where).exists()

    async def get_by_id(self, id: Any) -> Optional[T]:
        self._ensure_active()
        return await self.session.lookup_by_key(self.model, id)

    async def get_all(self, limit: int = 100, offset: int = 0) -> List[T]:
        """Get all entities (paginated, primary key order)."""
        primary_key = sa_inspect(self.model).primary_key
        return await self.query(order_by=list(primary_key)).limit(limit).offset(offset).all()

    async def count(self, where: Any = None) -> int:
        """Count entities matching a filter."""
        return await self.query(where).count()
