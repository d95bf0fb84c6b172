"""
Session contract consumed by repositories, and its SQLModel implementation.

Repositories and the Unit of Work only talk to ``Session``; ``SQLModelSession``
binds it to ``sqlmodel.ext.asyncio.session.AsyncSession``.
"""

from typing import Any, Generic, List, Optional, Protocol, Type, TypeVar
from sqlalchemy import event, func
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import ArgumentError, InvalidRequestError
from sqlalchemy.orm import make_transient_to_detached, selectinload
from sqlalchemy.orm.attributes import flag_modified
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

T = TypeVar("T", bound=SQLModel)


class Query(Protocol[T]):
    """Composable read handle; every composition call returns a new handle."""

    def where(self, clause: Any) -> "Query[T]": ...

    def include(self, path: str) -> "Query[T]": ...

    def order_by(self, *clauses: Any) -> "Query[T]": ...

    def limit(self, count: int) -> "Query[T]": ...

    def offset(self, count: int) -> "Query[T]": ...

    async def all(self) -> List[T]: ...

    async def one_or_none(self) -> Optional[T]: ...

    async def exists(self) -> bool: ...

    async def count(self) -> int: ...


class Session(Protocol):
    """Capability a persistence engine must offer to back repositories."""

    @property
    def pending_changes(self) -> int: ...

    def add_pending(self, entity: Any) -> None: ...

    def attach(self, entity: T) -> T: ...

    def is_tracked(self, entity: Any) -> bool: ...

    async def mark_removed(self, entity: Any) -> None: ...

    async def mark_modified(self, entity: T) -> T: ...

    def query(self, entity_type: Type[T]) -> Query[T]: ...

    async def lookup_by_key(self, entity_type: Type[T], id: Any) -> Optional[T]: ...

    async def commit(self) -> int: ...

    async def rollback(self) -> None: ...

    async def flush(self) -> None: ...

    async def dispose(self) -> None: ...


class SQLModelQuery(Generic[T]):
    """Query handle over a SQLModel ``select`` statement."""

    def __init__(self, session: AsyncSession, model: Type[T], statement=None):
        self._session = session
        self.model = model
        self.statement = statement if statement is not None else select(model)

    def _derive(self, statement) -> "SQLModelQuery[T]":
        return SQLModelQuery(self._session, self.model, statement)

    def where(self, clause: Any) -> "SQLModelQuery[T]":
        return self._derive(self.statement.where(clause))

    def include(self, path: str) -> "SQLModelQuery[T]":
        """
        Eager-load a relationship path such as ``"lines.product"``.

        Each dotted segment must name a relationship of the previous segment's
        class; the whole chain is loaded with ``selectinload``.
        """
        loader = None
        owner = self.model
        for name in path.split("."):
            name = name.strip()
            relationships = sa_inspect(owner).relationships
            if name not in relationships:
                raise ArgumentError(
                    f"{owner.__name__} has no relationship '{name}' (include path '{path}')"
                )
            attribute = getattr(owner, name)
            loader = selectinload(attribute) if loader is None else loader.selectinload(attribute)
            owner = relationships[name].mapper.class_
        return self._derive(self.statement.options(loader))

    def order_by(self, *clauses: Any) -> "SQLModelQuery[T]":
        return self._derive(self.statement.order_by(*clauses))

    def limit(self, count: int) -> "SQLModelQuery[T]":
        return self._derive(self.statement.limit(count))

    def offset(self, count: int) -> "SQLModelQuery[T]":
        return self._derive(self.statement.offset(count))

    async def all(self) -> List[T]:
        result = await self._session.exec(self.statement)
        return list(result.all())

    async def one_or_none(self) -> Optional[T]:
        """Single/default semantics: raises ``MultipleResultsFound`` on 2+ rows."""
        result = await self._session.exec(self.statement)
        return result.one_or_none()

    async def exists(self) -> bool:
        result = await self._session.exec(self.statement.limit(1))
        return result.first() is not None

    async def count(self) -> int:
        statement = select(func.count()).select_from(self.statement.order_by(None).subquery())
        result = await self._session.exec(statement)
        return result.one()


def _count_changes(sync_session) -> int:
    # Collection-only changes issue no UPDATE for the parent row
    modified = sum(1 for obj in sync_session.dirty if sync_session.is_modified(obj, include_collections=False))
    return len(sync_session.new) + len(sync_session.deleted) + modified


class SQLModelSession:
    """``Session`` implementation over a SQLModel ``AsyncSession``."""

    def __init__(self, session: AsyncSession):
        self._session = session
        # Changes already written by autoflush but not yet committed
        self._flushed_changes = 0
        event.listen(self._session.sync_session, "after_flush", self._on_after_flush)

    @property
    def async_session(self) -> AsyncSession:
        """Underlying AsyncSession, for repositories that need raw statements."""
        return self._session

    @property
    def pending_changes(self) -> int:
        """Number of entity changes that the next commit will write."""
        return self._flushed_changes + _count_changes(self._session.sync_session)

    def _on_after_flush(self, sync_session, flush_context) -> None:
        # new/dirty/deleted still hold their pre-flush contents here
        self._flushed_changes += _count_changes(sync_session)

    def add_pending(self, entity: Any) -> None:
        self._session.add(entity)

    def is_tracked(self, entity: Any) -> bool:
        return entity in self._session

    def attach(self, entity: T) -> T:
        """
        Start tracking ``entity`` as an existing row without loading it.

        Returns the tracked instance, which is a different object when the
        session already tracks another instance with the same primary key.
        """
        if entity in self._session:
            return entity

        sync_session = self._session.sync_session
        mapper = sa_inspect(type(entity))
        identity = mapper.identity_key_from_instance(entity)
        if any(value is None for value in identity[1]):
            raise InvalidRequestError(
                f"Cannot attach {type(entity).__name__} without a primary key"
            )

        existing = sync_session.identity_map.get(identity)
        if existing is not None:
            return existing

        if sa_inspect(entity).transient:
            make_transient_to_detached(entity)
        self._session.add(entity)
        return entity

    async def mark_removed(self, entity: Any) -> None:
        if sa_inspect(entity).pending:
            # Never written, so there is no row to delete
            self._session.expunge(entity)
            return
        await self._session.delete(entity)

    async def mark_modified(self, entity: T) -> T:
        """Attach ``entity`` and flag every loaded column as changed."""
        tracked = self.attach(entity)
        if tracked is not entity:
            # Copy the caller's state onto the instance already in the identity map
            tracked = await self._session.merge(entity)

        state = sa_inspect(tracked)
        primary_keys = {
            state.mapper.get_property_by_column(column).key for column in state.mapper.primary_key
        }
        for column_attr in state.mapper.column_attrs:
            if column_attr.key in primary_keys or column_attr.key not in state.dict:
                continue
            flag_modified(tracked, column_attr.key)
        return tracked

    def query(self, entity_type: Type[T]) -> SQLModelQuery[T]:
        return SQLModelQuery(self._session, entity_type)

    async def lookup_by_key(self, entity_type: Type[T], id: Any) -> Optional[T]:
        return await self._session.get(entity_type, id)

    async def commit(self) -> int:
        """Commit the transaction; returns the number of entity changes written."""
        try:
            await self._session.commit()
            return self._flushed_changes
        finally:
            self._flushed_changes = 0

    async def rollback(self) -> None:
        await self._session.rollback()
        self._flushed_changes = 0

    async def flush(self) -> None:
        await self._session.flush()

    async def dispose(self) -> None:
        event.remove(self._session.sync_session, "after_flush", self._on_after_flush)
        await self._session.close()
