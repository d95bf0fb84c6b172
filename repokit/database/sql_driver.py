from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from .base import BaseDatabaseDriver
from .session import SQLModelSession

class SQLDriver(BaseDatabaseDriver):
    def __init__(self, url: str, echo: bool = False):
        self.engine = create_async_engine(url, echo=echo, future=True)
        self.session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def connect(self):
        """Check connectivity (SQLAlchemy engine manages the pool)."""
        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))

    async def disconnect(self):
        """Dispose the engine and its connection pool."""
        await self.engine.dispose()

    async def create_all(self):
        """Create tables for every imported SQLModel table class."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    def new_session(self) -> SQLModelSession:
        return SQLModelSession(self.session_factory())
