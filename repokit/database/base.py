from abc import ABC, abstractmethod

class BaseDatabaseDriver(ABC):
    """Connection lifecycle shared by database drivers."""

    @abstractmethod
    async def connect(self):
        pass

    @abstractmethod
    async def disconnect(self):
        pass

    @abstractmethod
    def new_session(self):
        """Open a new session implementing the repository Session contract."""
        pass
