from abc import ABC, abstractmethod


class ClientInterface(ABC):
    """Base interface for clients that hold a connection.

    ``load`` establishes the connection and ``close`` releases it; owners
    call both explicitly as part of their own lifecycle.
    """

    @abstractmethod
    async def load(self) -> None:
        pass

    @abstractmethod
    async def close(self) -> None:
        pass
