from abc import ABC, abstractmethod
from typing import Any, Optional

from photo_pipeline.handlers import HandlerInterface


class ServerInterface(ABC):
    """Base class for servers that expose a handler over a transport."""

    handler: Optional[HandlerInterface]

    def __init__(self, handler: Optional[HandlerInterface] = None):
        self.handler = handler

    @abstractmethod
    async def start(self, *args: Any, **kwargs: Any) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass
