from abc import ABC, abstractmethod
from typing import Any


class HandlerInterface(ABC):
    """
    Abstract base class for request handlers
    """

    @abstractmethod
    async def load(self, *args: Any, **kwargs: Any) -> None:
        """
        Method to load the handler
        """
        pass
