"""Base class for the activity collections a worker registers."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Sequence


class ActivitiesInterface(ABC):
    """A set of Temporal activities sharing injected services.

    Subclasses receive everything they touch (stores, catalogs, settings) in
    their constructor and expose the bound activity methods through
    :meth:`get_activities` so a worker can register them.
    """

    @abstractmethod
    def get_activities(self) -> Sequence[Callable[..., Any]]:
        raise NotImplementedError
