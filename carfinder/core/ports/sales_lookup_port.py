"""Sales Lookup Port Interface."""

from abc import ABC, abstractmethod


class SalesLookupPort(ABC):
    """Abstract interface for national sales volume by make/model key."""

    @abstractmethod
    def load(self) -> dict[str, int]:
        """Load the lookup table once; later calls return the cached table."""
        ...

    @abstractmethod
    def volume_for(self, key: str | None) -> int:
        """Sales volume for a canonical make/model key, 0 when unknown."""
        ...
