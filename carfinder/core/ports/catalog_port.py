"""Catalog Port Interface."""

from abc import ABC, abstractmethod

from ..domain import ReviewRecord, VehicleRecord


class CatalogPort(ABC):
    """Abstract interface for the static vehicle catalog."""

    @abstractmethod
    def load(self) -> list[VehicleRecord]:
        """Load the catalog once; later calls return the cached records."""
        ...

    @abstractmethod
    def get_all(self) -> list[VehicleRecord]:
        """All vehicles in catalog order."""
        ...

    @abstractmethod
    def get_by_id(self, vehicle_id: str) -> VehicleRecord | None: ...

    @abstractmethod
    def get_reviews_for(self, make: str, model: str) -> list[ReviewRecord]: ...
