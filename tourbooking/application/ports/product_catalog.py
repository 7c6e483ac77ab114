from __future__ import annotations

from abc import ABC, abstractmethod

from tourbooking.domain.entities.availability import AvailabilityFeed
from tourbooking.domain.entities.product import BookableProduct, ProductSummary


class ProductCatalogPort(ABC):
    @abstractmethod
    async def get_product(self, url_key: str) -> BookableProduct | None:
        """Get product by url key with its customizable options."""
        raise NotImplementedError

    @abstractmethod
    async def get_booking_availability(self, sku: str) -> AvailabilityFeed | None:
        """Get the per-date capacity feed. Returns None if it could not be fetched."""
        raise NotImplementedError

    @abstractmethod
    async def list_booking_products(self) -> list[ProductSummary]:
        raise NotImplementedError
