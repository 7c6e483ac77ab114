from __future__ import annotations

import logging

from tourbooking.application.exceptions import CartGatewayError
from tourbooking.application.ports.product_catalog import ProductCatalogPort
from tourbooking.domain.entities.availability import AvailabilityFeed
from tourbooking.domain.entities.product import BookableProduct, ProductSummary
from tourbooking.infrastructure.magento import queries
from tourbooking.infrastructure.magento.graphql_client import MagentoGraphQLClient
from tourbooking.infrastructure.magento.mappers import dig, to_availability_feed, to_product, to_product_summary


class MagentoProductCatalog(ProductCatalogPort):
    def __init__(self, client: MagentoGraphQLClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    async def get_product(self, url_key: str) -> BookableProduct | None:
        data = await self._client.execute(queries.GET_PRODUCT, {"urlKey": url_key})
        items = dig(data, "products", "items") or []
        if not items:
            return None
        try:
            return to_product(items[0])
        except (KeyError, TypeError, ValueError) as e:
            self._logger.error("Malformed product payload", extra={"error": str(e), "url_key": url_key})
            raise CartGatewayError(f"Malformed product data for {url_key}") from e

    async def get_booking_availability(self, sku: str) -> AvailabilityFeed | None:
        try:
            data = await self._client.execute(queries.GET_BOOKING_AVAILABILITY, {"sku": sku})
            raw = data.get("bookingCountBySku")
            if not isinstance(raw, dict):
                return None
            return to_availability_feed(raw)
        except (CartGatewayError, KeyError, TypeError, ValueError) as e:
            self._logger.error("Error fetching booking availability", extra={"error": str(e), "sku": sku})
            return None

    async def list_booking_products(self) -> list[ProductSummary]:
        try:
            data = await self._client.execute(queries.GET_BOOKING_PRODUCTS)
            return [to_product_summary(item) for item in dig(data, "products", "items") or []]
        except (CartGatewayError, KeyError, TypeError, ValueError) as e:
            self._logger.error("Error fetching booking products", extra={"error": str(e)})
            return []
