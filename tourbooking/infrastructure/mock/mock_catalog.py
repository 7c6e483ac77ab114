from __future__ import annotations

from tourbooking.application.ports.product_catalog import ProductCatalogPort
from tourbooking.domain.entities.availability import AvailabilityFeed, DateCapacity
from tourbooking.domain.entities.product import (
    BookableProduct,
    Money,
    OptionKind,
    OptionValue,
    ProductOption,
    ProductSummary,
)

SAMPLE_TOUR = BookableProduct(
    sku="island-highlights",
    name="Island Highlights Tour",
    url_key="island-highlights-tour",
    price=Money(value=50.0, currency="USD"),
    options=(
        ProductOption(option_id=1, title="Tour Date", kind=OptionKind.DATE, required=True, sort_order=1),
        ProductOption(
            option_id=2,
            title="Pickup Location",
            kind=OptionKind.DROP_DOWN,
            required=True,
            sort_order=2,
            values=(
                OptionValue(value_id=21, title="Hotel Lobby", sort_order=1),
                OptionValue(value_id=22, title="Cruise Terminal", sort_order=2),
            ),
        ),
        ProductOption(
            option_id=3,
            title="Are you Coming in Cruise Ship?",
            kind=OptionKind.RADIO,
            required=True,
            sort_order=3,
            values=(
                OptionValue(value_id=31, title="YES", sort_order=1),
                OptionValue(value_id=32, title="NO", sort_order=2),
            ),
        ),
        ProductOption(option_id=4, title="Ship Arrival TIme", kind=OptionKind.FIELD, required=True, sort_order=4),
        ProductOption(option_id=5, title="Ship Departure TIme", kind=OptionKind.FIELD, required=True, sort_order=5),
        ProductOption(
            option_id=6,
            title="Extras",
            kind=OptionKind.CHECKBOX,
            sort_order=6,
            values=(
                OptionValue(value_id=61, title="Lunch", price=15.0, sort_order=1),
                OptionValue(value_id=62, title="Snorkel Gear", price=10.0, sort_order=2),
            ),
        ),
        ProductOption(option_id=7, title="Special Requests", kind=OptionKind.FIELD, sort_order=7),
    ),
)

SAMPLE_CHARTER = BookableProduct(
    sku="private-charter",
    name="Private Charter",
    url_key="private-charter",
    price=Money(value=0.0, currency="USD"),
    enquiry_only=True,
)

SAMPLE_FEEDS = {
    SAMPLE_TOUR.sku: AvailabilityFeed(
        sku=SAMPLE_TOUR.sku,
        entries=(
            DateCapacity(date="2030-07-01", committed=10, allowed=12, remaining=2, order_count=4),
            DateCapacity(date="2030-07-02", committed=12, allowed=12, remaining=0, order_count=5),
        ),
        success=True,
        total_bookings=9,
    ),
}


class MockProductCatalog(ProductCatalogPort):
    def __init__(
        self,
        products: list[BookableProduct] | None = None,
        feeds: dict[str, AvailabilityFeed] | None = None,
    ) -> None:
        products = products if products is not None else [SAMPLE_TOUR, SAMPLE_CHARTER]
        self._products = {p.url_key or p.sku: p for p in products}
        self._feeds = dict(feeds if feeds is not None else SAMPLE_FEEDS)

    async def get_product(self, url_key: str) -> BookableProduct | None:
        return self._products.get(url_key)

    async def get_booking_availability(self, sku: str) -> AvailabilityFeed | None:
        return self._feeds.get(sku, AvailabilityFeed(sku=sku))

    async def list_booking_products(self) -> list[ProductSummary]:
        return [
            ProductSummary(sku=p.sku, name=p.name, url_key=p.url_key or p.sku, price=p.price, image_url=p.image_url)
            for p in self._products.values()
        ]
