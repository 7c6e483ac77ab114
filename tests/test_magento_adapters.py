"""
Tests for the Magento GraphQL client, cart gateway and catalog adapters.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from tourbooking.application.exceptions import CartGatewayError, CartNotFoundError
from tourbooking.domain.entities.cart import BillingAddress, CartItemOption
from tourbooking.domain.entities.product import OptionKind
from tourbooking.infrastructure.magento.cart_gateway import MagentoCartGateway
from tourbooking.infrastructure.magento.catalog import MagentoProductCatalog
from tourbooking.infrastructure.magento.graphql_client import MagentoGraphQLClient


def _client(handler) -> MagentoGraphQLClient:
    return MagentoGraphQLClient(
        base_url="https://shop.test/",
        graphql_path="/graphql",
        api_token="",
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


def _respond(data=None, errors=None, status: int = 200):
    body: dict = {}
    if data is not None:
        body["data"] = data
    if errors is not None:
        body["errors"] = errors

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=body)

    return handler


def test_execute_posts_query_and_variables():
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "https://shop.test/graphql"
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"data": {"createEmptyCart": "abc123"}})

    gateway = MagentoCartGateway(client=_client(handler))

    cart_id = asyncio.run(gateway.create_cart())

    assert cart_id == "abc123"
    assert "createEmptyCart" in seen[0]["query"]
    assert "variables" not in seen[0]


def test_graphql_error_becomes_gateway_error():
    gateway = MagentoCartGateway(client=_client(_respond(errors=[{"message": "The requested qty is not available"}])))

    with pytest.raises(CartGatewayError, match="The requested qty is not available"):
        asyncio.run(gateway.add_item("abc123", "island-highlights", 3, []))


def test_missing_cart_error_is_distinguished():
    gateway = MagentoCartGateway(
        client=_client(_respond(errors=[{"message": 'Could not find a cart with ID "abc123"'}]))
    )

    with pytest.raises(CartNotFoundError):
        asyncio.run(gateway.get_totals("abc123"))


def test_http_error_without_json_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="Service Unavailable")

    gateway = MagentoCartGateway(client=_client(handler))

    with pytest.raises(CartGatewayError, match="API Error: 503"):
        asyncio.run(gateway.create_cart())


def test_timeout_becomes_gateway_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    gateway = MagentoCartGateway(client=_client(handler))

    with pytest.raises(CartGatewayError, match="Request timeout"):
        asyncio.run(gateway.create_cart())


def test_add_item_sends_options_as_strings():
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "data": {
                    "addVirtualProductsToCart": {
                        "cart": {"prices": {"grand_total": {"value": 150.0, "currency": "USD"}}}
                    }
                }
            },
        )

    gateway = MagentoCartGateway(client=_client(handler))
    options = [
        CartItemOption(option_id=1, value_date="2030-07-01 00:00:00"),
        CartItemOption(option_id=2, value_string="21"),
    ]

    result = asyncio.run(gateway.add_item("abc123", "island-highlights", 3, options))

    assert result.grand_total.value == 150.0
    cart_input = seen[0]["variables"]["input"]
    assert cart_input["cart_id"] == "abc123"
    assert cart_input["cart_items"] == [
        {
            "data": {"quantity": 3, "sku": "island-highlights"},
            "customizable_options": [
                {"id": 1, "value_string": "2030-07-01 00:00:00"},
                {"id": 2, "value_string": "21"},
            ],
        }
    ]


def test_set_billing_address_maps_accepted_address():
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "data": {
                    "setBillingAddressOnCart": {
                        "cart": {
                            "billing_address": {
                                "firstname": "Ana",
                                "lastname": "Reyes",
                                "street": ["12 Harbour Road"],
                                "city": "Road Town",
                                "postcode": "VG1110",
                                "country": {"code": "VG"},
                                "telephone": "+1 284 555 0100",
                            }
                        }
                    }
                }
            },
        )

    gateway = MagentoCartGateway(client=_client(handler))
    address = BillingAddress(
        firstname="Ana",
        lastname="Reyes",
        street=("12 Harbour Road",),
        city="Road Town",
        postcode="VG1110",
        country_code="VG",
        telephone="+1 284 555 0100",
    )

    accepted = asyncio.run(gateway.set_billing_address("abc123", address))

    assert accepted == address
    sent = seen[0]["variables"]["address"]
    assert sent["street"] == ["12 Harbour Road"]
    assert sent["save_in_address_book"] is False
    assert "company" not in sent


def test_cart_totals_mapping():
    data = {
        "cart": {
            "email": "ana@example.com",
            "applied_coupons": [{"code": "SUMMER"}],
            "prices": {
                "grand_total": {"value": 110.0, "currency": "USD"},
                "subtotal_including_tax": {"value": 110.0, "currency": "USD"},
                "subtotal_excluding_tax": {"value": 100.0, "currency": "USD"},
                "applied_taxes": [{"label": "VAT", "amount": {"value": 10.0, "currency": "USD"}}],
            },
        }
    }
    gateway = MagentoCartGateway(client=_client(_respond(data=data)))

    totals = asyncio.run(gateway.get_totals("abc123"))

    assert totals.grand_total.value == 110.0
    assert totals.subtotal_excluding_tax.value == 100.0
    assert totals.applied_taxes[0].label == "VAT"
    assert totals.applied_coupons == ("SUMMER",)
    assert totals.email == "ana@example.com"


def test_place_order_reads_payment_link():
    data = {"placeOrder": {"order": {"order_number": "000000042"}, "paymentlink": "https://pay.test/42"}}
    gateway = MagentoCartGateway(client=_client(_respond(data=data)))

    order = asyncio.run(gateway.place_order("abc123"))

    assert order.order_number == "000000042"
    assert order.payment_link == "https://pay.test/42"


def test_payment_methods_listed():
    data = {"cart": {"available_payment_methods": [{"code": "checkmo", "title": "Check / Money order"}]}}
    gateway = MagentoCartGateway(client=_client(_respond(data=data)))

    methods = asyncio.run(gateway.list_payment_methods("abc123"))

    assert [(m.code, m.title) for m in methods] == [("checkmo", "Check / Money order")]


def test_catalog_maps_product_options():
    data = {
        "products": {
            "items": [
                {
                    "sku": "island-highlights",
                    "name": "Island Highlights Tour",
                    "url_key": "island-highlights-tour",
                    "stock_status": "IN_STOCK",
                    "enquiry_only": 0,
                    "price_range": {"maximum_price": {"final_price": {"value": 50.0, "currency": "USD"}}},
                    "options": [
                        {
                            "__typename": "CustomizableDateOption",
                            "option_id": 1,
                            "title": "Tour Date",
                            "required": True,
                            "sort_order": 1,
                        },
                        {
                            "__typename": "CustomizableRadioOption",
                            "option_id": 3,
                            "title": "Are you Coming in Cruise Ship?",
                            "required": True,
                            "sort_order": 3,
                            "value": [
                                {"option_type_id": 31, "title": "YES", "price": 0, "sort_order": 1},
                                {"option_type_id": 32, "title": "NO", "price": 0, "sort_order": 2},
                            ],
                        },
                        {"__typename": "CustomizableFileOption", "option_id": 9, "title": "Passport"},
                    ],
                }
            ]
        }
    }
    catalog = MagentoProductCatalog(client=_client(_respond(data=data)))

    product = asyncio.run(catalog.get_product("island-highlights-tour"))

    assert product.sku == "island-highlights"
    assert product.enquiry_only is False
    assert [o.kind for o in product.options] == [OptionKind.DATE, OptionKind.RADIO]
    assert product.get_option(3).find_value_by_title("yes").value_id == 31


def test_catalog_returns_none_for_unknown_product():
    catalog = MagentoProductCatalog(client=_client(_respond(data={"products": {"items": []}})))

    assert asyncio.run(catalog.get_product("nope")) is None


def test_availability_feed_mapping_and_failure():
    data = {
        "bookingCountBySku": {
            "success": True,
            "sku": "island-highlights",
            "total_bookings": 9,
            "bookings": [{"date": "2030-07-01", "count": 4, "qty_total": 10, "allowed_qty": 12, "remaining_qty": 2}],
        }
    }
    catalog = MagentoProductCatalog(client=_client(_respond(data=data)))
    failing = MagentoProductCatalog(client=_client(_respond(errors=[{"message": "Internal error"}])))

    feed = asyncio.run(catalog.get_booking_availability("island-highlights"))

    assert feed.success is True
    assert feed.entries[0].committed == 10
    assert feed.entries[0].remaining == 2
    assert asyncio.run(failing.get_booking_availability("island-highlights")) is None
