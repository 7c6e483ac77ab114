from __future__ import annotations

import logging
from typing import Any

from tourbooking.application.exceptions import CartGatewayError
from tourbooking.domain.entities.availability import AvailabilityFeed, DateCapacity
from tourbooking.domain.entities.cart import AppliedTax, BillingAddress, CartItemOption, CartTotals
from tourbooking.domain.entities.product import (
    BookableProduct,
    Money,
    OptionKind,
    OptionValue,
    ProductOption,
    ProductSummary,
)

logger = logging.getLogger(__name__)

OPTION_KIND_BY_TYPENAME: dict[str, OptionKind] = {
    "CustomizableRadioOption": OptionKind.RADIO,
    "CustomizableDropDownOption": OptionKind.DROP_DOWN,
    "CustomizableCheckboxOption": OptionKind.CHECKBOX,
    "CustomizableMultipleOption": OptionKind.MULTIPLE,
    "CustomizableDateOption": OptionKind.DATE,
    "CustomizableFieldOption": OptionKind.FIELD,
}


def dig(data: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def to_money(data: Any, default_currency: str = "USD") -> Money:
    if not isinstance(data, dict):
        return Money(value=0.0, currency=default_currency)
    return Money(value=float(data.get("value") or 0.0), currency=str(data.get("currency") or default_currency))


def to_option(data: dict[str, Any]) -> ProductOption | None:
    kind = OPTION_KIND_BY_TYPENAME.get(str(data.get("__typename") or ""))
    if kind is None:
        logger.warning("Skipping unsupported option type", extra={"reason": data.get("__typename")})
        return None

    values: tuple[OptionValue, ...] = ()
    if kind not in (OptionKind.DATE, OptionKind.FIELD):
        values = tuple(
            OptionValue(
                value_id=int(v["option_type_id"]),
                title=str(v.get("title") or ""),
                price=float(v.get("price") or 0.0),
                sort_order=int(v.get("sort_order") or 0),
            )
            for v in (data.get("value") or [])
        )

    return ProductOption(
        option_id=int(data["option_id"]),
        title=str(data.get("title") or ""),
        kind=kind,
        required=bool(data.get("required")),
        sort_order=int(data.get("sort_order") or 0),
        values=values,
    )


def to_product(data: dict[str, Any]) -> BookableProduct:
    options = tuple(o for o in (to_option(raw) for raw in (data.get("options") or [])) if o is not None)
    quantity = data.get("quantity")
    return BookableProduct(
        sku=str(data["sku"]),
        name=str(data.get("name") or ""),
        price=to_money(dig(data, "price_range", "maximum_price", "final_price")),
        in_stock=str(data.get("stock_status") or "IN_STOCK").upper() == "IN_STOCK",
        options=options,
        # the attribute arrives as bool, 0/1 or null
        enquiry_only=bool(data.get("enquiry_only")),
        url_key=data.get("url_key"),
        stock_quantity=int(quantity) if quantity is not None else None,
        image_url=dig(data, "image", "url"),
        description_html=dig(data, "short_description", "html"),
    )


def to_product_summary(data: dict[str, Any]) -> ProductSummary:
    return ProductSummary(
        sku=str(data["sku"]),
        name=str(data.get("name") or ""),
        url_key=str(data.get("url_key") or ""),
        price=to_money(dig(data, "price_range", "maximum_price", "final_price")),
        image_url=dig(data, "image", "url"),
        gallery=tuple(str(m["url"]) for m in (data.get("media_gallery") or []) if m.get("url")),
    )


def to_availability_feed(data: dict[str, Any]) -> AvailabilityFeed:
    entries = tuple(
        DateCapacity(
            date=str(b.get("date") or ""),
            committed=int(b.get("qty_total") or 0),
            allowed=int(b.get("allowed_qty") or 0),
            remaining=int(b.get("remaining_qty") or 0),
            order_count=int(b.get("count") or 0),
        )
        for b in (data.get("bookings") or [])
    )
    return AvailabilityFeed(
        sku=str(data.get("sku") or ""),
        entries=entries,
        success=bool(data.get("success")),
        message=data.get("message"),
        total_bookings=int(data.get("total_bookings") or 0),
    )


def to_cart_option_input(option: CartItemOption) -> dict[str, Any]:
    # Magento takes every customizable option as a string; dates use 'YYYY-MM-DD 00:00:00'.
    value = option.value_date if option.value_date is not None else option.value_string
    return {"id": option.option_id, "value_string": value or ""}


def to_address_input(address: BillingAddress) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "firstname": address.firstname,
        "lastname": address.lastname,
        "street": list(address.street),
        "city": address.city,
        "postcode": address.postcode,
        "country_code": address.country_code,
        "telephone": address.telephone,
        "save_in_address_book": False,
    }
    if address.company:
        payload["company"] = address.company
    if address.region:
        payload["region"] = address.region
    return payload


def to_billing_address(data: dict[str, Any]) -> BillingAddress:
    return BillingAddress(
        firstname=str(data.get("firstname") or ""),
        lastname=str(data.get("lastname") or ""),
        street=tuple(data.get("street") or ()),
        city=str(data.get("city") or ""),
        postcode=str(data.get("postcode") or ""),
        country_code=str(dig(data, "country", "code") or ""),
        telephone=str(data.get("telephone") or ""),
        company=data.get("company"),
        region=dig(data, "region", "label"),
    )


def to_cart_totals(data: dict[str, Any]) -> CartTotals:
    prices = data.get("prices")
    if not isinstance(prices, dict):
        raise CartGatewayError("Cart totals are missing from the response")
    grand_total = to_money(prices.get("grand_total"))
    currency = grand_total.currency
    return CartTotals(
        grand_total=grand_total,
        subtotal_including_tax=to_money(prices.get("subtotal_including_tax"), currency),
        subtotal_excluding_tax=to_money(prices.get("subtotal_excluding_tax"), currency),
        applied_taxes=tuple(
            AppliedTax(label=str(t.get("label") or ""), amount=to_money(t.get("amount"), currency))
            for t in (prices.get("applied_taxes") or [])
        ),
        applied_coupons=tuple(str(c["code"]) for c in (data.get("applied_coupons") or []) if c.get("code")),
        email=data.get("email"),
    )
