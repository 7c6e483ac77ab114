from __future__ import annotations

from dataclasses import dataclass

from tourbooking.domain.entities.product import Money


@dataclass(frozen=True)
class CartItemOption:
    """One answered option as sent with the cart item.

    Exactly one of `value_string` / `value_date` is set.
    """

    option_id: int
    value_string: str | None = None
    value_date: str | None = None  # YYYY-MM-DD 00:00:00

    def as_dict(self) -> dict[str, int | str]:
        if self.value_date is not None:
            return {"option_id": self.option_id, "value_date": self.value_date}
        return {"option_id": self.option_id, "value_string": self.value_string or ""}


@dataclass(frozen=True)
class BillingAddress:
    firstname: str
    lastname: str
    street: tuple[str, ...]
    city: str
    postcode: str
    country_code: str
    telephone: str
    company: str | None = None
    region: str | None = None


@dataclass(frozen=True)
class PaymentMethod:
    code: str
    title: str


@dataclass(frozen=True)
class AppliedTax:
    label: str
    amount: Money


@dataclass(frozen=True)
class CartTotals:
    grand_total: Money
    subtotal_including_tax: Money
    subtotal_excluding_tax: Money
    applied_taxes: tuple[AppliedTax, ...] = ()
    applied_coupons: tuple[str, ...] = ()
    email: str | None = None


@dataclass(frozen=True)
class AddItemResult:
    grand_total: Money


@dataclass(frozen=True)
class PlacedOrder:
    order_number: str
    payment_link: str | None = None
