from __future__ import annotations

from dataclasses import dataclass, field

from tourbooking.domain.entities.availability import AvailabilityFeed, DateAvailabilityInfo
from tourbooking.domain.entities.cart import BillingAddress, CartTotals, PaymentMethod
from tourbooking.domain.entities.product import BookableProduct, Money


@dataclass(frozen=True)
class ProductStep:
    name: str = field(default="product", init=False)


@dataclass(frozen=True)
class CheckoutStep:
    grand_total: Money
    name: str = field(default="checkout", init=False)


@dataclass(frozen=True)
class PaymentStep:
    email: str
    billing_address: BillingAddress
    payment_methods: tuple[PaymentMethod, ...] | None = None  # None until loaded
    name: str = field(default="payment", init=False)


@dataclass(frozen=True)
class ReviewStep:
    payment_method: PaymentMethod
    totals: CartTotals
    name: str = field(default="review", init=False)


@dataclass(frozen=True)
class SuccessStep:
    order_number: str
    payment_link: str | None = None
    name: str = field(default="success", init=False)


BookingStep = ProductStep | CheckoutStep | PaymentStep | ReviewStep | SuccessStep


@dataclass(frozen=True)
class AcceptedItem:
    sku: str
    quantity: int
    options: tuple[tuple[int, str, str], ...]  # (option_id, field, value)


@dataclass(frozen=True)
class AcceptedContact:
    email: str
    billing_address: BillingAddress


@dataclass
class BookingSession:
    """State owned by one orchestrator for one visit to the booking flow."""

    product: BookableProduct
    feed: AvailabilityFeed | None = None
    step: BookingStep = field(default_factory=ProductStep)
    history: list[BookingStep] = field(default_factory=list)
    cart_id: str | None = None
    selected: dict[int, str] = field(default_factory=dict)
    quantity: int = 1
    date_availability: DateAvailabilityInfo | None = None
    error: str | None = None
    loading: bool = False
    needs_restart: bool = False
    # values the backend already accepted for this cart
    accepted_item: AcceptedItem | None = None
    accepted_contact: AcceptedContact | None = None
    accepted_payment_method: str | None = None
    item_total: Money | None = None
    field_errors: dict[str, str] = field(default_factory=dict)
