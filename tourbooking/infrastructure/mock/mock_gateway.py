from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import count

from tourbooking.application.exceptions import CartGatewayError, CartNotFoundError
from tourbooking.application.ports.cart_gateway import CartGatewayPort
from tourbooking.domain.entities.cart import (
    AddItemResult,
    BillingAddress,
    CartItemOption,
    CartTotals,
    PaymentMethod,
    PlacedOrder,
)
from tourbooking.domain.entities.product import Money

DEFAULT_PAYMENT_METHODS = (
    PaymentMethod(code="checkmo", title="Check / Money order"),
    PaymentMethod(code="banktransfer", title="Bank Transfer Payment"),
)


@dataclass
class _MockCart:
    items: list[tuple[str, int, list[CartItemOption]]] = field(default_factory=list)
    email: str | None = None
    billing_address: BillingAddress | None = None
    payment_method: PaymentMethod | None = None


class MockCartGateway(CartGatewayPort):
    """In-memory cart backend. Records every call; failures can be queued per method."""

    def __init__(
        self,
        unit_prices: dict[str, float] | None = None,
        capacity: dict[str, int] | None = None,
        payment_methods: tuple[PaymentMethod, ...] = DEFAULT_PAYMENT_METHODS,
        currency: str = "USD",
        tax_rate: float = 0.0,
    ) -> None:
        self._carts: dict[str, _MockCart] = {}
        self._unit_prices = dict(unit_prices or {})
        self._capacity = dict(capacity or {})
        self._payment_methods = payment_methods
        self._currency = currency
        self._tax_rate = tax_rate
        self._failures: dict[str, list[CartGatewayError]] = {}
        self._cart_ids = count(1)
        self._order_numbers = count(1)
        self.calls: list[tuple[str, str | None]] = []
        self._logger = logging.getLogger(__name__)

    def fail_next(self, method: str, error: CartGatewayError | None = None) -> None:
        """Make the next call of `method` raise."""
        self._failures.setdefault(method, []).append(error or CartGatewayError(f"{method} failed"))

    def calls_to(self, method: str) -> list[str | None]:
        return [cart_id for name, cart_id in self.calls if name == method]

    def cart(self, cart_id: str) -> _MockCart | None:
        return self._carts.get(cart_id)

    def _record(self, method: str, cart_id: str | None = None) -> None:
        self.calls.append((method, cart_id))
        queued = self._failures.get(method)
        if queued:
            raise queued.pop(0)

    def _get_cart(self, cart_id: str) -> _MockCart:
        cart = self._carts.get(cart_id)
        if cart is None:
            raise CartNotFoundError(f'Could not find a cart with ID "{cart_id}"')
        return cart

    def _subtotal(self, cart: _MockCart) -> float:
        return sum(self._unit_prices.get(sku, 50.0) * qty for sku, qty, _ in cart.items)

    async def create_cart(self) -> str:
        self._record("create_cart")
        cart_id = f"mock_cart_{next(self._cart_ids)}"
        self._carts[cart_id] = _MockCart()
        self._logger.info("Mock cart created", extra={"cart_id": cart_id})
        return cart_id

    async def add_item(
        self,
        cart_id: str,
        sku: str,
        quantity: int,
        options: list[CartItemOption],
    ) -> AddItemResult:
        self._record("add_item", cart_id)
        cart = self._get_cart(cart_id)
        limit = self._capacity.get(sku)
        if limit is not None and quantity > limit:
            raise CartGatewayError("The requested qty is not available")
        cart.items.append((sku, quantity, list(options)))
        grand_total = self._subtotal(cart) * (1 + self._tax_rate)
        return AddItemResult(grand_total=Money(value=round(grand_total, 2), currency=self._currency))

    async def clear_cart(self, cart_id: str) -> None:
        self._record("clear_cart", cart_id)
        self._get_cart(cart_id).items.clear()

    async def set_guest_contact(self, cart_id: str, email: str) -> str:
        self._record("set_guest_contact", cart_id)
        cart = self._get_cart(cart_id)
        cart.email = email
        return email

    async def set_billing_address(self, cart_id: str, address: BillingAddress) -> BillingAddress:
        self._record("set_billing_address", cart_id)
        cart = self._get_cart(cart_id)
        cart.billing_address = address
        return address

    async def list_payment_methods(self, cart_id: str) -> list[PaymentMethod]:
        self._record("list_payment_methods", cart_id)
        self._get_cart(cart_id)
        return list(self._payment_methods)

    async def set_payment_method(self, cart_id: str, method_code: str) -> PaymentMethod:
        self._record("set_payment_method", cart_id)
        cart = self._get_cart(cart_id)
        method = next((m for m in self._payment_methods if m.code == method_code), None)
        if method is None:
            raise CartGatewayError(f'The requested Payment Method "{method_code}" is not available.')
        cart.payment_method = method
        return method

    async def get_totals(self, cart_id: str) -> CartTotals:
        self._record("get_totals", cart_id)
        cart = self._get_cart(cart_id)
        subtotal = round(self._subtotal(cart), 2)
        tax = round(subtotal * self._tax_rate, 2)
        return CartTotals(
            grand_total=Money(value=subtotal + tax, currency=self._currency),
            subtotal_including_tax=Money(value=subtotal + tax, currency=self._currency),
            subtotal_excluding_tax=Money(value=subtotal, currency=self._currency),
            email=cart.email,
        )

    async def place_order(self, cart_id: str) -> PlacedOrder:
        self._record("place_order", cart_id)
        cart = self._get_cart(cart_id)
        if not cart.items:
            raise CartGatewayError("Unable to place order: A cart must contain at least one item")
        if cart.email is None or cart.billing_address is None or cart.payment_method is None:
            raise CartGatewayError("Unable to place order: Some addresses can't be used")
        del self._carts[cart_id]
        order_number = f"{next(self._order_numbers):09d}"
        self._logger.info("Mock order placed", extra={"cart_id": cart_id, "order_number": order_number})
        return PlacedOrder(order_number=order_number)
