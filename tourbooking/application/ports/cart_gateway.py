from __future__ import annotations

from abc import ABC, abstractmethod

from tourbooking.domain.entities.cart import (
    AddItemResult,
    BillingAddress,
    CartItemOption,
    CartTotals,
    PaymentMethod,
    PlacedOrder,
)


class CartGatewayPort(ABC):
    """Remote cart/checkout resource. Every method may raise CartGatewayError."""

    @abstractmethod
    async def create_cart(self) -> str:
        """Create a new empty cart. Returns cart_id."""
        raise NotImplementedError

    @abstractmethod
    async def add_item(
        self,
        cart_id: str,
        sku: str,
        quantity: int,
        options: list[CartItemOption],
    ) -> AddItemResult:
        raise NotImplementedError

    @abstractmethod
    async def clear_cart(self, cart_id: str) -> None:
        """Remove every item from the cart, keeping the cart id."""
        raise NotImplementedError

    @abstractmethod
    async def set_guest_contact(self, cart_id: str, email: str) -> str:
        """Returns the email accepted by the backend."""
        raise NotImplementedError

    @abstractmethod
    async def set_billing_address(self, cart_id: str, address: BillingAddress) -> BillingAddress:
        raise NotImplementedError

    @abstractmethod
    async def list_payment_methods(self, cart_id: str) -> list[PaymentMethod]:
        raise NotImplementedError

    @abstractmethod
    async def set_payment_method(self, cart_id: str, method_code: str) -> PaymentMethod:
        raise NotImplementedError

    @abstractmethod
    async def get_totals(self, cart_id: str) -> CartTotals:
        raise NotImplementedError

    @abstractmethod
    async def place_order(self, cart_id: str) -> PlacedOrder:
        """Terminal. The cart id is invalid afterwards."""
        raise NotImplementedError
