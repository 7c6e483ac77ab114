from __future__ import annotations

import logging

from tourbooking.application.exceptions import CartGatewayError
from tourbooking.application.ports.cart_gateway import CartGatewayPort
from tourbooking.domain.entities.cart import (
    AddItemResult,
    BillingAddress,
    CartItemOption,
    CartTotals,
    PaymentMethod,
    PlacedOrder,
)
from tourbooking.infrastructure.magento import queries
from tourbooking.infrastructure.magento.graphql_client import MagentoGraphQLClient
from tourbooking.infrastructure.magento.mappers import (
    dig,
    to_address_input,
    to_billing_address,
    to_cart_option_input,
    to_cart_totals,
    to_money,
)


class MagentoCartGateway(CartGatewayPort):
    def __init__(self, client: MagentoGraphQLClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    async def create_cart(self) -> str:
        data = await self._client.execute(queries.CREATE_EMPTY_CART)
        cart_id = data.get("createEmptyCart")
        if not cart_id:
            raise CartGatewayError("No cart id returned from backend")
        self._logger.info("Cart created", extra={"cart_id": cart_id})
        return str(cart_id)

    async def add_item(
        self,
        cart_id: str,
        sku: str,
        quantity: int,
        options: list[CartItemOption],
    ) -> AddItemResult:
        cart_item: dict = {"data": {"quantity": quantity, "sku": sku}}
        if options:
            cart_item["customizable_options"] = [to_cart_option_input(o) for o in options]

        data = await self._client.execute(
            queries.ADD_VIRTUAL_PRODUCTS_TO_CART,
            {"input": {"cart_id": cart_id, "cart_items": [cart_item]}},
        )
        grand_total = dig(data, "addVirtualProductsToCart", "cart", "prices", "grand_total")
        if grand_total is None:
            raise CartGatewayError("Cart was not returned after adding the item")
        return AddItemResult(grand_total=to_money(grand_total))

    async def clear_cart(self, cart_id: str) -> None:
        await self._client.execute(queries.CLEAR_CART, {"uid": cart_id})

    async def set_guest_contact(self, cart_id: str, email: str) -> str:
        data = await self._client.execute(queries.SET_GUEST_EMAIL, {"cartId": cart_id, "email": email})
        return str(dig(data, "setGuestEmailOnCart", "cart", "email") or email)

    async def set_billing_address(self, cart_id: str, address: BillingAddress) -> BillingAddress:
        data = await self._client.execute(
            queries.SET_BILLING_ADDRESS,
            {"cartId": cart_id, "address": to_address_input(address)},
        )
        accepted = dig(data, "setBillingAddressOnCart", "cart", "billing_address")
        if not isinstance(accepted, dict):
            raise CartGatewayError("Billing address was not accepted")
        return to_billing_address(accepted)

    async def list_payment_methods(self, cart_id: str) -> list[PaymentMethod]:
        data = await self._client.execute(queries.GET_PAYMENT_METHODS, {"cartId": cart_id})
        methods = dig(data, "cart", "available_payment_methods") or []
        return [PaymentMethod(code=str(m["code"]), title=str(m.get("title") or m["code"])) for m in methods]

    async def set_payment_method(self, cart_id: str, method_code: str) -> PaymentMethod:
        data = await self._client.execute(
            queries.SET_PAYMENT_METHOD,
            {"cartId": cart_id, "paymentMethodCode": method_code},
        )
        selected = dig(data, "setPaymentMethodOnCart", "cart", "selected_payment_method")
        if not isinstance(selected, dict) or not selected.get("code"):
            raise CartGatewayError("Payment method was not accepted")
        return PaymentMethod(code=str(selected["code"]), title=str(selected.get("title") or selected["code"]))

    async def get_totals(self, cart_id: str) -> CartTotals:
        data = await self._client.execute(queries.GET_CART_TOTALS, {"cartId": cart_id})
        cart = data.get("cart")
        if not isinstance(cart, dict):
            raise CartGatewayError("Cart totals are missing from the response")
        return to_cart_totals(cart)

    async def place_order(self, cart_id: str) -> PlacedOrder:
        data = await self._client.execute(queries.PLACE_ORDER, {"cartId": cart_id})
        result = data.get("placeOrder") or {}
        order_number = dig(result, "order", "order_number")
        if not order_number:
            raise CartGatewayError("No order number returned from backend")
        payment_link = result.get("paymentlink") or dig(result, "order", "paymentlink")
        self._logger.info("Order placed", extra={"cart_id": cart_id, "order_number": order_number})
        return PlacedOrder(order_number=str(order_number), payment_link=payment_link or None)
