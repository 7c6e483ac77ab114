from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Callable, Iterable
from urllib.parse import urlencode

from tourbooking.application.exceptions import CartGatewayError, CartNotFoundError, StaleCartError
from tourbooking.application.ports.cart_gateway import CartGatewayPort
from tourbooking.application.ports.cart_id_store import CartIdStorePort
from tourbooking.application.utils.availability import calendar_day, resolve_availability
from tourbooking.application.utils.checkout_validation import clean_address, validate_contact
from tourbooking.application.utils.option_dependencies import (
    DEFAULT_DEPENDENCY_RULES,
    DependencyRule,
    OptionDependencyResolver,
    OptionResolution,
    is_valid_answer,
    normalize_answer,
)
from tourbooking.domain.entities.availability import AvailabilityFeed, DateAvailabilityInfo
from tourbooking.domain.entities.booking_state import (
    AcceptedContact,
    AcceptedItem,
    BookingSession,
    BookingStep,
    CheckoutStep,
    PaymentStep,
    ProductStep,
    ReviewStep,
    SuccessStep,
)
from tourbooking.domain.entities.cart import BillingAddress
from tourbooking.domain.entities.product import BookableProduct, OptionKind, ProductOption

RESTART_MESSAGE = "Your booking session has expired. Please start your booking again."
BUSY_MESSAGE = "Please wait for the current request to finish."
CART_NOT_FOUND_MESSAGE = "We could not find your cart. Please try again or start your booking again."


class FailureKind(str, Enum):
    VALIDATION = "validation"
    GATEWAY = "gateway"
    BUSY = "busy"
    RESTART_REQUIRED = "restart_required"


@dataclass(frozen=True)
class TransitionResult:
    accepted: bool
    step: BookingStep
    error: str | None = None
    failure: FailureKind | None = None


@dataclass(frozen=True)
class EnquiryRedirect:
    url: str
    message: str


class BookingOrchestrator:
    """
    Drives one shopper from product options to a placed order:

        product -> checkout -> payment -> review -> success

    Forward transitions run local checks first and then exactly one gateway call
    sequence. Only one sequence may be in flight (`session.loading`). Gateway
    failures leave the step unchanged with an error; a missing cart id marks the
    session as needing a restart.
    """

    def __init__(
        self,
        gateway: CartGatewayPort,
        cart_id_store: CartIdStorePort,
        default_allowed_seats: int = 12,
        date_option_title: str = "Tour Date",
        dependency_rules: Iterable[DependencyRule] = DEFAULT_DEPENDENCY_RULES,
        contact_path: str = "/contact",
        today: Callable[[], date] = date.today,
        session_id: str | None = None,
    ) -> None:
        self._gateway = gateway
        self._cart_id_store = cart_id_store
        self._default_allowed_seats = default_allowed_seats
        self._date_option_title = date_option_title
        self._dependency_rules = tuple(dependency_rules)
        self._contact_path = contact_path
        self._today = today
        self._session_id = session_id
        self._session: BookingSession | None = None
        self._resolver: OptionDependencyResolver | None = None
        self._date_option: ProductOption | None = None
        self._stored_cart_id_read = False
        self._logger = logging.getLogger(__name__)

    @property
    def session(self) -> BookingSession:
        if self._session is None:
            raise RuntimeError("Booking session not started")
        return self._session

    @property
    def has_session(self) -> bool:
        return self._session is not None

    @property
    def step(self) -> BookingStep:
        return self.session.step

    @property
    def date_option(self) -> ProductOption | None:
        return self._date_option

    def option_resolution(self) -> OptionResolution:
        return self._option_resolver().resolve(self.session.selected)

    def _option_resolver(self) -> OptionDependencyResolver:
        if self._resolver is None:
            raise RuntimeError("Booking session not started")
        return self._resolver

    def _log_extra(self, **extra: object) -> dict[str, object]:
        base: dict[str, object] = {"session_id": self._session_id}
        if self._session is not None:
            base["step"] = self._session.step.name
            base["cart_id"] = self._session.cart_id
            base["sku"] = self._session.product.sku
        base.update(extra)
        return base

    async def start(self, product: BookableProduct, feed: AvailabilityFeed | None = None) -> TransitionResult:
        """Begin a fresh session. Any previously stored cart id is discarded."""
        if self._session is not None and self._session.loading:
            return self._busy()

        self._cart_id_store.clear()
        self._session = BookingSession(product=product, feed=feed)
        self._resolver = OptionDependencyResolver(product.options, self._dependency_rules)
        self._date_option = self._find_date_option(product)
        self._stored_cart_id_read = False
        session = self._session

        if product.enquiry_only:
            self._logger.info("Enquiry-only product, no cart created", extra=self._log_extra())
            return TransitionResult(accepted=True, step=session.step)

        session.loading = True
        try:
            cart_id = await self._gateway.create_cart()
        except CartGatewayError as e:
            return self._gateway_failed("create_cart", e, "We could not start your booking. Please try again")
        except Exception as e:
            self._logger.exception("Unexpected error creating cart", extra=self._log_extra(error=str(e)))
            return self._gateway_failed("create_cart", e, "We could not start your booking. Please try again")
        finally:
            session.loading = False

        session.cart_id = cart_id
        self._cart_id_store.set(cart_id)
        self._logger.info("Booking session started", extra=self._log_extra())
        return TransitionResult(accepted=True, step=session.step)

    def close(self) -> None:
        """Drop the session (shopper navigated away) and its stored cart id."""
        if self._session is not None:
            self._logger.info("Booking session closed", extra=self._log_extra())
        self._cart_id_store.clear()
        self._cart_id_store.discard()
        self._session = None
        self._resolver = None
        self._date_option = None

    def _find_date_option(self, product: BookableProduct) -> ProductOption | None:
        titled = product.find_option_by_title(self._date_option_title)
        if titled is not None and titled.kind is OptionKind.DATE:
            return titled
        for option in product.sorted_options():
            if option.kind is OptionKind.DATE:
                return option
        return None

    def set_option(self, option_id: int, value: str | list[str] | tuple[str, ...] | None) -> TransitionResult:
        session = self.session
        refusal = self._check_ready(ProductStep)
        if refusal:
            return refusal

        option = session.product.get_option(option_id)
        if option is None:
            return self._refuse(f"Unknown option {option_id}")

        raw = ",".join(str(v) for v in value) if isinstance(value, (list, tuple)) else value
        answer = normalize_answer(option, raw)
        if answer and not is_valid_answer(option, answer):
            if option.is_date:
                return self._refuse(f"Please enter a valid date for {option.title}")
            return self._refuse(f"Please choose a valid value for {option.title}")

        # Hidden dependents keep their answer for re-display; the payload drops them.
        if answer:
            session.selected[option_id] = answer
        else:
            session.selected.pop(option_id, None)

        self._refresh_date_availability()
        session.error = self._capacity_error()
        return TransitionResult(accepted=True, step=session.step, error=session.error)

    def toggle_choice(self, option_id: int, value_id: str | int, checked: bool) -> TransitionResult:
        """Add or remove one value of a multi-choice option."""
        session = self.session
        refusal = self._check_ready(ProductStep)
        if refusal:
            return refusal

        option = session.product.get_option(option_id)
        if option is None or not option.is_multi_choice:
            return self._refuse(f"Option {option_id} does not accept multiple values")

        current = [v for v in session.selected.get(option_id, "").split(",") if v]
        value_id = str(value_id)
        if checked and value_id not in current:
            current.append(value_id)
        elif not checked:
            current = [v for v in current if v != value_id]
        return self.set_option(option_id, current)

    def set_quantity(self, quantity: int) -> TransitionResult:
        session = self.session
        refusal = self._check_ready(ProductStep)
        if refusal:
            return refusal
        if quantity < 1:
            return self._refuse("Quantity must be at least 1")

        session.quantity = quantity
        self._refresh_date_availability()
        session.error = self._capacity_error()
        return TransitionResult(accepted=True, step=session.step, error=session.error)

    def update_feed(self, feed: AvailabilityFeed | None) -> None:
        """Swap in a newer capacity feed and re-derive the chosen date's seats."""
        self.session.feed = feed
        self._refresh_date_availability()

    def _date_answer(self) -> str | None:
        if self._date_option is None:
            return None
        session = self.session
        answer = session.selected.get(self._date_option.option_id)
        if not answer:
            return None
        if not self._option_resolver().is_visible(self._date_option.option_id, session.selected):
            return None
        return answer

    def _refresh_date_availability(self) -> DateAvailabilityInfo | None:
        session = self.session
        answer = self._date_answer()
        if answer is None:
            session.date_availability = None
            return None

        result = resolve_availability(session.feed, answer, self._default_allowed_seats)
        info = DateAvailabilityInfo(date=calendar_day(answer), remaining=result.remaining, allowed=result.allowed)
        session.date_availability = info
        return info

    def _capacity_error(self) -> str | None:
        session = self.session
        info = session.date_availability
        if info is None or session.quantity <= info.remaining:
            return None
        if info.remaining <= 0:
            return f"No seats available for {info.date} (0 remaining). Please choose another date."
        plural = "seat" if info.remaining == 1 else "seats"
        return (
            f"Only {info.remaining} {plural} available for {info.date}. "
            f"Please reduce quantity to {info.remaining} or less."
        )

    def enquire(self) -> EnquiryRedirect | None:
        """Redirect target for enquiry-only products. Not a state transition."""
        session = self.session
        if not session.product.enquiry_only:
            session.error = "This tour can be booked directly."
            return None

        message = f"I would like to enquire about {session.product.name}."
        url = f"{self._contact_path}?{urlencode({'message': message})}"
        self._logger.info("Enquiry redirect", extra=self._log_extra())
        return EnquiryRedirect(url=url, message=message)

    async def confirm_selection(self) -> TransitionResult:
        session = self.session
        refusal = self._check_ready(ProductStep)
        if refusal:
            return refusal

        product = session.product
        if product.enquiry_only:
            return self._refuse("This tour is available on enquiry only. Please contact us to book.")
        if not product.in_stock:
            return self._refuse("This tour is currently unavailable.")

        resolution = self._option_resolver().resolve(session.selected)
        if resolution.missing_required:
            return self._refuse("Please complete the required options: " + ", ".join(resolution.missing_titles()))
        if resolution.invalid:
            return self._refuse("Please check these options: " + ", ".join(resolution.invalid_titles()))

        tour_date = self._date_answer()
        if tour_date is not None and calendar_day(tour_date) < self._today().isoformat():
            return self._refuse("Please choose a tour date from today onwards.")

        # Live gate: the date may have changed since the quantity was entered.
        self._refresh_date_availability()
        capacity_error = self._capacity_error()
        if capacity_error:
            return self._refuse(capacity_error)

        item = AcceptedItem(
            sku=product.sku,
            quantity=session.quantity,
            options=tuple(
                (o.option_id, "value_date", o.value_date)
                if o.value_date is not None
                else (o.option_id, "value_string", o.value_string or "")
                for o in resolution.payload
            ),
        )
        if session.accepted_item == item and session.item_total is not None:
            self._advance(CheckoutStep(grand_total=session.item_total))
            return TransitionResult(accepted=True, step=session.step)

        session.loading = True
        try:
            cart_id = self._cart_id()
            if session.accepted_item is not None:
                # Selection changed after an earlier add; replace the cart contents.
                await self._gateway.clear_cart(cart_id)
                session.accepted_item = None
                session.item_total = None
            result = await self._gateway.add_item(cart_id, product.sku, session.quantity, list(resolution.payload))
        except StaleCartError:
            return self._restart_required("add_item")
        except CartGatewayError as e:
            return self._gateway_failed("add_item", e, "We could not add this tour to your cart")
        except Exception as e:
            self._logger.exception("Unexpected error adding item", extra=self._log_extra(error=str(e)))
            return self._gateway_failed("add_item", e, "We could not add this tour to your cart")
        finally:
            session.loading = False

        session.accepted_item = item
        session.item_total = result.grand_total
        self._logger.info(
            "Item added to cart",
            extra=self._log_extra(quantity=session.quantity, grand_total=result.grand_total.value),
        )
        self._advance(CheckoutStep(grand_total=result.grand_total))
        return TransitionResult(accepted=True, step=session.step)

    async def submit_checkout(self, email: str, address: BillingAddress) -> TransitionResult:
        session = self.session
        refusal = self._check_ready(CheckoutStep)
        if refusal:
            return refusal

        field_errors = validate_contact(email, address)
        if field_errors:
            session.field_errors = field_errors
            return self._refuse("Please correct the highlighted fields: " + ", ".join(field_errors.values()))
        session.field_errors = {}

        email = email.strip()
        address = clean_address(address)
        contact = AcceptedContact(email=email, billing_address=address)
        if session.accepted_contact == contact:
            self._advance(PaymentStep(email=email, billing_address=address))
            return TransitionResult(accepted=True, step=session.step)

        session.loading = True
        try:
            cart_id = self._cart_id()
            accepted_email = await self._gateway.set_guest_contact(cart_id, email)
            accepted_address = await self._gateway.set_billing_address(cart_id, address)
        except StaleCartError:
            return self._restart_required("set_contact")
        except CartGatewayError as e:
            return self._gateway_failed("set_contact", e, "We could not save your details")
        except Exception as e:
            self._logger.exception("Unexpected error saving contact", extra=self._log_extra(error=str(e)))
            return self._gateway_failed("set_contact", e, "We could not save your details")
        finally:
            session.loading = False

        session.accepted_contact = contact
        self._logger.info("Contact and billing address set", extra=self._log_extra())
        self._advance(PaymentStep(email=accepted_email, billing_address=accepted_address))
        return TransitionResult(accepted=True, step=session.step)

    async def load_payment_methods(self) -> TransitionResult:
        session = self.session
        refusal = self._check_ready(PaymentStep)
        if refusal:
            return refusal

        session.loading = True
        try:
            cart_id = self._cart_id()
            methods = await self._gateway.list_payment_methods(cart_id)
        except StaleCartError:
            return self._restart_required("list_payment_methods")
        except CartGatewayError as e:
            return self._gateway_failed("list_payment_methods", e, "Failed to load payment methods")
        except Exception as e:
            self._logger.exception("Unexpected error loading payment methods", extra=self._log_extra(error=str(e)))
            return self._gateway_failed("list_payment_methods", e, "Failed to load payment methods")
        finally:
            session.loading = False

        session.step = replace(session.step, payment_methods=tuple(methods))
        session.error = None if methods else "No payment methods are available for this booking."
        return TransitionResult(accepted=True, step=session.step, error=session.error)

    async def select_payment_method(self, method_code: str) -> TransitionResult:
        session = self.session
        refusal = self._check_ready(PaymentStep)
        if refusal:
            return refusal

        step = session.step
        if step.payment_methods is None:
            return self._refuse("Payment methods have not been loaded yet.")
        method = next((m for m in step.payment_methods if m.code == method_code), None)
        if method is None:
            return self._refuse("Please select a payment method.")

        session.loading = True
        try:
            cart_id = self._cart_id()
            if session.accepted_payment_method != method.code:
                method = await self._gateway.set_payment_method(cart_id, method.code)
                session.accepted_payment_method = method.code
            totals = await self._gateway.get_totals(cart_id)
        except StaleCartError:
            return self._restart_required("set_payment_method")
        except CartGatewayError as e:
            return self._gateway_failed("set_payment_method", e, "We could not set the payment method")
        except Exception as e:
            self._logger.exception("Unexpected error setting payment method", extra=self._log_extra(error=str(e)))
            return self._gateway_failed("set_payment_method", e, "We could not set the payment method")
        finally:
            session.loading = False

        self._logger.info("Payment method set", extra=self._log_extra(payment_method=method.code))
        self._advance(ReviewStep(payment_method=method, totals=totals))
        return TransitionResult(accepted=True, step=session.step)

    async def place_order(self) -> TransitionResult:
        session = self.session
        refusal = self._check_ready(ReviewStep)
        if refusal:
            return refusal

        session.loading = True
        try:
            cart_id = self._cart_id()
            order = await self._gateway.place_order(cart_id)
        except StaleCartError:
            return self._restart_required("place_order")
        except CartGatewayError as e:
            return self._gateway_failed("place_order", e, "We could not place your order")
        except Exception as e:
            self._logger.exception("Unexpected error placing order", extra=self._log_extra(error=str(e)))
            return self._gateway_failed("place_order", e, "We could not place your order")
        finally:
            session.loading = False

        # The cart id is spent; nothing may reuse it.
        session.cart_id = None
        self._stored_cart_id_read = True
        self._cart_id_store.clear()
        session.accepted_item = None
        session.item_total = None
        session.accepted_contact = None
        session.accepted_payment_method = None
        session.history.clear()
        session.step = SuccessStep(order_number=order.order_number, payment_link=order.payment_link)
        session.error = None
        self._logger.info("Order placed", extra=self._log_extra(order_number=order.order_number))
        return TransitionResult(accepted=True, step=session.step)

    def back(self) -> TransitionResult:
        session = self.session
        if session.loading:
            return self._busy()
        if session.needs_restart:
            return self._refuse(RESTART_MESSAGE, FailureKind.RESTART_REQUIRED)
        if not isinstance(session.step, (CheckoutStep, PaymentStep, ReviewStep)) or not session.history:
            return self._refuse("There is no previous step.")

        session.step = session.history.pop()
        session.error = None
        session.field_errors = {}
        return TransitionResult(accepted=True, step=session.step)

    def _check_ready(self, expected: type) -> TransitionResult | None:
        session = self.session
        if session.loading:
            return self._busy()
        if session.needs_restart:
            return self._refuse(RESTART_MESSAGE, FailureKind.RESTART_REQUIRED)
        if not isinstance(session.step, expected):
            return self._refuse(f"This action is not available on the {session.step.name} step.")
        return None

    def _cart_id(self) -> str:
        session = self.session
        if session.cart_id:
            return session.cart_id
        if not self._stored_cart_id_read:
            self._stored_cart_id_read = True
            stored = self._cart_id_store.get()
            if stored:
                self._logger.info("Recovered cart id from storage", extra=self._log_extra())
                session.cart_id = stored
                return stored
        raise StaleCartError("No cart id available")

    def _advance(self, step: BookingStep) -> None:
        session = self.session
        session.history.append(session.step)
        session.step = step
        session.error = None
        session.field_errors = {}

    def _busy(self) -> TransitionResult:
        return TransitionResult(accepted=False, step=self.session.step, error=BUSY_MESSAGE, failure=FailureKind.BUSY)

    def _refuse(self, message: str, failure: FailureKind = FailureKind.VALIDATION) -> TransitionResult:
        session = self.session
        session.error = message
        self._logger.info("Transition refused", extra=self._log_extra(reason=message))
        return TransitionResult(accepted=False, step=session.step, error=message, failure=failure)

    def _restart_required(self, operation: str) -> TransitionResult:
        session = self.session
        session.needs_restart = True
        session.error = RESTART_MESSAGE
        self._logger.error("Missing cart id", extra=self._log_extra(operation=operation))
        return TransitionResult(
            accepted=False,
            step=session.step,
            error=RESTART_MESSAGE,
            failure=FailureKind.RESTART_REQUIRED,
        )

    def _gateway_failed(self, operation: str, error: Exception, prefix: str) -> TransitionResult:
        session = self.session
        if isinstance(error, CartNotFoundError):
            message = CART_NOT_FOUND_MESSAGE
        elif isinstance(error, CartGatewayError) and str(error):
            message = f"{prefix}: {error}"
        else:
            message = f"{prefix}. Please try again."
        session.error = message
        self._logger.error("Gateway call failed", extra=self._log_extra(operation=operation, error=str(error)))
        return TransitionResult(accepted=False, step=session.step, error=message, failure=FailureKind.GATEWAY)
