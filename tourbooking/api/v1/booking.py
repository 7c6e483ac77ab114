from __future__ import annotations

import logging
from typing import Callable
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Response

from tourbooking.api.v1.schemas import (
    AppliedTaxSchema,
    CheckoutRequestSchema,
    DateAvailabilitySchema,
    EnquiryResponseSchema,
    MoneySchema,
    OptionAnswerRequestSchema,
    OptionSchema,
    OptionValueSchema,
    PaymentMethodSchema,
    PaymentRequestSchema,
    ProductSchema,
    ProductSummarySchema,
    QuantityRequestSchema,
    SessionViewSchema,
    StartSessionRequestSchema,
    TotalsSchema,
)
from tourbooking.application.exceptions import CartGatewayError
from tourbooking.application.ports.product_catalog import ProductCatalogPort
from tourbooking.application.use_cases.booking import BookingOrchestrator, FailureKind, TransitionResult
from tourbooking.domain.entities.booking_state import (
    CheckoutStep,
    PaymentStep,
    ReviewStep,
    SuccessStep,
)
from tourbooking.domain.entities.cart import BillingAddress, CartTotals
from tourbooking.domain.entities.product import Money
from tourbooking.infrastructure.store.memory_store import BookingSessionRegistry
from tourbooking.wiring.dependencies import (
    get_orchestrator_factory,
    get_product_catalog,
    get_session_registry,
)

router = APIRouter()
logger = logging.getLogger(__name__)

_STATUS_BY_FAILURE = {
    FailureKind.VALIDATION: 422,
    FailureKind.BUSY: 409,
    FailureKind.GATEWAY: 502,
    FailureKind.RESTART_REQUIRED: 410,
}


def _money(money: Money) -> MoneySchema:
    return MoneySchema(value=money.value, currency=money.currency)


def _totals(totals: CartTotals) -> TotalsSchema:
    return TotalsSchema(
        grand_total=_money(totals.grand_total),
        subtotal_including_tax=_money(totals.subtotal_including_tax),
        subtotal_excluding_tax=_money(totals.subtotal_excluding_tax),
        applied_taxes=[AppliedTaxSchema(label=t.label, amount=_money(t.amount)) for t in totals.applied_taxes],
        applied_coupons=list(totals.applied_coupons),
        email=totals.email,
    )


def build_session_view(session_id: str, orchestrator: BookingOrchestrator) -> SessionViewSchema:
    session = orchestrator.session
    product = session.product
    resolution = orchestrator.option_resolution()

    view = SessionViewSchema(
        session_id=session_id,
        step=session.step.name,
        error=session.error,
        field_errors=dict(session.field_errors),
        loading=session.loading,
        needs_restart=session.needs_restart,
        product=ProductSchema(
            sku=product.sku,
            name=product.name,
            price=_money(product.price),
            in_stock=product.in_stock,
            enquiry_only=product.enquiry_only,
        ),
        quantity=session.quantity,
        options=[
            OptionSchema(
                option_id=item.option.option_id,
                title=item.option.title,
                kind=item.option.kind.value,
                required=item.required,
                visible=item.visible,
                answer=session.selected.get(item.option.option_id),
                values=[
                    OptionValueSchema(value_id=v.value_id, title=v.title, price=v.price)
                    for v in item.option.sorted_values()
                ],
            )
            for item in resolution.visibility
        ],
        date_availability=(
            DateAvailabilitySchema(
                date=session.date_availability.date,
                remaining=session.date_availability.remaining,
                allowed=session.date_availability.allowed,
            )
            if session.date_availability
            else None
        ),
        item_total=_money(session.item_total) if session.item_total else None,
    )

    step = session.step
    if isinstance(step, CheckoutStep):
        view.item_total = _money(step.grand_total)
    elif isinstance(step, PaymentStep):
        view.email = step.email
        if step.payment_methods:
            view.payment_methods = [PaymentMethodSchema(code=m.code, title=m.title) for m in step.payment_methods]
            # suggest the method the cart already has, else the first offered
            accepted = session.accepted_payment_method
            view.selected_payment_method = next(
                (m for m in view.payment_methods if m.code == accepted),
                view.payment_methods[0],
            )
        elif step.payment_methods is not None:
            view.payment_methods = []
    elif isinstance(step, ReviewStep):
        view.selected_payment_method = PaymentMethodSchema(code=step.payment_method.code, title=step.payment_method.title)
        view.totals = _totals(step.totals)
        view.email = step.totals.email
    elif isinstance(step, SuccessStep):
        view.order_number = step.order_number
        view.payment_link = step.payment_link
    return view


def _get_orchestrator(session_id: str, registry: BookingSessionRegistry) -> BookingOrchestrator:
    orchestrator = registry.get(session_id)
    if orchestrator is None or not orchestrator.has_session:
        raise HTTPException(status_code=404, detail="Booking session not found")
    return orchestrator


def _respond(session_id: str, orchestrator: BookingOrchestrator, result: TransitionResult) -> SessionViewSchema:
    if not result.accepted:
        status = _STATUS_BY_FAILURE.get(result.failure or FailureKind.VALIDATION, 422)
        raise HTTPException(
            status_code=status,
            detail={"error": result.error, "failure": result.failure.value if result.failure else None, "step": result.step.name},
        )
    return build_session_view(session_id, orchestrator)


@router.get("/booking/products", response_model=list[ProductSummarySchema])
async def list_products(catalog: ProductCatalogPort = Depends(get_product_catalog)):
    products = await catalog.list_booking_products()
    return [
        ProductSummarySchema(sku=p.sku, name=p.name, url_key=p.url_key, price=_money(p.price), image_url=p.image_url)
        for p in products
    ]


@router.post("/booking/sessions", response_model=SessionViewSchema, status_code=201)
async def start_session(
    req: StartSessionRequestSchema,
    catalog: ProductCatalogPort = Depends(get_product_catalog),
    registry: BookingSessionRegistry = Depends(get_session_registry),
    orchestrator_factory: Callable[[str], BookingOrchestrator] = Depends(get_orchestrator_factory),
):
    try:
        product = await catalog.get_product(req.url_key)
    except CartGatewayError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if product is None:
        raise HTTPException(status_code=404, detail=f"Tour '{req.url_key}' not found")

    feed = await catalog.get_booking_availability(product.sku)
    session_id = uuid4().hex
    orchestrator = orchestrator_factory(session_id)
    result = await orchestrator.start(product, feed)
    registry.put(session_id, orchestrator)
    if not result.accepted:
        logger.warning("Session started without a cart", extra={"session_id": session_id, "reason": result.error})
    return build_session_view(session_id, orchestrator)


@router.get("/booking/sessions/{session_id}", response_model=SessionViewSchema)
def get_session(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    return build_session_view(session_id, _get_orchestrator(session_id, registry))


@router.delete("/booking/sessions/{session_id}", status_code=204)
def close_session(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    orchestrator = registry.remove(session_id)
    if orchestrator is None:
        raise HTTPException(status_code=404, detail="Booking session not found")
    orchestrator.close()
    return Response(status_code=204)


@router.put("/booking/sessions/{session_id}/options/{option_id}", response_model=SessionViewSchema)
def set_option(
    session_id: str,
    option_id: int,
    req: OptionAnswerRequestSchema,
    registry: BookingSessionRegistry = Depends(get_session_registry),
):
    orchestrator = _get_orchestrator(session_id, registry)
    return _respond(session_id, orchestrator, orchestrator.set_option(option_id, req.value))


@router.put("/booking/sessions/{session_id}/quantity", response_model=SessionViewSchema)
def set_quantity(
    session_id: str,
    req: QuantityRequestSchema,
    registry: BookingSessionRegistry = Depends(get_session_registry),
):
    orchestrator = _get_orchestrator(session_id, registry)
    return _respond(session_id, orchestrator, orchestrator.set_quantity(req.quantity))


@router.post("/booking/sessions/{session_id}/confirm", response_model=SessionViewSchema)
async def confirm_selection(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    orchestrator = _get_orchestrator(session_id, registry)
    return _respond(session_id, orchestrator, await orchestrator.confirm_selection())


@router.post("/booking/sessions/{session_id}/enquiry", response_model=EnquiryResponseSchema)
def enquire(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    orchestrator = _get_orchestrator(session_id, registry)
    redirect = orchestrator.enquire()
    if redirect is None:
        raise HTTPException(status_code=422, detail=orchestrator.session.error)
    return EnquiryResponseSchema(url=redirect.url, message=redirect.message)


@router.post("/booking/sessions/{session_id}/checkout", response_model=SessionViewSchema)
async def submit_checkout(
    session_id: str,
    req: CheckoutRequestSchema,
    registry: BookingSessionRegistry = Depends(get_session_registry),
):
    orchestrator = _get_orchestrator(session_id, registry)
    address = BillingAddress(
        firstname=req.address.firstname,
        lastname=req.address.lastname,
        street=tuple(req.address.street),
        city=req.address.city,
        postcode=req.address.postcode,
        country_code=req.address.country_code,
        telephone=req.address.telephone,
        company=req.address.company,
        region=req.address.region,
    )
    result = await orchestrator.submit_checkout(req.email, address)
    if not result.accepted and orchestrator.session.field_errors:
        raise HTTPException(
            status_code=422,
            detail={"error": result.error, "failure": "validation", "fields": orchestrator.session.field_errors},
        )
    return _respond(session_id, orchestrator, result)


@router.get("/booking/sessions/{session_id}/payment-methods", response_model=list[PaymentMethodSchema])
async def payment_methods(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    orchestrator = _get_orchestrator(session_id, registry)
    step = orchestrator.session.step
    if isinstance(step, PaymentStep) and step.payment_methods is not None:
        return [PaymentMethodSchema(code=m.code, title=m.title) for m in step.payment_methods]

    view = _respond(session_id, orchestrator, await orchestrator.load_payment_methods())
    return view.payment_methods or []


@router.post("/booking/sessions/{session_id}/payment", response_model=SessionViewSchema)
async def select_payment_method(
    session_id: str,
    req: PaymentRequestSchema,
    registry: BookingSessionRegistry = Depends(get_session_registry),
):
    orchestrator = _get_orchestrator(session_id, registry)
    return _respond(session_id, orchestrator, await orchestrator.select_payment_method(req.method_code))


@router.post("/booking/sessions/{session_id}/place-order", response_model=SessionViewSchema)
async def place_order(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    orchestrator = _get_orchestrator(session_id, registry)
    return _respond(session_id, orchestrator, await orchestrator.place_order())


@router.post("/booking/sessions/{session_id}/back", response_model=SessionViewSchema)
def back(session_id: str, registry: BookingSessionRegistry = Depends(get_session_registry)):
    orchestrator = _get_orchestrator(session_id, registry)
    return _respond(session_id, orchestrator, orchestrator.back())
