from pydantic import BaseModel, Field


class StartSessionRequestSchema(BaseModel):
    url_key: str = Field(min_length=1)


class OptionAnswerRequestSchema(BaseModel):
    value: str | list[str] | None = None


class QuantityRequestSchema(BaseModel):
    quantity: int


class AddressSchema(BaseModel):
    firstname: str = ""
    lastname: str = ""
    company: str | None = None
    street: list[str] = Field(default_factory=list)
    city: str = ""
    region: str | None = None
    postcode: str = ""
    country_code: str = "US"
    telephone: str = ""


class CheckoutRequestSchema(BaseModel):
    email: str = ""
    address: AddressSchema


class PaymentRequestSchema(BaseModel):
    method_code: str = ""


class MoneySchema(BaseModel):
    value: float
    currency: str


class OptionValueSchema(BaseModel):
    value_id: int
    title: str
    price: float


class OptionSchema(BaseModel):
    option_id: int
    title: str
    kind: str
    required: bool
    visible: bool
    answer: str | None = None
    values: list[OptionValueSchema] = Field(default_factory=list)


class DateAvailabilitySchema(BaseModel):
    date: str
    remaining: int
    allowed: int


class PaymentMethodSchema(BaseModel):
    code: str
    title: str


class AppliedTaxSchema(BaseModel):
    label: str
    amount: MoneySchema


class TotalsSchema(BaseModel):
    grand_total: MoneySchema
    subtotal_including_tax: MoneySchema
    subtotal_excluding_tax: MoneySchema
    applied_taxes: list[AppliedTaxSchema] = Field(default_factory=list)
    applied_coupons: list[str] = Field(default_factory=list)
    email: str | None = None


class ProductSchema(BaseModel):
    sku: str
    name: str
    price: MoneySchema
    in_stock: bool
    enquiry_only: bool


class ProductSummarySchema(BaseModel):
    sku: str
    name: str
    url_key: str
    price: MoneySchema
    image_url: str | None = None


class SessionViewSchema(BaseModel):
    session_id: str
    step: str
    error: str | None = None
    field_errors: dict[str, str] = Field(default_factory=dict)
    loading: bool = False
    needs_restart: bool = False
    product: ProductSchema
    quantity: int
    options: list[OptionSchema] = Field(default_factory=list)
    date_availability: DateAvailabilitySchema | None = None
    item_total: MoneySchema | None = None
    email: str | None = None
    payment_methods: list[PaymentMethodSchema] | None = None
    selected_payment_method: PaymentMethodSchema | None = None
    totals: TotalsSchema | None = None
    order_number: str | None = None
    payment_link: str | None = None


class EnquiryResponseSchema(BaseModel):
    url: str
    message: str
