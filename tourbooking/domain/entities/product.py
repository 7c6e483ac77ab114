from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OptionKind(str, Enum):
    RADIO = "radio"
    DROP_DOWN = "drop_down"
    CHECKBOX = "checkbox"
    MULTIPLE = "multiple"
    DATE = "date"
    FIELD = "field"


CHOICE_KINDS = frozenset({OptionKind.RADIO, OptionKind.DROP_DOWN, OptionKind.CHECKBOX, OptionKind.MULTIPLE})
MULTI_CHOICE_KINDS = frozenset({OptionKind.CHECKBOX, OptionKind.MULTIPLE})


@dataclass(frozen=True)
class OptionValue:
    value_id: int
    title: str
    price: float = 0.0
    sort_order: int = 0


@dataclass(frozen=True)
class ProductOption:
    """One customizable option of a product.

    The option kind is the tag: choice kinds carry `values`, date and free-text
    kinds never do.
    """

    option_id: int
    title: str
    kind: OptionKind
    required: bool = False
    sort_order: int = 0
    values: tuple[OptionValue, ...] = ()

    def __post_init__(self) -> None:
        if self.kind not in CHOICE_KINDS and self.values:
            raise ValueError(f"{self.kind.value} option '{self.title}' cannot carry values")
        ids = [v.value_id for v in self.values]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate value ids in option '{self.title}'")

    @property
    def is_choice(self) -> bool:
        return self.kind in CHOICE_KINDS

    @property
    def is_multi_choice(self) -> bool:
        return self.kind in MULTI_CHOICE_KINDS

    @property
    def is_date(self) -> bool:
        return self.kind is OptionKind.DATE

    def sorted_values(self) -> list[OptionValue]:
        return sorted(self.values, key=lambda v: v.sort_order)

    def find_value(self, value_id: str | int) -> OptionValue | None:
        for value in self.values:
            if str(value.value_id) == str(value_id):
                return value
        return None

    def find_value_by_title(self, title: str) -> OptionValue | None:
        wanted = title.strip().casefold()
        for value in self.values:
            if value.title.strip().casefold() == wanted:
                return value
        return None


@dataclass(frozen=True)
class Money:
    value: float
    currency: str = "USD"


@dataclass(frozen=True)
class BookableProduct:
    sku: str
    name: str
    price: Money
    in_stock: bool = True
    options: tuple[ProductOption, ...] = ()
    enquiry_only: bool = False
    url_key: str | None = None
    stock_quantity: int | None = None
    image_url: str | None = None
    description_html: str | None = None

    def __post_init__(self) -> None:
        ids = [o.option_id for o in self.options]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate option ids on product {self.sku}")

    def sorted_options(self) -> list[ProductOption]:
        return sorted(self.options, key=lambda o: o.sort_order)

    def get_option(self, option_id: int) -> ProductOption | None:
        for option in self.options:
            if option.option_id == option_id:
                return option
        return None

    def find_option_by_title(self, title: str) -> ProductOption | None:
        wanted = title.strip().casefold()
        for option in self.sorted_options():
            if option.title.strip().casefold() == wanted:
                return option
        return None


@dataclass(frozen=True)
class ProductSummary:
    sku: str
    name: str
    url_key: str
    price: Money
    image_url: str | None = None
    gallery: tuple[str, ...] = field(default_factory=tuple)
