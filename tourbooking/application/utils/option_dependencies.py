from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping

from tourbooking.application.utils.availability import calendar_day
from tourbooking.domain.entities.cart import CartItemOption
from tourbooking.domain.entities.product import ProductOption


@dataclass(frozen=True)
class DependencyRule:
    """Dependent options are shown only while the controlling option holds the affirmative value."""

    controlling_title: str
    affirmative_value_title: str
    dependent_titles: tuple[str, ...]


CRUISE_SHIP_RULE = DependencyRule(
    controlling_title="Are you Coming in Cruise Ship?",
    affirmative_value_title="YES",
    dependent_titles=("Ship Arrival TIme", "Ship Departure TIme"),
)

DEFAULT_DEPENDENCY_RULES: tuple[DependencyRule, ...] = (CRUISE_SHIP_RULE,)


@dataclass(frozen=True)
class OptionVisibility:
    option: ProductOption
    visible: bool
    required: bool  # effective: hidden options are never required
    answered: bool


@dataclass(frozen=True)
class OptionResolution:
    visibility: tuple[OptionVisibility, ...]  # in sort order
    missing_required: tuple[ProductOption, ...]
    invalid: tuple[ProductOption, ...]
    payload: tuple[CartItemOption, ...]

    @property
    def is_complete(self) -> bool:
        return not self.missing_required and not self.invalid

    def missing_titles(self) -> list[str]:
        return [o.title for o in self.missing_required]

    def invalid_titles(self) -> list[str]:
        return [o.title for o in self.invalid]

    def is_visible(self, option_id: int) -> bool:
        for item in self.visibility:
            if item.option.option_id == option_id:
                return item.visible
        return False


@dataclass(frozen=True)
class _Dependency:
    controlling_option_id: int | None
    affirmative_value_id: str | None


def format_date_value(value: str) -> str:
    """Midnight-anchored date-time for a calendar day: 'YYYY-MM-DD 00:00:00'."""
    return f"{calendar_day(value)} 00:00:00"


def normalize_answer(option: ProductOption, raw: str | None) -> str:
    """Canonical form of an answer; empty string means unanswered."""
    if raw is None:
        return ""
    if option.is_multi_choice:
        seen: list[str] = []
        for part in str(raw).split(","):
            part = part.strip()
            if part and part not in seen:
                seen.append(part)
        return ",".join(seen)
    if option.is_choice or option.is_date:
        return str(raw).strip()
    return str(raw) if str(raw).strip() else ""


def is_valid_answer(option: ProductOption, answer: str) -> bool:
    if not answer:
        return True
    if option.is_date:
        try:
            date.fromisoformat(calendar_day(answer))
        except ValueError:
            return False
        return True
    if option.is_choice:
        ids = answer.split(",") if option.is_multi_choice else [answer]
        return all(option.find_value(value_id) is not None for value_id in ids)
    return True


class OptionDependencyResolver:
    """
    Decides which options of one product are visible, which visible required
    options are still unanswered, and builds the cart payload.

    Rules are bound to concrete option ids once per product; `resolve` is pure
    and returns a fresh result for a given answer map.
    """

    def __init__(
        self,
        options: Iterable[ProductOption],
        rules: Iterable[DependencyRule] = DEFAULT_DEPENDENCY_RULES,
    ) -> None:
        self._options = sorted(options, key=lambda o: o.sort_order)
        self._by_id = {o.option_id: o for o in self._options}
        self._dependencies = self._bind_rules(rules)

    @property
    def options(self) -> list[ProductOption]:
        return list(self._options)

    def _find_by_title(self, title: str) -> ProductOption | None:
        wanted = title.strip().casefold()
        for option in self._options:
            if option.title.strip().casefold() == wanted:
                return option
        return None

    def _bind_rules(self, rules: Iterable[DependencyRule]) -> dict[int, _Dependency]:
        dependencies: dict[int, _Dependency] = {}
        for rule in rules:
            controlling = self._find_by_title(rule.controlling_title)
            affirmative_id: str | None = None
            if controlling is not None:
                affirmative = controlling.find_value_by_title(rule.affirmative_value_title)
                affirmative_id = str(affirmative.value_id) if affirmative else None

            # Without a controlling option or its affirmative value the dependents stay hidden.
            dependency = _Dependency(
                controlling_option_id=controlling.option_id if controlling else None,
                affirmative_value_id=affirmative_id,
            )
            for title in rule.dependent_titles:
                dependent = self._find_by_title(title)
                if dependent is not None:
                    dependencies[dependent.option_id] = dependency
        return dependencies

    def is_visible(self, option_id: int, selected: Mapping[int, str], _seen: frozenset[int] = frozenset()) -> bool:
        dependency = self._dependencies.get(option_id)
        if dependency is None:
            return True
        if dependency.controlling_option_id is None or dependency.affirmative_value_id is None:
            return False
        if option_id in _seen:
            return False
        controlling_id = dependency.controlling_option_id
        if not self.is_visible(controlling_id, selected, _seen | {option_id}):
            return False
        controlling = self._by_id[controlling_id]
        return normalize_answer(controlling, selected.get(controlling_id)) == dependency.affirmative_value_id

    def resolve(self, selected: Mapping[int, str]) -> OptionResolution:
        visibility: list[OptionVisibility] = []
        missing: list[ProductOption] = []
        invalid: list[ProductOption] = []
        payload: list[CartItemOption] = []

        for option in self._options:
            visible = self.is_visible(option.option_id, selected)
            answer = normalize_answer(option, selected.get(option.option_id))
            answered = bool(answer)
            required = visible and option.required
            visibility.append(OptionVisibility(option=option, visible=visible, required=required, answered=answered))

            if not visible:
                continue
            if not answered:
                if required:
                    missing.append(option)
                continue
            if not is_valid_answer(option, answer):
                invalid.append(option)
                continue

            if option.is_date:
                payload.append(CartItemOption(option_id=option.option_id, value_date=format_date_value(answer)))
            else:
                payload.append(CartItemOption(option_id=option.option_id, value_string=answer))

        return OptionResolution(
            visibility=tuple(visibility),
            missing_required=tuple(missing),
            invalid=tuple(invalid),
            payload=tuple(payload),
        )
