from __future__ import annotations

import re

from tourbooking.domain.entities.cart import BillingAddress

_EMAIL_RE = re.compile(r"\S+@\S+\.\S+")


def validate_contact(email: str, address: BillingAddress) -> dict[str, str]:
    """Field-level checks for the checkout step. Returns {field: message}, empty when valid."""
    errors: dict[str, str] = {}

    email = (email or "").strip()
    if not email:
        errors["email"] = "Email is required"
    elif not _EMAIL_RE.fullmatch(email):
        errors["email"] = "Please enter a valid email"

    if not address.firstname.strip():
        errors["firstname"] = "First name is required"
    if not address.lastname.strip():
        errors["lastname"] = "Last name is required"
    if not address.street or not address.street[0].strip():
        errors["street"] = "Street address is required"
    if not address.city.strip():
        errors["city"] = "City is required"
    if not address.postcode.strip():
        errors["postcode"] = "Postal code is required"
    if not address.country_code.strip():
        errors["country_code"] = "Country is required"
    if not address.telephone.strip():
        errors["telephone"] = "Phone number is required"

    return errors


def clean_address(address: BillingAddress) -> BillingAddress:
    """Strip whitespace and drop empty street lines and optional fields."""
    return BillingAddress(
        firstname=address.firstname.strip(),
        lastname=address.lastname.strip(),
        street=tuple(line.strip() for line in address.street if line and line.strip()),
        city=address.city.strip(),
        postcode=address.postcode.strip(),
        country_code=address.country_code.strip().upper(),
        telephone=address.telephone.strip(),
        company=(address.company or "").strip() or None,
        region=(address.region or "").strip() or None,
    )
