"""Local validation gates. Nothing here reaches the network."""

import re
from typing import Optional

from .exceptions import ValidationError
from .models import ShippingAddress

DISCOUNT_CODE_PATTERN = re.compile(r"^[A-Z0-9]{5}$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
# Optional +country code, then 9-15 digits once separators are stripped
PHONE_PATTERN = re.compile(r"^(\+\d{1,3})?\d{9,15}$")
PHONE_SEPARATORS = re.compile(r"[\s().-]")

REQUIRED_ADDRESS_FIELDS = {
    "full_name": "Full name",
    "phone_number": "Phone number",
    "address_line1": "Address line 1",
    "city": "City",
    "state": "State/Province",
    "postal_code": "Postal code",
    "country": "Country",
}


def normalize_discount_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def validate_discount_code(code: Optional[str]) -> str:
    """Return the normalized code or raise ValidationError"""
    normalized = normalize_discount_code(code)
    if not normalized:
        raise ValidationError("Please enter a discount code", field="discount_code")
    if not DISCOUNT_CODE_PATTERN.match(normalized):
        raise ValidationError(
            "Discount codes are 5 letters or digits (A-Z, 0-9)",
            field="discount_code",
        )
    return normalized


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email.strip()) is not None


def is_valid_phone(phone: Optional[str]) -> bool:
    if not phone:
        return False
    return PHONE_PATTERN.match(PHONE_SEPARATORS.sub("", phone)) is not None


def validate_email(email: Optional[str]) -> str:
    if not email or not email.strip():
        raise ValidationError("Email is required for guest checkout", field="email")
    if not is_valid_email(email):
        raise ValidationError("Please enter a valid email address", field="email")
    return email.strip()


def address_errors(address: ShippingAddress) -> dict[str, str]:
    """Map of field name to message for every problem in the address"""
    errors = {}
    for field, label in REQUIRED_ADDRESS_FIELDS.items():
        if not getattr(address, field, "").strip():
            errors[field] = f"{label} is required"
    if "phone_number" not in errors and not is_valid_phone(address.phone_number):
        errors["phone_number"] = "Please enter a valid phone number"
    return errors

