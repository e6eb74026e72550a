"""Shared validation utilities"""

import re
from typing import Optional


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number.

    Accepts local numbers (01012345678) and international ones (+201012345678).
    Spaces, dashes, dots and parentheses are stripped.

    Returns:
        Normalized phone number (digits, optionally prefixed with +)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    phone = phone.strip()
    prefix = "+" if phone.startswith("+") else ""
    digits = re.sub(r"[\s\-\.\(\)]", "", phone.lstrip("+"))

    if not digits.isdigit():
        raise ValueError("Phone number may only contain digits")

    if len(digits) < 7 or len(digits) > 15:
        raise ValueError("Phone number must be between 7 and 15 digits")

    return f"{prefix}{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_required_text(value: Optional[str], field: str = "Value") -> str:
    """Strip whitespace and reject empty strings"""
    if value is None or not value.strip():
        raise ValueError(f"{field} is required")
    return value.strip()


def validate_time_of_day(value: Optional[str]) -> Optional[str]:
    """Validate HH:MM (24h)"""
    if not value:
        return value
    if not re.match(r"^([01]\d|2[0-3]):[0-5]\d$", value):
        raise ValueError("Time must be in HH:MM format")
    return value
