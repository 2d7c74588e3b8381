"""Shared validation utilities"""

import re
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Trimmed, lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if email is None:
        return email

    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Please provide a valid email address")
    return email


def email_matches_domain(email: str, domain: Optional[str]) -> bool:
    """True when the email belongs to the given domain (or no domain is enforced)"""
    if not domain:
        return True
    domain = domain.strip().lower().lstrip("@")
    return email.rsplit("@", 1)[-1].lower() == domain


def validate_ph_mobile(number: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a Philippine mobile number (GCash account) to 09XXXXXXXXX.

    Raises:
        ValueError: If the number is not a valid PH mobile number
    """
    if not number:
        return None

    digits = re.sub(r"\D", "", number)
    if digits.startswith("63") and len(digits) == 12:
        digits = "0" + digits[2:]
    elif digits.startswith("9") and len(digits) == 10:
        digits = "0" + digits

    if not (len(digits) == 11 and digits.startswith("09")):
        raise ValueError("GCash number must be a valid PH mobile number (09XXXXXXXXX)")
    return digits
