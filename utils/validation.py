"""
Input validation utilities for client identity and admin input.
All validators are pure and never raise for string input.
"""

import re
from typing import Optional

from utils.constants import CPF_LENGTH, PHONE_MIN_DIGITS

_NON_DIGITS = re.compile(r"\D")


def strip_digits(value: Optional[str]) -> str:
    """
    Keep only the digits of a value.

    Args:
        value: Any user-typed string (may be None)

    Returns:
        String with digits only ("" for None)
    """
    if not value:
        return ""
    return _NON_DIGITS.sub("", str(value))


def _cpf_check_digit(digits: str, length: int) -> int:
    """Weighted mod-11 check digit over the first `length` digits."""
    total = sum(int(digits[i]) * (length + 1 - i) for i in range(length))
    rest = (total * 10) % 11
    return 0 if rest == 10 else rest


def validate_cpf(cpf: Optional[str]) -> bool:
    """
    Validate a Brazilian CPF (tax id).

    Separators are ignored. The cleaned value must have 11 digits, not all
    identical, and both check digits must match.

    Args:
        cpf: CPF in any format ("111.444.777-35" or "11144477735")

    Returns:
        True if valid, False otherwise
    """
    digits = strip_digits(cpf)
    if len(digits) != CPF_LENGTH or len(set(digits)) == 1:
        return False

    if _cpf_check_digit(digits, 9) != int(digits[9]):
        return False
    return _cpf_check_digit(digits, 10) == int(digits[10])


def is_valid_phone(phone: Optional[str]) -> bool:
    """
    Check that a phone number has at least area code + 8 digits.

    Args:
        phone: Phone number in any format

    Returns:
        True if it has 10 or more digits, False otherwise
    """
    return len(strip_digits(phone)) >= PHONE_MIN_DIGITS


def validate_email(email: str) -> bool:
    """
    Validate email address format.

    Args:
        email: Email address string

    Returns:
        True if valid format, False otherwise
    """
    if not email or not isinstance(email, str):
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def sanitize_text(text: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Sanitize user input text.

    Removes control characters, collapses surrounding whitespace and
    applies an optional length limit.
    """
    if not text:
        return ""

    sanitized = re.sub(r'[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]', '', str(text))
    sanitized = sanitized.strip()

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length].rstrip()

    return sanitized
