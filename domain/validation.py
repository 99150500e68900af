"""
Input rules checked before any request reaches the ledger.

Every predicate here is pure. Callers that need a user-facing message use
the `validate_*` helpers, which return the message or None.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Optional


PIN_MESSAGE = "PIN must be exactly 4 digits"
AMOUNT_MESSAGE = "Please enter a valid amount"
ACCOUNT_NUMBER_MESSAGE = "Account number must be at least 4 digits"
REQUIRED_FIELDS_MESSAGE = "Please fill in all fields"
INITIAL_BALANCE_MESSAGE = "Initial balance must be a valid positive number"
USERNAME_REQUIRED_MESSAGE = "Username is required"
PASSWORD_MISMATCH_MESSAGE = "Passwords do not match"
PASSWORD_LENGTH_MESSAGE = "Password must be at least 4 characters"

MIN_ACCOUNT_NUMBER_LENGTH = 4
MIN_PASSWORD_LENGTH = 4

_PIN_RE = re.compile(r"[0-9]{4}")
_DIGITS_RE = re.compile(r"[0-9]+")


def is_valid_pin(value: object) -> bool:
    return isinstance(value, str) and _PIN_RE.fullmatch(value) is not None


def _is_finite_number(value: object) -> bool:
    # bool is an int subclass; True is not an amount.
    if isinstance(value, bool):
        return False
    if not isinstance(value, (int, float, Decimal)):
        return False
    if isinstance(value, Decimal) and not value.is_finite():
        return False
    # Amounts go over the wire as JSON floats, so they must fit one.
    try:
        return math.isfinite(float(value))
    except OverflowError:
        return False


def is_valid_amount(value: object) -> bool:
    return _is_finite_number(value) and value > 0 and float(value) > 0


def is_valid_initial_balance(value: object) -> bool:
    return _is_finite_number(value) and value >= 0


def is_valid_account_number(value: object) -> bool:
    return (
        isinstance(value, str)
        and _DIGITS_RE.fullmatch(value) is not None
        and len(value) >= MIN_ACCOUNT_NUMBER_LENGTH
    )


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def parse_amount(text: object) -> Optional[Decimal]:
    """Parse user text into a Decimal, or None when it is not a number."""

    if isinstance(text, Decimal):
        return text
    if text is None or isinstance(text, bool):
        return None
    try:
        return Decimal(str(text).strip())
    except InvalidOperation:
        return None


def validate_amount(value: object) -> Optional[str]:
    if not is_valid_amount(value):
        return AMOUNT_MESSAGE
    return None


def validate_pin(value: object) -> Optional[str]:
    if not is_valid_pin(value):
        return PIN_MESSAGE
    return None


def validate_username(value: Optional[str]) -> Optional[str]:
    if is_blank(value):
        return USERNAME_REQUIRED_MESSAGE
    return None


def validate_new_password(password: str, confirmation: str) -> Optional[str]:
    if password != confirmation:
        return PASSWORD_MISMATCH_MESSAGE
    if len(password) < MIN_PASSWORD_LENGTH:
        return PASSWORD_LENGTH_MESSAGE
    return None
