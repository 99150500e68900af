from __future__ import annotations

from decimal import Decimal, InvalidOperation

from domain.models import TransactionKind


def encode_account_choice(account_number: int) -> str:
    """
    Encode a "select this account" callback.

    Format: acct:{account_number}
    """

    return f"acct:{account_number}"


def parse_account_choice(data: str) -> int:
    parts = data.split(":")
    if len(parts) != 2 or parts[0] != "acct":
        raise ValueError(f"Invalid account choice callback data: {data}")

    return int(parts[1])


def encode_quick_amount(kind: TransactionKind, amount: int) -> str:
    """
    Encode a terminal quick-amount button.

    Format: quick:{deposit|withdraw}:{amount}
    """

    return f"quick:{TransactionKind(kind).value}:{amount}"


def parse_quick_amount(data: str) -> tuple[TransactionKind, Decimal]:
    parts = data.split(":")
    if len(parts) != 3 or parts[0] != "quick":
        raise ValueError(f"Invalid quick amount callback data: {data}")

    kind = TransactionKind(parts[1])
    try:
        amount = Decimal(parts[2])
    except InvalidOperation:
        raise ValueError(f"Invalid quick amount callback data: {data}") from None
    return kind, amount
