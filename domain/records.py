"""
Mapping between domain models and the ledger's camelCase JSON shapes.

The same shapes are used on the wire and for the persisted session record
`{sessionId, role, profile?, account?}`. Decoders raise KeyError, TypeError
or ValueError on malformed input and `UnrecognizedRoleError` on an unknown
role; callers decide how to treat those.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Tuple

from .models import (
    Account,
    AccountType,
    LogEntry,
    Profile,
    Session,
    parse_role,
)


CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise TypeError(f"Not a monetary value: {value!r}")
    amount = Decimal(str(value))
    if not amount.is_finite():
        raise ValueError(f"Not a monetary value: {value!r}")
    return amount.quantize(CENT)


def _account_type(value: Any):
    # Unknown types are kept verbatim so a new server-side type does not
    # make an otherwise valid account unreadable.
    try:
        return AccountType(value)
    except ValueError:
        return str(value)


def account_from_record(data: Dict[str, Any]) -> Account:
    return Account(
        number=int(data["accountNumber"]),
        type=_account_type(data["type"]),
        balance=to_money(data["balance"]),
    )


def account_to_record(account: Account) -> Dict[str, Any]:
    return {
        "accountNumber": account.number,
        "type": getattr(account.type, "value", account.type),
        "balance": float(account.balance),
    }


def _parse_linked_accounts(value: Any) -> Tuple[int, ...]:
    # The ledger sends either a JSON list or its own "[1001,1002]" text form.
    if value is None:
        return ()
    if isinstance(value, str):
        inner = value.strip().strip("[]")
        items: Iterable[Any] = [part for part in inner.split(",") if part.strip()]
    else:
        items = value
    return tuple(int(str(item).strip()) for item in items)


def _text(data: Dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    return str(value)


def profile_from_record(data: Dict[str, Any]) -> Profile:
    return Profile(
        username=str(data["username"]),
        name=_text(data, "name"),
        phone=_text(data, "phone"),
        address=_text(data, "address"),
        email=_text(data, "email"),
        credit_score=_text(data, "creditScore", "0"),
        linked_accounts=_parse_linked_accounts(data.get("linkedAccounts")),
    )


def profile_to_record(profile: Profile) -> Dict[str, Any]:
    return {
        "username": profile.username,
        "name": profile.name,
        "phone": profile.phone,
        "address": profile.address,
        "email": profile.email,
        "creditScore": profile.credit_score,
        "linkedAccounts": list(profile.linked_accounts),
    }


def optional_profile(data: Optional[Dict[str, Any]]) -> Optional[Profile]:
    if data is None:
        return None
    return profile_from_record(data)


def optional_account(data: Optional[Dict[str, Any]]) -> Optional[Account]:
    if data is None:
        return None
    return account_from_record(data)


def session_from_record(data: Dict[str, Any]) -> Session:
    if not isinstance(data, dict):
        raise TypeError("Session record must be an object.")
    return Session(
        session_id=str(data["sessionId"]),
        role=parse_role(data["role"]),
        profile=optional_profile(data.get("profile")),
        account=optional_account(data.get("account")),
    )


def session_to_record(session: Session) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "sessionId": session.session_id,
        "role": session.role.value,
    }
    if session.profile is not None:
        record["profile"] = profile_to_record(session.profile)
    if session.account is not None:
        record["account"] = account_to_record(session.account)
    return record


def log_entry_from_line(line: str) -> LogEntry:
    """Split an activity-log line on its final comma into details and timestamp."""

    details, sep, timestamp = str(line).rpartition(",")
    if not sep:
        return LogEntry(details=str(line), timestamp="")
    parts = [part.strip() for part in details.split(",")]
    return LogEntry(details=", ".join(parts), timestamp=timestamp.strip())
