from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Optional, Tuple, Union


class UnrecognizedRoleError(Exception):
    """Raised when a role value is none of the three known roles."""

    def __init__(self, role: object) -> None:
        super().__init__(f"Unrecognized session role: {role!r}")
        self.role = role


class Role(str, enum.Enum):
    """
    Actor role carried by a session.

    The values are the wire values used by the ledger service; the
    self-service terminal is called "atm" on the wire.
    """

    EMPLOYEE = "employee"
    CUSTOMER = "customer"
    TERMINAL = "atm"


def parse_role(value: Union[Role, str]) -> Role:
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        raise UnrecognizedRoleError(value) from None


class AccountType(str, enum.Enum):
    CHECKING = "checking"
    SAVING = "saving"
    LINE_OF_CREDIT = "lineOfCredit"


class TransactionKind(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


@dataclass(frozen=True)
class Account:
    """
    Client-side snapshot of a ledger account.

    The ledger owns the real balance; a snapshot is stale from the moment
    it is fetched until the next refresh. PINs echoed by the ledger are
    dropped on decode and never held client-side.
    """

    number: int
    type: Union[AccountType, str]
    balance: Decimal


@dataclass(frozen=True)
class Profile:
    """Customer profile as exposed by the ledger. Passwords never appear here."""

    username: str
    name: str = ""
    phone: str = ""
    address: str = ""
    email: str = ""
    credit_score: str = "0"
    linked_accounts: Tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Session:
    """
    An authenticated identity plus role.

    Sessions are values: changing the profile or account snapshot yields a
    new Session which the owner re-saves.
    """

    session_id: str
    role: Role
    profile: Optional[Profile] = None
    account: Optional[Account] = None

    def __post_init__(self) -> None:
        if not self.session_id:
            raise ValueError("Session id must not be empty.")
        if not isinstance(self.role, Role):
            raise UnrecognizedRoleError(self.role)
        if self.role is Role.TERMINAL:
            if self.account is None:
                raise ValueError("A terminal session must carry its account.")
            if self.profile is not None:
                raise ValueError("A terminal session cannot carry a profile.")

    def with_account(self, account: Account) -> "Session":
        return replace(self, account=account)

    def with_profile(self, profile: Profile) -> "Session":
        return replace(self, profile=profile)


@dataclass(frozen=True)
class TransactionIntent:
    """A proposed deposit or withdrawal awaiting validation and submission."""

    kind: TransactionKind
    account_number: int
    amount: Optional[Decimal]


@dataclass(frozen=True)
class LogEntry:
    """One line of the ledger's activity log."""

    details: str
    timestamp: str
