from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Generic, List, Optional, Protocol, TypeVar, Union

from .models import Account, LogEntry, Profile, Role, Session


T = TypeVar("T")


class GatewayError(Exception):
    """Base class for failures raised by a ledger gateway."""

    server_message: Optional[str] = None


class GatewayTransportError(GatewayError):
    """The request could not complete or the response could not be decoded."""


class GatewayStatusError(GatewayError):
    """The ledger answered with a non-success HTTP status."""

    def __init__(self, status_code: int, server_message: Optional[str] = None) -> None:
        super().__init__(server_message or f"Ledger returned HTTP {status_code}")
        self.status_code = status_code
        self.server_message = server_message


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    """A `success: false` answer. `message` is the server's `error`, if any."""

    message: Optional[str] = None


Result = Union[Ok[T], Err]


@dataclass(frozen=True)
class Ack:
    """Payload of operations that only confirm success."""

    message: Optional[str] = None


@dataclass(frozen=True)
class LoginGrant:
    session_id: str
    role: Role
    profile: Optional[Profile] = None
    account: Optional[Account] = None

    def to_session(self) -> Session:
        return Session(
            session_id=self.session_id,
            role=self.role,
            profile=self.profile,
            account=self.account,
        )


@dataclass(frozen=True)
class AccountSearch:
    found: bool
    account: Optional[Account] = None
    profile: Optional[Profile] = None


@dataclass(frozen=True)
class ProfileSearch:
    found: bool
    profile: Optional[Profile] = None


@dataclass(frozen=True)
class ProfileDraft:
    """Fields for a new profile. The password travels to the ledger only."""

    name: str
    username: str
    password: str
    phone: str
    address: str
    email: str


@dataclass(frozen=True)
class ProfileChanges:
    """Partial profile update; None means "leave unchanged"."""

    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    credit_score: Optional[str] = None
    password: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in self.__dataclass_fields__)


@dataclass(frozen=True)
class AccountDraft:
    number: str
    pin: str
    type: str
    initial_balance: Decimal


class LedgerGateway(Protocol):
    """
    Typed access to the remote ledger service.

    Every call is a single attempt. Implementations raise
    `GatewayTransportError` / `GatewayStatusError` and otherwise return
    `Ok` or `Err`; interpreting `Err` is the caller's job.
    """

    # auth
    def employee_login(self, username: str, password: str) -> Result[LoginGrant]:
        ...

    def customer_login(self, username: str, password: str) -> Result[LoginGrant]:
        ...

    def atm_login(self, account_number: str, pin: str) -> Result[LoginGrant]:
        ...

    def logout(self, session: Session) -> Result[Ack]:
        ...

    # accounts
    def get_accounts(self, session: Session) -> Result[List[Account]]:
        ...

    def get_balance(self, session: Session, account_number: int) -> Result[Decimal]:
        ...

    def deposit(self, session: Session, account_number: int, amount: Decimal) -> Result[Ack]:
        ...

    def withdraw(self, session: Session, account_number: int, amount: Decimal) -> Result[Ack]:
        ...

    def update_pin(self, session: Session, account_number: int, new_pin: str) -> Result[Ack]:
        ...

    def create_account(self, session: Session, draft: AccountDraft) -> Result[Ack]:
        ...

    def search_account(self, session: Session, account_number: str) -> Result[AccountSearch]:
        ...

    def link_account_to_profile(
        self,
        session: Session,
        account_number: int,
        username: str,
    ) -> Result[Ack]:
        ...

    # profiles
    def create_profile(self, session: Optional[Session], draft: ProfileDraft) -> Result[Ack]:
        ...

    def search_profile(self, session: Session, username: str) -> Result[ProfileSearch]:
        ...

    def update_profile(
        self,
        session: Session,
        username: str,
        changes: ProfileChanges,
    ) -> Result[Ack]:
        ...

    # logs
    def get_logs(self, session: Session) -> Result[List[LogEntry]]:
        ...
