"""Hand-written in-memory doubles shared by the test modules."""

from decimal import Decimal
from typing import Callable, Dict, List, Optional

from domain.gateway import (
    Ack,
    AccountDraft,
    AccountSearch,
    Err,
    LedgerGateway,
    LoginGrant,
    Ok,
    ProfileChanges,
    ProfileDraft,
    ProfileSearch,
)
from domain.models import Account, AccountType, LogEntry, Profile, Role, Session
from domain.repositories import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self):
        self.values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


def account(number: int, balance: str = "0.00", type: AccountType = AccountType.CHECKING) -> Account:
    return Account(number=number, type=type, balance=Decimal(balance))


def customer_session(session_id: str = "sess-customer") -> Session:
    return Session(
        session_id=session_id,
        role=Role.CUSTOMER,
        profile=Profile(username="alice", name="Alice", linked_accounts=(1001, 1002)),
    )


def employee_session(session_id: str = "sess-employee") -> Session:
    return Session(session_id=session_id, role=Role.EMPLOYEE)


def terminal_session(acct: Account, session_id: str = "sess-atm") -> Session:
    return Session(session_id=session_id, role=Role.TERMINAL, account=acct)


class FakeLedgerGateway(LedgerGateway):
    """
    Ledger double that keeps balances in memory and records every call.

    `queued` maps an operation name to results (or exceptions) returned in
    order before the default behaviour applies. `before_call` runs at the
    start of every call; tests use it to re-enter the code under test.
    """

    def __init__(self, accounts: Optional[List[Account]] = None):
        self.accounts: Dict[int, Account] = {a.number: a for a in accounts or []}
        self.profiles: Dict[str, Profile] = {}
        self.links: Dict[int, str] = {}
        self.logs: List[LogEntry] = []
        self.calls: List[tuple] = []
        self.queued: Dict[str, list] = {}
        self.grant: Optional[LoginGrant] = None
        self.before_call: Optional[Callable[[str], None]] = None

    def calls_named(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    def _record(self, name: str, *args):
        self.calls.append((name,) + args)
        if self.before_call is not None:
            self.before_call(name)
        queue = self.queued.get(name)
        if queue:
            item = queue.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        return None

    # auth
    def employee_login(self, username, password):
        return self._record("employee_login", username) or self._grant()

    def customer_login(self, username, password):
        return self._record("customer_login", username) or self._grant()

    def atm_login(self, account_number, pin):
        return self._record("atm_login", account_number) or self._grant()

    def _grant(self):
        if self.grant is None:
            return Err("Invalid credentials")
        return Ok(self.grant)

    def logout(self, session):
        return self._record("logout", session.session_id) or Ok(Ack("Logged out"))

    # accounts
    def get_accounts(self, session):
        return self._record("get_accounts", session.session_id) or Ok(list(self.accounts.values()))

    def get_balance(self, session, account_number):
        queued = self._record("get_balance", account_number)
        return queued or Ok(self.accounts[account_number].balance)

    def _move(self, name, account_number, amount, sign):
        target = self.accounts.get(account_number)
        if target is None:
            return Err("Account not found")
        balance = target.balance + sign * amount
        if balance < 0:
            return Err("Insufficient funds")
        self.accounts[account_number] = Account(target.number, target.type, balance)
        return Ok(Ack(f"{name.capitalize()} successful"))

    def deposit(self, session, account_number, amount):
        queued = self._record("deposit", account_number, amount)
        return queued or self._move("deposit", account_number, amount, 1)

    def withdraw(self, session, account_number, amount):
        queued = self._record("withdraw", account_number, amount)
        return queued or self._move("withdrawal", account_number, amount, -1)

    def update_pin(self, session, account_number, new_pin):
        return self._record("update_pin", account_number, new_pin) or Ok(Ack())

    def create_account(self, session, draft: AccountDraft):
        queued = self._record("create_account", draft)
        if queued:
            return queued
        number = int(draft.number)
        if number in self.accounts:
            return Err("Account already exists")
        self.accounts[number] = Account(number, AccountType(draft.type), draft.initial_balance)
        return Ok(Ack("Account created successfully"))

    def search_account(self, session, account_number):
        queued = self._record("search_account", account_number)
        if queued:
            return queued
        found = self.accounts.get(int(account_number))
        if found is None:
            return Ok(AccountSearch(found=False))
        username = self.links.get(found.number)
        return Ok(AccountSearch(found=True, account=found, profile=self.profiles.get(username)))

    def link_account_to_profile(self, session, account_number, username):
        queued = self._record("link_account_to_profile", account_number, username)
        if queued:
            return queued
        if username not in self.profiles:
            return Err("Profile not found")
        self.links[account_number] = username
        return Ok(Ack())

    # profiles
    def create_profile(self, session, draft: ProfileDraft):
        queued = self._record("create_profile", session, draft)
        if queued:
            return queued
        if draft.username in self.profiles:
            return Err("Username already exists")
        self.profiles[draft.username] = Profile(username=draft.username, name=draft.name)
        return Ok(Ack())

    def search_profile(self, session, username):
        queued = self._record("search_profile", username)
        if queued:
            return queued
        profile = self.profiles.get(username)
        return Ok(ProfileSearch(found=profile is not None, profile=profile))

    def update_profile(self, session, username, changes: ProfileChanges):
        return self._record("update_profile", username, changes) or Ok(Ack())

    # logs
    def get_logs(self, session):
        return self._record("get_logs") or Ok(list(self.logs))
