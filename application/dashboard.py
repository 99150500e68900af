from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from domain.gateway import (
    AccountSearch,
    Err,
    GatewayError,
    LedgerGateway,
    ProfileChanges,
    ProfileDraft,
)
from domain.models import Account, Profile, Session, TransactionKind
from domain.validation import is_blank
from application import services
from application.orchestrator import (
    AccountCreationOrchestrator,
    LinkOrchestrator,
    PinUpdateOrchestrator,
    TransactionOrchestrator,
)
from application.results import OperationResult, failure_message
from application.routing import Capability, DashboardView, require, route
from application.selection import LOAD_FAILED_MESSAGE, AccountSelection


logger = logging.getLogger(__name__)

QUICK_AMOUNTS: Tuple[int, ...] = (20, 50, 100, 200)

SEARCH_FAILED_MESSAGE = "Failed to search. Please try again."
ACCOUNT_NOT_FOUND_MESSAGE = "Account not found"
NO_SEARCH_MESSAGE = "Search for an account first"
NO_LINKED_PROFILE_MESSAGE = "The searched account has no linked profile"


class Dashboard:
    """
    Everything one chat sees for one authenticated session.

    The view is chosen by the role router when the dashboard is created and
    never changes. Each dashboard owns its own selection state and flow
    instances; nothing here is shared between chats.

    Refresh after a successful write depends on the view: customers and
    terminals re-fetch their accounts, employees re-run their last search.
    """

    def __init__(
        self,
        session: Session,
        gateway: LedgerGateway,
        on_session_change: Optional[Callable[[Session], None]] = None,
    ) -> None:
        self.session = session
        self.view = route(session.role)
        self._gateway = gateway
        self._on_session_change = on_session_change

        self.selection = AccountSelection()
        self.search_result: Optional[AccountSearch] = None
        self._search_query: Optional[str] = None

        if self.view is DashboardView.EMPLOYEE:
            refresh = self._refresh_search
        else:
            refresh = self._refresh_accounts

        self.transactions = TransactionOrchestrator(gateway, refresh)
        self.pin_updates = PinUpdateOrchestrator(gateway, refresh)
        self.links = LinkOrchestrator(gateway, self._refresh_search)
        self.account_creation = AccountCreationOrchestrator(gateway)

        if self.view is DashboardView.TERMINAL:
            self.selection.apply([session.account])

    def mount(self) -> OperationResult:
        """Initial load when the dashboard is first shown."""

        if self.view is DashboardView.CUSTOMER:
            return self.selection.refresh(self._gateway, self.session)
        return OperationResult(success=True)

    def _replace_session(self, session: Session) -> None:
        self.session = session
        if self._on_session_change is not None:
            self._on_session_change(session)

    # -- refresh strategies -------------------------------------------------

    def _refresh_accounts(self, session: Session) -> OperationResult:
        result = self.selection.refresh(self._gateway, session)
        if not result.success or self.view is not DashboardView.TERMINAL:
            return result

        # A terminal is bound to the account it logged in with.
        current = self.selection.find(self.session.account.number)
        if current is None:
            logger.warning(
                "Refresh for terminal session on account %s did not return that account",
                self.session.account.number,
            )
            self.selection.apply([self.session.account])
            return OperationResult(success=False, error_message=LOAD_FAILED_MESSAGE)

        self.selection.apply([current])
        self.session = self.session.with_account(current)
        return result

    def _refresh_search(self, session: Session) -> OperationResult:
        if self._search_query is None:
            return OperationResult(success=True)
        return self._run_search(session, self._search_query)

    # -- accounts -----------------------------------------------------------

    def accounts(self) -> List[Account]:
        require(self.view, Capability.LIST_ACCOUNTS)
        return list(self.selection.accounts)

    @property
    def selected(self) -> Optional[Account]:
        return self.selection.selected

    def refresh(self) -> OperationResult:
        require(self.view, Capability.LIST_ACCOUNTS)
        return self._refresh_accounts(self.session)

    def select(self, account_number: str) -> OperationResult:
        require(self.view, Capability.SELECT_ACCOUNT)
        try:
            number = int(str(account_number).strip().lstrip("#"))
        except ValueError:
            return OperationResult(success=False, error_message="Account number must be numeric")

        account = self.selection.select(number)
        if account is None:
            return OperationResult(success=False, error_message=f"No account #{number} on this profile")

        # A new target invalidates whatever the forms last reported.
        self.transactions.reset()
        self.pin_updates.reset()
        return OperationResult(success=True, message=f"Selected account #{number}")

    def transact(self, kind: TransactionKind, amount: str) -> Optional[OperationResult]:
        require(self.view, Capability.TRANSACT)
        self.transactions.set_kind(kind)
        self.transactions.set_amount(amount)
        target = self.selected.number if self.selected is not None else None
        return self.transactions.submit(self.session, target)

    def quick_amounts(self) -> Tuple[int, ...]:
        require(self.view, Capability.QUICK_AMOUNTS)
        return QUICK_AMOUNTS

    def change_pin(self, new_pin: str) -> Optional[OperationResult]:
        require(self.view, Capability.UPDATE_PIN)
        self.pin_updates.set_pin(new_pin)
        result = self.pin_updates.submit(self.session, self._pin_target())

        if (
            result is not None
            and result.success
            and self.view is DashboardView.TERMINAL
            and self.selected is not None
        ):
            self._replace_session(self.session)
        return result

    def _pin_target(self) -> Optional[int]:
        if self.view is DashboardView.EMPLOYEE:
            return self._searched_number()
        return self.selected.number if self.selected is not None else None

    def _searched_number(self) -> Optional[int]:
        if self.search_result is None or self.search_result.account is None:
            return None
        return self.search_result.account.number

    # -- profile ------------------------------------------------------------

    def profile(self) -> Optional[Profile]:
        require(self.view, Capability.VIEW_PROFILE)
        return self.session.profile

    # -- employee tools -----------------------------------------------------

    def search(self, account_number: str) -> OperationResult:
        require(self.view, Capability.SEARCH_ACCOUNT)
        if is_blank(account_number):
            return OperationResult(success=False, error_message="Enter an account number to search")

        query = account_number.strip()
        self.pin_updates.reset()
        self.links.reset()
        return self._run_search(self.session, query)

    def _run_search(self, session: Session, query: str) -> OperationResult:
        try:
            result = self._gateway.search_account(session, query)
        except GatewayError as exc:
            self.search_result = None
            return OperationResult(
                success=False,
                error_message=failure_message(exc, SEARCH_FAILED_MESSAGE),
            )

        if isinstance(result, Err) or not result.value.found:
            logger.info("Account search for %s found nothing", query)
            self.search_result = None
            message = result.message if isinstance(result, Err) else None
            return OperationResult(success=False, error_message=message or ACCOUNT_NOT_FOUND_MESSAGE)

        self._search_query = query
        self.search_result = result.value
        return OperationResult(success=True)

    def link(self, username: str) -> Optional[OperationResult]:
        require(self.view, Capability.LINK_ACCOUNT)
        if self._searched_number() is None:
            return OperationResult(success=False, error_message=NO_SEARCH_MESSAGE)
        self.links.set_username(username)
        return self.links.submit(self.session, self._searched_number())

    def create_account(
        self,
        number: str,
        pin: str,
        account_type: str,
        initial_balance: str,
    ) -> Optional[OperationResult]:
        require(self.view, Capability.CREATE_ACCOUNT)
        self.account_creation.set_fields(
            number=number,
            pin=pin,
            type=account_type,
            initial_balance=initial_balance,
        )
        return self.account_creation.submit(self.session)

    def create_profile(self, draft: ProfileDraft) -> OperationResult:
        require(self.view, Capability.CREATE_PROFILE)
        return services.create_profile(self._gateway, self.session, draft)

    def update_profile(
        self,
        changes: ProfileChanges,
        username: Optional[str] = None,
    ) -> OperationResult:
        """
        Update a profile; without `username`, the one linked to the searched account.
        """

        require(self.view, Capability.UPDATE_PROFILE)
        if username is None:
            if self.search_result is None:
                return OperationResult(success=False, error_message=NO_SEARCH_MESSAGE)
            if self.search_result.profile is None:
                return OperationResult(success=False, error_message=NO_LINKED_PROFILE_MESSAGE)
            username = self.search_result.profile.username

        result = services.update_profile(self._gateway, self.session, username, changes)
        if result.success:
            self._refresh_search(self.session)
        return result

    def search_profile(self, username: str) -> services.ProfileLookupResult:
        require(self.view, Capability.SEARCH_PROFILE)
        return services.search_profile(self._gateway, self.session, username)

    def logs(self) -> services.LogsResult:
        require(self.view, Capability.VIEW_LOGS)
        return services.fetch_logs(self._gateway, self.session)
