from __future__ import annotations

import logging
from typing import List, Optional

from domain.gateway import Err, GatewayError, LedgerGateway
from domain.models import Account, Session
from application.results import OperationResult, failure_message


logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load accounts"


class AccountSelection:
    """
    The last-fetched account set plus the selected account.

    Accounts keep the order the ledger returned them in. After each refresh
    the selection points at the refreshed copy of the same account number,
    or falls back to the first account (or none) when it disappeared.
    """

    def __init__(self, accounts: Optional[List[Account]] = None) -> None:
        self.accounts: List[Account] = []
        self.selected: Optional[Account] = None
        if accounts is not None:
            self.apply(accounts)

    def apply(self, accounts: List[Account]) -> None:
        self.accounts = list(accounts)

        if self.selected is not None:
            refreshed = self.find(self.selected.number)
            if refreshed is not None:
                self.selected = refreshed
                return

        self.selected = self.accounts[0] if self.accounts else None

    def find(self, account_number: int) -> Optional[Account]:
        for account in self.accounts:
            if account.number == account_number:
                return account
        return None

    def select(self, account_number: int) -> Optional[Account]:
        """Select an account from the current set; unknown numbers change nothing."""

        account = self.find(account_number)
        if account is not None:
            self.selected = account
        return account

    def refresh(self, gateway: LedgerGateway, session: Session) -> OperationResult:
        try:
            result = gateway.get_accounts(session)
        except GatewayError as exc:
            return OperationResult(
                success=False,
                error_message=failure_message(exc, LOAD_FAILED_MESSAGE),
            )

        if isinstance(result, Err):
            return OperationResult(
                success=False,
                error_message=result.message or LOAD_FAILED_MESSAGE,
            )

        self.apply(result.value)
        logger.debug("Refreshed %d account(s)", len(self.accounts))
        return OperationResult(success=True)
