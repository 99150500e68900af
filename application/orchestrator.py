"""
State machines for the ledger's write operations.

Each flow moves IDLE -> VALIDATING -> SUBMITTING -> SETTLED_SUCCESS or
SETTLED_FAILURE for one attempt. While SUBMITTING, further submissions are
ignored, so a flow has at most one request in flight. A successful request
triggers the flow's refresh before success is reported; the client never
computes balances itself. Editing any input of a settled flow returns it to
IDLE and clears the previous result.

Views own their flow instances; the session is passed in on every submit.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Optional

from domain.gateway import AccountDraft, Err, GatewayError, LedgerGateway, Result
from domain.models import AccountType, Session, TransactionIntent, TransactionKind
from domain.validation import (
    ACCOUNT_NUMBER_MESSAGE,
    INITIAL_BALANCE_MESSAGE,
    REQUIRED_FIELDS_MESSAGE,
    is_blank,
    is_valid_account_number,
    is_valid_initial_balance,
    parse_amount,
    validate_amount,
    validate_pin,
    validate_username,
)
from application.results import OperationResult, failure_message


logger = logging.getLogger(__name__)

NO_ACCOUNT_MESSAGE = "Select an account first"
ACCOUNT_TYPE_MESSAGE = "Account type must be one of: " + ", ".join(
    t.value for t in AccountType
)

Refresh = Callable[[Session], OperationResult]


class FlowState(str, enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SETTLED_SUCCESS = "settled_success"
    SETTLED_FAILURE = "settled_failure"


_SETTLED = (FlowState.SETTLED_SUCCESS, FlowState.SETTLED_FAILURE)


class Flow:
    """Shared Validating/Submitting/Settled machinery for one kind of request."""

    name = "request"
    success_text = "Done."
    failure_text = "Request failed"

    def __init__(self, gateway: LedgerGateway, refresh: Optional[Refresh] = None) -> None:
        self._gateway = gateway
        self._refresh = refresh
        self.state = FlowState.IDLE
        self.result: Optional[OperationResult] = None

    @property
    def in_flight(self) -> bool:
        return self.state is FlowState.SUBMITTING

    def _input_changed(self) -> None:
        if self.state in _SETTLED:
            self.state = FlowState.IDLE
            self.result = None

    def reset(self) -> None:
        """Drop the last outcome, e.g. when the target account changes."""

        if not self.in_flight:
            self.state = FlowState.IDLE
            self.result = None

    def _settle(self, result: OperationResult) -> OperationResult:
        self.state = (
            FlowState.SETTLED_SUCCESS if result.success else FlowState.SETTLED_FAILURE
        )
        self.result = result
        if result.success:
            logger.info("%s succeeded", self.name)
        else:
            logger.info("%s failed: %s", self.name, result.error_message)
        return result

    def _run(
        self,
        session: Session,
        validate: Callable[[], Optional[str]],
        send: Callable[[], Result[Any]],
    ) -> Optional[OperationResult]:
        if self.state is FlowState.SUBMITTING:
            logger.debug("%s already in flight; ignoring resubmission", self.name)
            return None

        self.result = None
        self.state = FlowState.VALIDATING
        error = validate()
        if error:
            return self._settle(OperationResult(success=False, error_message=error))

        self.state = FlowState.SUBMITTING
        try:
            try:
                outcome = send()
            except GatewayError as exc:
                return self._settle(
                    OperationResult(
                        success=False,
                        error_message=failure_message(exc, self.failure_text),
                    )
                )

            if isinstance(outcome, Err):
                return self._settle(
                    OperationResult(
                        success=False,
                        error_message=outcome.message or self.failure_text,
                    )
                )

            if self._refresh is not None:
                refreshed = self._refresh(session)
                if not refreshed.success:
                    logger.warning(
                        "%s succeeded but refresh failed: %s",
                        self.name,
                        refreshed.error_message,
                    )

            self._on_success()
            message = getattr(outcome.value, "message", None) or self.success_text
            return self._settle(OperationResult(success=True, message=message))
        finally:
            # Never leave the flow stuck in flight if something unexpected escaped.
            if self.state is FlowState.SUBMITTING:
                self.state = FlowState.SETTLED_FAILURE

    def _on_success(self) -> None:
        pass


class TransactionOrchestrator(Flow):
    """Deposit / withdraw against one account."""

    name = "transaction"
    success_text = "Transaction successful!"
    failure_text = "Transaction failed"

    def __init__(self, gateway: LedgerGateway, refresh: Optional[Refresh] = None) -> None:
        super().__init__(gateway, refresh)
        self.kind = TransactionKind.DEPOSIT
        self.amount_text = ""

    def set_kind(self, kind: TransactionKind) -> None:
        self.kind = TransactionKind(kind)
        self._input_changed()

    def set_amount(self, text: str) -> None:
        self.amount_text = text
        self._input_changed()

    def intent(self, account_number: Optional[int]) -> Optional[TransactionIntent]:
        if account_number is None:
            return None
        return TransactionIntent(
            kind=self.kind,
            account_number=account_number,
            amount=parse_amount(self.amount_text),
        )

    def submit(
        self,
        session: Session,
        account_number: Optional[int],
    ) -> Optional[OperationResult]:
        intent = self.intent(account_number)

        def validate() -> Optional[str]:
            if intent is None:
                return NO_ACCOUNT_MESSAGE
            return validate_amount(intent.amount)

        def send() -> Result[Any]:
            if intent.kind is TransactionKind.DEPOSIT:
                return self._gateway.deposit(session, intent.account_number, intent.amount)
            return self._gateway.withdraw(session, intent.account_number, intent.amount)

        return self._run(session, validate, send)

    def _on_success(self) -> None:
        self.amount_text = ""


class PinUpdateOrchestrator(Flow):
    name = "pin update"
    success_text = "PIN updated successfully!"
    failure_text = "Failed to update PIN"

    def __init__(self, gateway: LedgerGateway, refresh: Optional[Refresh] = None) -> None:
        super().__init__(gateway, refresh)
        self.new_pin = ""

    def set_pin(self, text: str) -> None:
        self.new_pin = text
        self._input_changed()

    def submit(
        self,
        session: Session,
        account_number: Optional[int],
    ) -> Optional[OperationResult]:
        def validate() -> Optional[str]:
            if account_number is None:
                return NO_ACCOUNT_MESSAGE
            return validate_pin(self.new_pin)

        def send() -> Result[Any]:
            return self._gateway.update_pin(session, account_number, self.new_pin)

        return self._run(session, validate, send)

    def _on_success(self) -> None:
        self.new_pin = ""


class LinkOrchestrator(Flow):
    """Links an account to a customer profile by username."""

    name = "account link"
    success_text = "Account linked successfully!"
    failure_text = "Failed to link account"

    def __init__(self, gateway: LedgerGateway, refresh: Optional[Refresh] = None) -> None:
        super().__init__(gateway, refresh)
        self.username = ""

    def set_username(self, text: str) -> None:
        self.username = text
        self._input_changed()

    def submit(
        self,
        session: Session,
        account_number: Optional[int],
    ) -> Optional[OperationResult]:
        def validate() -> Optional[str]:
            if account_number is None:
                return NO_ACCOUNT_MESSAGE
            return validate_username(self.username)

        def send() -> Result[Any]:
            return self._gateway.link_account_to_profile(
                session, account_number, self.username.strip()
            )

        return self._run(session, validate, send)

    def _on_success(self) -> None:
        self.username = ""


class AccountCreationOrchestrator(Flow):
    name = "account creation"
    success_text = "Account created successfully!"
    failure_text = "Failed to create account"

    def __init__(self, gateway: LedgerGateway, refresh: Optional[Refresh] = None) -> None:
        super().__init__(gateway, refresh)
        self.number = ""
        self.pin = ""
        self.type = AccountType.CHECKING.value
        self.initial_balance = ""

    def set_fields(
        self,
        number: Optional[str] = None,
        pin: Optional[str] = None,
        type: Optional[str] = None,
        initial_balance: Optional[str] = None,
    ) -> None:
        if number is not None:
            self.number = number.strip()
        if pin is not None:
            self.pin = pin.strip()
        if type is not None:
            self.type = type.strip()
        if initial_balance is not None:
            self.initial_balance = initial_balance.strip()
        self._input_changed()

    def _validate(self) -> Optional[str]:
        if is_blank(self.number) or is_blank(self.pin) or is_blank(self.initial_balance):
            return REQUIRED_FIELDS_MESSAGE
        if not is_valid_account_number(self.number):
            return ACCOUNT_NUMBER_MESSAGE
        error = validate_pin(self.pin)
        if error:
            return error
        if not is_valid_initial_balance(parse_amount(self.initial_balance)):
            return INITIAL_BALANCE_MESSAGE
        if self.type not in {t.value for t in AccountType}:
            return ACCOUNT_TYPE_MESSAGE
        return None

    def submit(self, session: Session) -> Optional[OperationResult]:
        def send() -> Result[Any]:
            draft = AccountDraft(
                number=self.number,
                pin=self.pin,
                type=self.type,
                initial_balance=parse_amount(self.initial_balance),
            )
            return self._gateway.create_account(session, draft)

        return self._run(session, self._validate, send)

    def _on_success(self) -> None:
        self.number = ""
        self.pin = ""
        self.initial_balance = ""
