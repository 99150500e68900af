from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from domain.gateway import (
    Err,
    GatewayError,
    LedgerGateway,
    ProfileChanges,
    ProfileDraft,
    Result,
)
from domain.models import LogEntry, Profile, Session
from domain.validation import (
    ACCOUNT_NUMBER_MESSAGE,
    REQUIRED_FIELDS_MESSAGE,
    is_blank,
    is_valid_account_number,
    validate_new_password,
    validate_pin,
    validate_username,
)
from application.results import OperationResult, failure_message


logger = logging.getLogger(__name__)

LOG_PAGE_SIZE = 20


@dataclass
class LoginResult:
    """Result of a login attempt. `session` is set only on success."""

    success: bool
    error_message: Optional[str] = None
    session: Optional[Session] = None


@dataclass
class ProfileLookupResult:
    success: bool
    error_message: Optional[str] = None
    profile: Optional[Profile] = None


@dataclass
class LogsResult:
    success: bool
    error_message: Optional[str] = None
    entries: List[LogEntry] = field(default_factory=list)


def _login(send, failure: str) -> LoginResult:
    try:
        result = send()
    except GatewayError as exc:
        return LoginResult(success=False, error_message=failure_message(exc, failure))

    if isinstance(result, Err):
        return LoginResult(success=False, error_message=result.message or failure)

    # An unknown role in the grant has already raised UnrecognizedRoleError.
    session = result.value.to_session()
    logger.info("Logged in with role %s", session.role.value)
    return LoginResult(success=True, session=session)


def login_employee(gateway: LedgerGateway, username: str, password: str) -> LoginResult:
    if is_blank(username) or is_blank(password):
        return LoginResult(success=False, error_message=REQUIRED_FIELDS_MESSAGE)
    return _login(lambda: gateway.employee_login(username.strip(), password), "Login failed")


def login_customer(gateway: LedgerGateway, username: str, password: str) -> LoginResult:
    if is_blank(username) or is_blank(password):
        return LoginResult(success=False, error_message=REQUIRED_FIELDS_MESSAGE)
    return _login(lambda: gateway.customer_login(username.strip(), password), "Login failed")


def login_terminal(gateway: LedgerGateway, account_number: str, pin: str) -> LoginResult:
    """
    Start a self-service terminal session for one account.

    Account number and PIN format are checked locally; a malformed PIN is
    never sent to the ledger.
    """

    if not is_valid_account_number(account_number):
        return LoginResult(success=False, error_message=ACCOUNT_NUMBER_MESSAGE)
    error = validate_pin(pin)
    if error:
        return LoginResult(success=False, error_message=error)
    return _login(
        lambda: gateway.atm_login(account_number, pin),
        "Invalid account number or PIN",
    )


def logout(gateway: LedgerGateway, session: Session) -> OperationResult:
    """
    End the session on the ledger.

    The ledger call is best effort: the caller clears the local session
    whatever happens here.
    """

    try:
        result = gateway.logout(session)
    except GatewayError as exc:
        logger.warning("Logout request failed: %s", exc)
        return OperationResult(success=True, message="Logged out.")

    if isinstance(result, Err):
        logger.warning("Ledger rejected logout: %s", result.message)
    return OperationResult(success=True, message="Logged out.")


def _ack(send, success: str, failure: str) -> OperationResult:
    try:
        result: Result = send()
    except GatewayError as exc:
        return OperationResult(success=False, error_message=failure_message(exc, failure))

    if isinstance(result, Err):
        return OperationResult(success=False, error_message=result.message or failure)
    return OperationResult(success=True, message=result.value.message or success)


def _validate_draft(draft: ProfileDraft) -> Optional[str]:
    error = validate_username(draft.username)
    if error:
        return error
    if is_blank(draft.name) or is_blank(draft.password):
        return REQUIRED_FIELDS_MESSAGE
    return None


def register_profile(
    gateway: LedgerGateway,
    draft: ProfileDraft,
    confirm_password: str,
) -> OperationResult:
    """Customer self sign-up. No session is attached."""

    error = validate_new_password(draft.password, confirm_password) or _validate_draft(draft)
    if error:
        return OperationResult(success=False, error_message=error)

    return _ack(
        lambda: gateway.create_profile(None, draft),
        "Account created successfully! You can now sign in.",
        "Failed to create account",
    )


def create_profile(
    gateway: LedgerGateway,
    session: Session,
    draft: ProfileDraft,
) -> OperationResult:
    error = _validate_draft(draft)
    if error:
        return OperationResult(success=False, error_message=error)

    return _ack(
        lambda: gateway.create_profile(session, draft),
        "Profile created successfully!",
        "Failed to create profile",
    )


def update_profile(
    gateway: LedgerGateway,
    session: Session,
    username: str,
    changes: ProfileChanges,
) -> OperationResult:
    """
    Send a partial profile update.

    Only fields set on `changes` are sent; an empty password means "keep
    the current one" and is dropped.
    """

    error = validate_username(username)
    if error:
        return OperationResult(success=False, error_message=error)

    if changes.password is not None and not changes.password.strip():
        changes = ProfileChanges(
            name=changes.name,
            phone=changes.phone,
            address=changes.address,
            email=changes.email,
            credit_score=changes.credit_score,
        )
    if changes.is_empty():
        return OperationResult(success=False, error_message="Nothing to update")

    return _ack(
        lambda: gateway.update_profile(session, username.strip(), changes),
        "Profile updated successfully!",
        "Failed to update profile",
    )


def search_profile(gateway: LedgerGateway, session: Session, username: str) -> ProfileLookupResult:
    error = validate_username(username)
    if error:
        return ProfileLookupResult(success=False, error_message=error)

    try:
        result = gateway.search_profile(session, username.strip())
    except GatewayError as exc:
        return ProfileLookupResult(
            success=False,
            error_message=failure_message(exc, "Profile not found"),
        )

    if isinstance(result, Err) or not result.value.found:
        message = result.message if isinstance(result, Err) else None
        return ProfileLookupResult(success=False, error_message=message or "Profile not found")
    return ProfileLookupResult(success=True, profile=result.value.profile)


def fetch_logs(gateway: LedgerGateway, session: Session, limit: int = LOG_PAGE_SIZE) -> LogsResult:
    """Return the most recent activity log entries, newest first."""

    try:
        result = gateway.get_logs(session)
    except GatewayError as exc:
        return LogsResult(success=False, error_message=failure_message(exc, "Failed to load logs"))

    if isinstance(result, Err):
        return LogsResult(success=False, error_message=result.message or "Failed to load logs")

    entries = list(reversed(result.value[-limit:])) if limit > 0 else []
    return LogsResult(success=True, entries=entries)
