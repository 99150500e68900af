"""
HTTP client for the ledger REST service.

Wraps the auth, accounts, profiles and logs endpoints. Responses are
decoded into the typed payloads of `domain.gateway` before they leave this
module. Every call is a single attempt.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

import httpx

from domain.gateway import (
    Ack,
    AccountDraft,
    AccountSearch,
    Err,
    GatewayStatusError,
    GatewayTransportError,
    LoginGrant,
    Ok,
    ProfileChanges,
    ProfileDraft,
    ProfileSearch,
    Result,
)
from domain.models import Account, LogEntry, Session, parse_role
from domain.records import (
    account_from_record,
    log_entry_from_line,
    optional_account,
    optional_profile,
    to_money,
)


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080/api"

# ProfileChanges attribute -> wire field
_PROFILE_FIELDS = {
    "name": "name",
    "phone": "phone",
    "address": "address",
    "email": "email",
    "credit_score": "creditScore",
    "password": "password",
}


def _decode_login(body: Dict[str, Any]) -> LoginGrant:
    grant = LoginGrant(
        session_id=str(body["sessionId"]),
        role=parse_role(body["role"]),
        profile=optional_profile(body.get("profile")),
        account=optional_account(body.get("account")),
    )
    # Raises ValueError for a grant that cannot become a Session.
    grant.to_session()
    return grant


def _decode_ack(body: Dict[str, Any]) -> Ack:
    message = body.get("message")
    return Ack(message=str(message) if message is not None else None)


def _decode_accounts(body: Dict[str, Any]) -> List[Account]:
    return [account_from_record(item) for item in body.get("accounts") or []]


def _decode_account_search(body: Dict[str, Any]) -> AccountSearch:
    found = bool(body.get("found"))
    if not found:
        return AccountSearch(found=False)
    return AccountSearch(
        found=True,
        account=account_from_record(body["account"]),
        profile=optional_profile(body.get("profile")),
    )


def _decode_profile_search(body: Dict[str, Any]) -> ProfileSearch:
    found = bool(body.get("found"))
    if not found:
        return ProfileSearch(found=False)
    return ProfileSearch(found=True, profile=optional_profile(body["profile"]))


def _decode_logs(body: Dict[str, Any]) -> List[LogEntry]:
    return [log_entry_from_line(line) for line in body.get("logs") or []]


def _decode_balance(body: Dict[str, Any]) -> Decimal:
    return to_money(body["balance"])


class HttpLedgerGateway:
    """
    `LedgerGateway` implementation over HTTP/JSON.

    A session passed to a call is attached as a bearer credential. Non-2xx
    statuses raise `GatewayStatusError` carrying the server's `error` text
    when the body has one; network failures and undecodable bodies raise
    `GatewayTransportError`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 5.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        """Close the HTTP client"""
        self._client.close()

    def __enter__(self) -> "HttpLedgerGateway":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # -- plumbing ---------------------------------------------------------

    @staticmethod
    def _headers(session: Optional[Session]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if session is not None:
            headers["Authorization"] = f"Bearer {session.session_id}"
        return headers

    def _call(
        self,
        method: str,
        path: str,
        decode: Callable[[Dict[str, Any]], Any],
        session: Optional[Session] = None,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Result[Any]:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, path)
        try:
            request = self._client.build_request(
                method,
                url,
                json=json,
                params=params,
                headers=self._headers(session),
            )
        except (TypeError, ValueError) as exc:
            logger.warning("Could not encode ledger request %s %s: %s", method, path, exc)
            raise GatewayTransportError(f"Could not encode request to {path}") from exc

        try:
            response = self._client.send(request)
        except httpx.HTTPError as exc:
            logger.warning("Ledger request %s %s failed: %s", method, path, exc)
            raise GatewayTransportError(f"Could not reach the ledger: {exc}") from exc

        body = self._parse_body(response, method, path)

        if not response.is_success:
            error = body.get("error") if isinstance(body, dict) else None
            logger.warning(
                "Ledger returned %s for %s %s: %s",
                response.status_code,
                method,
                path,
                error,
            )
            raise GatewayStatusError(
                response.status_code,
                str(error) if error is not None else None,
            )

        if not isinstance(body, dict):
            raise GatewayTransportError(f"Malformed response from {path}: not an object")

        # List endpoints omit the discriminator; a 2xx without it is a success.
        if body.get("success", True) is False:
            error = body.get("error")
            return Err(message=str(error) if error is not None else None)

        try:
            return Ok(decode(body))
        except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
            logger.warning("Malformed response from %s %s: %s", method, path, exc)
            raise GatewayTransportError(f"Malformed response from {path}") from exc

    @staticmethod
    def _parse_body(response: httpx.Response, method: str, path: str) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            if not response.is_success:
                # An error page without JSON still reports the status.
                return {}
            logger.warning("Non-JSON response from %s %s", method, path)
            raise GatewayTransportError(f"Malformed response from {path}") from exc

    # -- auth -------------------------------------------------------------

    def employee_login(self, username: str, password: str) -> Result[LoginGrant]:
        return self._call(
            "POST",
            "/auth/employee-login",
            _decode_login,
            json={"username": username, "password": password},
        )

    def customer_login(self, username: str, password: str) -> Result[LoginGrant]:
        return self._call(
            "POST",
            "/auth/customer-login",
            _decode_login,
            json={"username": username, "password": password},
        )

    def atm_login(self, account_number: str, pin: str) -> Result[LoginGrant]:
        return self._call(
            "POST",
            "/auth/atm-login",
            _decode_login,
            json={"accountNumber": account_number, "pin": pin},
        )

    def logout(self, session: Session) -> Result[Ack]:
        return self._call("POST", "/auth/logout", _decode_ack, session=session)

    # -- accounts ---------------------------------------------------------

    def get_accounts(self, session: Session) -> Result[List[Account]]:
        return self._call("GET", "/accounts", _decode_accounts, session=session)

    def get_balance(self, session: Session, account_number: int) -> Result[Decimal]:
        return self._call(
            "GET",
            "/accounts/balance",
            _decode_balance,
            session=session,
            params={"accountNumber": str(account_number)},
        )

    def deposit(self, session: Session, account_number: int, amount: Decimal) -> Result[Ack]:
        return self._call(
            "POST",
            "/accounts/deposit",
            _decode_ack,
            session=session,
            json={"accountNumber": str(account_number), "amount": float(amount)},
        )

    def withdraw(self, session: Session, account_number: int, amount: Decimal) -> Result[Ack]:
        return self._call(
            "POST",
            "/accounts/withdraw",
            _decode_ack,
            session=session,
            json={"accountNumber": str(account_number), "amount": float(amount)},
        )

    def update_pin(self, session: Session, account_number: int, new_pin: str) -> Result[Ack]:
        return self._call(
            "POST",
            "/accounts/update-pin",
            _decode_ack,
            session=session,
            json={"accountNumber": str(account_number), "pin": new_pin},
        )

    def create_account(self, session: Session, draft: AccountDraft) -> Result[Ack]:
        return self._call(
            "POST",
            "/accounts/create",
            _decode_ack,
            session=session,
            json={
                "accountNumber": draft.number,
                "pin": draft.pin,
                "type": draft.type,
                "initialBalance": float(draft.initial_balance),
            },
        )

    def search_account(self, session: Session, account_number: str) -> Result[AccountSearch]:
        return self._call(
            "GET",
            "/accounts/search",
            _decode_account_search,
            session=session,
            params={"accountNumber": account_number},
        )

    def link_account_to_profile(
        self,
        session: Session,
        account_number: int,
        username: str,
    ) -> Result[Ack]:
        return self._call(
            "POST",
            "/accounts/link",
            _decode_ack,
            session=session,
            json={"accountNumber": str(account_number), "username": username},
        )

    # -- profiles ---------------------------------------------------------

    def create_profile(self, session: Optional[Session], draft: ProfileDraft) -> Result[Ack]:
        # The ledger stores phone numbers as integers; non-numeric input becomes 0.
        phone = int(draft.phone) if draft.phone.strip().isdigit() else 0
        return self._call(
            "POST",
            "/profiles/create",
            _decode_ack,
            session=session,
            json={
                "name": draft.name,
                "username": draft.username,
                "password": draft.password,
                "phone": phone,
                "address": draft.address,
                "email": draft.email,
            },
        )

    def search_profile(self, session: Session, username: str) -> Result[ProfileSearch]:
        return self._call(
            "GET",
            "/profiles/search",
            _decode_profile_search,
            session=session,
            params={"username": username},
        )

    def update_profile(
        self,
        session: Session,
        username: str,
        changes: ProfileChanges,
    ) -> Result[Ack]:
        payload: Dict[str, Any] = {"username": username}
        for attribute, wire_name in _PROFILE_FIELDS.items():
            value = getattr(changes, attribute)
            if value is not None:
                payload[wire_name] = value
        return self._call(
            "POST",
            "/profiles/update",
            _decode_ack,
            session=session,
            json=payload,
        )

    # -- logs -------------------------------------------------------------

    def get_logs(self, session: Session) -> Result[List[LogEntry]]:
        return self._call("GET", "/logs", _decode_logs, session=session)
