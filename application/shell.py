from __future__ import annotations

import logging
from typing import Dict, Optional, Set, Tuple

from domain.gateway import LedgerGateway, ProfileDraft
from domain.models import Session
from domain.repositories import KeyValueStore
from application import services
from application.dashboard import Dashboard
from application.results import OperationResult
from application.routing import DashboardView
from application.session_store import SESSION_KEY, SessionStore


logger = logging.getLogger(__name__)

NOT_SIGNED_IN_MESSAGE = "You are not signed in. Use login, atm or register first."

_WELCOME = {
    DashboardView.EMPLOYEE: "Signed in to the employee dashboard.",
    DashboardView.CUSTOMER: "Signed in to your customer dashboard.",
    DashboardView.TERMINAL: "Terminal session started.",
}


class SessionShell:
    """
    Owns the persisted sessions and live dashboards of one chat channel.

    Every chat gets its own session record (`bankingSession:<channel>:<chat>`)
    and its own dashboard. The record is read once, the first time a chat is
    seen, and afterwards only written on login, on a terminal PIN change and
    on logout.
    """

    def __init__(self, gateway: LedgerGateway, storage: KeyValueStore, channel: str) -> None:
        self._gateway = gateway
        self._storage = storage
        self._channel = channel
        self._dashboards: Dict[str, Dashboard] = {}
        self._mounted: Set[str] = set()

    def _store(self, chat_id: str) -> SessionStore:
        return SessionStore(self._storage, key=f"{SESSION_KEY}:{self._channel}:{chat_id}")

    def _open(self, chat_id: str, session: Session) -> Tuple[Dashboard, OperationResult]:
        store = self._store(chat_id)
        dashboard = Dashboard(session, self._gateway, on_session_change=store.save)
        self._dashboards[chat_id] = dashboard
        return dashboard, dashboard.mount()

    def dashboard(self, chat_id) -> Optional[Dashboard]:
        """Return the chat's dashboard, restoring a persisted session on first use."""

        chat_id = str(chat_id)
        if chat_id in self._dashboards:
            return self._dashboards[chat_id]
        if chat_id in self._mounted:
            return None

        self._mounted.add(chat_id)
        session = self._store(chat_id).load()
        if session is None:
            return None

        dashboard, mounted = self._open(chat_id, session)
        if not mounted.success:
            logger.warning("Restored session for chat %s but initial load failed: %s",
                           chat_id, mounted.error_message)
        logger.info("Restored %s session for chat %s", dashboard.view.value, chat_id)
        return dashboard

    def _complete_login(self, chat_id, result: services.LoginResult) -> OperationResult:
        if not result.success:
            return OperationResult(success=False, error_message=result.error_message)

        chat_id = str(chat_id)
        self._mounted.add(chat_id)
        self._store(chat_id).save(result.session)
        dashboard, mounted = self._open(chat_id, result.session)

        message = _WELCOME[dashboard.view]
        if not mounted.success:
            message = f"{message}\n{mounted.error_message}"
        return OperationResult(success=True, message=message)

    def login_employee(self, chat_id, username: str, password: str) -> OperationResult:
        return self._complete_login(
            chat_id, services.login_employee(self._gateway, username, password)
        )

    def login_customer(self, chat_id, username: str, password: str) -> OperationResult:
        return self._complete_login(
            chat_id, services.login_customer(self._gateway, username, password)
        )

    def login_terminal(self, chat_id, account_number: str, pin: str) -> OperationResult:
        return self._complete_login(
            chat_id, services.login_terminal(self._gateway, account_number, pin)
        )

    def logout(self, chat_id) -> OperationResult:
        dashboard = self.dashboard(chat_id)
        if dashboard is None:
            return OperationResult(success=False, error_message=NOT_SIGNED_IN_MESSAGE)

        chat_id = str(chat_id)
        result = services.logout(self._gateway, dashboard.session)
        self._store(chat_id).clear()
        self._dashboards.pop(chat_id, None)
        return result

    def register(self, draft: ProfileDraft, confirm_password: str) -> OperationResult:
        return services.register_profile(self._gateway, draft, confirm_password)
