from __future__ import annotations

import enum
from typing import Dict, FrozenSet, Union

from domain.models import Role, UnrecognizedRoleError, parse_role


class DashboardView(str, enum.Enum):
    EMPLOYEE = "employee"
    CUSTOMER = "customer"
    TERMINAL = "terminal"


class Capability(str, enum.Enum):
    LIST_ACCOUNTS = "list_accounts"
    SELECT_ACCOUNT = "select_account"
    TRANSACT = "transact"
    QUICK_AMOUNTS = "quick_amounts"
    UPDATE_PIN = "update_pin"
    VIEW_PROFILE = "view_profile"
    SEARCH_ACCOUNT = "search_account"
    LINK_ACCOUNT = "link_account"
    CREATE_ACCOUNT = "create_account"
    CREATE_PROFILE = "create_profile"
    UPDATE_PROFILE = "update_profile"
    SEARCH_PROFILE = "search_profile"
    VIEW_LOGS = "view_logs"


class CapabilityDenied(Exception):
    def __init__(self, view: DashboardView, capability: Capability) -> None:
        super().__init__(
            f"That command is not available from the {view.value} dashboard."
        )
        self.view = view
        self.capability = capability


_VIEW_BY_ROLE: Dict[Role, DashboardView] = {
    Role.EMPLOYEE: DashboardView.EMPLOYEE,
    Role.CUSTOMER: DashboardView.CUSTOMER,
    Role.TERMINAL: DashboardView.TERMINAL,
}

CAPABILITIES: Dict[DashboardView, FrozenSet[Capability]] = {
    DashboardView.EMPLOYEE: frozenset(
        {
            Capability.SEARCH_ACCOUNT,
            Capability.UPDATE_PIN,
            Capability.LINK_ACCOUNT,
            Capability.CREATE_ACCOUNT,
            Capability.CREATE_PROFILE,
            Capability.UPDATE_PROFILE,
            Capability.SEARCH_PROFILE,
            Capability.VIEW_LOGS,
        }
    ),
    DashboardView.CUSTOMER: frozenset(
        {
            Capability.LIST_ACCOUNTS,
            Capability.SELECT_ACCOUNT,
            Capability.TRANSACT,
            Capability.UPDATE_PIN,
            Capability.VIEW_PROFILE,
        }
    ),
    DashboardView.TERMINAL: frozenset(
        {
            Capability.LIST_ACCOUNTS,
            Capability.TRANSACT,
            Capability.QUICK_AMOUNTS,
            Capability.UPDATE_PIN,
        }
    ),
}


def route(role: Union[Role, str]) -> DashboardView:
    """
    Map a session role to the dashboard it may reach.

    An unknown role is a contract violation with the ledger and raises
    `UnrecognizedRoleError`; there is no fallback view.
    """

    view = _VIEW_BY_ROLE.get(parse_role(role))
    if view is None:
        raise UnrecognizedRoleError(role)
    return view


def allows(view: DashboardView, capability: Capability) -> bool:
    return capability in CAPABILITIES[view]


def require(view: DashboardView, capability: Capability) -> None:
    if not allows(view, capability):
        raise CapabilityDenied(view, capability)
