"""
Plain-text rendering shared by the Telegram and Discord bots.

Both channels send the same text; only the command prefix differs.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from domain.gateway import AccountSearch, ProfileChanges, ProfileDraft
from domain.models import Account, AccountType, LogEntry, Profile
from application.dashboard import Dashboard
from application.routing import DashboardView


IN_FLIGHT_MESSAGE = "Your previous request is still being processed."
UNSUPPORTED_ROLE_MESSAGE = (
    "The ledger returned a role this client does not support. Please contact support."
)

_TYPE_LABELS = {
    AccountType.CHECKING.value: "Checking",
    AccountType.SAVING.value: "Savings",
    AccountType.LINE_OF_CREDIT.value: "Line of Credit",
}


def format_money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def account_type_label(account_type) -> str:
    value = getattr(account_type, "value", account_type)
    return _TYPE_LABELS.get(value, str(value))


def format_account(account: Account, selected: bool = False) -> str:
    marker = "▶ " if selected else "  "
    return (
        f"{marker}#{account.number} {account_type_label(account.type)}: "
        f"{format_money(account.balance)}"
    )


def format_accounts(accounts: Iterable[Account], selected: Optional[Account]) -> str:
    accounts = list(accounts)
    if not accounts:
        return "No accounts found."

    selected_number = selected.number if selected is not None else None
    lines = [format_account(a, a.number == selected_number) for a in accounts]
    return "Your accounts:\n" + "\n".join(lines)


def format_profile(profile: Optional[Profile]) -> str:
    if profile is None:
        return "No profile information available."

    linked = ", ".join(f"#{n}" for n in profile.linked_accounts) or "none"
    return (
        f"Name: {profile.name}\n"
        f"Username: {profile.username}\n"
        f"Phone: {profile.phone}\n"
        f"Address: {profile.address}\n"
        f"Email: {profile.email}\n"
        f"Credit score: {profile.credit_score}\n"
        f"Linked accounts: {linked}"
    )


def format_search(search: AccountSearch) -> str:
    lines = ["Account found:"]
    if search.account is not None:
        account = search.account
        lines.append(f"Number: #{account.number}")
        lines.append(f"Type: {account_type_label(account.type)}")
        lines.append(f"Balance: {format_money(account.balance)}")

    if search.profile is not None:
        lines.append("")
        lines.append("Linked profile:")
        lines.append(format_profile(search.profile))
    else:
        lines.append("")
        lines.append("Not linked to any profile.")
    return "\n".join(lines)


def format_logs(entries: List[LogEntry]) -> str:
    if not entries:
        return "No activity yet."
    return "\n".join(
        f"{e.timestamp} | {e.details}" if e.timestamp else e.details for e in entries
    )


def format_terminal(dashboard: Dashboard) -> str:
    account = dashboard.selected
    if account is None:
        return "No account on this terminal session."
    return (
        f"Account #{account.number} ({account_type_label(account.type)})\n"
        f"Balance: {format_money(account.balance)}"
    )


def format_dashboard(dashboard: Dashboard) -> str:
    """Short overview of what the chat's dashboard currently shows."""

    if dashboard.view is DashboardView.CUSTOMER:
        return format_accounts(dashboard.selection.accounts, dashboard.selected)
    if dashboard.view is DashboardView.TERMINAL:
        return format_terminal(dashboard)
    if dashboard.search_result is not None:
        return format_search(dashboard.search_result)
    return "Employee dashboard. Search for an account to get started."


def welcome_text(prefix: str) -> str:
    return (
        "Welcome to Ledger Desk!\n"
        f"Use {prefix}login, {prefix}atm or {prefix}register to get started.\n"
        f"Type {prefix}help to see available commands."
    )


def help_text(view: Optional[DashboardView], prefix: str) -> str:
    p = prefix
    if view is None:
        lines = [
            f"{p}login <username> <password>             - sign in as a customer",
            f"{p}login employee <username> <password>    - sign in as an employee",
            f"{p}atm <account number> <pin>              - start a terminal session",
            f"{p}register name=..; username=..; password=..; confirm=..; "
            "phone=..; address=..; email=..  - create a customer profile",
        ]
    elif view is DashboardView.CUSTOMER:
        lines = [
            f"{p}accounts                 - list your accounts",
            f"{p}select <account number>  - choose the account to work with",
            f"{p}deposit <amount>         - deposit into the selected account",
            f"{p}withdraw <amount>        - withdraw from the selected account",
            f"{p}pin <new pin>            - change the selected account's PIN",
            f"{p}refresh                  - reload balances",
            f"{p}profile                  - show your profile",
        ]
    elif view is DashboardView.TERMINAL:
        lines = [
            f"{p}accounts          - show the account balance",
            f"{p}deposit <amount>  - deposit cash",
            f"{p}withdraw [amount] - withdraw cash (no amount shows quick amounts)",
            f"{p}pin <new pin>     - change the PIN",
            f"{p}refresh           - reload the balance",
        ]
    else:
        lines = [
            f"{p}search <account number>                   - look up an account",
            f"{p}pin <new pin>                             - change the searched account's PIN",
            f"{p}link <username>                           - link the searched account to a profile",
            f"{p}newaccount <number> <pin> <type> <initial balance> - open an account",
            f"{p}newprofile name=..; username=..; password=..; phone=..; address=..; email=..",
            f"{p}editprofile [username=..;] name=..; phone=..; address=..; email=..; "
            "credit=..; password=..",
            f"{p}profile <username>                        - look up a profile",
            f"{p}logs                                      - recent activity",
        ]
    lines.append(f"{p}logout - end the session")
    return "\n".join(lines)


# -- key=value arguments ----------------------------------------------------


def parse_fields(text: str) -> Dict[str, str]:
    """
    Parse `key=value; key=value` command arguments.

    Keys are lower-cased; values keep inner spaces. Parts without `=` are
    ignored.
    """

    fields: Dict[str, str] = {}
    for part in text.split(";"):
        key, sep, value = part.partition("=")
        if not sep:
            continue
        fields[key.strip().lower()] = value.strip()
    return fields


def draft_from_fields(fields: Dict[str, str]) -> ProfileDraft:
    return ProfileDraft(
        name=fields.get("name", ""),
        username=fields.get("username", ""),
        password=fields.get("password", ""),
        phone=fields.get("phone", ""),
        address=fields.get("address", ""),
        email=fields.get("email", ""),
    )


def _given(fields: Dict[str, str], *keys: str) -> Optional[str]:
    for key in keys:
        if fields.get(key):
            return fields[key]
    return None


def changes_from_fields(fields: Dict[str, str]) -> ProfileChanges:
    """Only non-blank values become changes."""

    return ProfileChanges(
        name=_given(fields, "name"),
        phone=_given(fields, "phone"),
        address=_given(fields, "address"),
        email=_given(fields, "email"),
        credit_score=_given(fields, "credit", "credit_score"),
        password=_given(fields, "password"),
    )
